from __future__ import annotations

from conftest import RecordingOpener, RecordingRequester
from ratingkit import RatingAction, RatingConfig, RatingManager


def test_feedback_url_opened_without_event_loop(store, clock, scenario_config):
    opener = RecordingOpener()
    manager = RatingManager(scenario_config, store, url_opener=opener, clock=clock)

    manager.on_sentiment_response(False)

    assert opener.urls == ["https://example.com/feedback"]
    assert manager.metrics.dispatched_total == 1


def test_metrics_count_decisions(store, clock):
    manager = RatingManager(RatingConfig(minimum_app_sessions=1), store, clock=clock)
    manager.evaluate()
    manager.record_session_event()
    manager.evaluate()
    assert manager.metrics.evaluations_total == 2
    assert manager.metrics.by_action == {"do_nothing": 1, "show_sentiment_gate": 1}


def test_default_store_comes_from_storage_config(tmp_path):
    cfg = RatingConfig.from_dict({
        "sentiment_gate_enabled": False,
        "storage": {"backend": "json", "path": str(tmp_path / "state.json")},
    })
    manager = RatingManager(cfg, review_requester=RecordingRequester())
    manager.record_session_event()
    manager.close()

    reopened = RatingManager(cfg)
    assert reopened.get_statistics().app_sessions == 1
    assert reopened.evaluate() == RatingAction.SHOW_STORE_REVIEW
