from __future__ import annotations

from ratingkit import PersistentCounterStore, RatingConfig, SentimentGatePolicy, StateKey


def _gate(store: PersistentCounterStore, **kwargs) -> SentimentGatePolicy:
    return SentimentGatePolicy(RatingConfig(**kwargs), store)


def test_fresh_gate_should_present(store: PersistentCounterStore):
    gate = _gate(store)
    assert gate.should_present() is True
    assert gate.likes_app() is False


def test_positive_answer_closes_gate(store: PersistentCounterStore):
    gate = _gate(store)
    gate.record_positive()

    assert gate.should_present() is False
    assert gate.likes_app() is True
    assert store.get_bool(StateKey.USER_DECLINED_PERMANENTLY) is False


def test_positive_answer_is_idempotent(store: PersistentCounterStore):
    gate = _gate(store)
    gate.record_positive()
    gate.record_positive()
    assert gate.should_present() is False
    assert gate.likes_app() is True


def test_negative_answer_is_terminal_and_returns_feedback_url(store: PersistentCounterStore):
    gate = _gate(store, feedback_url="mailto:support@example.com")
    url = gate.record_negative()

    assert url == "mailto:support@example.com"
    assert gate.should_present() is False
    assert gate.likes_app() is False
    assert store.get_optional_bool(StateKey.SENTIMENT_POSITIVE) is False
    assert gate.has_declined_permanently() is True


def test_negative_without_feedback_url(store: PersistentCounterStore):
    assert _gate(store).record_negative() is None


def test_shown_implies_positive_present(store: PersistentCounterStore):
    gate = _gate(store)
    for record in (gate.record_positive, gate.record_negative):
        record()
        assert store.get_bool(StateKey.SENTIMENT_GATE_SHOWN) is True
        assert store.get_optional_bool(StateKey.SENTIMENT_POSITIVE) is not None


def test_refresh_is_noop_when_negative_is_permanent(store: PersistentCounterStore):
    gate = _gate(store, app_version="1.0")
    gate.record_negative()

    upgraded = _gate(store, app_version="2.0")
    assert upgraded.refresh_for_version() is False
    assert upgraded.should_present() is False


def test_refresh_rearms_gate_on_new_version(store: PersistentCounterStore):
    gate = _gate(store, negative_response_permanent=False, app_version="1.0")
    gate.record_negative()
    assert store.get_bool(StateKey.USER_DECLINED_PERMANENTLY) is False
    assert gate.refresh_for_version() is False

    upgraded = _gate(store, negative_response_permanent=False, app_version="1.1")
    assert upgraded.refresh_for_version() is True
    assert upgraded.should_present() is True
    assert store.get_optional_bool(StateKey.SENTIMENT_POSITIVE) is None
    assert store.get_str(StateKey.SENTIMENT_APP_VERSION) is None


def test_positive_after_terminal_negative_is_ignored(store: PersistentCounterStore):
    gate = _gate(store)
    gate.record_negative()
    gate.record_positive()

    assert gate.has_declined_permanently() is True
    assert gate.likes_app() is False
    assert store.get_optional_bool(StateKey.SENTIMENT_POSITIVE) is False
