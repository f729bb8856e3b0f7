from __future__ import annotations

from typing import Optional

from loguru import logger

from .config import RatingConfig
from .dispatch import TaskDispatcher, maybe_await
from .engine import Clock, RatingEligibilityEngine
from .gate import SentimentGatePolicy
from .metrics import RatingMetrics
from .storage import PersistentCounterStore, build_store
from .types import (
    RatingAction,
    RatingDecision,
    RatingStatistics,
    ReviewRequester,
    SentimentPresenter,
    SentimentResponse,
    URLOpener,
)


class RatingManager:
    """
    Host-facing entry point.

    Usage (inside the host's UI event loop):

        manager = RatingManager(
            config=RatingConfig(minimum_app_sessions=3, minimum_success_flows=1),
            review_requester=store_kit,
            url_opener=browser,
            presenter=alert_ui,
        )

        manager.record_session_event()
        ...
        manager.record_success_event()
        action = await manager.request_rating()

    Hosts that render the gate themselves can use ``evaluate()``,
    ``on_sentiment_response()`` and ``record_rating_request_issued()``
    directly instead of ``request_rating()``.
    """

    def __init__(
        self,
        config: Optional[RatingConfig] = None,
        store: Optional[PersistentCounterStore] = None,
        *,
        review_requester: Optional[ReviewRequester] = None,
        url_opener: Optional[URLOpener] = None,
        presenter: Optional[SentimentPresenter] = None,
        clock: Optional[Clock] = None,
        metrics: Optional[RatingMetrics] = None,
    ) -> None:
        self.config = config or RatingConfig.default()
        self.store = store or build_store(self.config.storage)
        self.metrics = metrics or RatingMetrics()

        self.review_requester = review_requester
        self.url_opener = url_opener
        self.presenter = presenter

        # 闸门关闭时回应仍会落盘；sentiment_gate_enabled 只控制是否呈现
        self.sentiment_gate = SentimentGatePolicy(self.config, self.store)

        self.engine = RatingEligibilityEngine(self.config, self.store, self.sentiment_gate, clock)
        self.dispatcher = TaskDispatcher(self.metrics)

    # ========== 事件上报 ==========

    def record_session_event(self) -> int:
        return self.engine.record_session_event()

    def record_success_event(self) -> int:
        return self.engine.record_success_event()

    def record_rating_request_issued(self) -> None:
        self.engine.record_rating_request_issued()

    # ========== 决策 ==========

    def decide(self) -> RatingDecision:
        return self._decide()

    def _decide(self, count: bool = True) -> RatingDecision:
        decision = self.engine.decide()
        if count:
            self.metrics.inc_action(decision.action.value)
        return decision

    def evaluate(self) -> RatingAction:
        return self.decide().action

    # ========== 情绪闸门回应 ==========

    def on_sentiment_response(self, positive: bool, open_feedback_url: bool = True) -> None:
        if positive:
            self.metrics.inc_sentiment(SentimentResponse.POSITIVE.value)
            self.sentiment_gate.record_positive()
            return

        self.metrics.inc_sentiment(SentimentResponse.NEGATIVE.value)
        feedback_url = self.sentiment_gate.record_negative()
        if open_feedback_url and feedback_url:
            if self.url_opener is None:
                logger.info("Feedback URL configured but no URL opener supplied")
            else:
                self.dispatcher.submit("open_url", self.url_opener.open_url, feedback_url)

    async def handle_positive_sentiment_response(self) -> RatingAction:
        """Record a positive answer, then issue the store review if eligible."""
        self.on_sentiment_response(True)
        return self._issue_if_eligible()

    def handle_negative_sentiment_response(self, open_feedback_url: bool = True) -> None:
        self.on_sentiment_response(False, open_feedback_url=open_feedback_url)

    # ========== 完整流程 ==========

    async def request_rating(self) -> RatingAction:
        """
        Run the full flow and return the last action carried out.

        - SHOW_STORE_REVIEW: the request was recorded and dispatched.
        - SHOW_SENTIMENT_GATE: the gate is due (no presenter), or it was shown
          and answered negatively or dismissed.
        - DO_NOTHING: not eligible.

        One call counts as one evaluation in ``metrics``, even when a positive
        answer triggers a second decision.
        """
        action = self._issue_if_eligible()
        if action != RatingAction.SHOW_SENTIMENT_GATE or self.presenter is None:
            return action

        raw = await maybe_await(
            self.presenter.present(
                self.config.sentiment_question,
                self.config.positive_label,
                self.config.negative_label,
            )
        )
        response = self._parse_response(raw)

        if response == SentimentResponse.DISMISSED:
            self.metrics.inc_sentiment(response.value)
            logger.info("Sentiment gate dismissed; state unchanged")
            return RatingAction.SHOW_SENTIMENT_GATE

        if response == SentimentResponse.NEGATIVE:
            self.handle_negative_sentiment_response()
            return RatingAction.SHOW_SENTIMENT_GATE

        self.on_sentiment_response(True)
        if self._issue_if_eligible(count=False) == RatingAction.SHOW_STORE_REVIEW:
            return RatingAction.SHOW_STORE_REVIEW
        return RatingAction.SHOW_SENTIMENT_GATE

    @staticmethod
    def _parse_response(raw: object) -> SentimentResponse:
        try:
            return SentimentResponse(raw)
        except ValueError:
            logger.warning(f"Unknown sentiment response {raw!r}; treating it as dismissed")
            return SentimentResponse.DISMISSED

    def _issue_if_eligible(self, count: bool = True) -> RatingAction:
        with self.store.lock:
            decision = self._decide(count)
            if decision.action != RatingAction.SHOW_STORE_REVIEW:
                return decision.action
            if self.review_requester is None:
                # 宿主自行弹出评分框，并负责调用 record_rating_request_issued()
                return decision.action
            self.engine.record_rating_request_issued(decision.evaluated_at)

        self.dispatcher.submit("request_review", self.review_requester.request_review)
        return decision.action

    # ========== 统计 / 维护 ==========

    def get_statistics(self) -> RatingStatistics:
        return self.engine.statistics()

    def reset(self) -> None:
        """Reset all stored data (testing or user privacy)."""
        self.store.clear()
        logger.info("Rating state reset")

    async def drain(self) -> None:
        await self.dispatcher.drain()

    def close(self) -> None:
        self.store.close()
