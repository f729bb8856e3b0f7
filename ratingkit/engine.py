from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger

from .config import RatingConfig
from .gate import SentimentGatePolicy
from .storage import PersistentCounterStore, StateKey
from .types import RatingAction, RatingDecision, RatingStatistics


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RatingEligibilityEngine:
    """
    Combines usage counters, the cooldown and sentiment state into a single
    decision.

    Check order matters: thresholds and cooldown are evaluated before the
    sentiment gate, so a user below the thresholds never sees the gate.
    """

    def __init__(
        self,
        config: RatingConfig,
        store: PersistentCounterStore,
        sentiment_gate: Optional[SentimentGatePolicy] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.clock = clock or utc_now
        # 闸门关闭时仍需记录回应，只是不再呈现
        self.sentiment_gate = sentiment_gate or SentimentGatePolicy(config, store)

    def decide(self, now: Optional[datetime] = None) -> RatingDecision:
        now = now or self.clock()
        gate_enabled = self.config.sentiment_gate_enabled

        if gate_enabled:
            self.sentiment_gate.refresh_for_version()

        def _result(action: RatingAction, reason: str) -> RatingDecision:
            logger.debug(f"Rating decision: {action.value} ({reason})")
            return RatingDecision(action=action, reasons=[reason], evaluated_at=now)

        if self.store.get_bool(StateKey.USER_DECLINED_PERMANENTLY):
            return _result(RatingAction.DO_NOTHING, "declined_permanently")

        if self.store.get_int(StateKey.APP_SESSION_COUNT) < self.config.minimum_app_sessions:
            return _result(RatingAction.DO_NOTHING, "sessions_below_minimum")

        if self.store.get_int(StateKey.SUCCESS_FLOW_COUNT) < self.config.minimum_success_flows:
            return _result(RatingAction.DO_NOTHING, "success_flows_below_minimum")

        if self.in_cooldown(now):
            return _result(RatingAction.DO_NOTHING, "cooldown_active")

        if gate_enabled:
            gate = self.sentiment_gate
            if not gate.should_present() and not gate.likes_app():
                return _result(RatingAction.DO_NOTHING, "sentiment_negative")
            if gate.should_present():
                return _result(RatingAction.SHOW_SENTIMENT_GATE, "sentiment_gate_pending")

        return _result(RatingAction.SHOW_STORE_REVIEW, "eligible")

    def in_cooldown(self, now: Optional[datetime] = None) -> bool:
        last = self.store.get_datetime(StateKey.LAST_RATING_REQUEST_AT)
        if last is None:
            return False
        now = now or self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now - last < timedelta(days=self.config.cooldown_days)

    # ---------- mutators ----------

    def record_session_event(self) -> int:
        return self.store.increment(StateKey.APP_SESSION_COUNT)

    def record_success_event(self) -> int:
        return self.store.increment(StateKey.SUCCESS_FLOW_COUNT)

    def record_rating_request_issued(self, now: Optional[datetime] = None) -> datetime:
        """Call once per native prompt, before the prompt is dispatched."""
        now = now or self.clock()
        self.store.set(StateKey.LAST_RATING_REQUEST_AT, now)
        logger.info(f"Rating request issued at {now.isoformat()}")
        return now

    def statistics(self) -> RatingStatistics:
        return RatingStatistics(
            app_sessions=self.store.get_int(StateKey.APP_SESSION_COUNT),
            success_flows=self.store.get_int(StateKey.SUCCESS_FLOW_COUNT),
            last_rating_request_at=self.store.get_datetime(StateKey.LAST_RATING_REQUEST_AT),
        )
