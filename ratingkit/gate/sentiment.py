from __future__ import annotations

from typing import Optional

from loguru import logger

from ..config import RatingConfig
from ..storage import PersistentCounterStore, StateKey


class SentimentGatePolicy:
    """
    One-shot sentiment survey state machine.

    NotShown --positive--> Shown(Positive)
    NotShown --negative--> Shown(Negative), terminal when
                           ``negative_response_permanent`` is set

    Dismissing the gate is not a transition; the host simply never calls a
    ``record_*`` method and the gate stays NotShown.
    """

    def __init__(self, config: RatingConfig, store: PersistentCounterStore) -> None:
        self.config = config
        self.store = store

    def should_present(self) -> bool:
        return not self.store.get_bool(StateKey.SENTIMENT_GATE_SHOWN)

    def likes_app(self) -> bool:
        return self.store.get_optional_bool(StateKey.SENTIMENT_POSITIVE) is True

    def has_declined_permanently(self) -> bool:
        return self.store.get_bool(StateKey.USER_DECLINED_PERMANENTLY)

    def record_positive(self) -> None:
        with self.store.lock:
            if self.has_declined_permanently():
                # 已永久拒绝：保持 declined ⇒ sentiment_positive == False
                logger.warning("Positive sentiment ignored: user already declined permanently")
                return
            self.store.set(StateKey.SENTIMENT_POSITIVE, True)
            self.store.set(StateKey.SENTIMENT_GATE_SHOWN, True)
            self._stamp_version()
        logger.info("Sentiment gate answered: positive")

    def record_negative(self) -> Optional[str]:
        """
        Record a negative answer.

        Returns the configured feedback URL (or None) so the caller can hand
        it to the URL-opening collaborator.
        """
        with self.store.lock:
            # sentiment_positive 先于 shown 写入，保证 shown ⇒ positive 存在
            self.store.set(StateKey.SENTIMENT_POSITIVE, False)
            self.store.set(StateKey.SENTIMENT_GATE_SHOWN, True)
            if self.config.negative_response_permanent:
                self.store.set(StateKey.USER_DECLINED_PERMANENTLY, True)
            self._stamp_version()
        logger.info(
            f"Sentiment gate answered: negative (permanent={self.config.negative_response_permanent})"
        )
        return self.config.feedback_url

    def refresh_for_version(self) -> bool:
        """
        Re-arm the gate after an app update when negative answers are not
        permanent. Returns True if sentiment state was cleared.
        """
        if self.config.negative_response_permanent or not self.config.app_version:
            return False

        with self.store.lock:
            if not self.store.get_bool(StateKey.SENTIMENT_GATE_SHOWN):
                return False
            if self.store.get_bool(StateKey.USER_DECLINED_PERMANENTLY):
                return False
            stored = self.store.get_str(StateKey.SENTIMENT_APP_VERSION)
            if stored == self.config.app_version:
                return False

            self.store.remove(StateKey.SENTIMENT_GATE_SHOWN)
            self.store.remove(StateKey.SENTIMENT_POSITIVE)
            self.store.remove(StateKey.SENTIMENT_APP_VERSION)

        logger.info(f"Sentiment gate re-armed for app version {self.config.app_version} (was {stored})")
        return True

    def _stamp_version(self) -> None:
        if self.config.app_version:
            self.store.set(StateKey.SENTIMENT_APP_VERSION, self.config.app_version)
