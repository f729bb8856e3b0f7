from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class RatingMetrics:
    """In-process counters only; nothing is exported."""

    evaluations_total: int = 0
    sentiment_responses_total: int = 0
    dispatched_total: int = 0
    dispatch_failures: int = 0

    by_action: Dict[str, int] = field(default_factory=dict)
    by_sentiment: Dict[str, int] = field(default_factory=dict)

    def inc_action(self, action: str) -> None:
        self.evaluations_total += 1
        self.by_action[action] = self.by_action.get(action, 0) + 1

    def inc_sentiment(self, response: str) -> None:
        self.sentiment_responses_total += 1
        self.by_sentiment[response] = self.by_sentiment.get(response, 0) + 1
