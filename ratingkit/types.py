from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, List, NamedTuple, Optional, Protocol, Union


class RatingAction(str, Enum):
    DO_NOTHING = "do_nothing"
    SHOW_SENTIMENT_GATE = "show_sentiment_gate"
    SHOW_STORE_REVIEW = "show_store_review"


class SentimentResponse(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    DISMISSED = "dismissed"


@dataclass
class RatingDecision:
    action: RatingAction
    reasons: List[str] = field(default_factory=list)
    evaluated_at: Optional[datetime] = None


class RatingStatistics(NamedTuple):
    app_sessions: int
    success_flows: int
    last_rating_request_at: Optional[datetime]


# ========== 外部协作者（由宿主实现） ==========

class ReviewRequester(Protocol):
    """Platform store-review call. No return value, no display guarantee."""

    def request_review(self) -> Union[None, Awaitable[None]]: ...


class URLOpener(Protocol):
    def open_url(self, url: str) -> Union[None, Awaitable[None]]: ...


class SentimentPresenter(Protocol):
    """Host UI for the sentiment gate."""

    def present(
        self,
        question: str,
        positive_label: str,
        negative_label: str,
    ) -> Union[SentimentResponse, Awaitable[SentimentResponse]]: ...
