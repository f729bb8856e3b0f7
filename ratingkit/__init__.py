from .config import RatingConfig, StorageConfig
from .engine import RatingEligibilityEngine
from .errors import ConfigError, RatingKitError, StorageError
from .gate import SentimentGatePolicy
from .manager import RatingManager
from .metrics import RatingMetrics
from .storage import PersistentCounterStore, StateKey, build_backend, build_store
from .types import (
    RatingAction,
    RatingDecision,
    RatingStatistics,
    ReviewRequester,
    SentimentPresenter,
    SentimentResponse,
    URLOpener,
)

__all__ = [
    # Facade
    "RatingManager",
    "RatingEligibilityEngine",
    "SentimentGatePolicy",
    # Config
    "RatingConfig",
    "StorageConfig",
    # Storage
    "PersistentCounterStore",
    "StateKey",
    "build_backend",
    "build_store",
    # Types
    "RatingAction",
    "RatingDecision",
    "RatingStatistics",
    "SentimentResponse",
    "ReviewRequester",
    "URLOpener",
    "SentimentPresenter",
    "RatingMetrics",
    # Errors
    "RatingKitError",
    "ConfigError",
    "StorageError",
]
