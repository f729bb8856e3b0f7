# storage/store.py
# =========================
# PersistentCounterStore
# 命名空间内的计数器 / 时间点 / 布尔标记；不含业务逻辑
# =========================

from __future__ import annotations

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from .backend import KeyValueBackend

T = TypeVar("T")


class StateKey(str, Enum):
    APP_SESSION_COUNT = "app_session_count"
    SUCCESS_FLOW_COUNT = "success_flow_count"
    LAST_RATING_REQUEST_AT = "last_rating_request_at"
    SENTIMENT_GATE_SHOWN = "sentiment_gate_shown"
    SENTIMENT_POSITIVE = "sentiment_positive"
    USER_DECLINED_PERMANENTLY = "user_declined_permanently"
    SENTIMENT_APP_VERSION = "sentiment_app_version"


class PersistentCounterStore:
    """
    Durable primitive values under ``<namespace>.<key>``.

    Missing keys and values of the wrong type read as the default. Backend
    failures are logged and never raised: reads fall back to the default,
    writes are best-effort.
    """

    def __init__(self, backend: KeyValueBackend, namespace: str = "ratingkit") -> None:
        self.backend = backend
        self.namespace = namespace
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Held by callers that update several keys as one logical step."""
        return self._lock

    def full_key(self, key: str | StateKey) -> str:
        name = key.value if isinstance(key, StateKey) else key
        return f"{self.namespace}.{name}"

    # ---------- raw ----------

    def get(self, key: str | StateKey, default: Any = None) -> Any:
        return self._safe(lambda: self.backend.get(self.full_key(key), default), default, "read", key)

    def set(self, key: str | StateKey, value: Any) -> None:
        if value is None:
            self.remove(key)
            return
        if isinstance(value, datetime):
            value = _to_iso(value)
        with self._lock:
            self._safe(lambda: self.backend.set(self.full_key(key), value), None, "write", key)

    def remove(self, key: str | StateKey) -> None:
        with self._lock:
            self._safe(lambda: self.backend.delete(self.full_key(key)), None, "delete", key)

    # ---------- typed ----------

    def get_int(self, key: str | StateKey, default: int = 0) -> int:
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def get_bool(self, key: str | StateKey, default: bool = False) -> bool:
        value = self.get(key, default)
        return value if isinstance(value, bool) else default

    def get_optional_bool(self, key: str | StateKey) -> Optional[bool]:
        value = self.get(key)
        return value if isinstance(value, bool) else None

    def get_str(self, key: str | StateKey) -> Optional[str]:
        value = self.get(key)
        return value if isinstance(value, str) else None

    def get_datetime(self, key: str | StateKey) -> Optional[datetime]:
        value = self.get(key)
        if not isinstance(value, str):
            return None
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring malformed timestamp under {self.full_key(key)}: {value!r}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    # ---------- compound ----------

    def increment(self, key: str | StateKey, by: int = 1) -> int:
        """read-increment-write 作为一个逻辑步骤"""
        with self._lock:
            value = self.get_int(key) + by
            self.set(key, value)
            return value

    def clear(self) -> None:
        """删除命名空间下的所有键（单次后端操作）"""
        with self._lock:
            prefix = f"{self.namespace}."
            known = {self.full_key(k) for k in StateKey}
            existing = set(self._safe(lambda: self.backend.keys(prefix), [], "list", prefix))
            self._safe(
                lambda: self.backend.delete_many(sorted(known | existing)),
                None,
                "clear",
                prefix,
            )

    def close(self) -> None:
        self._safe(self.backend.close, None, "close", self.namespace)

    def _safe(self, fn: Callable[[], T], fallback: T, op: str, key: Any) -> T:
        try:
            return fn()
        except Exception as e:
            name = key.value if isinstance(key, StateKey) else key
            logger.warning(f"Rating store {op} failed for {name}: {e}")
            return fallback


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
