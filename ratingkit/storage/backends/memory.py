from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, Optional


class InMemoryBackend:
    """Process-local backend; state is lost at exit. Used as a test double."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in list(keys):
                self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def close(self) -> None:
        pass
