# storage/backends/json_file.py
# =========================
# JSON 文件后端
# 相当于客户端本地 settings 文件：内存缓存 + 每次变更整体原子重写
# =========================

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Iterable

from loguru import logger


_MISSING = object()


class JsonFileBackend:
    """
    基于单个 JSON 文件的键值后端

    - 读取走内存缓存，写失败不影响进程内读后写一致
    - 文件缺失 / 损坏 / 不可读时以空状态启动
    - 写入使用临时文件 + os.replace，避免半写文件
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._load()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, _MISSING) is not _MISSING:
                self._flush()

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            removed = [k for k in list(keys) if self._data.pop(k, _MISSING) is not _MISSING]
            if removed:
                self._flush()

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def close(self) -> None:
        pass

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Rating state file unreadable, starting empty: {self.path} ({e})")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"Rating state file is not a JSON object, starting empty: {self.path}")
            return {}
        return raw

    def _flush(self) -> None:
        # 调用方已持有 self._lock
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=str(self.path.parent),
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.warning(f"Rating state write failed (kept in memory): {self.path} ({e})")
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
