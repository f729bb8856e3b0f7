from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from urllib.parse import urlparse

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


StorageBackendName = Literal["memory", "json", "sqlalchemy"]


@dataclass(frozen=True)
class StorageConfig:
    """持久化后端配置"""
    backend: StorageBackendName = "json"
    path: str = "ratingkit_state.json"
    dsn: str = "sqlite:///ratingkit.db"
    namespace: str = "ratingkit"

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "json", "sqlalchemy"):
            raise ConfigError(f"Unsupported storage backend: {self.backend}")
        if not self.namespace:
            raise ConfigError("storage.namespace must not be empty")


@dataclass(frozen=True)
class RatingConfig:
    """
    Immutable policy parameters for the rating flow.

    Negative thresholds are rejected with ConfigError at construction time;
    nothing is clamped.
    """

    minimum_app_sessions: int = 0
    minimum_success_flows: int = 0
    cooldown_days: int = 120

    sentiment_gate_enabled: bool = True
    sentiment_question: str = "Are you enjoying this app?"
    positive_label: str = "Yes!"
    negative_label: str = "Not really"
    feedback_url: Optional[str] = None

    # False: a negative answer only holds until app_version changes
    negative_response_permanent: bool = True
    app_version: Optional[str] = None

    storage: StorageConfig = field(default_factory=StorageConfig)

    def __post_init__(self) -> None:
        for name in ("minimum_app_sessions", "minimum_success_flows", "cooldown_days"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigError(f"{name} must be non-negative, got {value}")

        if self.feedback_url is not None:
            parsed = urlparse(self.feedback_url)
            if not parsed.scheme or not (parsed.netloc or parsed.path):
                raise ConfigError(f"feedback_url is not an absolute URI: {self.feedback_url!r}")

    @staticmethod
    def default() -> "RatingConfig":
        return RatingConfig()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RatingConfig":
        """从字典创建配置（忽略未知字段）"""
        data = _as_dict(data)
        kwargs = _filter_dataclass_kwargs(cls, data)
        kwargs.pop("storage", None)

        for name in ("minimum_app_sessions", "minimum_success_flows", "cooldown_days"):
            if name in kwargs:
                kwargs[name] = _as_int(name, kwargs[name])

        storage = StorageConfig(**_filter_dataclass_kwargs(StorageConfig, _as_dict(data.get("storage"))))
        return cls(storage=storage, **kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RatingConfig":
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        data = _as_dict(raw)
        version = data.get("version", 1)
        if version != 1:
            raise ConfigError(f"Unsupported rating config version: {version}")

        data = _replace_env_vars(data)
        cfg = cls.from_dict(data)
        logger.info(f"Rating config loaded from {path}")
        return cfg


def _as_dict(value: object) -> dict:
    return value if isinstance(value, dict) else {}


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def _filter_dataclass_kwargs(dataclass_type, raw: dict) -> dict:
    """过滤 dataclass 未定义的键，避免配置扩展字段导致构造失败。"""
    allowed_keys = {f.name for f in fields(dataclass_type)}
    return {k: v for k, v in _as_dict(raw).items() if k in allowed_keys}


def _replace_env_vars(obj):
    """递归替换 <ENV_VAR> 占位符为环境变量值"""
    if isinstance(obj, str):
        if obj.startswith("<") and obj.endswith(">"):
            return os.environ.get(obj[1:-1], obj)
        return obj
    if isinstance(obj, dict):
        return {k: _replace_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_replace_env_vars(item) for item in obj]
    return obj
