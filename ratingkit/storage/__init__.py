from __future__ import annotations

from loguru import logger

from ..config import StorageConfig
from ..errors import StorageError
from .backend import KeyValueBackend
from .backends import InMemoryBackend, JsonFileBackend, SQLAlchemyBackend
from .store import PersistentCounterStore, StateKey


def build_backend(config: StorageConfig) -> KeyValueBackend:
    """根据 StorageConfig 选择后端实现"""
    if config.backend == "memory":
        backend: KeyValueBackend = InMemoryBackend()
    elif config.backend == "json":
        backend = JsonFileBackend(config.path)
    elif config.backend == "sqlalchemy":
        backend = SQLAlchemyBackend(config.dsn)
    else:
        raise StorageError(f"Unknown storage backend: {config.backend}")
    logger.debug(f"Rating storage backend: {config.backend}")
    return backend


def build_store(config: StorageConfig) -> PersistentCounterStore:
    return PersistentCounterStore(build_backend(config), namespace=config.namespace)


__all__ = [
    "KeyValueBackend",
    "InMemoryBackend",
    "JsonFileBackend",
    "SQLAlchemyBackend",
    "PersistentCounterStore",
    "StateKey",
    "build_backend",
    "build_store",
]
