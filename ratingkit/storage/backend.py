# storage/backend.py
# =========================
# 键值存储后端协议（Key-Value Backend Protocol）
# 定义评分状态底层存储的抽象接口，支持 内存 / JSON 文件 / SQLAlchemy 实现
# =========================

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable


# 可持久化的原始值类型；datetime 由上层转换为 ISO-8601 文本
Primitive = Any


@runtime_checkable
class KeyValueBackend(Protocol):
    """
    键值存储后端协议（Key-Value Backend Protocol）

    提供扁平命名空间内的读写删操作，供 PersistentCounterStore 使用
    Provides flat-namespace read/write/delete for PersistentCounterStore

    实现约定：
    - 单 key 操作原子；跨 key 无事务，delete_many 除外
    - 缺失 key 返回 default，不抛异常
    - 进程内读后写一致（read-after-write）
    """

    def get(self, key: str, default: Primitive = None) -> Primitive:
        """
        读取值
        Read a value

        Args:
            key: 完整键名（含命名空间前缀）
            default: 缺失时返回的默认值
        """
        ...

    def set(self, key: str, value: Primitive) -> None:
        """
        写入值
        Write a value
        """
        ...

    def delete(self, key: str) -> None:
        """
        删除值（不存在时忽略）
        Delete a value (no-op when absent)
        """
        ...

    def delete_many(self, keys: Iterable[str]) -> None:
        """
        一次性删除多个键（单次持久化 / 单事务）
        Delete several keys in one persistence step
        """
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """
        列出以 prefix 开头的键
        List keys starting with prefix
        """
        ...

    def close(self) -> None:
        """
        释放资源
        Release resources
        """
        ...
