"""ratingkit 错误类型。"""

from __future__ import annotations


class RatingKitError(Exception):
    """ratingkit 领域错误基类。"""


class ConfigError(RatingKitError, ValueError):
    """配置非法（负数阈值、无效 URL、版本不匹配）。"""


class StorageError(RatingKitError):
    """存储后端无法构建。"""
