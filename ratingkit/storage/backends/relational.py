# storage/backends/relational.py
# =========================
# 关系数据库后端（SQLAlchemy）
# 单表 rating_state(key, value_json)，支持 SQLite / MySQL 等
# =========================

from __future__ import annotations

import json
from typing import Any, Iterable

from loguru import logger
from sqlalchemy import Column, DateTime, String, Text, create_engine, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


class RatingStateTable(Base):
    """rating_state 表"""
    __tablename__ = "rating_state"

    key = Column(String(255), primary_key=True)
    value_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SQLAlchemyBackend:
    """基于 SQLAlchemy 的键值后端；数据库不可用时读返回默认值，写仅记录告警"""

    def __init__(self, dsn: str):
        """
        初始化后端

        Args:
            dsn: 数据库连接字符串（如 sqlite:///ratingkit.db）
        """
        self.dsn = dsn

        # 处理 SQLite in-memory 特殊情况（用于测试）
        if dsn == "sqlite:///:memory:":
            self.engine = create_engine(
                dsn,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(dsn, pool_pre_ping=True)

        self.SessionLocal = sessionmaker(bind=self.engine)
        self.initialize()

    def initialize(self) -> None:
        """创建表"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.warning(f"Rating state table init failed: {e}")

    def close(self) -> None:
        """关闭连接池"""
        self.engine.dispose()

    def get(self, key: str, default: Any = None) -> Any:
        session = self.SessionLocal()
        try:
            row = session.get(RatingStateTable, key)
            if row is None:
                return default
            return json.loads(row.value_json)
        except (SQLAlchemyError, ValueError) as e:
            logger.warning(f"Rating state read failed for {key}: {e}")
            return default
        finally:
            session.close()

    def set(self, key: str, value: Any) -> None:
        session = self.SessionLocal()
        try:
            session.merge(RatingStateTable(key=key, value_json=json.dumps(value)))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning(f"Rating state write failed for {key}: {e}")
        finally:
            session.close()

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        session = self.SessionLocal()
        try:
            session.query(RatingStateTable).filter(
                RatingStateTable.key.in_(keys)
            ).delete(synchronize_session=False)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning(f"Rating state delete failed: {e}")
        finally:
            session.close()

    def keys(self, prefix: str = "") -> list[str]:
        session = self.SessionLocal()
        try:
            rows = session.query(RatingStateTable.key).filter(
                RatingStateTable.key.startswith(prefix, autoescape=True)
            ).all()
            return [r[0] for r in rows]
        except SQLAlchemyError as e:
            logger.warning(f"Rating state key listing failed: {e}")
            return []
        finally:
            session.close()
