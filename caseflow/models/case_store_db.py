"""
用例儲存資料庫模型

單一 key-value 表格 (kv_entries)，value 為序列化後的用例集合
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine
from sqlalchemy.orm import sessionmaker
from datetime import datetime
import os
import logging

Base = declarative_base()


class KeyValueEntryDB(Base):
    """Key-Value 表格"""
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def _absolute_sqlite_url(database_url: str) -> str:
    """將 sqlite 相對路徑轉為絕對路徑，避免工作目錄變動時開到不同檔案"""
    prefix = "sqlite+aiosqlite:///"
    if not database_url.startswith(prefix):
        return database_url
    path = database_url[len(prefix):]
    if not path or path == ":memory:" or os.path.isabs(path):
        return database_url
    return f"{prefix}{os.path.abspath(path)}"


def create_store_engine(database_url: str) -> AsyncEngine:
    url = _absolute_sqlite_url(database_url)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_async_engine(url, echo=False, connect_args=connect_args)


def create_store_session_factory(engine: AsyncEngine):
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_store_db(engine: AsyncEngine) -> None:
    """初始化 key-value 資料表"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logging.info("用例儲存資料表已就緒")
