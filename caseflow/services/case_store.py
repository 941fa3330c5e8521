"""
用例儲存介面 (Case Store)

get / set / remove / clear 四個非同步操作；啟動時依設定選定一種實作注入服務層，
呼叫端不再各自判斷儲存後端。
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy import delete, select

from ..config import StorageConfig
from ..models.case_store_db import (
    KeyValueEntryDB,
    create_store_engine,
    create_store_session_factory,
    init_store_db,
)

logger = logging.getLogger(__name__)


class CaseStore(ABC):
    async def init(self) -> None:
        """建立儲存所需的資源（預設無動作）"""

    async def close(self) -> None:
        """釋放資源（預設無動作）"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class MemoryCaseStore(CaseStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()


class JsonFileCaseStore(CaseStore):
    """單一 JSON 設定檔，寫入時先寫暫存檔再 rename"""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"設定檔格式錯誤: {self.path}")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}-{datetime.utcnow().timestamp()}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        def _set():
            data = self._read()
            data[key] = value
            self._write(data)

        await asyncio.to_thread(_set)

    async def remove(self, key: str) -> None:
        def _remove():
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

        await asyncio.to_thread(_remove)

    async def clear(self) -> None:
        await asyncio.to_thread(self._write, {})


class SqlCaseStore(CaseStore):
    """SQLAlchemy (async) key-value 儲存"""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_store_engine(database_url)
        self.session_factory = create_store_session_factory(self.engine)

    async def init(self) -> None:
        await init_store_db(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def get(self, key: str) -> Optional[str]:
        async with self.session_factory() as session:
            result = await session.execute(select(KeyValueEntryDB).where(KeyValueEntryDB.key == key))
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    async def set(self, key: str, value: str) -> None:
        async with self.session_factory() as session:
            try:
                entry = await session.get(KeyValueEntryDB, key)
                if entry is None:
                    session.add(KeyValueEntryDB(key=key, value=value))
                else:
                    entry.value = value
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def remove(self, key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(KeyValueEntryDB).where(KeyValueEntryDB.key == key))
            await session.commit()

    async def clear(self) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(KeyValueEntryDB))
            await session.commit()


def create_case_store(config: StorageConfig) -> CaseStore:
    """依設定建立儲存實作（僅在啟動時呼叫一次）"""
    backend = (config.backend or "sqlite").lower()
    if backend == "memory":
        return MemoryCaseStore()
    if backend == "json":
        return JsonFileCaseStore(config.json_path)
    if backend == "sqlite":
        return SqlCaseStore(config.database_url)
    raise ValueError(f"不支援的儲存後端: {config.backend}")


async def init_case_store(store: CaseStore) -> CaseStore:
    """初始化儲存；失敗僅記錄，後續讀寫由服務層視為無資料處理"""
    try:
        await store.init()
        logger.info("用例儲存已就緒: %s", type(store).__name__)
    except Exception as e:
        logger.error("用例儲存初始化失敗 (%s)，以無資料模式繼續: %s", type(store).__name__, e, exc_info=True)
    return store
