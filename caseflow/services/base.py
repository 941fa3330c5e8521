"""
服務層共用：寫穿式 (write-through) 持久化與 ID 產生
"""

import logging
import re
from typing import Iterable, Optional

from .case_store import CaseStore

logger = logging.getLogger(__name__)


def next_sequential_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """產生下一個 `<prefix>-<n>`

    n = max(集合長度, 已使用的最大數字尾碼) + 1。只有新增時 n 等於新增後的集合長度；
    刪除後再新增也不會與現存 ID 重複。
    """
    ids = list(existing_ids)
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for item_id in ids:
        match = pattern.match(item_id or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{max(len(ids), highest) + 1}"


class StoreBackedService:
    """持有一個儲存 key，讀取失敗視為無資料、寫入失敗僅記錄"""

    def __init__(self, store: CaseStore, storage_key: str):
        self.store = store
        self.storage_key = storage_key

    async def _read_raw(self) -> Optional[str]:
        try:
            return await self.store.get(self.storage_key)
        except Exception as e:
            logger.error("讀取儲存資料失敗 (key=%s): %s", self.storage_key, e, exc_info=True)
            return None

    async def _write_raw(self, payload: str) -> bool:
        try:
            await self.store.set(self.storage_key, payload)
            return True
        except Exception as e:
            logger.error("寫入儲存資料失敗 (key=%s): %s", self.storage_key, e, exc_info=True)
            return False

    async def _remove_raw(self) -> bool:
        try:
            await self.store.remove(self.storage_key)
            return True
        except Exception as e:
            logger.error("移除儲存資料失敗 (key=%s): %s", self.storage_key, e, exc_info=True)
            return False
