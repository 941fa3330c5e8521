"""
草稿 (working buffer) 管理

HTTP 介面的編輯流程：建立草稿 -> 逐步編輯步驟與分支 -> commit 寫回集合。
單一使用者、單一流程操作，不處理並行。
未提交的草稿超過存活時間即淘汰；數量超過上限時淘汰最舊的草稿。
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional
from uuid import uuid4

from ..models.draft import CaseDraft
from ..models.test_case import TestCase
from .test_case_service import TestCaseService
from .test_group_service import TestGroupService

logger = logging.getLogger(__name__)

DRAFT_TTL_SECONDS = 3600
MAX_DRAFTS = 200


class DraftNotFoundError(ValueError):
    """草稿不存在或已提交"""


@dataclass
class DraftEntry:
    id: str
    draft: CaseDraft
    group_id: Optional[str] = None
    touched_at: float = field(default_factory=time.monotonic)


class DraftService:
    def __init__(
        self,
        case_service: TestCaseService,
        group_service: TestGroupService,
        ttl_seconds: float = DRAFT_TTL_SECONDS,
        max_drafts: int = MAX_DRAFTS,
    ):
        self.case_service = case_service
        self.group_service = group_service
        self.ttl_seconds = ttl_seconds
        self.max_drafts = max_drafts
        self._drafts: Dict[str, DraftEntry] = {}

    def __len__(self) -> int:
        return len(self._drafts)

    def open(self, case_id: Optional[str] = None, group_id: Optional[str] = None) -> DraftEntry:
        if group_id:
            if case_id:
                draft = self.group_service.begin_edit(group_id, case_id)
            else:
                self.group_service.get_group(group_id)
                draft = CaseDraft()
        elif case_id:
            draft = self.case_service.begin_edit(case_id)
        else:
            draft = self.case_service.new_draft()

        self._evict()
        while len(self._drafts) >= self.max_drafts:
            oldest = min(self._drafts.values(), key=lambda e: e.touched_at)
            logger.warning("草稿數量達上限 %d，淘汰最舊的草稿 %s", self.max_drafts, oldest.id)
            del self._drafts[oldest.id]

        entry = DraftEntry(id=uuid4().hex, draft=draft, group_id=group_id)
        self._drafts[entry.id] = entry
        logger.debug("開啟草稿 %s (case=%s, group=%s)", entry.id, case_id, group_id)
        return entry

    def get(self, draft_id: str) -> DraftEntry:
        self._evict()
        try:
            entry = self._drafts[draft_id]
        except KeyError:
            raise DraftNotFoundError(f"草稿不存在: {draft_id}") from None
        entry.touched_at = time.monotonic()
        return entry

    def discard(self, draft_id: str) -> None:
        self.get(draft_id)
        del self._drafts[draft_id]

    async def commit(self, draft_id: str) -> TestCase:
        entry = self.get(draft_id)
        draft = entry.draft
        if entry.group_id:
            if draft.editing_id:
                case = await self.group_service.save_case(entry.group_id, draft)
            else:
                case = await self.group_service.add_case(entry.group_id, draft)
        elif draft.editing_id:
            case = await self.case_service.save_case(draft)
        else:
            case = await self.case_service.add_case(draft)
        self._drafts.pop(draft_id, None)
        return case

    def _evict(self) -> None:
        deadline = time.monotonic() - self.ttl_seconds
        expired = [draft_id for draft_id, e in self._drafts.items() if e.touched_at < deadline]
        for draft_id in expired:
            del self._drafts[draft_id]
        if expired:
            logger.info("淘汰 %d 個逾時草稿", len(expired))
