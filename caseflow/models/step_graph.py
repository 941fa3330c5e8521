"""
步驟圖編輯緩衝區 (Step Graph working copy)

- 每個步驟持有穩定的識別碼 (uid)，回溯與分支目標以 uid 指向步驟
- 維護 uid -> 位置 的索引表，與有序步驟序列同步更新
- 刪除步驟時明確處理指向它的引用（清除回溯、移除分支），其餘引用隨步驟移動
- 載入時超出範圍的索引保留為原始整數，存檔時原樣寫回
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from uuid import uuid4

from .test_case import Branch, ExpectedStatus, Step

logger = logging.getLogger(__name__)

# str: 有效步驟的 uid；int: 無法解析的原始索引
StepRef = Union[str, int]


class StepReferenceError(ValueError):
    """步驟位置或引用目標不存在"""


@dataclass
class DraftBranch:
    condition: str = ""
    target: StepRef = 0


@dataclass
class DraftStep:
    uid: str
    action: str = ""
    expected_status: ExpectedStatus = ExpectedStatus.SUCCESS
    expected_value: str = ""
    depends_on: Optional[StepRef] = None
    # None 表示原始資料沒有 branches 欄位
    branches: Optional[List[DraftBranch]] = None


def _new_uid() -> str:
    return uuid4().hex


class StepGraph:
    def __init__(self) -> None:
        self._steps: List[DraftStep] = []
        self._index: Dict[str, int] = {}

    # ---------------- 建立 / 轉換 ----------------
    @classmethod
    def blank(cls) -> "StepGraph":
        graph = cls()
        graph.add_step()
        return graph

    @classmethod
    def from_steps(cls, steps: List[Step]) -> "StepGraph":
        """以深拷貝方式載入步驟（每個步驟及其分支清單皆為新物件）"""
        graph = cls()
        uids = [_new_uid() for _ in steps]

        def resolve(index: Optional[int]) -> Optional[StepRef]:
            if index is None:
                return None
            if 0 <= index < len(uids):
                return uids[index]
            return index

        for uid, step in zip(uids, steps):
            branches = None
            if step.branches is not None:
                branches = [DraftBranch(b.condition, resolve(b.next_step)) for b in step.branches]
            graph._steps.append(DraftStep(
                uid=uid,
                action=step.action,
                expected_status=step.expected_status,
                expected_value=step.expected_value,
                depends_on=resolve(step.depends_on),
                branches=branches,
            ))
        graph._reindex()
        if not graph._steps:
            graph.add_step()
        return graph

    def to_steps(self) -> List[Step]:
        """轉回以索引表示的步驟序列（持久化格式）"""
        result = []
        for draft in self._steps:
            branches = None
            if draft.branches is not None:
                branches = [
                    Branch(condition=b.condition, next_step=self._ref_to_index(b.target))
                    for b in draft.branches
                ]
            depends_on = None if draft.depends_on is None else self._ref_to_index(draft.depends_on)
            result.append(Step(
                action=draft.action,
                expected_status=draft.expected_status,
                expected_value=draft.expected_value,
                depends_on=depends_on,
                branches=branches,
            ))
        return result

    # ---------------- 查詢 ----------------
    def __len__(self) -> int:
        return len(self._steps)

    def uid_at(self, position: int) -> str:
        if not 0 <= position < len(self._steps):
            raise StepReferenceError(f"步驟不存在: S{position + 1}")
        return self._steps[position].uid

    def step_at(self, position: int) -> DraftStep:
        self.uid_at(position)
        return self._steps[position]

    # ---------------- 步驟操作 ----------------
    def add_step(
        self,
        action: str = "",
        expected_status: ExpectedStatus = ExpectedStatus.SUCCESS,
        expected_value: str = "",
    ) -> int:
        self._steps.append(DraftStep(
            uid=_new_uid(),
            action=action,
            expected_status=ExpectedStatus(expected_status),
            expected_value=expected_value,
        ))
        self._reindex()
        return len(self._steps) - 1

    def delete_step(self, position: int) -> bool:
        """刪除步驟；只剩一步時不動作並回傳 False"""
        if len(self._steps) == 1:
            return False
        uid = self.uid_at(position)
        del self._steps[position]
        self._reindex()

        for draft in self._steps:
            if draft.depends_on == uid:
                logger.info("步驟 %s 的回溯目標已刪除，清除回溯", draft.uid)
                draft.depends_on = None
            if draft.branches:
                kept = [b for b in draft.branches if b.target != uid]
                if len(kept) != len(draft.branches):
                    logger.info("步驟 %s 移除 %d 個指向已刪除步驟的分支", draft.uid, len(draft.branches) - len(kept))
                    draft.branches = kept
        return True

    def update_step(
        self,
        position: int,
        action: Optional[str] = None,
        expected_status: Optional[ExpectedStatus] = None,
        expected_value: Optional[str] = None,
    ) -> None:
        draft = self.step_at(position)
        if action is not None:
            draft.action = action
        if expected_status is not None:
            draft.expected_status = ExpectedStatus(expected_status)
        if expected_value is not None:
            draft.expected_value = expected_value

    def set_depends_on(self, position: int, target: Optional[int]) -> None:
        draft = self.step_at(position)
        draft.depends_on = None if target is None else self.uid_at(target)

    # ---------------- 分支操作 ----------------
    def add_branch(self, position: int, condition: str = "", target: int = 0) -> int:
        draft = self.step_at(position)
        target_uid = self.uid_at(target)
        if draft.branches is None:
            draft.branches = []
        draft.branches.append(DraftBranch(condition, target_uid))
        return len(draft.branches) - 1

    def update_branch(
        self,
        position: int,
        branch_index: int,
        condition: Optional[str] = None,
        target: Optional[int] = None,
    ) -> None:
        branch = self._branch_at(position, branch_index)
        if condition is not None:
            branch.condition = condition
        if target is not None:
            branch.target = self.uid_at(target)

    def delete_branch(self, position: int, branch_index: int) -> None:
        draft = self.step_at(position)
        self._branch_at(position, branch_index)
        del draft.branches[branch_index]

    # ---------------- 內部 ----------------
    def _branch_at(self, position: int, branch_index: int) -> DraftBranch:
        draft = self.step_at(position)
        if not draft.branches or not 0 <= branch_index < len(draft.branches):
            raise StepReferenceError(f"分支不存在: C{position + 1}.{branch_index + 1}")
        return draft.branches[branch_index]

    def _reindex(self) -> None:
        self._index = {draft.uid: i for i, draft in enumerate(self._steps)}

    def _ref_to_index(self, ref: StepRef) -> int:
        if isinstance(ref, int):
            return ref
        return self._index[ref]
