"""
測試用例 (Test Case) 服務層

- 持有用例集合（唯一資料來源），啟動時自儲存載入一次
- 所有異動都在草稿上進行，明確新增 / 儲存時才寫回集合
- 每次異動後立即寫回儲存（write-through）
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from ..models.draft import CaseDraft
from ..models.test_case import (
    Branch,
    ExpectedStatus,
    Step,
    TestCase,
    decode_cases,
    encode_cases,
)
from .base import StoreBackedService, next_sequential_id
from .case_store import CaseStore
from .dialog import ConfirmDialog, ask

logger = logging.getLogger(__name__)

CASE_ID_PREFIX = "TC"


class TestCaseNotFoundError(ValueError):
    """找不到指定的用例"""


class TestCaseService(StoreBackedService):
    """Test Case 業務邏輯"""

    __test__ = False

    def __init__(self, store: CaseStore, storage_key: str = "testcases_advanced"):
        super().__init__(store, storage_key)
        self._cases: List[TestCase] = []

    # ---------------- 載入 / 查詢 ----------------
    async def load(self) -> List[TestCase]:
        """自儲存載入集合；缺少或格式錯誤時視為空集合"""
        raw = await self._read_raw()
        if raw is None:
            self._cases = []
            return self.cases
        try:
            self._cases = decode_cases(raw)
        except (ValidationError, ValueError) as e:
            logger.error("載入用例失敗，以空集合啟動: %s", e)
            self._cases = []
        logger.info("已載入 %d 個用例", len(self._cases))
        return self.cases

    @property
    def cases(self) -> List[TestCase]:
        return [case.model_copy(deep=True) for case in self._cases]

    def get_case(self, case_id: str) -> TestCase:
        return self._find(case_id).model_copy(deep=True)

    # ---------------- 草稿 ----------------
    def new_draft(self) -> CaseDraft:
        return CaseDraft()

    def begin_edit(self, case_id: str) -> CaseDraft:
        """載入用例的深拷貝到草稿；集合內的用例在儲存前不受影響"""
        return CaseDraft.from_case(self._find(case_id))

    # ---------------- 異動 ----------------
    async def add_case(self, draft: CaseDraft) -> TestCase:
        case = draft.build_case(self._next_id())
        self._cases.append(case)
        logger.info("新增用例 %s: %s", case.id, case.title)
        await self._flush()
        return case.model_copy(deep=True)

    async def save_case(self, draft: CaseDraft) -> TestCase:
        if not draft.editing_id:
            raise ValueError("草稿不是編輯中的既有用例")
        return await self.replace_case(draft.editing_id, draft.title, draft.precondition, draft.build_steps())

    async def replace_case(self, case_id: str, title: str, precondition: str, steps: List[Step]) -> TestCase:
        """整筆取代標題、前置條件與步驟，ID 不變"""
        index = self._index_of(case_id)
        updated = TestCase(
            id=case_id,
            title=title,
            precondition=precondition,
            steps=[step.model_copy(deep=True) for step in steps],
        )
        self._cases[index] = updated
        logger.info("更新用例 %s", case_id)
        await self._flush()
        return updated.model_copy(deep=True)

    async def create_case(self, title: str, precondition: str, steps: List[Step]) -> TestCase:
        case = TestCase(
            id=self._next_id(),
            title=title,
            precondition=precondition,
            steps=[step.model_copy(deep=True) for step in steps],
        )
        self._cases.append(case)
        logger.info("新增用例 %s: %s", case.id, case.title)
        await self._flush()
        return case.model_copy(deep=True)

    async def delete_case(self, case_id: str, confirm: Optional[ConfirmDialog] = None) -> bool:
        self._find(case_id)
        if not await ask(confirm, "确定删除该用例吗？"):
            logger.info("取消刪除用例 %s", case_id)
            return False
        self._cases = [c for c in self._cases if c.id != case_id]
        logger.info("刪除用例 %s", case_id)
        await self._flush()
        return True

    async def clear_cases(self, confirm: Optional[ConfirmDialog] = None) -> bool:
        if not await ask(confirm, "确定清空所有用例吗？"):
            logger.info("取消清空用例")
            return False
        self._cases = []
        await self._remove_raw()
        logger.info("已清空所有用例")
        return True

    async def import_cases(self, cases: List[TestCase]) -> List[TestCase]:
        """以匯入資料（JSON 匯出格式）取代目前集合"""
        self._cases = [case.model_copy(deep=True) for case in cases]
        logger.info("匯入 %d 個用例", len(self._cases))
        await self._flush()
        return self.cases

    async def load_demo(self) -> List[TestCase]:
        return await self.import_cases(demo_cases())

    # ---------------- 內部 ----------------
    def _next_id(self) -> str:
        return next_sequential_id(CASE_ID_PREFIX, (c.id for c in self._cases))

    def _index_of(self, case_id: str) -> int:
        for i, case in enumerate(self._cases):
            if case.id == case_id:
                return i
        raise TestCaseNotFoundError(f"用例不存在: {case_id}")

    def _find(self, case_id: str) -> TestCase:
        return self._cases[self._index_of(case_id)]

    async def _flush(self) -> None:
        await self._write_raw(encode_cases(self._cases))


def demo_cases() -> List[TestCase]:
    """示例用例：登入流程（含分支與回溯）"""
    S, F = ExpectedStatus.SUCCESS, ExpectedStatus.FAILURE
    return [
        TestCase(
            id="TC-LOGIN-001",
            title="用户使用正确账号密码登录系统",
            precondition=(
                "1. 系统已部署并正常运行\n"
                "2. 测试用户已注册（账号：test@example.com，密码：Test123456）\n"
                "3. 用户处于未登录状态"
            ),
            steps=[
                Step(action="访问系统登录页面", expected_status=S,
                     expected_value="登录页面正常显示，包含账号输入框、密码输入框、登录按钮", branches=[]),
                Step(action="在账号输入框中输入'test@example.com'", expected_status=S,
                     expected_value="输入框内容正确显示为'test@example.com'", branches=[]),
                Step(action="在密码输入框中输入'Test123456'", expected_status=S,
                     expected_value="输入框显示为加密字符（如******）", branches=[]),
                Step(action="点击登录按钮", expected_status=S, expected_value="系统验证通过，跳转到首页",
                     branches=[Branch(condition="账号或密码错误", next_step=4),
                               Branch(condition="需要验证码", next_step=5)]),
                Step(action="系统显示错误提示'账号或密码错误'", expected_status=F,
                     expected_value="错误提示正确显示，登录状态未改变", branches=[]),
                Step(action="输入正确的验证码并点击确认", expected_status=S,
                     expected_value="验证码验证通过，跳转到首页",
                     branches=[Branch(condition="验证码错误", next_step=6)]),
                Step(action="系统显示错误提示'验证码错误，请重新输入'", expected_status=F,
                     expected_value="错误提示正确显示，保持在验证码输入界面", branches=[], depends_on=5),
            ],
        )
    ]
