"""
用例草稿：編輯中的標題、前置條件與步驟圖

新增用例或編輯既有用例時都在草稿上操作，直到明確儲存才寫回集合。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field

from .step_graph import StepGraph
from .test_case import Step, TestCase


@dataclass
class CaseDraft:
    title: str = ""
    precondition: str = ""
    graph: StepGraph = field(default_factory=StepGraph.blank)
    # None 代表新增用例
    editing_id: Optional[str] = None

    @classmethod
    def from_case(cls, case: TestCase) -> "CaseDraft":
        return cls(
            title=case.title,
            precondition=case.precondition,
            graph=StepGraph.from_steps(case.steps),
            editing_id=case.id,
        )

    def build_steps(self) -> List[Step]:
        return self.graph.to_steps()

    def build_case(self, case_id: str) -> TestCase:
        return TestCase(id=case_id, title=self.title, precondition=self.precondition, steps=self.build_steps())


# ---------------- API 模型 ----------------

class DraftCreate(BaseModel):
    case_id: Optional[str] = Field(None, description="要編輯的用例 ID；留空為新增")
    group_id: Optional[str] = Field(None, description="所屬分組 ID（分組模式）")


class DraftUpdate(BaseModel):
    title: Optional[str] = None
    precondition: Optional[str] = None


class DraftStepWrite(BaseModel):
    action: Optional[str] = None
    expected_status: Optional[str] = Field(None, alias="expectedStatus")
    expected_value: Optional[str] = Field(None, alias="expectedValue")
    # -1 代表清除回溯
    depends_on: Optional[int] = Field(None, alias="dependsOn")

    model_config = {"populate_by_name": True}


class DraftBranchWrite(BaseModel):
    condition: Optional[str] = None
    next_step: Optional[int] = Field(None, alias="nextStep")

    model_config = {"populate_by_name": True}


class DraftView(BaseModel):
    id: str
    editing_id: Optional[str] = Field(None, alias="editingId")
    group_id: Optional[str] = Field(None, alias="groupId")
    title: str
    precondition: str
    steps: List[Step]

    model_config = {"populate_by_name": True}
