"""
流程圖描述 (Diagram description) 資料模型
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class EdgeKind(str, Enum):
    SEQUENTIAL = "sequential"
    BACKTRACK = "backtrack"
    CONDITIONAL = "conditional"


class StatusClass(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    EXCEPTION = "exception"


class DiagramNode(BaseModel):
    id: str = Field(..., description="節點 ID，例如 S0")
    label: str = Field(..., description="節點文字")
    status_class: StatusClass = Field(..., description="狀態樣式類別")


class DiagramEdge(BaseModel):
    source: str
    target: str
    kind: EdgeKind
    label: Optional[str] = None


class DiagramDescription(BaseModel):
    case_id: str
    nodes: List[DiagramNode] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)
    mermaid: str = Field("", description="Mermaid flowchart 原始碼")

    def edges_of(self, kind: EdgeKind) -> List[DiagramEdge]:
        return [edge for edge in self.edges if edge.kind == kind]
