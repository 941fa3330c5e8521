"""
流程圖編譯 (Diagram Compiler)

將單一用例轉為 Mermaid flowchart 描述：
- 每個步驟一個節點 S<index>
- 無回溯的步驟連到下一步（最後一步除外）
- 有回溯的步驟以虛線連回回溯目標，取代順序連線
- 每個分支一條帶條件文字的連線（與順序 / 回溯連線並存）
- 節點樣式只由預期狀態決定

目標索引不做範圍檢查；超出範圍時仍輸出指向不存在節點的連線，由渲染端容忍。
"""

import re
from typing import List

from ..models.diagram import (
    DiagramDescription,
    DiagramEdge,
    DiagramNode,
    EdgeKind,
    StatusClass,
)
from ..models.test_case import ExpectedStatus, Step, TestCase

EMPTY_VALUE = "无"

STATUS_CLASSES = {
    ExpectedStatus.SUCCESS: StatusClass.SUCCESS,
    ExpectedStatus.FAILURE: StatusClass.FAIL,
    ExpectedStatus.EXCEPTION: StatusClass.EXCEPTION,
}

CLASS_DEFS = (
    "classDef success fill:#dcfce7,stroke:#22c55e,color:#166534\n"
    "classDef fail fill:#fee2e2,stroke:#ef4444,color:#b91c1c\n"
    "classDef exception fill:#ffedd5,stroke:#f97316,color:#9a3412\n"
)


def status_class(status: ExpectedStatus) -> StatusClass:
    return STATUS_CLASSES[ExpectedStatus(status)]


def node_id(index: int) -> str:
    return f"S{index}"


def mm_text(text: str) -> str:
    """Mermaid 標籤跳脫：使用 entity code 並壓平空白，避免換行破壞語法"""
    normalized = re.sub(r"\s+", " ", str(text)).strip()
    return (
        normalized.replace("&", "#amp;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
        .replace('"', "#quot;")
        .replace("|", "#124;")
    )


def node_label(index: int, step: Step) -> str:
    status = ExpectedStatus(step.expected_status).value
    return f"S{index + 1}: {step.action} | {status} | {step.expected_value or EMPTY_VALUE}"


class DiagramService:
    def compile(self, case: TestCase) -> DiagramDescription:
        steps = case.steps
        nodes: List[DiagramNode] = [
            DiagramNode(id=node_id(i), label=node_label(i, s), status_class=status_class(s.expected_status))
            for i, s in enumerate(steps)
        ]

        edges: List[DiagramEdge] = []
        # 順序 / 回溯
        for i, s in enumerate(steps):
            if s.depends_on is not None:
                edges.append(DiagramEdge(source=node_id(i), target=node_id(s.depends_on), kind=EdgeKind.BACKTRACK))
            elif i < len(steps) - 1:
                edges.append(DiagramEdge(source=node_id(i), target=node_id(i + 1), kind=EdgeKind.SEQUENTIAL))

        # 條件分支
        for i, s in enumerate(steps):
            for b in s.branches or []:
                edges.append(DiagramEdge(
                    source=node_id(i),
                    target=node_id(b.next_step),
                    kind=EdgeKind.CONDITIONAL,
                    label=b.condition,
                ))

        description = DiagramDescription(case_id=case.id, nodes=nodes, edges=edges)
        description.mermaid = self.to_mermaid(description)
        return description

    def to_mermaid(self, description: DiagramDescription) -> str:
        lines = ["flowchart TD"]
        for node in description.nodes:
            lines.append(f'{node.id}["{mm_text(node.label)}"]')
        for edge in description.edges:
            if edge.kind == EdgeKind.BACKTRACK:
                lines.append(f"{edge.source} -. 回溯 .-> {edge.target}")
            elif edge.kind == EdgeKind.CONDITIONAL and (edge.label or "").strip():
                lines.append(f'{edge.source} -->|"{mm_text(edge.label)}"| {edge.target}')
            else:
                lines.append(f"{edge.source} --> {edge.target}")
        for node in description.nodes:
            lines.append(f"class {node.id} {node.status_class.value}")
        return "\n".join(lines) + "\n\n" + CLASS_DEFS

    def mermaid_for(self, case: TestCase) -> str:
        return self.compile(case).mermaid
