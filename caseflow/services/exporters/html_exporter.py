"""
HTML 匯出（靜態網頁）

- 自包含：用例資料全部內嵌，CSS 內嵌，使用者內容一律跳脫（Jinja2 autoescape）
- 樣式與預覽一致：狀態徽章、回溯標示、分支清單（目標步驟 + 操作）
- 流程圖以 Mermaid CDN 腳本渲染，僅圖形渲染依賴外部腳本
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...models.test_case import TestCase, TestGroup
from ..diagram_service import DiagramService, status_class
from .common import EMPTY_VALUE, branch_text, status_text, target_action, target_step

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
TEMPLATE_NAME = "testcases_export.html"
DEFAULT_MERMAID_CDN = "https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class HTMLExporter:
    def __init__(
        self,
        diagram_service: Optional[DiagramService] = None,
        mermaid_cdn_url: str = DEFAULT_MERMAID_CDN,
        include_diagrams: bool = True,
    ):
        self.diagram_service = diagram_service or DiagramService()
        self.mermaid_cdn_url = mermaid_cdn_url
        self.include_diagrams = include_diagrams

    # ---------------- Public API ----------------
    def render_cases(self, cases: Sequence[TestCase], title: str = "测试用例预览") -> str:
        sections = [{"group": None, "cases": [self._case_view(c) for c in cases]}]
        return self._render(title, sections)

    def render_groups(self, groups: Sequence[TestGroup], title: str = "测试用例分组") -> str:
        sections = [
            {"group": self._group_view(g), "cases": [self._case_view(c, prefix=g.id) for c in g.cases]}
            for g in groups
        ]
        return self._render(title, sections)

    def export_cases(self, cases: Sequence[TestCase]) -> bytes:
        return self.render_cases(cases).encode("utf-8")

    def export_groups(self, groups: Sequence[TestGroup]) -> bytes:
        return self.render_groups(groups).encode("utf-8")

    # ---------------- View models ----------------
    def _render(self, title: str, sections: List[Dict[str, Any]]) -> str:
        template = _env.get_template(TEMPLATE_NAME)
        return template.render(
            title=title,
            sections=sections,
            total_cases=sum(len(s["cases"]) for s in sections),
            include_diagrams=self.include_diagrams,
            mermaid_cdn_url=self.mermaid_cdn_url,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
        )

    def _group_view(self, group: TestGroup) -> Dict[str, Any]:
        depends = []
        if group.depends_on_group:
            depends.append(group.depends_on_group)
        if group.depends_on_case:
            depends.append(group.depends_on_case)
        if group.depends_on_step is not None:
            depends.append(f"S{group.depends_on_step + 1}")
        return {
            "id": group.id,
            "name": group.name,
            "anchor": f"group-{group.id}",
            "depends": " / ".join(depends),
        }

    def _case_view(self, case: TestCase, prefix: Optional[str] = None) -> Dict[str, Any]:
        steps = case.steps
        step_views = []
        for i, s in enumerate(steps):
            backtrack = None
            if s.depends_on is not None:
                backtrack = {
                    "number": s.depends_on + 1,
                    "action": target_action(steps, s.depends_on),
                    "unknown": target_step(steps, s.depends_on) is None,
                }
            branches = [
                {
                    "code": f"C{i + 1}.{bi + 1}",
                    "text": branch_text(b),
                    "action": target_action(steps, b.next_step),
                    "unknown": target_step(steps, b.next_step) is None,
                }
                for bi, b in enumerate(s.branches or [])
            ]
            step_views.append({
                "number": i + 1,
                "action": s.action,
                "status": status_text(s),
                "status_class": status_class(s.expected_status).value,
                "value": s.expected_value or EMPTY_VALUE,
                "backtrack": backtrack,
                "branches": branches,
            })

        return {
            "id": case.id,
            "anchor": f"{prefix}-{case.id}" if prefix else case.id,
            "title": case.title,
            "precondition": case.precondition or EMPTY_VALUE,
            "steps": step_views,
            "mermaid": self.diagram_service.mermaid_for(case) if self.include_diagrams else "",
        }
