"""
XMind 匯出

三層主題樹：根 -> 用例（前置條件為備註）-> 步驟（期望值為備註）-> 分支 / 回溯，
分組模式在根與用例之間多一層分組主題。序列化為 XMind (Zen) 壓縮檔：
content.json / metadata.json / manifest.json。
"""

import json
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional, Sequence
from uuid import uuid4

from ... import __version__
from ...models.test_case import TestCase, TestGroup
from .common import branch_text, status_text, step_title

ROOT_TITLE = "测试用例"
GROUP_ROOT_TITLE = "测试用例分组"


@dataclass
class Topic:
    title: str
    note: Optional[str] = None
    children: List["Topic"] = field(default_factory=list)

    def to_content(self) -> dict:
        data = {"id": uuid4().hex, "class": "topic", "title": self.title}
        if self.note:
            data["notes"] = {"plain": {"content": self.note}}
        if self.children:
            data["children"] = {"attached": [child.to_content() for child in self.children]}
        return data


def case_topic(case: TestCase) -> Topic:
    steps = []
    for i, s in enumerate(case.steps):
        topic = Topic(f"{step_title(i)}: {s.action} [{status_text(s)}]", note=s.expected_value)
        if s.depends_on is not None:
            topic.children.append(Topic(f"回溯: {step_title(s.depends_on)}"))
        for b in s.branches or []:
            topic.children.append(Topic(f"分支: {branch_text(b)}"))
        steps.append(topic)
    return Topic(f"{case.id}: {case.title}", note=case.precondition or "", children=steps)


def build_outline(cases: Sequence[TestCase]) -> Topic:
    return Topic(ROOT_TITLE, children=[case_topic(c) for c in cases])


def build_group_outline(groups: Sequence[TestGroup]) -> Topic:
    return Topic(GROUP_ROOT_TITLE, children=[
        Topic(f"{g.id}: {g.name}", children=[case_topic(c) for c in g.cases])
        for g in groups
    ])


class XMindExporter:
    def export_cases(self, cases: Sequence[TestCase]) -> bytes:
        return self.archive(build_outline(cases))

    def export_groups(self, groups: Sequence[TestGroup]) -> bytes:
        return self.archive(build_group_outline(groups))

    def archive(self, root: Topic) -> bytes:
        root_content = root.to_content()
        root_content["structureClass"] = "org.xmind.ui.logic.right"
        content = [{
            "id": uuid4().hex,
            "class": "sheet",
            "title": root.title,
            "rootTopic": root_content,
        }]
        metadata = {
            "creator": {"name": "caseflow", "version": __version__},
        }
        manifest = {
            "file-entries": {
                "content.json": {},
                "metadata.json": {},
            }
        }

        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr("content.json", json.dumps(content, ensure_ascii=False, indent=2))
            zf.writestr("metadata.json", json.dumps(metadata, ensure_ascii=False, indent=2))
            zf.writestr("manifest.json", json.dumps(manifest, ensure_ascii=False, indent=2))
        return buffer.getvalue()
