"""
Excel 匯出 (openpyxl)

- 每個用例一列；步驟欄以換行串接所有步驟
- 表頭粗體，所有儲存格靠左上、自動換行
- 列高依步驟數等比例放大（最低 35）
- 步驟欄使用 rich text，狀態文字依狀態著色
- 寫入前移除 XML 不允許的控制字元
"""

from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from ...models.test_case import ExpectedStatus, TestCase, TestGroup
from .common import STATUS_COLORS, branches_suffix, status_text, step_title, steps_text

ROW_HEIGHT_PER_STEP = 35
MIN_ROW_HEIGHT = 35

CASE_COLUMNS: List[Tuple[str, int]] = [
    ("ID", 18),
    ("标题", 30),
    ("前置条件", 40),
    ("步骤", 80),
]
GROUP_COLUMNS: List[Tuple[str, int]] = [
    ("分组ID", 12),
    ("分组", 20),
]

_ALIGN = Alignment(wrap_text=True, vertical="top", horizontal="left")
_BLACK = "FF000000"


def _argb(rgb: str) -> str:
    return f"FF{rgb}"


def cell_text(value) -> str:
    """移除工作表 XML 不接受的控制字元 (例如 \\x01、\\x0b)"""
    return ILLEGAL_CHARACTERS_RE.sub("", str(value or ""))


def steps_rich_text(case: TestCase) -> CellRichText:
    blocks = []
    last = len(case.steps) - 1
    for i, s in enumerate(case.steps):
        color = STATUS_COLORS[ExpectedStatus(s.expected_status)]
        tail = f" | {s.expected_value} {branches_suffix(s)}".rstrip()
        if i < last:
            tail += "\n"
        blocks.append(TextBlock(InlineFont(color=_BLACK), cell_text(f"{step_title(i)}: {s.action} | ")))
        blocks.append(TextBlock(InlineFont(color=_argb(color), b=True), cell_text(status_text(s))))
        blocks.append(TextBlock(InlineFont(color=_BLACK), cell_text(tail)))
    return CellRichText(*blocks)


def row_height(case: TestCase) -> int:
    return max(MIN_ROW_HEIGHT, len(case.steps) * ROW_HEIGHT_PER_STEP)


class ExcelExporter:
    def __init__(self, rich_text: bool = True):
        self.rich_text = rich_text

    def export_cases(self, cases: Sequence[TestCase]) -> bytes:
        return self._build("TestCases", CASE_COLUMNS, [(None, c) for c in cases])

    def export_groups(self, groups: Sequence[TestGroup]) -> bytes:
        rows = [(g, c) for g in groups for c in g.cases]
        return self._build("TestGroups", GROUP_COLUMNS + CASE_COLUMNS, rows)

    def _build(
        self,
        sheet_title: str,
        columns: List[Tuple[str, int]],
        rows: List[Tuple[Optional[TestGroup], TestCase]],
    ) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title

        for col, (header, width) in enumerate(columns, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True)
            cell.alignment = _ALIGN
            ws.column_dimensions[get_column_letter(col)].width = width

        steps_col = len(columns)
        for row_idx, (group, case) in enumerate(rows, start=2):
            values = []
            if group is not None:
                values.extend([group.id, group.name])
            values.extend([case.id, case.title, case.precondition])
            for col, value in enumerate(values, start=1):
                ws.cell(row=row_idx, column=col, value=cell_text(value)).alignment = _ALIGN

            steps_cell = ws.cell(row=row_idx, column=steps_col)
            steps_cell.value = steps_rich_text(case) if self.rich_text else cell_text(steps_text(case.steps))
            steps_cell.alignment = _ALIGN
            ws.row_dimensions[row_idx].height = row_height(case)

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
