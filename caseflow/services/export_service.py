"""
匯出服務

- 四種格式：xlsx / xmind / html / json，分組與未分組共用同一組編碼器
- 編碼器為純函式，不修改集合
- 任一步驟失敗即拋出 ExportError，不產生部分檔案
- save_artifact 以暫存檔 + rename 原子寫入
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from ..models.test_case import TestCase, TestGroup
from .diagram_service import DiagramService
from .exporters import ExcelExporter, HTMLExporter, JSONExporter, XMindExporter
from .exporters.html_exporter import DEFAULT_MERMAID_CDN

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    XMIND = "xmind"
    HTML = "html"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.XMIND: "application/octet-stream",
    ExportFormat.HTML: "text/html; charset=utf-8",
    ExportFormat.JSON: "application/json",
}

CASES_BASENAME = "testcases"
GROUPS_BASENAME = "testcase"


class ExportError(RuntimeError):
    """匯出失敗"""

    def __init__(self, fmt: ExportFormat, cause: Exception):
        self.format = fmt
        self.cause = cause
        super().__init__(f"匯出 {fmt.value} 失敗: {cause}")


@dataclass
class ExportArtifact:
    filename: str
    media_type: str
    content: bytes


class ExportService:
    def __init__(
        self,
        diagram_service: Optional[DiagramService] = None,
        mermaid_cdn_url: str = DEFAULT_MERMAID_CDN,
    ):
        self.diagram_service = diagram_service or DiagramService()
        self._encoders = {
            ExportFormat.XLSX: ExcelExporter(),
            ExportFormat.XMIND: XMindExporter(),
            ExportFormat.HTML: HTMLExporter(self.diagram_service, mermaid_cdn_url=mermaid_cdn_url),
            ExportFormat.JSON: JSONExporter(),
        }

    def export_cases(self, fmt, cases: Sequence[TestCase]) -> ExportArtifact:
        fmt = ExportFormat(fmt)
        try:
            content = self._encoders[fmt].export_cases(list(cases))
        except Exception as e:
            logger.error("匯出 %s 失敗: %s", fmt.value, e, exc_info=True)
            raise ExportError(fmt, e) from e
        logger.info("匯出 %s 完成，%d 個用例", fmt.value, len(cases))
        return ExportArtifact(f"{CASES_BASENAME}.{fmt.value}", MEDIA_TYPES[fmt], content)

    def export_groups(self, fmt, groups: Sequence[TestGroup]) -> ExportArtifact:
        fmt = ExportFormat(fmt)
        try:
            content = self._encoders[fmt].export_groups(list(groups))
        except Exception as e:
            logger.error("匯出分組 %s 失敗: %s", fmt.value, e, exc_info=True)
            raise ExportError(fmt, e) from e
        logger.info("匯出分組 %s 完成，%d 個分組", fmt.value, len(groups))
        return ExportArtifact(f"{GROUPS_BASENAME}.{fmt.value}", MEDIA_TYPES[fmt], content)

    def save_artifact(self, artifact: ExportArtifact, directory) -> Path:
        """寫入目錄；先寫暫存檔再 rename，失敗時不留下部分檔案"""
        out_dir = Path(directory)
        tmp_dir = out_dir / ".tmp"
        os.makedirs(tmp_dir, exist_ok=True)

        final_path = out_dir / artifact.filename
        tmp_path = tmp_dir / f"{artifact.filename}-{datetime.utcnow().timestamp()}"
        try:
            with open(tmp_path, "wb") as f:
                f.write(artifact.content)
            os.replace(tmp_path, final_path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        logger.info("已寫入匯出檔案: %s", final_path)
        return final_path
