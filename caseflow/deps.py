"""
FastAPI 依賴：服務實例於啟動時建立並放在 app.state
"""

from fastapi import Query, Request

from .services.diagram_renderer import DiagramRenderer
from .services.diagram_service import DiagramService
from .services.dialog import ConfirmDialog, fixed_answer
from .services.draft_service import DraftService
from .services.export_service import ExportService
from .services.test_case_service import TestCaseService
from .services.test_group_service import TestGroupService


def get_test_case_service(request: Request) -> TestCaseService:
    return request.app.state.test_case_service


def get_test_group_service(request: Request) -> TestGroupService:
    return request.app.state.test_group_service


def get_draft_service(request: Request) -> DraftService:
    return request.app.state.draft_service


def get_diagram_service(request: Request) -> DiagramService:
    return request.app.state.diagram_service


def get_diagram_renderer(request: Request) -> DiagramRenderer:
    return request.app.state.diagram_renderer


def get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service


def get_confirm_dialog(
    confirm: bool = Query(False, description="客戶端已向使用者確認此破壞性操作"),
) -> ConfirmDialog:
    return fixed_answer(confirm)
