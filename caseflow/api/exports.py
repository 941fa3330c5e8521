"""
匯出 API 路由：回傳檔案下載
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from ..deps import get_export_service, get_test_case_service, get_test_group_service
from ..services.export_service import ExportArtifact, ExportError, ExportFormat, ExportService
from ..services.test_case_service import TestCaseService
from ..services.test_group_service import TestGroupService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


def _download(artifact: ExportArtifact) -> Response:
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/export/{fmt}")
async def export_test_cases(
    fmt: ExportFormat,
    cases: TestCaseService = Depends(get_test_case_service),
    exporter: ExportService = Depends(get_export_service),
):
    try:
        artifact = exporter.export_cases(fmt, cases.cases)
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _download(artifact)


@router.get("/groups/export/{fmt}")
async def export_test_groups(
    fmt: ExportFormat,
    groups: TestGroupService = Depends(get_test_group_service),
    exporter: ExportService = Depends(get_export_service),
):
    try:
        artifact = exporter.export_groups(fmt, groups.groups)
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _download(artifact)
