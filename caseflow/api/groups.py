"""
測試用例分組 (Test Group) API 路由
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_confirm_dialog, get_test_group_service
from ..models.draft import CaseDraft
from ..models.step_graph import StepGraph
from ..models.test_case import TestCase, TestCaseWrite, TestGroup, TestGroupWrite
from ..services.dialog import ConfirmDialog
from ..services.test_case_service import TestCaseNotFoundError
from ..services.test_group_service import TestGroupNotFoundError, TestGroupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])

_NOT_FOUND = (TestGroupNotFoundError, TestCaseNotFoundError)


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _draft_from(request: TestCaseWrite, editing_id: str = None) -> CaseDraft:
    return CaseDraft(
        title=request.title,
        precondition=request.precondition,
        graph=StepGraph.from_steps(request.steps),
        editing_id=editing_id,
    )


@router.get("", response_model=List[TestGroup], response_model_exclude_none=True)
async def list_groups(service: TestGroupService = Depends(get_test_group_service)):
    return service.groups


@router.post("", response_model=TestGroup, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def create_group(request: TestGroupWrite, service: TestGroupService = Depends(get_test_group_service)):
    return await service.add_group(
        request.name,
        depends_on_group=request.depends_on_group,
        depends_on_case=request.depends_on_case,
        depends_on_step=request.depends_on_step,
    )


@router.post("/import", response_model=List[TestGroup], response_model_exclude_none=True)
async def import_groups(groups: List[TestGroup], service: TestGroupService = Depends(get_test_group_service)):
    return await service.import_groups(groups)


@router.delete("")
async def clear_groups(
    service: TestGroupService = Depends(get_test_group_service),
    confirm: ConfirmDialog = Depends(get_confirm_dialog),
):
    cleared = await service.clear_groups(confirm)
    return {"cleared": cleared}


@router.get("/{group_id}", response_model=TestGroup, response_model_exclude_none=True)
async def get_group(group_id: str, service: TestGroupService = Depends(get_test_group_service)):
    try:
        return service.get_group(group_id)
    except TestGroupNotFoundError as e:
        raise _not_found(e)


@router.put("/{group_id}", response_model=TestGroup, response_model_exclude_none=True)
async def update_group(
    group_id: str,
    request: TestGroupWrite,
    service: TestGroupService = Depends(get_test_group_service),
):
    try:
        return await service.update_group(
            group_id,
            request.name,
            depends_on_group=request.depends_on_group,
            depends_on_case=request.depends_on_case,
            depends_on_step=request.depends_on_step,
        )
    except TestGroupNotFoundError as e:
        raise _not_found(e)


@router.delete("/{group_id}")
async def delete_group(
    group_id: str,
    service: TestGroupService = Depends(get_test_group_service),
    confirm: ConfirmDialog = Depends(get_confirm_dialog),
):
    try:
        deleted = await service.delete_group(group_id, confirm)
    except TestGroupNotFoundError as e:
        raise _not_found(e)
    return {"deleted": deleted, "id": group_id}


# ---------------- 分組內用例 ----------------

@router.post(
    "/{group_id}/cases",
    response_model=TestCase,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def add_group_case(
    group_id: str,
    request: TestCaseWrite,
    service: TestGroupService = Depends(get_test_group_service),
):
    try:
        return await service.add_case(group_id, _draft_from(request))
    except TestGroupNotFoundError as e:
        raise _not_found(e)


@router.put("/{group_id}/cases/{case_id}", response_model=TestCase, response_model_exclude_none=True)
async def update_group_case(
    group_id: str,
    case_id: str,
    request: TestCaseWrite,
    service: TestGroupService = Depends(get_test_group_service),
):
    try:
        return await service.save_case(group_id, _draft_from(request, editing_id=case_id))
    except _NOT_FOUND as e:
        raise _not_found(e)


@router.delete("/{group_id}/cases/{case_id}")
async def delete_group_case(
    group_id: str,
    case_id: str,
    service: TestGroupService = Depends(get_test_group_service),
    confirm: ConfirmDialog = Depends(get_confirm_dialog),
):
    try:
        deleted = await service.delete_case(group_id, case_id, confirm)
    except _NOT_FOUND as e:
        raise _not_found(e)
    return {"deleted": deleted, "id": case_id}
