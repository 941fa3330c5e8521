"""
用例草稿 (編輯緩衝區) API 路由

步驟位置在 URL 中為 0-based，畫面顯示為 S1..Sn。
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_draft_service
from ..models.draft import (
    DraftBranchWrite,
    DraftCreate,
    DraftStepWrite,
    DraftUpdate,
    DraftView,
)
from ..models.test_case import ExpectedStatus, TestCase
from ..services.draft_service import DraftEntry, DraftNotFoundError, DraftService
from ..services.test_case_service import TestCaseNotFoundError
from ..services.test_group_service import TestGroupNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])

_NOT_FOUND = (DraftNotFoundError, TestCaseNotFoundError, TestGroupNotFoundError)


def _view(entry: DraftEntry) -> DraftView:
    draft = entry.draft
    return DraftView(
        id=entry.id,
        editing_id=draft.editing_id,
        group_id=entry.group_id,
        title=draft.title,
        precondition=draft.precondition,
        steps=draft.build_steps(),
    )


def _entry(service: DraftService, draft_id: str) -> DraftEntry:
    try:
        return service.get(draft_id)
    except DraftNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _bad_request(e: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=DraftView, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def open_draft(request: DraftCreate, service: DraftService = Depends(get_draft_service)):
    """開啟草稿；帶 case_id 時為編輯既有用例（深拷貝）"""
    try:
        entry = service.open(case_id=request.case_id, group_id=request.group_id)
    except _NOT_FOUND as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _view(entry)


@router.get("/{draft_id}", response_model=DraftView, response_model_exclude_none=True)
async def get_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return _view(_entry(service, draft_id))


@router.patch("/{draft_id}", response_model=DraftView, response_model_exclude_none=True)
async def update_draft(draft_id: str, request: DraftUpdate, service: DraftService = Depends(get_draft_service)):
    entry = _entry(service, draft_id)
    if request.title is not None:
        entry.draft.title = request.title
    if request.precondition is not None:
        entry.draft.precondition = request.precondition
    return _view(entry)


@router.delete("/{draft_id}")
async def discard_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    _entry(service, draft_id)
    service.discard(draft_id)
    return {"discarded": True, "id": draft_id}


@router.post("/{draft_id}/commit", response_model=TestCase, response_model_exclude_none=True)
async def commit_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    """將草稿寫回集合（新增或整筆取代）"""
    _entry(service, draft_id)
    try:
        return await service.commit(draft_id)
    except _NOT_FOUND as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise _bad_request(e)


# ---------------- 步驟 ----------------

@router.post("/{draft_id}/steps", response_model=DraftView, response_model_exclude_none=True)
async def add_step(draft_id: str, request: DraftStepWrite, service: DraftService = Depends(get_draft_service)):
    entry = _entry(service, draft_id)
    graph = entry.draft.graph
    try:
        position = graph.add_step(
            action=request.action or "",
            expected_status=ExpectedStatus(request.expected_status or ExpectedStatus.SUCCESS),
            expected_value=request.expected_value or "",
        )
        if request.depends_on is not None and request.depends_on >= 0:
            graph.set_depends_on(position, request.depends_on)
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)


@router.patch("/{draft_id}/steps/{position}", response_model=DraftView, response_model_exclude_none=True)
async def update_step(
    draft_id: str,
    position: int,
    request: DraftStepWrite,
    service: DraftService = Depends(get_draft_service),
):
    entry = _entry(service, draft_id)
    graph = entry.draft.graph
    try:
        graph.update_step(
            position,
            action=request.action,
            expected_status=ExpectedStatus(request.expected_status) if request.expected_status else None,
            expected_value=request.expected_value,
        )
        if request.depends_on is not None:
            graph.set_depends_on(position, None if request.depends_on < 0 else request.depends_on)
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)


@router.delete("/{draft_id}/steps/{position}", response_model=DraftView, response_model_exclude_none=True)
async def delete_step(draft_id: str, position: int, service: DraftService = Depends(get_draft_service)):
    """刪除步驟；只剩一步時保持不變"""
    entry = _entry(service, draft_id)
    try:
        if not entry.draft.graph.delete_step(position):
            logger.info("草稿 %s 只剩一個步驟，略過刪除", draft_id)
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)


# ---------------- 分支 ----------------

@router.post("/{draft_id}/steps/{position}/branches", response_model=DraftView, response_model_exclude_none=True)
async def add_branch(
    draft_id: str,
    position: int,
    request: DraftBranchWrite,
    service: DraftService = Depends(get_draft_service),
):
    entry = _entry(service, draft_id)
    try:
        entry.draft.graph.add_branch(
            position,
            condition=request.condition or "",
            target=request.next_step if request.next_step is not None else 0,
        )
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)


@router.patch(
    "/{draft_id}/steps/{position}/branches/{branch_index}",
    response_model=DraftView,
    response_model_exclude_none=True,
)
async def update_branch(
    draft_id: str,
    position: int,
    branch_index: int,
    request: DraftBranchWrite,
    service: DraftService = Depends(get_draft_service),
):
    entry = _entry(service, draft_id)
    try:
        entry.draft.graph.update_branch(
            position, branch_index, condition=request.condition, target=request.next_step
        )
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)


@router.delete(
    "/{draft_id}/steps/{position}/branches/{branch_index}",
    response_model=DraftView,
    response_model_exclude_none=True,
)
async def delete_branch(
    draft_id: str,
    position: int,
    branch_index: int,
    service: DraftService = Depends(get_draft_service),
):
    entry = _entry(service, draft_id)
    try:
        entry.draft.graph.delete_branch(position, branch_index)
    except ValueError as e:
        raise _bad_request(e)
    return _view(entry)
