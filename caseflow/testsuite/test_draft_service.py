import pytest

from caseflow.services.draft_service import DraftNotFoundError, DraftService
from caseflow.services.test_case_service import TestCaseService
from caseflow.services.test_group_service import TestGroupService


def _service(store, **kwargs):
    return DraftService(TestCaseService(store, "cases"), TestGroupService(store, "groups"), **kwargs)


def test_expired_drafts_are_evicted(memory_store):
    drafts = _service(memory_store, ttl_seconds=60)
    stale = drafts.open()
    stale.touched_at -= 120
    fresh = drafts.open()

    assert len(drafts) == 1
    assert drafts.get(fresh.id) is fresh
    with pytest.raises(DraftNotFoundError):
        drafts.get(stale.id)


def test_registry_is_capped(memory_store):
    drafts = _service(memory_store, max_drafts=2)
    first = drafts.open()
    second = drafts.open()
    first.touched_at -= 10
    third = drafts.open()

    assert len(drafts) == 2
    with pytest.raises(DraftNotFoundError):
        drafts.get(first.id)
    assert drafts.get(second.id) is second
    assert drafts.get(third.id) is third


@pytest.mark.asyncio
async def test_commit_and_discard_release_drafts(memory_store):
    drafts = _service(memory_store)
    await drafts.case_service.load()
    kept = drafts.open()
    dropped = drafts.open()

    case = await drafts.commit(kept.id)
    drafts.discard(dropped.id)

    assert case.id == "TC-1"
    assert len(drafts) == 0
