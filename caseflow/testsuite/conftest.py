from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from caseflow.models.test_case import Branch, ExpectedStatus, Step, TestCase, TestGroup
from caseflow.services.case_store import CaseStore, MemoryCaseStore


class FailingStore(CaseStore):
    """所有操作都失敗的儲存（模擬儲存不可用）"""

    def __init__(self):
        self.calls = []

    async def init(self):
        self.calls.append(("init", None))
        raise OSError("storage unavailable")

    async def get(self, key):
        self.calls.append(("get", key))
        raise OSError("storage unavailable")

    async def set(self, key, value):
        self.calls.append(("set", key))
        raise OSError("storage unavailable")

    async def remove(self, key):
        self.calls.append(("remove", key))
        raise OSError("storage unavailable")

    async def clear(self):
        self.calls.append(("clear", None))
        raise OSError("storage unavailable")


@pytest.fixture
def memory_store():
    return MemoryCaseStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def login_case():
    return TestCase(
        id="TC-1",
        title="Login",
        precondition="",
        steps=[
            Step(action="open page", expected_status=ExpectedStatus.SUCCESS, expected_value=""),
            Step(
                action="click login",
                expected_status=ExpectedStatus.FAILURE,
                expected_value="error shown",
                branches=[Branch(condition="bad password", next_step=0)],
            ),
        ],
    )


@pytest.fixture
def login_group(login_case):
    return TestGroup(id="G-1", name="登录", cases=[login_case])
