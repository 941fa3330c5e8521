"""
匯出共用格式：步驟編號一律 1-based，分支寫作 `條件 -> 步骤 N`
"""

from typing import List, Optional

from ...models.test_case import Branch, ExpectedStatus, Step

EMPTY_VALUE = "无"
UNKNOWN_STEP = "未知步骤"

# 狀態文字顏色 (RGB)
STATUS_COLORS = {
    ExpectedStatus.SUCCESS: "00AA00",
    ExpectedStatus.FAILURE: "CC0000",
    ExpectedStatus.EXCEPTION: "FF9900",
}


def status_text(step: Step) -> str:
    return ExpectedStatus(step.expected_status).value


def step_title(index: int) -> str:
    return f"步骤 {index + 1}"


def target_step(steps: List[Step], index: Optional[int]) -> Optional[Step]:
    """依索引取得目標步驟；超出範圍回傳 None"""
    if index is None or not 0 <= index < len(steps):
        return None
    return steps[index]


def target_action(steps: List[Step], index: int) -> str:
    step = target_step(steps, index)
    if step is None:
        return UNKNOWN_STEP
    return step.action or step_title(index)


def branch_text(branch: Branch) -> str:
    return f"{branch.condition} -> {step_title(branch.next_step)}"


def branches_suffix(step: Step) -> str:
    return ", ".join(f"[{branch_text(b)}]" for b in step.branches or [])


def step_line(index: int, step: Step) -> str:
    """`步骤 N: action | status | expectedValue [branch, ...]`"""
    return f"{step_title(index)}: {step.action} | {status_text(step)} | {step.expected_value} {branches_suffix(step)}".rstrip()


def steps_text(steps: List[Step]) -> str:
    return "\n".join(step_line(i, s) for i, s in enumerate(steps))
