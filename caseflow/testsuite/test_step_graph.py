import pytest

from caseflow.models.draft import CaseDraft
from caseflow.models.step_graph import StepGraph, StepReferenceError
from caseflow.models.test_case import Branch, ExpectedStatus, Step


def _steps():
    return [
        Step(action="A", branches=[Branch(condition="to C", next_step=2)]),
        Step(action="B"),
        Step(action="C", expected_status=ExpectedStatus.FAILURE, depends_on=1),
    ]


def test_blank_graph_has_one_empty_step():
    steps = StepGraph.blank().to_steps()
    assert len(steps) == 1
    assert steps[0].action == ""
    assert steps[0].expected_status == ExpectedStatus.SUCCESS
    assert steps[0].expected_value == ""


def test_delete_last_remaining_step_is_noop():
    graph = StepGraph.blank()
    assert graph.delete_step(0) is False
    assert len(graph) == 1


def test_step_count_never_drops_below_one():
    graph = StepGraph.blank()
    for _ in range(3):
        graph.add_step(action="x")
    for _ in range(10):
        graph.delete_step(0)
    assert len(graph) == 1


def test_from_steps_is_a_deep_copy():
    original = _steps()
    graph = StepGraph.from_steps(original)
    graph.update_step(0, action="changed")
    graph.add_branch(0, "extra", 1)

    assert original[0].action == "A"
    assert len(original[0].branches) == 1
    assert graph.to_steps()[0].action == "changed"


def test_to_steps_round_trips_indices():
    assert StepGraph.from_steps(_steps()).to_steps() == _steps()


def test_delete_step_drops_references_to_it_and_shifts_others():
    graph = StepGraph.from_steps(_steps())
    assert graph.delete_step(1) is True

    steps = graph.to_steps()
    assert [s.action for s in steps] == ["A", "C"]
    # C 的回溯目標 (B) 已刪除
    assert steps[1].depends_on is None
    # A -> C 的分支跟著 C 移到索引 1
    assert steps[0].branches == [Branch(condition="to C", next_step=1)]


def test_delete_step_removes_branches_targeting_it():
    graph = StepGraph.from_steps(_steps())
    graph.delete_step(2)
    steps = graph.to_steps()
    assert steps[0].branches == []


def test_unresolved_indices_are_kept_verbatim():
    steps = [
        Step(action="A", depends_on=7, branches=[Branch(condition="c", next_step=9)]),
        Step(action="B"),
    ]
    graph = StepGraph.from_steps(steps)
    graph.delete_step(1)
    out = graph.to_steps()
    assert out[0].depends_on == 7
    assert out[0].branches[0].next_step == 9


def test_add_branch_defaults_to_first_step():
    graph = StepGraph.from_steps(_steps())
    index = graph.add_branch(1)
    assert index == 0
    assert graph.to_steps()[1].branches == [Branch(condition="", next_step=0)]


def test_new_references_are_validated():
    graph = StepGraph.from_steps(_steps())
    with pytest.raises(StepReferenceError):
        graph.add_branch(0, "bad", 5)
    with pytest.raises(StepReferenceError):
        graph.set_depends_on(0, -1)
    with pytest.raises(ValueError):
        graph.update_branch(1, 0, condition="no such branch")


def test_update_and_delete_branch():
    graph = StepGraph.from_steps(_steps())
    graph.update_branch(0, 0, condition="to B", target=1)
    assert graph.to_steps()[0].branches == [Branch(condition="to B", next_step=1)]
    graph.delete_branch(0, 0)
    assert graph.to_steps()[0].branches == []


def test_set_depends_on_and_clear():
    graph = StepGraph.from_steps(_steps())
    graph.set_depends_on(1, 0)
    assert graph.to_steps()[1].depends_on == 0
    graph.set_depends_on(1, None)
    assert graph.to_steps()[1].depends_on is None


def test_references_follow_step_after_earlier_deletion():
    graph = StepGraph.from_steps([Step(action="A"), Step(action="B"), Step(action="C"), Step(action="D")])
    graph.set_depends_on(3, 2)
    graph.delete_step(0)
    steps = graph.to_steps()
    assert [s.action for s in steps] == ["B", "C", "D"]
    assert steps[2].depends_on == 1


def test_case_draft_builds_case(login_case):
    draft = CaseDraft.from_case(login_case)
    assert draft.editing_id == "TC-1"
    draft.title = "Login v2"
    case = draft.build_case("TC-9")
    assert case.id == "TC-9"
    assert case.title == "Login v2"
    assert case.steps == login_case.steps
    assert login_case.title == "Login"
