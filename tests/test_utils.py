from tasklytics.models.enums import StateDiffOp
from tasklytics.utils import compute_state_diff, new_id


def test_new_id():
    first, second = new_id("exec"), new_id("exec")
    assert first.startswith("exec-")
    assert first != second


def test_compute_state_diff_nested():
    old = {"view": "Dashboard", "sprint": {"name": "S1", "goal": "g"}}
    new = {"view": "Board", "sprint": {"name": "S1", "goal": "h"}, "extra": 1}

    diffs = compute_state_diff(old, new)

    assert [(d.path, d.op, d.value) for d in diffs] == [
        ("view", StateDiffOp.REPLACE, "Board"),
        ("sprint.goal", StateDiffOp.REPLACE, "h"),
        ("extra", StateDiffOp.ADD, 1),
    ]


def test_compute_state_diff_lists():
    old = {"tasks": [{"id": "T-1", "status": "Backlog"}]}
    new = {"tasks": [{"id": "T-1", "status": "Done"}, {"id": "T-2"}]}

    diffs = compute_state_diff(old, new)

    assert [(d.path, d.op) for d in diffs] == [
        ("tasks.0.status", StateDiffOp.REPLACE),
        ("tasks.1", StateDiffOp.ADD),
    ]


def test_compute_state_diff_removal_and_equal():
    assert compute_state_diff({"a": 1}, {"a": 1}) == []
    diffs = compute_state_diff({"a": 1, "b": 2}, {"a": 1})
    assert [(d.path, d.op, d.value) for d in diffs] == [("b", StateDiffOp.REMOVE, None)]
