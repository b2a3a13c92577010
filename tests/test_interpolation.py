from tasklytics.flows.interpolation import interpolate
from tasklytics.models.snapshot import Sprint, WorkspaceInfo, WorkspaceSnapshot
from tasklytics.workspace.seed import create_initial_snapshot


def make_snapshot():
    return WorkspaceSnapshot(
        workspace=WorkspaceInfo(id="w-1", name="Core"),
        sprint=Sprint(name="Sprint 3"),
    )


class TestInterpolate:
    def test_replaces_payload_tokens(self):
        payload = {"taskId": "T-101", "toStatus": "Done"}
        assert interpolate("Task {{taskId}} moved to {{toStatus}}", payload) == "Task T-101 moved to Done"

    def test_snapshot_fallback(self):
        assert interpolate("In {{sprint.name}} on {{workspace.name}}", {}, make_snapshot()) == "In Sprint 3 on Core"

    def test_unresolved_tokens_stay_verbatim(self):
        assert interpolate("Hello {{missing.path}}!", {}, make_snapshot()) == "Hello {{missing.path}}!"

    def test_whitespace_inside_token(self):
        assert interpolate("{{ taskId }}", {"taskId": "T-1"}) == "T-1"

    def test_values_are_stringified(self):
        payload = {"points": 8, "blocked": False}
        assert interpolate("{{points}} / {{blocked}}", payload) == "8 / false"

    def test_no_tokens_is_identity(self):
        for s in ["", "plain text", "{single}", "{{", "}} {{"]:
            assert interpolate(s, {"a": 1}, make_snapshot()) == s

    def test_non_string_passthrough(self):
        assert interpolate(5, {}) == 5
        assert interpolate(None, {}) is None

    def test_camel_case_snapshot_tokens(self):
        seed = create_initial_snapshot()
        text = interpolate("locked={{briefLocked}} review={{wipLimits.Review}}", {}, seed)
        assert text == "locked=false review=2"
