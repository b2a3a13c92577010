import json
from unittest.mock import MagicMock

import pytest

from tasklytics.flows.engine import FlowEngine
from tasklytics.flows.execution_log import ExecutionLog, JsonlExecutionLogger
from tasklytics.flows.relay import RelaySink
from tasklytics.models.event import WorkspaceEvent
from tasklytics.models.execution import ExecutionRecord
from tasklytics.models.flow import Flow


def make_record(i):
    return ExecutionRecord(id=f"exec-{i}", flow_id="flow-1", flow_name="Flow")


class TestExecutionLog:
    def test_most_recent_first(self):
        log = ExecutionLog(capacity=10)
        for i in range(3):
            log.append(make_record(i))
        assert [r.id for r in log.recent()] == ["exec-2", "exec-1", "exec-0"]

    def test_capacity_evicts_oldest(self):
        log = ExecutionLog(capacity=3)
        for i in range(5):
            log.append(make_record(i))
        assert len(log) == 3
        assert [r.id for r in log.recent()] == ["exec-4", "exec-3", "exec-2"]

    def test_recent_limit(self):
        log = ExecutionLog()
        for i in range(60):
            log.append(make_record(i))
        assert len(log.recent()) == 50
        assert len(log.recent(limit=5)) == 5

    def test_recent_returns_copies(self):
        log = ExecutionLog()
        log.append(make_record(1))
        log.recent()[0].flow_name = "tampered"
        assert log.get("exec-1").flow_name == "Flow"

    def test_get_and_clear(self):
        log = ExecutionLog()
        log.append(make_record(1))
        assert log.get("exec-1").id == "exec-1"
        assert log.get("missing") is None
        log.clear()
        assert len(log) == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ExecutionLog(capacity=0)

    def test_engine_keeps_last_hundred(self):
        engine = FlowEngine(relay=MagicMock(spec=RelaySink))
        flow = Flow(id="flow-1", name="Flow")
        event = WorkspaceEvent(type="button.clicked", target_key="button:save")
        ids = [engine.execute_flow(flow, event).execution_id for _ in range(105)]

        records = engine.history(limit=200)
        assert len(records) == 100
        assert [r.id for r in records] == list(reversed(ids))[:100]


class TestJsonlExecutionLogger:
    def test_appends_json_lines(self, tmp_path):
        path = tmp_path / "nested" / "executions.jsonl"
        log = ExecutionLog(audit=JsonlExecutionLogger(str(path)))
        log.append(make_record(1))
        log.append(make_record(2))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["id"] for line in lines] == ["exec-1", "exec-2"]

    def test_write_failure_is_logged(self):
        audit = MagicMock(spec=JsonlExecutionLogger)
        audit.write.side_effect = OSError("disk full")
        log = ExecutionLog(audit=audit)
        log.append(make_record(1))
        assert len(log) == 1
