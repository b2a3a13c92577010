from unittest.mock import MagicMock

import pytest

from tasklytics.config import EngineConfig
from tasklytics.flows import engine as engine_module
from tasklytics.flows.actions import ActionContext, Notifier
from tasklytics.flows.engine import FlowEngine
from tasklytics.flows.execution_log import ExecutionLog
from tasklytics.flows.relay import HttpRelaySink, LogRelaySink, RelaySink
from tasklytics.models.event import WorkspaceEvent
from tasklytics.models.flow import Flow
from tasklytics.models.snapshot import WorkspaceInfo, WorkspaceSnapshot


def make_flow(**kwargs):
    data = {
        "id": "flow-1",
        "name": "Done handler",
        "conditions": [{"field": "toStatus", "operator": "equals", "value": "Done"}],
        "actions": [{"type": "log_message", "config": {"message": "{{taskId}} done"}}],
    }
    data.update(kwargs)
    return Flow.model_validate(data)


def dropped(to_status="Done", task_id="T-101"):
    return WorkspaceEvent(
        type="task.dropped",
        task_id=task_id,
        payload={"fromStatus": "Review", "toStatus": to_status},
    )


class TestFlowEngine:
    @pytest.fixture
    def relay(self):
        return MagicMock(spec=RelaySink)

    @pytest.fixture
    def engine(self, relay):
        return FlowEngine(relay=relay)

    def test_completed_execution(self, engine, relay):
        result = engine.execute_flow(make_flow(), dropped())

        assert result.success is True
        assert result.actions_performed == 1
        assert result.errors == []

        records = engine.history()
        assert len(records) == 1
        record = records[0]
        assert record.id == result.execution_id
        assert record.status == "completed"
        assert record.flow_id == "flow-1"
        assert record.event_type == "task.dropped"
        assert record.target_key == "task:T-101"
        assert record.actions_performed[0].result["message"] == "T-101 done"
        assert record.duration_ms is not None
        relay.send.assert_called_once()
        message = relay.send.call_args.args[0]
        assert message.execution_id == record.id
        assert message.payload["toStatus"] == "Done"

    def test_conditions_not_met(self, engine, relay):
        result = engine.execute_flow(make_flow(), dropped(to_status="Review"))

        assert result.success is False
        assert result.reason == "conditions_not_met"
        record = engine.history()[0]
        assert record.status == "skipped"
        assert record.reason == "conditions_not_met"
        assert record.actions_performed == []
        relay.send.assert_not_called()

    def test_disabled_flow(self, engine):
        result = engine.execute_flow(make_flow(enabled=False), dropped())
        assert result.success is False
        assert result.reason == "disabled_or_not_found"
        assert result.execution_id is None
        assert len(engine.log) == 0

    def test_missing_flow(self, engine):
        result = engine.execute_flow(None, dropped())
        assert result.reason == "disabled_or_not_found"
        assert len(engine.log) == 0

    def test_partial_failure_runs_remaining_actions(self, engine):
        flow = make_flow(
            conditions=[],
            actions=[
                {"type": "log_message", "config": {"message": "first"}},
                {"type": "run_command", "config": {"command_type": "Commit"}},
                {"type": "log_message", "config": {"message": "third"}},
            ],
        )
        dispatch = MagicMock(side_effect=RuntimeError("dispatch exploded"))

        result = engine.execute_flow(flow, dropped(), ActionContext(dispatch=dispatch))

        assert result.success is False
        assert result.actions_performed == 3
        assert len(result.errors) == 1
        assert result.errors[0].action_index == 1
        assert "dispatch exploded" in result.errors[0].error
        record = engine.history()[0]
        assert record.status == "completed_with_errors"
        assert [a.index for a in record.actions_performed] == [0, 1, 2]
        assert record.actions_performed[2].result["message"] == "third"

    def test_unsuccessful_action_result_is_an_error(self, engine):
        flow = make_flow(
            conditions=[],
            actions=[{"type": "run_command", "config": {"command_type": "Commit"}}],
        )
        result = engine.execute_flow(flow, dropped())
        assert result.actions_performed == 1
        assert result.errors[0].error == "no_dispatcher"
        assert engine.history()[0].status == "completed_with_errors"

    def test_engine_failure_marks_record_failed(self, engine, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("evaluator crashed")

        monkeypatch.setattr(engine_module, "evaluate_conditions", broken)
        result = engine.execute_flow(make_flow(), dropped())

        assert result.success is False
        record = engine.history()[0]
        assert record.status == "failed"
        assert record.reason == "engine_error"
        assert record.errors[0].action_index is None
        assert "evaluator crashed" in record.errors[0].error

    def test_send_to_backend_disabled(self, engine, relay):
        engine.execute_flow(make_flow(send_to_backend=False), dropped())
        relay.send.assert_not_called()

    def test_relay_failure_does_not_fail_execution(self, engine, relay):
        relay.send.side_effect = RuntimeError("unreachable")
        result = engine.execute_flow(make_flow(), dropped())
        assert result.success is True
        assert engine.history()[0].status == "completed"

    def test_snapshot_fallback_in_conditions(self, engine):
        snapshot = WorkspaceSnapshot(workspace=WorkspaceInfo(id="w-1", name="Core"), view="Board")
        flow = make_flow(conditions=[{"field": "view", "operator": "equals", "value": "Board"}])
        result = engine.execute_flow(flow, dropped(), ActionContext(snapshot=snapshot))
        assert result.success is True

    def test_notification_action_uses_context_notifier(self, engine):
        notifier = MagicMock(spec=Notifier)
        flow = make_flow(
            actions=[{"type": "show_notification", "config": {"message": "{{taskId}} to {{toStatus}}"}}]
        )
        engine.execute_flow(flow, dropped(), ActionContext(notifier=notifier))
        notifier.notify.assert_called_once_with("Flow Notification", "T-101 to Done")

    def test_history_limit_and_clear(self, engine):
        for _ in range(5):
            engine.execute_flow(make_flow(), dropped())
        assert len(engine.history(limit=3)) == 3
        engine.clear_history()
        assert engine.history() == []

    def test_exposes_evaluator_and_interpolator(self, engine):
        flow = make_flow()
        assert engine.evaluate_conditions(flow.conditions, {"toStatus": "Done"}) is True
        assert engine.interpolate("{{a}}", {"a": 1}) == "1"

    def test_built_from_config(self, tmp_path):
        audit = tmp_path / "audit.jsonl"
        engine = FlowEngine(
            config=EngineConfig(
                execution_log_capacity=5,
                relay_url="http://localhost:9/flows",
                audit_log_path=str(audit),
            )
        )
        assert isinstance(engine._relay, HttpRelaySink)
        assert engine.log.capacity == 5

        engine._relay = MagicMock(spec=RelaySink)
        engine.execute_flow(make_flow(), dropped())
        assert len(audit.read_text().splitlines()) == 1

    def test_default_relay_logs(self):
        engine = FlowEngine(log=ExecutionLog(10))
        assert isinstance(engine._relay, LogRelaySink)
        assert engine.log.capacity == 10

    def test_flow_with_unknown_log_level_loads_and_completes(self, engine):
        flow = make_flow(
            conditions=[],
            actions=[{"type": "log_message", "config": {"message": "x", "level": "debug"}}],
        )
        result = engine.execute_flow(flow, dropped())
        assert result.success is True
        assert engine.history()[0].actions_performed[0].result["level"] == "info"
