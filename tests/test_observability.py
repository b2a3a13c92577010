import io
import json
import logging
import sys
from unittest.mock import MagicMock

import pytest

from tasklytics.flows.engine import FlowEngine
from tasklytics.flows.relay import RelaySink
from tasklytics.models.event import WorkspaceEvent
from tasklytics.models.flow import Flow
from tasklytics.observability.logging import (
    JsonFormatter,
    current_log_context,
    get_logger,
    log_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("tasklytics.test", logging.INFO, "path", 1, "Flow %s", ("ran",), None)
    record.extra_fields = {"flow_id": "flow-1"}
    record.execution_id = "exec-1"

    entry = json.loads(JsonFormatter().format(record))

    assert entry["message"] == "Flow ran"
    assert entry["level"] == "INFO"
    assert entry["component"] == "tasklytics.test"
    assert entry["flow_id"] == "flow-1"
    assert entry["execution_id"] == "exec-1"
    assert "extra_fields" not in entry


def test_json_formatter_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("x", logging.ERROR, "path", 1, "failed", None, sys.exc_info())
    entry = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in entry["exception"]


def test_setup_logging_writes_json():
    stream = io.StringIO()
    setup_logging("debug", stream=stream)
    get_logger("tasklytics.test").debug("hello", extra={"extra_fields": {"k": 1}})

    entry = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert entry["message"] == "hello"
    assert entry["k"] == 1
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_env_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    setup_logging(stream=io.StringIO())
    assert logging.getLogger().level == logging.ERROR
    assert len(logging.getLogger().handlers) == 1


def read_entries(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def test_service_and_component_envelope():
    stream = io.StringIO()
    setup_logging("info", stream=stream)
    get_logger("tasklytics.flows.engine").info("ran")

    entry = read_entries(stream)[-1]
    assert entry["service"] == "tasklytics"
    assert entry["component"] == "tasklytics.flows.engine"


def test_log_context_binds_fields():
    stream = io.StringIO()
    setup_logging("info", stream=stream)
    logger = get_logger("tasklytics.test")

    with log_context(flow_id="flow-1"):
        with log_context(execution_id="exec-1"):
            assert current_log_context() == {"flow_id": "flow-1", "execution_id": "exec-1"}
            logger.info("inner")
        logger.info("outer", extra={"extra_fields": {"flow_id": "flow-override"}})
    logger.info("after")

    inner, outer, after = read_entries(stream)[-3:]
    assert (inner["flow_id"], inner["execution_id"]) == ("flow-1", "exec-1")
    assert outer["flow_id"] == "flow-override"
    assert "execution_id" not in outer
    assert "flow_id" not in after
    assert current_log_context() == {}


def test_flow_action_logs_carry_execution_context():
    stream = io.StringIO()
    setup_logging("info", stream=stream)
    engine = FlowEngine(relay=MagicMock(spec=RelaySink))
    flow = Flow.model_validate(
        {
            "id": "flow-ctx",
            "name": "Context",
            "actions": [{"type": "log_message", "config": {"message": "hello {{taskId}}"}}],
        }
    )

    result = engine.execute_flow(flow, WorkspaceEvent(type="task.dropped", task_id="T-101"))

    action_lines = [e for e in read_entries(stream) if e["component"] == "tasklytics.flows"]
    assert action_lines[-1]["message"] == "[Flow] hello T-101"
    assert action_lines[-1]["flow_id"] == "flow-ctx"
    assert action_lines[-1]["execution_id"] == result.execution_id
