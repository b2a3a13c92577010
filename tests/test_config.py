import pytest
from pydantic import ValidationError

from tasklytics.config import EngineConfig


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.execution_log_capacity == 100
        assert config.relay_url is None
        assert config.max_dispatch_depth == 8
        assert config.default_binding_event == "task.dropped"

    def test_frozen(self):
        with pytest.raises(ValidationError):
            EngineConfig().relay_url = "http://x"

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(relay="http://x")

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineConfig(execution_log_capacity=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKLYTICS_EXECUTION_LOG_CAPACITY", "25")
        monkeypatch.setenv("TASKLYTICS_RELAY_URL", "http://backend/flows")
        monkeypatch.setenv("TASKLYTICS_RELAY_TIMEOUT", "1.5")
        monkeypatch.setenv("TASKLYTICS_MAX_DISPATCH_DEPTH", "4")
        monkeypatch.setenv("TASKLYTICS_USER_NAME", "Robin")
        monkeypatch.setenv("TASKLYTICS_AUDIT_LOG", "/tmp/audit.jsonl")

        config = EngineConfig.from_env()

        assert config.execution_log_capacity == 25
        assert config.relay_url == "http://backend/flows"
        assert config.relay_timeout == 1.5
        assert config.max_dispatch_depth == 4
        assert config.user_name == "Robin"
        assert config.audit_log_path == "/tmp/audit.jsonl"

    def test_from_env_empty(self, monkeypatch):
        for name in [
            "TASKLYTICS_EXECUTION_LOG_CAPACITY",
            "TASKLYTICS_RELAY_URL",
            "TASKLYTICS_RELAY_TIMEOUT",
            "TASKLYTICS_MAX_DISPATCH_DEPTH",
            "TASKLYTICS_USER_NAME",
            "TASKLYTICS_AUDIT_LOG",
        ]:
            monkeypatch.delenv(name, raising=False)
        assert EngineConfig.from_env() == EngineConfig()
