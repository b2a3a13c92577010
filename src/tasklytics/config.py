"""Static configuration for the Tasklytics engines."""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineConfig(BaseModel):
    """
    Static configuration shared by the flow engine and the command dispatcher.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    execution_log_capacity: int = Field(
        default=100,
        ge=1,
        description="Maximum number of execution records kept in memory.",
    )
    relay_url: Optional[str] = Field(
        default=None,
        description="Backend endpoint flow executions are relayed to. Logged only when unset.",
    )
    relay_timeout: float = Field(
        default=3.0,
        gt=0,
        description="Timeout in seconds for a single relay request.",
    )
    max_dispatch_depth: int = Field(
        default=8,
        ge=1,
        description="Maximum nesting of commands dispatched by flow actions.",
    )
    default_binding_event: str = Field(
        default="task.dropped",
        description="Event type used when a flow is attached without one.",
    )
    user_name: str = Field(
        default="Unknown",
        description="Name recorded as owner of documents created in the session.",
    )
    audit_log_path: Optional[str] = Field(
        default=None,
        description="JSONL file execution records are mirrored to, if set.",
    )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Builds a config from TASKLYTICS_* environment variables."""
        values: dict = {}
        env = os.environ
        if "TASKLYTICS_EXECUTION_LOG_CAPACITY" in env:
            values["execution_log_capacity"] = int(
                env["TASKLYTICS_EXECUTION_LOG_CAPACITY"]
            )
        if env.get("TASKLYTICS_RELAY_URL"):
            values["relay_url"] = env["TASKLYTICS_RELAY_URL"]
        if "TASKLYTICS_RELAY_TIMEOUT" in env:
            values["relay_timeout"] = float(env["TASKLYTICS_RELAY_TIMEOUT"])
        if "TASKLYTICS_MAX_DISPATCH_DEPTH" in env:
            values["max_dispatch_depth"] = int(
                env["TASKLYTICS_MAX_DISPATCH_DEPTH"]
            )
        if env.get("TASKLYTICS_USER_NAME"):
            values["user_name"] = env["TASKLYTICS_USER_NAME"]
        if env.get("TASKLYTICS_AUDIT_LOG"):
            values["audit_log_path"] = env["TASKLYTICS_AUDIT_LOG"]
        return cls(**values)
