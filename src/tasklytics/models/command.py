"""Typed commands accepted by the command dispatcher.

A command is a ``type`` plus free-form fields, e.g.
``Command.of("MoveTask", taskId="T-101", toStatus="Done")``. Field names use
the camelCase spelling that flow templates and the UI produce.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from tasklytics.models.enums import CommandStatus
from tasklytics.models.execution import FlowRunResult


SET_VIEW = "SetView"
CREATE_TASK = "CreateTask"
MOVE_TASK = "MoveTask"
UPDATE_TASK_FIELD = "UpdateTaskField"
UPDATE_BRIEF = "UpdateBrief"
LOCK_BRIEF = "LockBrief"
UNLOCK_BRIEF = "UnlockBrief"
GENERATE_TASKS_FROM_BRIEF = "GenerateTasksFromBrief"
UPDATE_TIMELINE = "UpdateTimeline"
CREATE_DOC = "CreateDoc"
COMMIT = "Commit"


class Command(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1, description="Command type.")

    @classmethod
    def of(cls, type: str, **fields: Any) -> "Command":
        return cls(type=type, **fields)

    def fields(self) -> dict[str, Any]:
        """Returns every field except ``type``."""
        return dict(self.model_extra or {})

    def get(self, name: str, default: Any = None) -> Any:
        return (self.model_extra or {}).get(name, default)


class CommandResult(BaseModel):
    """Outcome of dispatching a single command.

    Attributes:
        command_type: The type of the dispatched command.
        status: applied, ignored or rejected.
        snapshot_id: ID of the snapshot current after the command.
        message: Summary suitable for display.
        flow_runs: Results of the flows fired by the command.
    """

    model_config = ConfigDict(use_enum_values=True)

    command_type: str = Field(..., description="Dispatched command type.")
    status: CommandStatus = Field(..., description="Dispatch outcome.")
    snapshot_id: Optional[int] = Field(
        default=None, description="Snapshot current after the command."
    )
    message: Optional[str] = Field(
        default=None, description="Summary suitable for display."
    )
    flow_runs: list[FlowRunResult] = Field(
        default_factory=list, description="Flows fired by the command."
    )


class AssistantMessage(BaseModel):
    role: str = Field(..., description="assistant, system or user.")
    text: str = Field(..., description="Message text.")
