"""Data models for reporting flow execution outcomes.

This module defines the audit records the flow engine appends to its
execution log, the summary returned to callers of ``execute_flow`` and the
message relayed to the backend sink.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from tasklytics.models.enums import ExecutionStatus, StateDiffOp
from tasklytics.models.snapshot import utc_now


class StateDiffEntry(BaseModel):
    """Represents a single atomic change between two snapshots.

    Attributes:
        path: Dot-separated path to the changed field (e.g., 'view').
        op: The operation performed (add, remove, replace).
        value: The new value after the operation (if applicable).
    """

    path: str = Field(
        ..., description="Dot-separated path to the changed field."
    )
    op: StateDiffOp = Field(
        ..., description="The operation performed (add, remove, replace)."
    )
    value: Optional[Any] = Field(
        None, description="The new value after the operation (if applicable)."
    )


class ActionOutcome(BaseModel):
    index: int = Field(..., description="Position of the action in the flow.")
    type: str = Field(..., description="Action type.")
    result: dict[str, Any] = Field(
        default_factory=dict, description="Result returned by the executor."
    )


class ActionErrorEntry(BaseModel):
    """A failure captured while executing a flow.

    Attributes:
        action_index: Index of the failing action; None for engine failures.
        error: Human-readable error description.
    """

    action_index: Optional[int] = Field(
        default=None, description="Index of the failing action."
    )
    error: str = Field(..., description="Error description.")


class ExecutionRecord(BaseModel):
    """Audit entry produced by one flow firing.

    Attributes:
        id: Unique execution identifier.
        flow_id: ID of the executed flow.
        flow_name: Name of the executed flow.
        event_type: Type of the triggering event.
        target_key: Binding target the event was raised for.
        start_time: When execution started.
        status: Final status of the execution.
        reason: Why the execution was skipped or failed.
        actions_performed: Outcomes of the attempted actions.
        errors: Failures captured during the execution.
        duration_ms: Wall-clock duration in milliseconds.
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    id: str = Field(..., description="Unique execution identifier.")
    flow_id: str = Field(..., description="ID of the executed flow.")
    flow_name: str = Field(..., description="Name of the executed flow.")
    event_type: Optional[str] = Field(
        default=None, description="Type of the triggering event."
    )
    target_key: Optional[str] = Field(
        default=None, description="Binding target of the event."
    )
    start_time: datetime = Field(
        default_factory=utc_now, description="When execution started."
    )
    status: ExecutionStatus = Field(
        default=ExecutionStatus.RUNNING, description="Execution status."
    )
    reason: Optional[str] = Field(
        default=None, description="Why the execution was skipped or failed."
    )
    actions_performed: list[ActionOutcome] = Field(
        default_factory=list, description="Outcomes of attempted actions."
    )
    errors: list[ActionErrorEntry] = Field(
        default_factory=list, description="Captured failures."
    )
    duration_ms: Optional[float] = Field(
        default=None, description="Execution duration in milliseconds."
    )


class FlowRunResult(BaseModel):
    """Summary returned by ``FlowEngine.execute_flow``."""

    success: bool = Field(..., description="True only for 'completed'.")
    reason: Optional[str] = Field(
        default=None, description="Failure reason when nothing executed."
    )
    execution_id: Optional[str] = Field(
        default=None, description="ID of the execution record, if any."
    )
    actions_performed: int = Field(
        default=0, description="Number of attempted actions."
    )
    errors: list[ActionErrorEntry] = Field(
        default_factory=list, description="Captured failures."
    )


class RelayMessage(BaseModel):
    """Summary of a flow execution sent to the backend relay sink."""

    flow_id: str
    flow_name: str
    event_type: Optional[str] = None
    target_key: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    execution_id: str
    timestamp: datetime = Field(default_factory=utc_now)
