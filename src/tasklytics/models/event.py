"""Domain events consumed by the flow engine."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from tasklytics.models.snapshot import utc_now


TASK_DROPPED = "task.dropped"
TASK_DRAGSTART = "task.dragstart"
TASK_CREATED = "task.created"
TASK_UPDATED = "task.updated"
TASK_STATUS_CHANGED = "task.status_changed"
BUTTON_CLICKED = "button.clicked"
FIELD_UPDATED = "field.updated"
WORKSPACE_COMMITTED = "workspace.committed"

EVENT_TYPES = (
    TASK_DROPPED,
    TASK_DRAGSTART,
    TASK_CREATED,
    TASK_UPDATED,
    TASK_STATUS_CHANGED,
    BUTTON_CLICKED,
    FIELD_UPDATED,
    WORKSPACE_COMMITTED,
)


def target_key_for_task(task_id: str) -> str:
    return f"task:{task_id}"


class WorkspaceEvent(BaseModel):
    """An event raised by a workspace change or UI interaction.

    Attributes:
        type: Event type, e.g. 'task.dropped'.
        target_key: Explicit binding target, e.g. 'task:T-101'.
        task_id: Task the event concerns; used to derive the target key.
        payload: Additional event data (fromStatus, toStatus, ...).
        timestamp: When the event was raised.
    """

    type: str = Field(..., min_length=1, description="Event type.")
    target_key: Optional[str] = Field(
        default=None, description="Explicit binding target key."
    )
    task_id: Optional[str] = Field(
        default=None, description="Task the event concerns."
    )
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Additional event data."
    )
    timestamp: datetime = Field(
        default_factory=utc_now, description="When the event was raised."
    )

    def resolved_target_key(self) -> Optional[str]:
        """Returns the explicit target key, or one synthesized from task_id."""
        key = self.target_key or self.payload.get("targetKey")
        if key:
            return key
        task_id = self.task_id or self.payload.get("taskId")
        if task_id:
            return target_key_for_task(task_id)
        return None

    def lookup_payload(self) -> dict[str, Any]:
        """Flat mapping used for condition and template lookups."""
        data = dict(self.payload)
        data["eventType"] = self.type
        data.setdefault("timestamp", self.timestamp.isoformat())
        target_key = self.resolved_target_key()
        if target_key is not None:
            data["targetKey"] = target_key
        task_id = self.task_id or self.payload.get("taskId")
        if task_id is not None:
            data["taskId"] = task_id
        return data
