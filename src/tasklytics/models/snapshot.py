"""Data model for workspace snapshots.

A snapshot captures the complete state of one workspace (tasks, schedule,
documents, files, the active view and the project brief) at a single point
in the session history. Snapshots are never mutated once they are stored by
the history engine; every change produces a new deep copy.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkspaceRecord(BaseModel):
    """Base for snapshot records.

    Fields are also reachable by their camelCase alias (``projectBrief``,
    ``wipLimits``), the spelling flow conditions and templates use.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkspaceInfo(WorkspaceRecord):
    """Identity of the workspace a snapshot belongs to."""

    id: str = Field(..., description="Stable workspace identifier.")
    name: str = Field(..., description="Display name of the workspace.")
    methodology: str = Field(
        default="Scrum", description="Delivery methodology (Scrum or Kanban)."
    )


class Sprint(WorkspaceRecord):
    name: str = Field(..., description="Sprint display name.")
    goal: str = Field(default="", description="Sprint goal statement.")
    start_date: Optional[str] = Field(
        default=None, description="ISO date the sprint starts."
    )
    end_date: Optional[str] = Field(
        default=None, description="ISO date the sprint ends."
    )


class Task(WorkspaceRecord):
    """A single card on the board.

    Extra fields are allowed so that ``UpdateTaskField`` can attach ad-hoc
    attributes (for example ``reviewer``) without a schema change.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Task identifier, e.g. 'T-101'.")
    title: str = Field(..., description="Short task title.")
    status: str = Field(default="Backlog", description="Board column.")
    assignee: str = Field(default="Unassigned", description="Owner name.")
    points: int = Field(default=3, description="Story points estimate.")
    type: str = Field(default="Story", description="Task kind.")
    tags: list[str] = Field(default_factory=list, description="Free tags.")
    difficulty: str = Field(default="M", description="T-shirt size.")
    blocked: bool = Field(default=False, description="Blocked flag.")


class TimelineItem(WorkspaceRecord):
    id: str = Field(..., description="Timeline bar identifier.")
    task_id: Optional[str] = Field(
        default=None, description="Task the bar is linked to."
    )
    label: str = Field(..., description="Bar label.")
    start_offset: int = Field(
        default=0, description="Start offset in days from sprint start."
    )
    duration: int = Field(default=1, description="Duration in days.")


class CalendarEvent(WorkspaceRecord):
    id: str = Field(..., description="Calendar event identifier.")
    date: str = Field(..., description="ISO date of the event.")
    label: str = Field(..., description="Event label.")


class Calendar(WorkspaceRecord):
    events: list[CalendarEvent] = Field(default_factory=list)


class Schedule(WorkspaceRecord):
    timeline: list[TimelineItem] = Field(default_factory=list)
    calendar: Calendar = Field(default_factory=Calendar)


class Doc(WorkspaceRecord):
    id: str = Field(..., description="Document identifier.")
    title: str = Field(..., description="Document title.")
    owner: str = Field(default="Unknown", description="Document owner.")
    updated: str = Field(..., description="ISO date of the last update.")
    summary: str = Field(default="", description="Markdown body.")


class FileEntry(WorkspaceRecord):
    id: str = Field(..., description="File identifier.")
    name: str = Field(..., description="File name.")
    type: str = Field(default="", description="File type label.")
    size: str = Field(default="", description="Human-readable size.")
    owner: str = Field(default="Unknown", description="Uploader.")
    updated: str = Field(default="", description="ISO date of the upload.")


class WorkspaceSnapshot(WorkspaceRecord):
    """Represents one point-in-time copy of the whole workspace.

    Attributes:
        id: Position the snapshot had in the history when it was created.
        label: Human-readable description of the change that produced it.
        timestamp: When the snapshot was created.
        workspace: Identity of the workspace.
        view: Name of the active view (Dashboard, Board, ...).
        sprint: The current sprint.
        project_brief: Markdown project brief.
        brief_locked: Whether the brief is locked against edits.
        brief_generated_tasks_count: Tasks generated from the brief so far.
        tasks: All board tasks.
        wip_limits: Work-in-progress limits per board column.
        schedule: Timeline bars and calendar events.
        docs: Workspace documents.
        files: Uploaded files.
        committed: Whether this snapshot is a commit baseline.
    """

    id: int = Field(default=0, description="Index the snapshot was created at.")
    label: str = Field(
        default="Initial workspace state",
        description="Description of the change that produced this snapshot.",
    )
    timestamp: datetime = Field(
        default_factory=utc_now, description="When the snapshot was created."
    )
    workspace: WorkspaceInfo = Field(
        ..., description="Identity of the workspace."
    )
    view: str = Field(default="Dashboard", description="Active view name.")
    sprint: Optional[Sprint] = Field(default=None, description="Current sprint.")
    project_brief: str = Field(default="", description="Project brief text.")
    brief_locked: bool = Field(
        default=False, description="Whether the brief is locked."
    )
    brief_generated_tasks_count: int = Field(
        default=0, description="Number of tasks generated from the brief."
    )
    tasks: list[Task] = Field(default_factory=list, description="Board tasks.")
    wip_limits: dict[str, int] = Field(
        default_factory=dict, description="WIP limit per board column."
    )
    schedule: Schedule = Field(
        default_factory=Schedule, description="Timeline and calendar."
    )
    docs: list[Doc] = Field(default_factory=list, description="Documents.")
    files: list[FileEntry] = Field(default_factory=list, description="Files.")
    committed: bool = Field(
        default=False, description="Whether this snapshot is a commit baseline."
    )

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def find_timeline_item(self, item_id: str) -> Optional[TimelineItem]:
        for item in self.schedule.timeline:
            if item.id == item_id:
                return item
        return None

    def state_dict(self) -> dict[str, Any]:
        """Returns the workspace content without history metadata."""
        return self.model_dump(
            mode="json", exclude={"id", "label", "timestamp", "committed"}
        )
