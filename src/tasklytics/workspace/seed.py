"""Initial workspace state and flow library for a new session."""

from pathlib import Path
from typing import Any, Optional, Union

import yaml

from tasklytics.models.flow import Flow
from tasklytics.models.snapshot import (
    Calendar,
    CalendarEvent,
    Doc,
    FileEntry,
    Schedule,
    Sprint,
    Task,
    TimelineItem,
    WorkspaceInfo,
    WorkspaceSnapshot,
)

DEFAULT_FLOWS_PATH = Path(__file__).parent.parent / "data" / "flows.yaml"

PROJECT_BRIEF = (
    "Website revamp for the core workspace experience.\n\n"
    "- Replace legacy navigation with a context-aware left toolbar.\n"
    "- Introduce a universal AI bar for text + voice commands.\n"
    "- Ensure the dashboard gives an at-a-glance summary for leadership.\n"
    "- Support both Kanban and Scrum workflows in a single workspace."
)


def create_initial_snapshot() -> WorkspaceSnapshot:
    """Builds the demo workspace every session starts from."""
    tasks = [
        Task(id="T-101", title="Wireframe workspace dashboard", status="Backlog",
             assignee="Alex", points=5, tags=["UX"], difficulty="M"),
        Task(id="T-102", title="Implement left context toolbar", status="In Progress",
             assignee="Jamie", points=8, tags=["Frontend"], difficulty="L"),
        Task(id="T-103", title="Integrate universal AI bar", status="Ready",
             assignee="Sam", points=5, tags=["AI"], difficulty="M"),
        Task(id="T-104", title="Snapshot history model", status="In Progress",
             assignee="Taylor", points=8, tags=["Core"], difficulty="L"),
        Task(id="T-105", title="Professional light and dark themes", status="Review",
             assignee="Alex", points=3, tags=["UX"], difficulty="S"),
        Task(id="T-106", title="Board WIP limit warnings", status="Review",
             assignee="Jamie", points=2, tags=["Frontend"], difficulty="S"),
        Task(id="T-107", title="Shareable commit baseline", status="Done",
             assignee="Taylor", points=5, tags=["Core"], difficulty="M"),
    ]
    return WorkspaceSnapshot(
        id=0,
        label="Initial workspace state",
        workspace=WorkspaceInfo(id="w-1", name="Website Revamp - Core", methodology="Scrum"),
        view="Dashboard",
        sprint=Sprint(
            name="Sprint 3 - Navigation",
            goal="Ship context toolbar, AI bar & professional themes",
            start_date="2025-03-03",
            end_date="2025-03-21",
        ),
        project_brief=PROJECT_BRIEF,
        tasks=tasks,
        wip_limits={"In Progress": 3, "Review": 2},
        schedule=Schedule(
            timeline=[
                TimelineItem(id="TL-1", task_id="T-101", label="Wireframes", start_offset=0, duration=3),
                TimelineItem(id="TL-2", task_id="T-102", label="Context toolbar", start_offset=1, duration=5),
                TimelineItem(id="TL-3", task_id="T-103", label="AI bar integration", start_offset=3, duration=4),
                TimelineItem(id="TL-4", task_id="T-104", label="History model", start_offset=4, duration=6),
                TimelineItem(id="TL-5", task_id="T-107", label="Shareable baseline", start_offset=6, duration=3),
            ],
            calendar=Calendar(
                events=[
                    CalendarEvent(id="EV-1", date="2025-03-04", label="Daily stand-up"),
                    CalendarEvent(id="EV-2", date="2025-03-08", label="Design review"),
                    CalendarEvent(id="EV-3", date="2025-03-15", label="Sprint review"),
                ]
            ),
        ),
        docs=[
            Doc(id="DOC-PRD", title="Workspace revamp PRD", owner="Taylor",
                updated="2025-03-02", summary="# Workspace revamp\n\nGoals and scope."),
        ],
        files=[
            FileEntry(id="FILE-1", name="navigation-wireframes.pdf", type="PDF",
                      size="2.1 MB", owner="Alex", updated="2025-03-01"),
            FileEntry(id="FILE-2", name="workspace-copy-v3.docx", type="DOCX",
                      size="340 KB", owner="Taylor", updated="2025-03-03"),
        ],
    )


def parse_flow_library(data: Any) -> list[Flow]:
    """Validates a loaded YAML document into flows.

    Accepts either a list of flows or a mapping with a ``flows`` list.
    """
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("flows", [])
    if not isinstance(data, list):
        raise ValueError("Flow library must be a list of flows or contain a 'flows' list")
    return [Flow.model_validate(item) for item in data]


def load_flow_library(path: Optional[Union[str, Path]] = None) -> list[Flow]:
    """Loads flows from a YAML file; defaults to the packaged library."""
    flow_path = Path(path) if path else DEFAULT_FLOWS_PATH
    with open(flow_path, "r", encoding="utf-8") as f:
        return parse_flow_library(yaml.safe_load(f))
