"""Command dispatcher connecting workspace commands, history and flows.

Every command is validated against its input schema, applied to the history
engine as a new snapshot and, where it represents a domain event, fires the
flows bound to that event. Flow actions dispatch follow-up commands back
through the same dispatcher.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

import jsonschema
from pydantic import ValidationError

from tasklytics.commands.schemas import COMMAND_SCHEMAS
from tasklytics.config import EngineConfig
from tasklytics.flows.actions import ActionContext, Notifier
from tasklytics.flows.engine import FlowEngine
from tasklytics.flows.manager import FlowManager
from tasklytics.history.engine import HistoryEngine, Mutator
from tasklytics.models import command as c
from tasklytics.models import event as ev
from tasklytics.models.command import AssistantMessage, Command, CommandResult
from tasklytics.models.enums import CommandStatus
from tasklytics.models.event import WorkspaceEvent
from tasklytics.models.execution import FlowRunResult
from tasklytics.models.snapshot import Doc, Task, WorkspaceSnapshot
from tasklytics.observability.logging import get_logger
from tasklytics.workspace.estimation import (
    infer_difficulty_from_text,
    points_for_difficulty,
)

logger = get_logger(__name__)

Handler = Callable[[Command], CommandResult]


class CommandDispatcher:
    """
    Translates typed commands into history changes and domain events.
    """

    def __init__(
        self,
        *,
        history: HistoryEngine,
        engine: FlowEngine,
        flows: FlowManager,
        notifier: Optional[Notifier] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.history = history
        self.engine = engine
        self.flows = flows
        self.notifier = notifier
        self._config = config or EngineConfig()
        self._depth = 0
        self.messages: list[AssistantMessage] = []
        self._handlers: dict[str, Handler] = {
            c.SET_VIEW: self._set_view,
            c.CREATE_TASK: self._create_task,
            c.MOVE_TASK: self._move_task,
            c.UPDATE_TASK_FIELD: self._update_task_field,
            c.UPDATE_BRIEF: self._update_brief,
            c.LOCK_BRIEF: self._lock_brief,
            c.UNLOCK_BRIEF: self._unlock_brief,
            c.GENERATE_TASKS_FROM_BRIEF: self._generate_tasks_from_brief,
            c.UPDATE_TIMELINE: self._update_timeline,
            c.CREATE_DOC: self._create_doc,
            c.COMMIT: self._commit,
        }

    # -- entry points -------------------------------------------------

    def dispatch(self, command: Union[Command, dict[str, Any]]) -> CommandResult:
        if not isinstance(command, Command):
            try:
                command = Command.model_validate(command)
            except ValidationError as e:
                logger.warning(f"Malformed command rejected: {str(e)}")
                raw = command if isinstance(command, dict) else {}
                return CommandResult(
                    command_type=str(raw.get("type") or "(missing)"),
                    status=CommandStatus.REJECTED,
                    message="Malformed command",
                )

        handler = self._handlers.get(command.type)
        if handler is None:
            logger.warning(f"Unknown command type: {command.type}")
            return self._result(command, CommandStatus.IGNORED, "Unknown command type")

        if self._depth >= self._config.max_dispatch_depth:
            logger.warning(
                f"Command {command.type} rejected: dispatch depth limit reached",
                extra={"extra_fields": {"depth": self._depth}},
            )
            return self._result(command, CommandStatus.REJECTED, "Dispatch depth limit reached")

        try:
            jsonschema.validate(instance=command.fields(), schema=COMMAND_SCHEMAS[command.type])
        except jsonschema.ValidationError as e:
            logger.warning(f"Invalid {command.type} inputs: {e.message}")
            return self._result(command, CommandStatus.REJECTED, f"Invalid inputs: {e.message}")

        self._depth += 1
        try:
            return handler(command)
        finally:
            self._depth -= 1

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def fire(self, event: WorkspaceEvent) -> list[FlowRunResult]:
        """Executes every flow bound to the event, in binding order."""
        runs = []
        for flow in self.flows.match(event):
            runs.append(self.engine.execute_flow(flow, event, self._action_context()))
        return runs

    # -- helpers --------------------------------------------------------

    def _action_context(self) -> ActionContext:
        return ActionContext(
            snapshot=self.history.current_snapshot,
            dispatch=self.dispatch,
            notifier=self.notifier,
            system_message=lambda text: self._say("system", text),
        )

    def _say(self, role: str, text: str) -> None:
        self.messages.append(AssistantMessage(role=role, text=text))

    def _result(
        self,
        command: Command,
        status: CommandStatus,
        message: Optional[str] = None,
        flow_runs: Optional[list[FlowRunResult]] = None,
    ) -> CommandResult:
        return CommandResult(
            command_type=command.type,
            status=status,
            snapshot_id=self.history.current_index,
            message=message,
            flow_runs=flow_runs or [],
        )

    def _apply(
        self,
        command: Command,
        label: str,
        mutator: Mutator,
        event: Optional[WorkspaceEvent] = None,
        extra_events: tuple[WorkspaceEvent, ...] = (),
    ) -> CommandResult:
        snapshot = self.history.apply_change(label, mutator)
        if snapshot is None:
            return self._result(command, CommandStatus.REJECTED, f"Change failed: {label}")

        runs: list[FlowRunResult] = []
        for e in ((event,) if event else ()) + extra_events:
            runs.extend(self.fire(e))
        return self._result(command, CommandStatus.APPLIED, label, runs)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # -- handlers -------------------------------------------------------

    def _set_view(self, command: Command) -> CommandResult:
        view = command.get("view")

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.view = view

        return self._apply(command, f"Switch to {view}", mutate)

    def _create_task(self, command: Command) -> CommandResult:
        current = self.history.current_snapshot
        number = 100 + len(current.tasks) + 1
        while current.find_task(f"T-{number}") is not None:
            number += 1

        difficulty = command.get("difficulty") or "M"
        points = command.get("points")
        task = Task(
            id=f"T-{number}",
            title=command.get("title") or "New Task",
            status=command.get("status") or "Backlog",
            assignee=command.get("assignee") or "Unassigned",
            points=int(points) if points not in (None, "") else points_for_difficulty(difficulty),
            type=command.get("taskType") or "Story",
            tags=list(command.get("tags") or []),
            difficulty=difficulty,
        )

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.tasks.append(task.model_copy(deep=True))

        result = self._apply(
            command,
            f"Create task: {task.title}",
            mutate,
            WorkspaceEvent(
                type=ev.TASK_CREATED,
                task_id=task.id,
                payload={"title": task.title, "status": task.status},
            ),
        )
        if result.status == CommandStatus.APPLIED.value:
            self._say("assistant", f"Created task {task.id}: {task.title}")
        return result

    def _move_task(self, command: Command) -> CommandResult:
        task_id = command.get("taskId")
        to_status = command.get("toStatus")
        task = self.history.current_snapshot.find_task(task_id)
        if task is None:
            return self._result(command, CommandStatus.REJECTED, f"Unknown task: {task_id}")
        from_status = command.get("fromStatus") or task.status

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.find_task(task_id).status = to_status

        payload = {
            "fromStatus": from_status,
            "toStatus": to_status,
            "timestamp": self._now(),
        }
        extra = ()
        if from_status != to_status:
            extra = (
                WorkspaceEvent(type=ev.TASK_STATUS_CHANGED, task_id=task_id, payload=dict(payload)),
            )
        return self._apply(
            command,
            f"Move {task_id} to {to_status}",
            mutate,
            WorkspaceEvent(type=ev.TASK_DROPPED, task_id=task_id, payload=payload),
            extra,
        )

    def _update_task_field(self, command: Command) -> CommandResult:
        task_id = command.get("taskId")
        field = command.get("field")
        value = command.get("value")
        task = self.history.current_snapshot.find_task(task_id)
        if task is None:
            return self._result(command, CommandStatus.REJECTED, f"Unknown task: {task_id}")
        previous = task.model_dump().get(field)

        def mutate(snap: WorkspaceSnapshot) -> None:
            for i, existing in enumerate(snap.tasks):
                if existing.id == task_id:
                    # Re-validate so typed fields are coerced ("8" -> 8) or rejected
                    snap.tasks[i] = Task.model_validate({**existing.model_dump(), field: value})

        payload = {"field": field, "value": value, "previousValue": previous}
        return self._apply(
            command,
            f"Update {task_id} {field}",
            mutate,
            WorkspaceEvent(type=ev.TASK_UPDATED, task_id=task_id, payload=payload),
            (WorkspaceEvent(type=ev.FIELD_UPDATED, task_id=task_id, payload=dict(payload)),),
        )

    def _update_brief(self, command: Command) -> CommandResult:
        if self.history.current_snapshot.brief_locked:
            return self._result(command, CommandStatus.REJECTED, "Project brief is locked")
        text = command.get("text")

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.project_brief = text

        return self._apply(command, "Update project brief", mutate)

    def _lock_brief(self, command: Command) -> CommandResult:
        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.brief_locked = True

        return self._apply(command, "Lock project brief", mutate)

    def _unlock_brief(self, command: Command) -> CommandResult:
        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.brief_locked = False

        return self._apply(command, "Unlock project brief", mutate)

    def _generate_tasks_from_brief(self, command: Command) -> CommandResult:
        current = self.history.current_snapshot
        bullets = [
            line.strip()
            for line in current.project_brief.split("\n")
            if line.strip().startswith("-")
        ]
        if not bullets:
            self._say(
                "assistant",
                'No bullet points found in brief. Add lines starting with "-" to generate tasks.',
            )
            return self._result(command, CommandStatus.IGNORED, "No bullet points in brief")

        offset = 200 + current.brief_generated_tasks_count
        new_tasks = []
        for i, line in enumerate(bullets):
            title = line.lstrip("-").strip()
            difficulty = infer_difficulty_from_text(title)
            new_tasks.append(
                Task(
                    id=f"T-{offset + i}",
                    title=title,
                    points=points_for_difficulty(difficulty),
                    tags=["Generated"],
                    difficulty=difficulty,
                )
            )

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.tasks.extend(t.model_copy(deep=True) for t in new_tasks)
            snap.brief_generated_tasks_count += len(new_tasks)

        result = self._apply(command, f"Generate {len(new_tasks)} tasks from brief", mutate)
        if result.status == CommandStatus.APPLIED.value:
            self._say("assistant", f"Generated {len(new_tasks)} tasks from the project brief.")
            for task in new_tasks:
                result.flow_runs.extend(
                    self.fire(
                        WorkspaceEvent(
                            type=ev.TASK_CREATED,
                            task_id=task.id,
                            payload={"title": task.title, "status": task.status},
                        )
                    )
                )
        return result

    def _update_timeline(self, command: Command) -> CommandResult:
        item_id = command.get("itemId")
        if self.history.current_snapshot.find_timeline_item(item_id) is None:
            return self._result(command, CommandStatus.REJECTED, f"Unknown timeline item: {item_id}")
        start_offset = command.get("startOffset")
        duration = command.get("duration")

        def mutate(snap: WorkspaceSnapshot) -> None:
            item = snap.find_timeline_item(item_id)
            if start_offset is not None:
                item.start_offset = int(start_offset)
            if duration is not None:
                item.duration = int(duration)

        return self._apply(command, "Update timeline item", mutate)

    def _create_doc(self, command: Command) -> CommandResult:
        doc = Doc(
            id=f"DOC-{int(time.time() * 1000)}",
            title=command.get("title") or "New Document",
            owner=self._config.user_name,
            updated=datetime.now(timezone.utc).date().isoformat(),
            summary=command.get("content") or "# New Document\n\nStart writing here...",
        )

        def mutate(snap: WorkspaceSnapshot) -> None:
            snap.docs.append(doc.model_copy(deep=True))

        return self._apply(command, "Create document", mutate)

    def _commit(self, command: Command) -> CommandResult:
        snapshot = self.history.commit()
        self._say("system", "Changes committed successfully.")
        runs = self.fire(
            WorkspaceEvent(
                type=ev.WORKSPACE_COMMITTED,
                target_key=f"workspace:{snapshot.workspace.id}",
                payload={"timestamp": self._now(), "snapshotId": snapshot.id},
            )
        )
        return self._result(command, CommandStatus.APPLIED, "Changes committed", runs)
