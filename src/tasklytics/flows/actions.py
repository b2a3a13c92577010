"""Executors for the flow action DSL.

Each executor receives the action config, the event lookup payload and an
``ActionContext`` and returns a result dict containing ``success``. Executors
never mutate the workspace directly; state changes are issued as commands
through ``ActionContext.dispatch``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tasklytics.flows.interpolation import interpolate
from tasklytics.models.command import UPDATE_TASK_FIELD, Command
from tasklytics.models.enums import ActionType, LogLevel
from tasklytics.models.flow import (
    FlowAction,
    LogMessageConfig,
    NotificationConfig,
    RunCommandConfig,
    UpdateFieldConfig,
)
from tasklytics.models.snapshot import WorkspaceSnapshot
from tasklytics.observability.logging import get_logger

logger = get_logger(__name__)
flow_logger = get_logger("tasklytics.flows")

DEFAULT_NOTIFICATION_TITLE = "Flow Notification"


class Notifier(ABC):
    """Sink for user-facing notifications."""

    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        pass


class LogNotifier(Notifier):
    """Fallback notifier that writes notifications to the log."""

    def notify(self, title: str, body: str) -> None:
        logger.info(
            f"[Flow Notification] {title} - {body}",
            extra={"extra_fields": {"title": title, "body": body}},
        )


@dataclass
class ActionContext:
    """Collaborators available to action executors.

    Attributes:
        snapshot: Read-only view of the current workspace snapshot.
        dispatch: Callable forwarding a Command to the command dispatcher.
        notifier: Notification sink; notifications are logged when unset.
        system_message: Callback posting a system line to the assistant panel.
    """

    snapshot: Optional[WorkspaceSnapshot] = None
    dispatch: Optional[Callable[[Command], Any]] = None
    notifier: Optional[Notifier] = None
    system_message: Optional[Callable[[str], None]] = None


def show_notification(
    config: NotificationConfig, payload: dict[str, Any], context: ActionContext
) -> dict[str, Any]:
    message = interpolate(config.message, payload, context.snapshot)
    title = (
        interpolate(config.title, payload, context.snapshot)
        if config.title
        else DEFAULT_NOTIFICATION_TITLE
    )

    if context.notifier is not None:
        context.notifier.notify(title, message)
    else:
        LogNotifier().notify(title, message)

    if context.system_message is not None:
        context.system_message(f"🔔 {message}")

    return {"success": True, "title": title, "message": message}


def run_command(
    config: RunCommandConfig, payload: dict[str, Any], context: ActionContext
) -> dict[str, Any]:
    if context.dispatch is None:
        return {"success": False, "reason": "no_dispatcher"}

    params = {
        key: interpolate(value, payload, context.snapshot)
        for key, value in config.params.items()
    }
    params.pop("type", None)
    command = Command.of(config.command_type, **params)
    context.dispatch(command)
    return {"success": True, "command": command.model_dump()}


def update_field(
    config: UpdateFieldConfig, payload: dict[str, Any], context: ActionContext
) -> dict[str, Any]:
    if config.target_type != "task":
        return {
            "success": False,
            "reason": "unsupported_target_type",
            "target_type": config.target_type,
        }
    if context.dispatch is None:
        return {"success": False, "reason": "no_dispatcher"}

    target_id = interpolate(config.target_id, payload, context.snapshot)
    value = interpolate(config.value, payload, context.snapshot)
    context.dispatch(
        Command.of(
            UPDATE_TASK_FIELD, taskId=target_id, field=config.field, value=value
        )
    )
    return {
        "success": True,
        "updated": {"target_id": target_id, "field": config.field, "value": value},
    }


_LOG_LEVELS = {
    LogLevel.INFO.value: logging.INFO,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.ERROR.value: logging.ERROR,
}


def log_message(
    config: LogMessageConfig, payload: dict[str, Any], context: ActionContext
) -> dict[str, Any]:
    message = interpolate(config.message, payload, context.snapshot)
    level = str(getattr(config.level, "value", config.level)).strip().lower()
    if level not in _LOG_LEVELS:
        level = LogLevel.INFO.value
    flow_logger.log(_LOG_LEVELS[level], f"[Flow] {message}")
    return {"success": True, "message": message, "level": level}


ActionExecutor = Callable[[Any, dict[str, Any], ActionContext], dict[str, Any]]

EXECUTORS: dict[ActionType, ActionExecutor] = {
    ActionType.SHOW_NOTIFICATION: show_notification,
    ActionType.RUN_COMMAND: run_command,
    ActionType.UPDATE_FIELD: update_field,
    ActionType.LOG_MESSAGE: log_message,
}


def execute_action(
    action: FlowAction, payload: dict[str, Any], context: ActionContext
) -> dict[str, Any]:
    """Runs one action through the executor registered for its type."""
    executor = EXECUTORS.get(ActionType(action.type))
    if executor is None:
        logger.warning(f"Unknown action type: {action.type}")
        return {"success": False, "reason": f"unknown_action_type: {action.type}"}
    return executor(action.config, payload, context)
