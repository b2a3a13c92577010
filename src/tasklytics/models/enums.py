"""Enumeration definitions for Tasklytics.

This module contains the Enum classes shared by the history engine, the
flow engine and the command dispatcher so that statuses, operators and
action kinds are spelled the same way everywhere.
"""

from enum import Enum


class ExecutionStatus(str, Enum):
    """Defines the lifecycle status of a flow execution record.

    Attributes:
        RUNNING: The record was created and the flow is executing.
        SKIPPED: The flow conditions were not met; no action ran.
        COMPLETED: Every action ran without error.
        COMPLETED_WITH_ERRORS: At least one action failed, the rest still ran.
        FAILED: The engine itself failed outside the per-action guard.
    """

    RUNNING = "running"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class ConditionOperator(str, Enum):
    """Comparison operators supported by flow conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class ActionType(str, Enum):
    """Defines the closed set of flow action kinds.

    Attributes:
        SHOW_NOTIFICATION: Emit a notification to the user.
        RUN_COMMAND: Dispatch an arbitrary workspace command.
        UPDATE_FIELD: Update a single field on a task.
        LOG_MESSAGE: Write a message to the flow log.
    """

    SHOW_NOTIFICATION = "show_notification"
    RUN_COMMAND = "run_command"
    UPDATE_FIELD = "update_field"
    LOG_MESSAGE = "log_message"


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class CommandStatus(str, Enum):
    """Defines the outcome of dispatching a command.

    Attributes:
        APPLIED: The command was handled (a snapshot may have been added).
        IGNORED: The command type is unknown or had nothing to do.
        REJECTED: The command inputs were invalid or the dispatch was refused.
    """

    APPLIED = "applied"
    IGNORED = "ignored"
    REJECTED = "rejected"


class StateDiffOp(str, Enum):
    """Defines the type of operation in a state diff entry.

    Attributes:
        ADD: A new key or item was added.
        REMOVE: An existing key or item was removed.
        REPLACE: An existing value was changed.
    """

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
