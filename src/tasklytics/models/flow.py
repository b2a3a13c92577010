"""Data models for automation flows.

A flow is a flat trigger -> conditions -> actions rule. Flows live in the
in-memory flow library and are attached to UI targets through bindings.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tasklytics.models.enums import ConditionOperator, LogLevel


class Condition(BaseModel):
    """A single predicate evaluated against the event payload and snapshot.

    Attributes:
        field: Dotted path resolved against the payload, then the snapshot.
        operator: One of the ConditionOperator values. Unknown operators are
            kept as-is and always evaluate to False.
        value: Expected value for comparison operators.
    """

    field: str = Field(
        ..., min_length=1, description="Dotted path, e.g. 'toStatus'."
    )
    operator: str = Field(
        default=ConditionOperator.EQUALS.value,
        description="Comparison operator name.",
    )
    value: Any = Field(
        default=None, description="Expected value for the comparison."
    )


class NotificationConfig(BaseModel):
    title: Optional[str] = Field(
        default=None, description="Notification title template."
    )
    message: str = Field(default="", description="Notification body template.")


class RunCommandConfig(BaseModel):
    command_type: str = Field(
        ..., min_length=1, description="Command type to dispatch."
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Command fields; string values may contain {{tokens}}.",
    )


class UpdateFieldConfig(BaseModel):
    target_type: str = Field(
        default="task", description="Kind of target; only 'task' is supported."
    )
    target_id: str = Field(
        ..., description="Target identifier template, e.g. '{{taskId}}'."
    )
    field: str = Field(..., min_length=1, description="Field to update.")
    value: Any = Field(default=None, description="New value template.")


class LogMessageConfig(BaseModel):
    message: str = Field(default="", description="Message template.")
    level: str = Field(
        default=LogLevel.INFO.value,
        description="info, warn or error; other values log at info.",
    )


class ShowNotificationAction(BaseModel):
    type: Literal["show_notification"] = "show_notification"
    config: NotificationConfig = Field(default_factory=NotificationConfig)


class RunCommandAction(BaseModel):
    type: Literal["run_command"] = "run_command"
    config: RunCommandConfig


class UpdateFieldAction(BaseModel):
    type: Literal["update_field"] = "update_field"
    config: UpdateFieldConfig


class LogMessageAction(BaseModel):
    type: Literal["log_message"] = "log_message"
    config: LogMessageConfig = Field(default_factory=LogMessageConfig)


FlowAction = Annotated[
    Union[
        ShowNotificationAction,
        RunCommandAction,
        UpdateFieldAction,
        LogMessageAction,
    ],
    Field(discriminator="type"),
]


class FlowTrigger(BaseModel):
    type: str = Field(..., description="Event type that triggers the flow.")


class Flow(BaseModel):
    """A declarative automation rule.

    Attributes:
        id: Unique flow identifier; save_flow replaces flows by this id.
        name: Display name.
        description: Longer explanation shown in the flow editor.
        enabled: Disabled flows are never executed.
        send_to_backend: Whether executions are relayed to the backend sink.
        trigger: The event type the flow was designed for.
        default_trigger: Event type suggested when binding the flow.
        conditions: Conjunctive conditions gating execution.
        actions: Actions executed in order.
    """

    id: str = Field(..., min_length=1, description="Unique flow identifier.")
    name: str = Field(..., description="Display name.")
    description: str = Field(default="", description="Flow description.")
    enabled: bool = Field(default=True, description="Whether the flow runs.")
    send_to_backend: bool = Field(
        default=True, description="Relay executions to the backend sink."
    )
    trigger: Optional[FlowTrigger] = Field(
        default=None, description="Triggering event."
    )
    default_trigger: Optional[str] = Field(
        default=None, description="Event type suggested for new bindings."
    )
    conditions: list[Condition] = Field(
        default_factory=list, description="Conjunctive conditions."
    )
    actions: list[FlowAction] = Field(
        default_factory=list, description="Actions executed in order."
    )


class FlowBinding(BaseModel):
    id: str = Field(..., description="Binding identifier.")
    flow_id: str = Field(..., description="Bound flow identifier.")
    event_type: Optional[str] = Field(
        default=None, description="Event filter; None matches any event."
    )


class FlowTarget(BaseModel):
    """A UI element flows can be attached to."""

    key: str = Field(..., description="Target key, e.g. 'task:T-101'.")
    label: str = Field(default="", description="Display label.")
    type: str = Field(default="task", description="Target kind.")
