import time
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from tasklytics.config import EngineConfig
from tasklytics.flows.actions import ActionContext, execute_action
from tasklytics.flows.conditions import evaluate_conditions
from tasklytics.flows.execution_log import ExecutionLog, JsonlExecutionLogger
from tasklytics.flows.interpolation import interpolate
from tasklytics.flows.relay import RelaySink, build_relay
from tasklytics.models.enums import ExecutionStatus
from tasklytics.models.event import WorkspaceEvent
from tasklytics.models.execution import (
    ActionErrorEntry,
    ActionOutcome,
    ExecutionRecord,
    FlowRunResult,
    RelayMessage,
)
from tasklytics.models.flow import Condition, Flow
from tasklytics.observability.logging import get_logger, log_context
from tasklytics.utils import new_id

logger = get_logger(__name__)

REASON_DISABLED = "disabled_or_not_found"
REASON_CONDITIONS = "conditions_not_met"


class FlowEngine:
    """
    Executes flows against workspace events and keeps a bounded execution log.

    Nothing raised inside a flow escapes ``execute_flow``: condition
    mismatches are recorded as skipped, action failures are captured per
    action and engine failures mark the record as failed.
    """

    def __init__(
        self,
        *,
        relay: Optional[RelaySink] = None,
        log: Optional[ExecutionLog] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._relay = relay or build_relay(
            self._config.relay_url, self._config.relay_timeout
        )
        if log is None:
            audit = (
                JsonlExecutionLogger(self._config.audit_log_path)
                if self._config.audit_log_path
                else None
            )
            log = ExecutionLog(self._config.execution_log_capacity, audit=audit)
        self._log = log

    @property
    def log(self) -> ExecutionLog:
        return self._log

    def evaluate_conditions(
        self, conditions: Sequence[Condition], payload: Any, snapshot: Any = None
    ) -> bool:
        return evaluate_conditions(conditions, payload, snapshot)

    def interpolate(self, template: Any, payload: Any, snapshot: Any = None) -> Any:
        return interpolate(template, payload, snapshot)

    def history(self, limit: int = 50) -> list[ExecutionRecord]:
        return self._log.recent(limit)

    def clear_history(self) -> None:
        self._log.clear()

    def execute_flow(
        self,
        flow: Optional[Flow],
        event: WorkspaceEvent,
        context: Optional[ActionContext] = None,
    ) -> FlowRunResult:
        if flow is None or not flow.enabled:
            return FlowRunResult(success=False, reason=REASON_DISABLED)

        context = context or ActionContext()
        payload = event.lookup_payload()
        started = time.perf_counter()
        record = ExecutionRecord(
            id=new_id("exec"),
            flow_id=flow.id,
            flow_name=flow.name,
            event_type=event.type,
            target_key=event.resolved_target_key(),
            start_time=datetime.now(timezone.utc),
            status=ExecutionStatus.RUNNING,
        )

        try:
            if flow.conditions and not evaluate_conditions(
                flow.conditions, payload, context.snapshot
            ):
                record.status = ExecutionStatus.SKIPPED
                record.reason = REASON_CONDITIONS
                record.duration_ms = (time.perf_counter() - started) * 1000
                self._log.append(record)
                logger.debug(
                    f"Flow skipped: {flow.name}",
                    extra={"extra_fields": {"flow_id": flow.id, "execution_id": record.id}},
                )
                return FlowRunResult(
                    success=False, reason=REASON_CONDITIONS, execution_id=record.id
                )

            with log_context(flow_id=flow.id, execution_id=record.id):
                for index, action in enumerate(flow.actions):
                    self._run_action(record, index, action, payload, context)

                if flow.send_to_backend:
                    self._relay_execution(flow, event, payload, record)

            record.status = (
                ExecutionStatus.COMPLETED_WITH_ERRORS
                if record.errors
                else ExecutionStatus.COMPLETED
            )
        except Exception as e:
            logger.exception(f"Flow execution failed: {flow.name}")
            record.status = ExecutionStatus.FAILED
            record.reason = "engine_error"
            record.errors.append(ActionErrorEntry(error=str(e) or type(e).__name__))

        record.duration_ms = (time.perf_counter() - started) * 1000
        self._log.append(record)

        logger.info(
            f"Flow executed: {flow.name}",
            extra={
                "extra_fields": {
                    "flow_id": flow.id,
                    "execution_id": record.id,
                    "status": record.status,
                    "event_type": event.type,
                }
            },
        )
        return FlowRunResult(
            success=record.status == ExecutionStatus.COMPLETED.value,
            execution_id=record.id,
            actions_performed=len(record.actions_performed),
            errors=[e.model_copy() for e in record.errors],
        )

    def _run_action(
        self,
        record: ExecutionRecord,
        index: int,
        action: Any,
        payload: dict[str, Any],
        context: ActionContext,
    ) -> None:
        try:
            result = execute_action(action, payload, context)
        except Exception as e:
            logger.warning(
                f"Flow action {index} ({action.type}) raised: {str(e)}",
                extra={"extra_fields": {"execution_id": record.id}},
            )
            record.actions_performed.append(
                ActionOutcome(
                    index=index,
                    type=action.type,
                    result={"success": False, "reason": "exception"},
                )
            )
            record.errors.append(
                ActionErrorEntry(action_index=index, error=str(e) or type(e).__name__)
            )
            return

        record.actions_performed.append(
            ActionOutcome(index=index, type=action.type, result=result)
        )
        if not result.get("success", False):
            record.errors.append(
                ActionErrorEntry(
                    action_index=index,
                    error=str(result.get("reason", "action_failed")),
                )
            )

    def _relay_execution(
        self,
        flow: Flow,
        event: WorkspaceEvent,
        payload: dict[str, Any],
        record: ExecutionRecord,
    ) -> None:
        message = RelayMessage(
            flow_id=flow.id,
            flow_name=flow.name,
            event_type=event.type,
            target_key=event.resolved_target_key(),
            payload=payload,
            execution_id=record.id,
        )
        try:
            self._relay.send(message)
        except Exception as e:
            logger.error(f"Backend relay failed: {str(e)}")
