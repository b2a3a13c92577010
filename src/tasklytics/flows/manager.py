"""Flow library, target bindings and event-to-flow matching."""

from typing import Iterable, Optional

from tasklytics.models.event import WorkspaceEvent, target_key_for_task
from tasklytics.models.flow import Flow, FlowBinding, FlowTarget
from tasklytics.observability.logging import get_logger
from tasklytics.utils import new_id

logger = get_logger(__name__)

ANY_EVENT = "*"


class FlowManager:
    """Owns the flow library and the per-target binding map.

    Bindings are attached and detached on the currently selected target,
    mirroring the flow-mode interaction of the board: enter flow mode,
    select a card, attach or detach flows.
    """

    def __init__(
        self,
        library: Optional[Iterable[Flow]] = None,
        default_event_type: str = "task.dropped",
    ):
        self._flows: list[Flow] = list(library or [])
        self._bindings: dict[str, list[FlowBinding]] = {}
        self.default_event_type = default_event_type
        self.flow_mode = False
        self.selected_target: Optional[FlowTarget] = None

    @property
    def flows(self) -> list[Flow]:
        return list(self._flows)

    @property
    def bindings(self) -> dict[str, list[FlowBinding]]:
        return {key: list(items) for key, items in self._bindings.items()}

    def get_flow(self, flow_id: str) -> Optional[Flow]:
        for flow in self._flows:
            if flow.id == flow_id:
                return flow
        return None

    def save_flow(self, flow: Flow) -> Flow:
        """Adds a flow, or replaces the stored flow with the same id."""
        for i, existing in enumerate(self._flows):
            if existing.id == flow.id:
                self._flows[i] = flow
                logger.info(f"Flow updated: {flow.id}")
                return flow
        self._flows.append(flow)
        logger.info(f"Flow added: {flow.id}")
        return flow

    def toggle_flow_mode(self) -> bool:
        self.flow_mode = not self.flow_mode
        if not self.flow_mode:
            self.selected_target = None
        return self.flow_mode

    def select_target(self, target: Optional[FlowTarget]) -> None:
        if target is None or not target.key:
            return
        self.selected_target = target

    @staticmethod
    def target_key_for_task(task_id: str) -> str:
        return target_key_for_task(task_id)

    def bindings_for(self, target_key: str) -> list[FlowBinding]:
        return list(self._bindings.get(target_key, []))

    def attach_flow(
        self, flow_id: str, event_type: Optional[str] = None
    ) -> Optional[FlowBinding]:
        """Binds a flow to the selected target. No-op without a selection.

        ``event_type`` defaults to ``default_event_type``; pass ``"*"`` to
        bind the flow to every event raised for the target.
        """
        if self.selected_target is None or not self.selected_target.key:
            return None
        if event_type == ANY_EVENT:
            event_type = None
        elif not event_type:
            event_type = self.default_event_type
        binding = FlowBinding(id=new_id("binding"), flow_id=flow_id, event_type=event_type)
        self._bindings.setdefault(self.selected_target.key, []).append(binding)
        logger.info(
            f"Flow attached: {flow_id} -> {self.selected_target.key}",
            extra={"extra_fields": {"binding_id": binding.id, "event_type": binding.event_type}},
        )
        return binding

    def detach_flow(self, binding_id: str) -> bool:
        if self.selected_target is None or not self.selected_target.key:
            return False
        target_key = self.selected_target.key
        current = self._bindings.get(target_key, [])
        remaining = [b for b in current if b.id != binding_id]
        if len(remaining) == len(current):
            return False
        if remaining:
            self._bindings[target_key] = remaining
        else:
            del self._bindings[target_key]
        logger.info(f"Flow binding detached: {binding_id} from {target_key}")
        return True

    def bind(
        self, target_key: str, flow_id: str, event_type: Optional[str] = None
    ) -> Optional[FlowBinding]:
        """Selects ``target_key`` and attaches ``flow_id`` to it.

        Returns None for an empty key; the current selection is left alone.
        """
        if not target_key:
            return None
        self.select_target(FlowTarget(key=target_key, label=target_key))
        return self.attach_flow(flow_id, event_type)

    def match(self, event: WorkspaceEvent) -> list[Flow]:
        """Flows bound to the event's target for its event type, in binding order."""
        target_key = event.resolved_target_key()
        if not target_key:
            return []

        matched: list[Flow] = []
        for binding in self._bindings.get(target_key, []):
            if binding.event_type and binding.event_type != event.type:
                continue
            flow = self.get_flow(binding.flow_id)
            if flow is None:
                logger.warning(
                    f"Flow not found: {binding.flow_id}",
                    extra={"extra_fields": {"binding_id": binding.id, "target_key": target_key}},
                )
                continue
            matched.append(flow)
        return matched
