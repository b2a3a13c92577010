"""Wiring of the history engine, flow engine and dispatcher for one session."""

from dataclasses import dataclass
from typing import Iterable, Optional

from tasklytics.commands.dispatcher import CommandDispatcher
from tasklytics.config import EngineConfig
from tasklytics.flows.actions import Notifier
from tasklytics.flows.engine import FlowEngine
from tasklytics.flows.manager import FlowManager
from tasklytics.flows.relay import RelaySink
from tasklytics.history.engine import HistoryEngine
from tasklytics.models.flow import Flow
from tasklytics.models.snapshot import WorkspaceSnapshot
from tasklytics.workspace.seed import create_initial_snapshot, load_flow_library


@dataclass
class WorkspaceSession:
    history: HistoryEngine
    engine: FlowEngine
    flows: FlowManager
    dispatcher: CommandDispatcher


def create_session(
    *,
    config: Optional[EngineConfig] = None,
    snapshot: Optional[WorkspaceSnapshot] = None,
    library: Optional[Iterable[Flow]] = None,
    relay: Optional[RelaySink] = None,
    notifier: Optional[Notifier] = None,
) -> WorkspaceSession:
    """Builds a session from the seed workspace and the packaged flow library."""
    config = config or EngineConfig.from_env()
    history = HistoryEngine(snapshot or create_initial_snapshot())
    engine = FlowEngine(relay=relay, config=config)
    flows = FlowManager(
        library if library is not None else load_flow_library(),
        default_event_type=config.default_binding_event,
    )
    dispatcher = CommandDispatcher(
        history=history,
        engine=engine,
        flows=flows,
        notifier=notifier,
        config=config,
    )
    return WorkspaceSession(history=history, engine=engine, flows=flows, dispatcher=dispatcher)
