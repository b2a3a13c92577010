"""CLI tool for inspecting flows and replaying workspace sessions."""

from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError
from typing_extensions import Annotated

from tasklytics.config import EngineConfig
from tasklytics.models.command import Command
from tasklytics.observability.logging import setup_logging
from tasklytics.session import WorkspaceSession, create_session
from tasklytics.workspace.seed import load_flow_library, parse_flow_library


app = typer.Typer(help="Tasklytics workspace automation CLI")
flows_app = typer.Typer(help="Manage automation flows")

app.add_typer(flows_app, name="flows")


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        typer.echo(f"Error parsing YAML: {str(e)}", err=True)
        raise typer.Exit(code=1)


@flows_app.command("list")
def flows_list(
    library: Annotated[
        Optional[Path], typer.Option(help="Flow library YAML file")
    ] = None,
):
    """Lists the flows in a library."""
    flows = (
        parse_flow_library(_load_yaml(library)) if library else load_flow_library()
    )
    if not flows:
        typer.echo("No flows found.")
        return

    for flow in flows:
        status = "Enabled" if flow.enabled else "Disabled"
        trigger = flow.trigger.type if flow.trigger else flow.default_trigger or "-"
        typer.echo(
            f"[{status}] {flow.id}: {flow.name} (trigger: {trigger}, "
            f"{len(flow.conditions)} conditions, {len(flow.actions)} actions)"
        )


@flows_app.command("validate")
def flows_validate(
    file_path: Annotated[Path, typer.Argument(help="Path to flow YAML file")],
):
    """Validates a flow library YAML file."""
    data = _load_yaml(file_path)
    try:
        flows = parse_flow_library(data)
    except ValidationError as e:
        typer.echo(f"Validation Error: {e.error_count()} error(s)", err=True)
        for error in e.errors():
            location = ".".join(str(p) for p in error["loc"])
            typer.echo(f"Path: {location}: {error['msg']}", err=True)
        raise typer.Exit(code=1)
    except ValueError as e:
        typer.echo(f"Validation Error: {str(e)}", err=True)
        raise typer.Exit(code=1)

    ids = [flow.id for flow in flows]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        typer.echo(f"Validation Error: duplicate flow ids: {', '.join(duplicates)}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Flow file {file_path} is valid ({len(flows)} flows).")


def _run_step(session: WorkspaceSession, step: Any) -> str:
    if isinstance(step, str):
        name = step.strip().lower()
        if name == "undo":
            return f"undo: {'ok' if session.history.undo() else 'ignored'}"
        if name == "redo":
            return f"redo: {'ok' if session.history.redo() else 'ignored'}"
        if name == "commit":
            step = {"command": {"type": "Commit"}}
        else:
            raise ValueError(f"Unknown step: {step}")

    if not isinstance(step, dict) or len(step) != 1:
        raise ValueError(f"Invalid step: {step}")

    kind, value = next(iter(step.items()))
    if kind == "command":
        result = session.dispatcher.dispatch(Command.model_validate(value))
        line = f"{result.command_type}: {result.status}"
        if result.message:
            line += f" ({result.message})"
        if result.flow_runs:
            line += f", {len(result.flow_runs)} flow run(s)"
        return line
    if kind == "jump":
        return f"jump {value}: {'ok' if session.history.jump(int(value)) else 'ignored'}"
    if kind == "bind":
        if not isinstance(value, dict):
            raise ValueError(f"Invalid binding: {value}")
        binding = session.flows.bind(value.get("target"), value["flow"], value.get("event"))
        if binding is None:
            raise ValueError(f"Cannot bind {value['flow']}: binding target is empty")
        return f"bind {value['flow']} -> {value['target']}: {binding.id}"
    raise ValueError(f"Unknown step: {kind}")


@app.command("run")
def run_script(
    script: Annotated[Path, typer.Argument(help="Path to session script YAML")],
    library: Annotated[
        Optional[Path], typer.Option(help="Flow library YAML file")
    ] = None,
    log_level: Annotated[
        str, typer.Option(help="Log level for engine output")
    ] = "WARNING",
):
    """Replays a scripted session and prints history and flow executions."""
    setup_logging(log_level)
    data = _load_yaml(script) or {}
    try:
        flows = (
            parse_flow_library(_load_yaml(library)) if library else load_flow_library()
        )
        session = create_session(config=EngineConfig.from_env(), library=flows)
        for binding in data.get("bindings", []):
            _run_step(session, {"bind": binding})
        for step in data.get("steps", []):
            typer.echo(_run_step(session, step))
    except (ValidationError, ValueError, KeyError, TypeError) as e:
        typer.echo(f"Error: {str(e)}", err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    typer.echo("History:")
    for entry in session.history.entries():
        marker = ">" if entry["current"] else " "
        committed = " [committed]" if entry["committed"] else ""
        typer.echo(f"{marker} {entry['index']}: {entry['label']}{committed}")

    typer.echo("")
    typer.echo("Flow executions:")
    records = session.engine.history()
    if not records:
        typer.echo("  (none)")
    for record in records:
        typer.echo(
            f"  {record.flow_name} [{record.event_type}] {record.status} "
            f"({len(record.actions_performed)} actions, {len(record.errors)} errors)"
        )


if __name__ == "__main__":
    app()
