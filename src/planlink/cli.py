"""Command-line interface for planlink."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from datetime import date
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from .config import PlanlinkConfig, discover_config
from .exceptions import PlanlinkError
from .interchange import graph_to_payload
from .linking import LinkResult
from .loader import load_plan
from .logger import setup_logger
from .models import DependencyType
from .service import LinkOutcome, PlanningService
from .stores import YamlPlanStore

T = TypeVar("T")

app = typer.Typer(
    name="planlink",
    help="Plan dependency scheduler - link plan items and derive their dates",
    add_completion=False,
)

PlanFile = Annotated[Path, typer.Argument(help="Path to the plan YAML file")]
Selection = Annotated[list[str], typer.Argument(help="Ids of the selected items")]
DryRun = Annotated[
    bool, typer.Option("--dry-run", help="Show the result without writing the plan file")
]


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: planlink_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for planlink commands."""
    setup_logger(verbose)
    ctx.obj = {"config_path": config}


def _load_config(ctx: typer.Context, file: Path) -> PlanlinkConfig:
    config_path: Path | None = (ctx.obj or {}).get("config_path")
    return discover_config(file, config_path)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a service coroutine, turning planlink errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except PlanlinkError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _format_dates(start: date | None, finish: date | None) -> str:
    return f"{start.isoformat() if start else '-'} .. {finish.isoformat() if finish else '-'}"


def _print_link_result(result: LinkResult) -> None:
    typer.echo(f"{result.operation.value}:")
    for proposal in result.accepted_edges:
        typer.echo(f"  + {proposal}")
    for rejected in result.rejected_edges:
        typer.echo(f"  = {rejected.dependent_id} <- {rejected.edge} ({rejected.reason})")
    for proposal in result.removed_edges:
        typer.echo(f"  - {proposal}")
    if not result.changed:
        typer.echo("  (no changes)")
    for item_id, item_dates in result.updated_dates.items():
        typer.echo(f"  {item_id}: {_format_dates(item_dates.start_date, item_dates.finish_date)}")


def _report(outcome: LinkOutcome, file: Path) -> None:
    _print_link_result(outcome.result)
    if outcome.applied is None:
        typer.echo("Dry run: plan file not modified")
        return
    if outcome.applied.failed:
        for item_id in outcome.applied.failed:
            typer.echo(f"Error: {item_id}: {outcome.applied.errors[item_id]}", err=True)
        typer.echo("Some items were not saved; reload the plan and retry.", err=True)
        raise typer.Exit(1)
    if outcome.applied.success:
        typer.echo(f"Updated {len(outcome.applied.success)} item(s) in {file}")


def _service(ctx: typer.Context, file: Path) -> PlanningService:
    try:
        config = _load_config(ctx, file)
    except (PlanlinkError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    return PlanningService(YamlPlanStore(file), config)


@app.command()
def validate(file: PlanFile) -> None:
    """Check a plan for unknown references, duplicate links and cycles."""
    try:
        plan = load_plan(file)
    except PlanlinkError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    edge_count = len(plan.graph.edges())
    typer.echo(f"OK: {len(plan.graph)} items, {edge_count} links")


@app.command()
def schedule(
    ctx: typer.Context,
    file: PlanFile,
    *,
    write: Annotated[
        bool, typer.Option("--write", "-w", help="Write computed dates back to the plan file")
    ] = False,
) -> None:
    """Compute start and finish dates for every item."""
    service = _service(ctx, file)
    outcome = _run(service.recompute_schedule(dry_run=not write))

    for item_id, item_dates in outcome.dates.items():
        marker = "*" if item_id in outcome.changed else " "
        typer.echo(
            f"{marker} {item_id}: {_format_dates(item_dates.start_date, item_dates.finish_date)}"
        )

    if outcome.applied is not None:
        if outcome.applied.failed:
            for item_id in outcome.applied.failed:
                typer.echo(f"Error: {item_id}: {outcome.applied.errors[item_id]}", err=True)
            raise typer.Exit(1)
        typer.echo(f"Updated {len(outcome.applied.success)} item(s) in {file}")


@app.command()
def chain(ctx: typer.Context, file: PlanFile, items: Selection, dry_run: DryRun = False) -> None:
    """Link the selected items in sequence (each depends on the previous one)."""
    _report(_run(_service(ctx, file).propose_chain(items, dry_run=dry_run)), file)


@app.command("fan-in")
def fan_in(ctx: typer.Context, file: PlanFile, items: Selection, dry_run: DryRun = False) -> None:
    """Make the last selected item depend on all the others."""
    _report(_run(_service(ctx, file).propose_fan_in(items, dry_run=dry_run)), file)


@app.command("fan-out")
def fan_out(ctx: typer.Context, file: PlanFile, items: Selection, dry_run: DryRun = False) -> None:
    """Make all selected items depend on the first one."""
    _report(_run(_service(ctx, file).propose_fan_out(items, dry_run=dry_run)), file)


@app.command()
def unlink(ctx: typer.Context, file: PlanFile, items: Selection, dry_run: DryRun = False) -> None:
    """Remove links between the selected items."""
    _report(_run(_service(ctx, file).propose_unlink(items, dry_run=dry_run)), file)


@app.command()
def clear(ctx: typer.Context, file: PlanFile, items: Selection, dry_run: DryRun = False) -> None:
    """Remove every predecessor of the selected items."""
    _report(_run(_service(ctx, file).propose_clear_all(items, dry_run=dry_run)), file)


@app.command()
def link(  # noqa: PLR0913 - CLI command needs multiple options
    ctx: typer.Context,
    file: PlanFile,
    dependent: Annotated[str, typer.Argument(help="Item that gets the predecessor")],
    predecessor: Annotated[str, typer.Argument(help="Item it depends on")],
    *,
    edge_type: Annotated[
        DependencyType | None, typer.Option("--type", "-t", help="Dependency type")
    ] = None,
    lag: Annotated[
        int | None, typer.Option("--lag", help="Lag in days (negative for lead)")
    ] = None,
    dry_run: DryRun = False,
) -> None:
    """Add a single link."""
    service = _service(ctx, file)
    outcome = _run(
        service.propose_link(dependent, predecessor, edge_type=edge_type, lag=lag, dry_run=dry_run)
    )
    _report(outcome, file)


@app.command()
def export(
    file: PlanFile,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Export items and predecessors in the JSON interchange format."""
    try:
        plan = load_plan(file)
    except PlanlinkError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    payload = json.dumps(graph_to_payload(plan.graph), indent=2)
    if output:
        output.write_text(payload + "\n", encoding="utf-8")
        typer.echo(f"Plan exported to {output}")
    else:
        typer.echo(payload)


def main() -> None:
    """Entry point for the planlink command."""
    app()
