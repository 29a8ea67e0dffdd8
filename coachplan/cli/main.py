"""
Command-line interface for the coachplan reconciliation service.

Submits a full plan document from disk, toggles archiving and checks the
database connection.
"""
from __future__ import annotations

import json as jsonlib
import pathlib
from typing import TYPE_CHECKING, Any, Optional

import typer
from rich.console import Console
from typer import Argument, Option
from typing_extensions import Annotated

from coachplan.cli.status import DEFAULT_TIMEOUT_SECONDS, render_results, run_status_checks
from coachplan.infrastructure import log_utils

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from coachplan.application.reconciliation import PlanReconciliationService, ReconcileResult

console = Console()

app = typer.Typer(
    name="coachplan",
    help="Reconcile trainer workout plans with their persisted state.",
    add_completion=False,
)


def _build_service() -> "PlanReconciliationService":
    """Lazy import so the CLI loads without touching the database."""
    from coachplan.application.reconciliation import PlanReconciliationService
    from coachplan.infrastructure.di_container import get_container

    return get_container().resolve(PlanReconciliationService)


def _load_payload(path: pathlib.Path) -> dict[str, Any]:
    try:
        payload = jsonlib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        console.print(f"[red]Could not read {path}: {exc}[/red]")
        raise typer.Exit(code=1)
    except jsonlib.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {path}: {exc}[/red]")
        raise typer.Exit(code=1)
    if not isinstance(payload, dict):
        console.print(f"[red]Expected a JSON object in {path}.[/red]")
        raise typer.Exit(code=1)
    return payload


def _report(result: "ReconcileResult", success: str) -> None:
    if result.ok:
        console.print(f"[green]{success}[/green]")
        raise typer.Exit(code=0)
    console.print(f"[red]{result.message}[/red]")
    raise typer.Exit(code=1)


@app.command()
def reconcile(
    plan_id: Annotated[str, Argument(help="Id of the plan to update.")],
    payload_file: Annotated[
        pathlib.Path,
        Argument(help="JSON file holding the full plan submission.", exists=True, dir_okay=False),
    ],
    actor: Annotated[Optional[str], Option("--actor", help="Trainer id performing the update.")] = None,
) -> None:
    """Apply a full plan submission to the stored plan."""
    payload = _load_payload(payload_file)
    submitted_id = payload.get("plan_id", payload.get("planId"))
    if submitted_id is not None and str(submitted_id) != plan_id:
        console.print(f"[red]Payload plan id {submitted_id} does not match {plan_id}.[/red]")
        raise typer.Exit(code=1)
    payload["plan_id"] = plan_id
    payload.pop("planId", None)

    log_utils.info(f"CLI reconcile requested for plan {plan_id}.")
    result = _build_service().reconcile(payload, actor_id=actor)
    _report(result, f"Plan {plan_id} updated.")


@app.command()
def archive(
    plan_id: Annotated[str, Argument(help="Id of the plan to archive.")],
    restore: Annotated[bool, Option("--restore", help="Move the plan back to draft instead.")] = False,
    actor: Annotated[Optional[str], Option("--actor", help="Trainer id performing the change.")] = None,
) -> None:
    """Archive a plan, or restore it to draft with --restore."""
    result = _build_service().set_plan_archived(plan_id, not restore, actor_id=actor)
    _report(result, f"Plan {plan_id} {'restored to draft' if restore else 'archived'}.")


@app.command()
def status(
    timeout: Annotated[float, Option("--timeout", help="Override the connection timeout in seconds.")] = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    """Quick health check for the database and plan schema."""
    results = run_status_checks(timeout=timeout)
    typer.echo(render_results(results))
    exit_code = 0 if all(result.ok for result in results) else 1
    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
