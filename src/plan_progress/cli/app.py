"""Shared Typer app object, shared option types, and store/engine utilities."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.engine.config_loader import load_settings, resolve_data_dir
from ..core.engine.progression import ProgressionEngine
from ..core.models import Cycle, Plan, Profile
from ..io.plan_store import JsonPlanStore
from ..io.serializers import ValidationError
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Data directory (default: ~/.plan-progress)"),
]

app = typer.Typer(
    name="plan-progress",
    help="Follow training plans and cycles day by day.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Training plan progression: which day is today, and what comes next.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_store(data_dir: Path | None) -> JsonPlanStore:
    """Get a store for the given directory or the configured default."""
    if data_dir is None:
        data_dir = resolve_data_dir(load_settings())
    return JsonPlanStore(data_dir)


def get_engine(store: JsonPlanStore) -> ProgressionEngine:
    """Engine over ``store`` using the configured defaults."""
    settings = load_settings()
    return ProgressionEngine(store, planned_sets_per_exercise=settings["planned_sets_per_exercise"])


def load_profile_or_exit(store: JsonPlanStore) -> Profile:
    """Load the profile, printing the error and exiting with 1 on failure."""
    try:
        return store.load_profile()
    except (FileNotFoundError, ValidationError, KeyError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def find_plan_or_exit(store: JsonPlanStore, ref: str) -> Plan:
    """Look up a plan by id or by exact name."""
    try:
        plans = store.list_plans()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    for plan in plans:
        if plan.id == ref or plan.name == ref:
            return plan
    views.print_error(f"Plan not found: {ref}")
    raise typer.Exit(1)


def find_cycle_or_exit(store: JsonPlanStore, ref: str) -> Cycle:
    """Look up a cycle by id or by exact name."""
    try:
        cycles = store.list_cycles()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    for cycle in cycles:
        if cycle.id == ref or cycle.name == ref:
            return cycle
    views.print_error(f"Cycle not found: {ref}")
    raise typer.Exit(1)
