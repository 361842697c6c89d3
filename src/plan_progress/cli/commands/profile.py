"""Profile commands: init and status."""

from typing import Annotated, Optional

import typer

from ...core.engine.config_loader import load_settings
from ...core.models import Profile, new_id
from ...io.serializers import ValidationError
from .. import views
from ..app import DataDirOption, app, get_engine, get_store, load_profile_or_exit


@app.command()
def init(
    data_dir: DataDirOption = None,
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Profile name"),
    ] = "default",
    day_boundary_hour: Annotated[
        Optional[int],
        typer.Option(
            "--day-boundary-hour",
            "-b",
            help="Hour (0-23) at which a new program day starts (default from settings)",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing profile without prompting"),
    ] = False,
) -> None:
    """
    Initialize the profile and data files.

    Existing plans, cycles, progress and workouts are kept; only the
    profile settings are replaced.
    """
    store = get_store(data_dir)

    if day_boundary_hour is None:
        day_boundary_hour = load_settings()["day_boundary_hour"]

    existing: Profile | None = None
    if store.exists():
        try:
            existing = store.load_profile()
        except ValidationError as e:
            views.print_warning(f"Existing profile is unreadable and will be replaced: {e}")
            existing = None
        if existing is not None and not force:
            if not views.confirm_action(f"Profile '{existing.name}' exists. Update it?"):
                views.print_info("Cancelled.")
                raise typer.Exit(0)

    try:
        profile = Profile(
            id=existing.id if existing is not None else new_id(),
            name=name,
            day_boundary_hour=day_boundary_hour,
            execution_mode=existing.execution_mode if existing is not None else "single",
            active_plan_id=existing.active_plan_id if existing is not None else None,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.init(profile)
    views.print_success(f"Initialized profile '{profile.name}' in {store.data_dir}")
    views.print_info(f"New program days start at {profile.day_boundary_hour:02d}:00")


@app.command()
def status(data_dir: DataDirOption = None) -> None:
    """
    Show the active plan or cycle and where the pointer is.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    engine = get_engine(store)

    try:
        plan = store.get_plan(profile.active_plan_id) if profile.active_plan_id else None
        plan_progress = (
            store.get_plan_progress(profile.id, plan.id) if plan is not None else None
        )
        cycle = engine.active_cycle(profile)
        cycle_progress = store.get_cycle_progress(cycle.id) if cycle is not None else None
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.console.print(
        views.format_status_display(
            profile.execution_mode, plan, plan_progress, cycle, cycle_progress
        )
    )

    if profile.execution_mode == "single" and plan is not None:
        current = plan_progress.current_day_index if plan_progress is not None else None
        views.console.print(views.format_plan_table(plan, current))
    elif cycle is not None:
        plans = {p.id: p for p in store.list_plans()}
        views.console.print(views.format_cycle_table(cycle, plans, cycle_progress))
