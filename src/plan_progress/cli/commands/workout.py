"""Daily workflow commands: today, log-sets, complete, change-day, preview."""

from datetime import timedelta
from typing import Annotated, Optional

import typer

from ...core.dates import parse_program_day
from ...core.progress import day_info
from ...core.store import days_of
from ...io.serializers import ValidationError
from .. import views
from ..app import DataDirOption, app, get_engine, get_store, load_profile_or_exit


@app.command()
def today(data_dir: DataDirOption = None) -> None:
    """
    Show today's workout, advancing the plan if a new program day started.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    engine = get_engine(store)

    try:
        record = engine.setup_today(profile)
        info = None
        if record is not None and record.plan_id and record.plan_day_id:
            days = days_of(store, record.plan_id) or []
            info = day_info(record.plan_day_id, days)
    except (FileNotFoundError, ValidationError, KeyError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_today(record, info)


@app.command("log-sets")
def log_sets(
    count: Annotated[int, typer.Argument(help="Number of completed sets to add")] = 1,
    data_dir: DataDirOption = None,
) -> None:
    """
    Record completed sets on today's workout.

    Completing the last planned set marks the day done.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    engine = get_engine(store)

    try:
        if store.get_workout_record(profile.id, engine.today(profile)) is None:
            engine.setup_today(profile)
        record = engine.log_sets(profile, count)
    except (FileNotFoundError, ValidationError, KeyError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if record is None:
        views.print_error("No workout today. Activate a plan or cycle first.")
        raise typer.Exit(1)

    views.print_success(f"Sets: {record.completed_sets}/{record.planned_sets}")
    if record.is_complete:
        views.print_success("Workout complete")


@app.command()
def complete(
    date_str: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Program day to mark complete (YYYY-MM-DD, default today)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Mark a workout complete, including a past day you forgot to log.

    A backfill advances the plan at most once, and never for a day older
    than the latest recorded completion.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    engine = get_engine(store)

    try:
        on = parse_program_day(date_str) if date_str else engine.today(profile)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        result = engine.complete_day(profile, on)
    except (FileNotFoundError, ValidationError, KeyError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not result.ok:
        views.print_error(views.describe_reason(result.reason))
        raise typer.Exit(1)

    if result.status == "advanced":
        views.print_success(f"Marked {on.isoformat()} complete; advanced")
    else:
        views.print_success(f"Marked {on.isoformat()} complete")
        views.print_info(views.describe_reason(result.reason))


@app.command("change-day")
def change_day(
    day: Annotated[int, typer.Argument(help="1-indexed day to do today")],
    skip: Annotated[
        bool,
        typer.Option("--skip", help="Also move the plan past this day"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Do a different day of the current plan today.

    Not allowed once a set has been logged today.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)

    try:
        result = get_engine(store).change_day(profile, day, skip_and_advance=skip)
    except (FileNotFoundError, ValidationError, KeyError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not result.ok:
        views.print_error(views.describe_reason(result.reason))
        raise typer.Exit(1)

    views.print_success(f"Today is now day {day}" + (" (plan moved past it)" if skip else ""))


@app.command()
def preview(
    days: Annotated[
        int,
        typer.Option("--days", "-n", help="Days to show; negative looks back"),
    ] = 7,
    data_dir: DataDirOption = None,
) -> None:
    """
    Forecast which day comes up on the next (or previous) program days.

    Assumes one day is completed per program day.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    engine = get_engine(store)
    start = engine.today(profile)

    step = 1 if days >= 0 else -1
    try:
        rows = [
            (start + timedelta(days=offset), engine.preview(profile, start + timedelta(days=offset)))
            for offset in range(0, days + step, step)
        ]
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if all(info is None for _, info in rows):
        views.print_warning("Nothing to preview. Activate a plan or cycle first.")
        return

    rows.sort(key=lambda r: r[0])
    views.console.print(views.format_preview_table(rows, start))
