"""Plan commands: create, edit days, activate."""

from typing import Annotated, Optional

import typer

from ...io.serializers import ValidationError
from .. import views
from ..app import (
    DataDirOption,
    app,
    find_plan_or_exit,
    get_engine,
    get_store,
    load_profile_or_exit,
)


@app.command("plan-create")
def plan_create(
    name: Annotated[str, typer.Argument(help="Plan name")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Create an empty plan.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)

    if any(p.name == name for p in store.list_plans()):
        views.print_error(f"A plan named '{name}' already exists")
        raise typer.Exit(1)

    plan = get_engine(store).create_plan(profile, name)
    views.print_success(f"Created plan '{plan.name}' ({plan.id})")


@app.command("plan-add-day")
def plan_add_day(
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Day name"),
    ] = None,
    rest: Annotated[
        bool,
        typer.Option("--rest", help="Add a rest day"),
    ] = False,
    exercises: Annotated[
        int,
        typer.Option("--exercises", "-e", help="Number of exercises on the day"),
    ] = 0,
    sets: Annotated[
        Optional[int],
        typer.Option("--sets", "-s", help="Total planned sets (default: exercises x settings value)"),
    ] = None,
    position: Annotated[
        Optional[int],
        typer.Option("--position", help="Insert at this 1-indexed position (default: end)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Add a day to a plan.

    Inserting before the current day keeps the pointer on the same day.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    plan = find_plan_or_exit(store, plan_ref)

    if exercises < 0 or (sets is not None and sets < 0):
        views.print_error("Exercise and set counts must be non-negative")
        raise typer.Exit(1)

    day = get_engine(store).add_day(
        plan.id,
        name=name,
        is_rest_day=rest,
        exercise_count=0 if rest else exercises,
        planned_sets=sets,
        position=position,
    )
    if day is None:
        views.print_error(f"Plan not found: {plan_ref}")
        raise typer.Exit(1)
    views.print_success(f"Added {day.display_name} at position {day.position}")


@app.command("plan-remove-day")
def plan_remove_day(
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    position: Annotated[int, typer.Argument(help="1-indexed day position")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove a day from a plan.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    plan = find_plan_or_exit(store, plan_ref)

    day = plan.day_at(position)
    if day is None:
        views.print_error(f"No day at position {position}")
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Delete {day.display_name}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    get_engine(store).remove_day(plan.id, day.id)
    views.print_success(f"Removed {day.display_name}")


@app.command("plan-move-day")
def plan_move_day(
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    position: Annotated[int, typer.Argument(help="Current 1-indexed position")],
    new_position: Annotated[int, typer.Argument(help="New 1-indexed position")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Move a day within a plan.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    plan = find_plan_or_exit(store, plan_ref)

    day = plan.day_at(position)
    if day is None:
        views.print_error(f"No day at position {position}")
        raise typer.Exit(1)

    get_engine(store).move_day(plan.id, day.id, new_position)
    views.print_success(f"Moved {day.display_name} to position {new_position}")


@app.command("plan-duplicate-day")
def plan_duplicate_day(
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    position: Annotated[int, typer.Argument(help="1-indexed day position to copy")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Copy a day to the end of a plan.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    plan = find_plan_or_exit(store, plan_ref)

    day = plan.day_at(position)
    if day is None:
        views.print_error(f"No day at position {position}")
        raise typer.Exit(1)

    copy = get_engine(store).duplicate_day(plan.id, day.id)
    if copy is None:
        views.print_error("Could not duplicate day")
        raise typer.Exit(1)
    views.print_success(f"Copied {day.display_name} to position {copy.position}")


@app.command("plan-activate")
def plan_activate(
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    start_day: Annotated[
        int,
        typer.Option("--start-day", "-d", help="1-indexed day to start from"),
    ] = 1,
    data_dir: DataDirOption = None,
) -> None:
    """
    Follow a single plan, starting at --start-day.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    plan = find_plan_or_exit(store, plan_ref)

    try:
        result = get_engine(store).start_plan(profile, plan.id, start_day)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not result.ok:
        views.print_error(views.describe_reason(result.reason))
        raise typer.Exit(1)

    views.print_success(f"Following '{plan.name}' from day {start_day}")
