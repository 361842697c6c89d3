"""Cycle commands: create, edit items, activate, reset."""

from typing import Annotated, Optional

import typer

from .. import views
from ..app import (
    DataDirOption,
    app,
    find_cycle_or_exit,
    find_plan_or_exit,
    get_engine,
    get_store,
    load_profile_or_exit,
)


@app.command("cycle-create")
def cycle_create(
    name: Annotated[str, typer.Argument(help="Cycle name")],
    plans: Annotated[
        Optional[list[str]],
        typer.Option("--plan", help="Plan name or id to include (repeatable, in order)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Create a cycle, optionally with its plans.

      plan-progress cycle-create "Upper/Lower" --plan Upper --plan Lower
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)

    if any(c.name == name for c in store.list_cycles()):
        views.print_error(f"A cycle named '{name}' already exists")
        raise typer.Exit(1)

    plan_ids = [find_plan_or_exit(store, ref).id for ref in plans or []]
    cycle = get_engine(store).create_cycle(profile, name, plan_ids)
    views.print_success(f"Created cycle '{cycle.name}' with {cycle.item_count} plan(s)")


@app.command("cycle-add-plan")
def cycle_add_plan(
    cycle_ref: Annotated[str, typer.Argument(help="Cycle name or id")],
    plan_ref: Annotated[str, typer.Argument(help="Plan name or id")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Append a plan to the end of a cycle.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    cycle = find_cycle_or_exit(store, cycle_ref)
    plan = find_plan_or_exit(store, plan_ref)

    item = get_engine(store).add_cycle_plan(cycle.id, plan.id)
    if item is None:
        views.print_error(f"Cycle not found: {cycle_ref}")
        raise typer.Exit(1)
    views.print_success(f"Added '{plan.name}' as plan {item.order + 1} of '{cycle.name}'")


@app.command("cycle-remove-item")
def cycle_remove_item(
    cycle_ref: Annotated[str, typer.Argument(help="Cycle name or id")],
    number: Annotated[int, typer.Argument(help="1-indexed plan number in the cycle")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove a plan from a cycle.

    When the current plan is removed the cycle continues at day 1 of the
    plan that takes its place.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    cycle = find_cycle_or_exit(store, cycle_ref)

    items = cycle.sorted_items
    if not 1 <= number <= len(items):
        views.print_error(f"Plan number must be between 1 and {len(items)}")
        raise typer.Exit(1)

    get_engine(store).remove_cycle_item(cycle.id, items[number - 1].id)
    views.print_success(f"Removed plan {number} from '{cycle.name}'")


@app.command("cycle-move-item")
def cycle_move_item(
    cycle_ref: Annotated[str, typer.Argument(help="Cycle name or id")],
    number: Annotated[int, typer.Argument(help="Current 1-indexed plan number")],
    new_number: Annotated[int, typer.Argument(help="New 1-indexed plan number")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Reorder the plans of a cycle.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    cycle = find_cycle_or_exit(store, cycle_ref)

    items = cycle.sorted_items
    if not 1 <= number <= len(items):
        views.print_error(f"Plan number must be between 1 and {len(items)}")
        raise typer.Exit(1)

    get_engine(store).move_cycle_item(cycle.id, items[number - 1].id, new_number - 1)
    views.print_success(f"Moved plan {number} to {new_number}")


@app.command("cycle-activate")
def cycle_activate(
    cycle_ref: Annotated[str, typer.Argument(help="Cycle name or id")],
    start_item: Annotated[
        int,
        typer.Option("--start-item", "-i", help="1-indexed plan number to start from"),
    ] = 1,
    start_day: Annotated[
        int,
        typer.Option("--start-day", "-d", help="1-indexed day within that plan"),
    ] = 1,
    data_dir: DataDirOption = None,
) -> None:
    """
    Follow a cycle, starting at --start-item / --start-day.
    """
    store = get_store(data_dir)
    profile = load_profile_or_exit(store)
    cycle = find_cycle_or_exit(store, cycle_ref)

    result = get_engine(store).start_cycle(profile, cycle.id, start_item - 1, start_day - 1)
    if not result.ok:
        views.print_error(views.describe_reason(result.reason))
        raise typer.Exit(1)

    views.print_success(f"Following cycle '{cycle.name}' from plan {start_item}, day {start_day}")


@app.command("cycle-reset")
def cycle_reset(
    cycle_ref: Annotated[str, typer.Argument(help="Cycle name or id")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Reset without prompting"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Send a cycle back to day 1 of its first plan.
    """
    store = get_store(data_dir)
    load_profile_or_exit(store)
    cycle = find_cycle_or_exit(store, cycle_ref)

    if not force and not views.confirm_action(f"Reset '{cycle.name}' to the start?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    get_engine(store).reset_cycle(cycle.id)
    views.print_success(f"Reset '{cycle.name}'")
