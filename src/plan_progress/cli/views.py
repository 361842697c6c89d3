"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of plans, cycles and today's workout.
"""

from datetime import date

from rich.console import Console
from rich.table import Table

from ..core.models import Cycle, CycleProgress, Plan, SinglePlanProgress, WorkoutRecord

console = Console()

# Human-readable text for transition reasons
REASON_TEXT: dict[str, str] = {
    "plan_not_found": "plan not found",
    "cycle_not_found": "cycle not found",
    "empty_plan": "the plan has no days",
    "empty_cycle": "the cycle has no plans",
    "no_valid_plan": "no plan in the cycle has any days",
    "day_not_found": "no such day",
    "item_not_found": "no such cycle item",
    "workout_in_progress": "today's workout already has logged sets",
    "not_newer": "a later completion is already recorded",
    "already_advanced": "already advanced by a skip",
    "pending_open": "the next day is picked up on the next program day",
}


def describe_reason(reason: str) -> str:
    return REASON_TEXT.get(reason, reason.replace("_", " "))


def format_plan_table(plan: Plan, current_day_index: int | None = None) -> Table:
    """
    Create a Rich table listing a plan's days.

    Args:
        plan: Plan to display
        current_day_index: 1-indexed pointer to highlight, if any

    Returns:
        Rich Table object
    """
    table = Table(title=f"Plan: {plan.name}")

    table.add_column("", width=1)
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")

    for day in plan.sorted_days:
        marker = ">" if day.position == current_day_index else ""
        kind = "rest" if day.is_rest_day else ("empty" if day.is_empty else "training")
        table.add_row(
            marker,
            str(day.position),
            day.display_name,
            kind,
            str(day.exercise_count) if not day.is_rest_day else "-",
            str(day.planned_sets) if not day.is_rest_day else "-",
        )

    return table


def format_cycle_table(cycle: Cycle, plans: dict[str, Plan], progress: CycleProgress | None) -> Table:
    """Create a Rich table listing a cycle's plan references."""
    title = f"Cycle: {cycle.name}" + (" (active)" if cycle.is_active else "")
    table = Table(title=title)

    table.add_column("", width=1)
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Plan", style="cyan")
    table.add_column("Days", justify="right")
    table.add_column("Position", justify="right")

    for offset, item in enumerate(cycle.sorted_items):
        plan = plans.get(item.plan_id)
        current = progress is not None and progress.current_item_index == offset
        position = ""
        if current and plan is not None and plan.day_count:
            position = f"day {progress.current_day_index + 1}/{plan.day_count}"  # type: ignore[union-attr]
        table.add_row(
            ">" if current else "",
            str(offset + 1),
            plan.name if plan is not None else "[red](deleted)[/red]",
            str(plan.day_count) if plan is not None else "-",
            position,
        )

    return table


def print_today(record: WorkoutRecord | None, info: tuple[int, int, str | None] | None) -> None:
    """Print today's workout record and the day it is linked to."""
    if record is None or info is None:
        console.print("[yellow]No workout scheduled today.[/yellow]")
        return

    day_index, total, name = info
    label = name or f"Day {day_index}"
    console.print(f"[bold]{record.date.isoformat()}[/bold]  {label}  [dim]({day_index}/{total})[/dim]")
    if record.planned_sets == 0:
        console.print("  Rest day")
        return
    status = "[green]complete[/green]" if record.is_complete else "[yellow]in progress[/yellow]"
    console.print(f"  Sets: {record.completed_sets}/{record.planned_sets}  {status}")


def format_preview_table(rows: list[tuple[date, tuple[int, int, str | None] | None]], today: date) -> Table:
    """Create a Rich table of forecast days."""
    table = Table(title="Preview")

    table.add_column("Date", style="cyan")
    table.add_column("Day", justify="right")
    table.add_column("Name")

    for target, info in rows:
        day_cell = "-" if info is None else f"{info[0]}/{info[1]}"
        name = "" if info is None else (info[2] or "")
        date_cell = target.strftime("%m.%d(%a)")
        if target == today:
            date_cell = f"[bold]> {date_cell}[/bold]"
        table.add_row(date_cell, day_cell, name)

    return table


def format_status_display(
    mode: str,
    plan: Plan | None,
    plan_progress: SinglePlanProgress | None,
    cycle: Cycle | None,
    cycle_progress: CycleProgress | None,
) -> str:
    """
    Format the current progression state as a text block.

    Returns:
        Formatted string
    """
    lines = [f"Mode: {mode}"]

    if mode == "single":
        if plan is None:
            lines.append("- No active plan")
        else:
            lines.append(f"- Plan: {plan.name} ({plan.day_count} days)")
            if plan_progress is not None:
                lines.append(f"- Current day: {plan_progress.current_day_index}")
                lines.append(f"- Last opened: {plan_progress.last_opened_date or '-'}")
                lines.append(f"- Last completed: {plan_progress.last_completed_date or '-'}")
    else:
        if cycle is None:
            lines.append("- No active cycle")
        else:
            lines.append(f"- Cycle: {cycle.name} ({cycle.item_count} plans)")
            if cycle_progress is not None:
                lines.append(
                    f"- Position: plan {cycle_progress.current_item_index + 1}, "
                    f"day {cycle_progress.current_day_index + 1}"
                )
                lines.append(f"- Last completed: {cycle_progress.last_completed_date or '-'}")

    return "\n".join(lines)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
