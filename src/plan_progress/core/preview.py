"""
Pure forecasts of which day will be active on another program day.

Nothing here reads or writes stored state; identical inputs always give
identical outputs.
"""

from dataclasses import replace
from datetime import date

from .cycle import DayCountLookup, advance_cycle
from .dates import days_between
from .models import CycleItem, CycleProgress


def preview_day_index(current_day_index: int, total_days: int, days_difference: int) -> int | None:
    """
    1-indexed day shown ``days_difference`` program days from now.

    Assumes one advancement per day.  Negative differences look backwards.

    Returns:
        The projected day index, or None for an empty plan
    """
    if total_days <= 0:
        return None
    return ((current_day_index - 1 + days_difference) % total_days + total_days) % total_days + 1


def preview_cycle_day_index(current_day_index: int, total_days: int, days_difference: int) -> int | None:
    """0-indexed variant of preview_day_index for cycle day pointers (stays within one plan)."""
    if total_days <= 0:
        return None
    return ((current_day_index + days_difference) % total_days + total_days) % total_days


def preview_for_date(
    current_day_index: int,
    total_days: int,
    today: date,
    target: date,
) -> int | None:
    """preview_day_index keyed by program days instead of a raw difference."""
    return preview_day_index(current_day_index, total_days, days_between(today, target))


def project_cycle(
    items: list[CycleItem],
    day_count: DayCountLookup,
    progress: CycleProgress,
    steps: int,
) -> list[tuple[int, int]]:
    """
    Forecast the cycle position after each of the next ``steps`` completions.

    Unlike preview_cycle_day_index this crosses plan boundaries, by running
    the rotation on a copy of ``progress``.

    Returns:
        ``[(item_index, day_index), ...]`` of length <= ``steps``; shorter
        when the cycle cannot advance
    """
    shadow = replace(progress)
    positions: list[tuple[int, int]] = []
    for _ in range(max(0, steps)):
        result = advance_cycle(items, day_count, shadow, now=progress.last_advanced_at)
        if not result.ok:
            break
        positions.append((shadow.current_item_index, shadow.current_day_index))
    return positions
