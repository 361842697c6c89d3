"""
Cycle progress: rotation through an ordered list of plan references.

The item pointer and the day pointer are both 0-indexed.  A cycle item
whose plan was deleted or has no days is skipped without consuming a
day-advance.  The skip scan is bounded by the number of items and stops
when it returns to the item it started from, so an all-empty cycle
reports "no_valid_plan" instead of spinning.

Transitions work on local copies of the pointer and commit only on
success: a failed transition leaves the CycleProgress unchanged.
"""

import logging
from datetime import date, datetime
from typing import Callable

from .models import CycleItem, CycleProgress, CycleResult, DayResult, PlanDay, WorkoutRecord

logger = logging.getLogger(__name__)

# plan_id -> number of days, or None when the plan no longer exists
DayCountLookup = Callable[[str], int | None]


def _is_valid_item(item: CycleItem, day_count: DayCountLookup) -> bool:
    total = day_count(item.plan_id)
    return total is not None and total > 0


def next_item_index(item_index: int, total_items: int) -> int:
    """Next 0-indexed item with wraparound."""
    return (item_index + 1) % total_items


def skip_empty_plans(
    items: list[CycleItem],
    day_count: DayCountLookup,
    start_index: int,
) -> int | None:
    """
    First item index at or after ``start_index`` whose plan is usable.

    Checks at most ``len(items)`` items and stops early when the scan wraps
    back to ``start_index``.

    Returns:
        The landing item index, or None if no item references a usable plan
    """
    total_items = len(items)
    index = start_index
    checked = 0

    while checked < total_items:
        if _is_valid_item(items[index], day_count):
            if checked:
                logger.debug("skipped %d empty/missing plan(s); landed on item %d", checked, index)
            return index
        index = next_item_index(index, total_items)
        checked += 1
        if index == start_index:
            break

    logger.warning("no valid plan in cycle after checking %d item(s)", checked)
    return None


def _commit(
    progress: CycleProgress,
    item_index: int,
    day_index: int,
    now: datetime | None,
    reason: str,
) -> CycleResult:
    progress.current_item_index = item_index
    progress.current_day_index = day_index
    progress.last_advanced_at = now if now is not None else datetime.now()
    return CycleResult("advanced", item_index, day_index, reason)


def advance_cycle(
    items: list[CycleItem],
    day_count: DayCountLookup,
    progress: CycleProgress,
    now: datetime | None = None,
) -> CycleResult:
    """
    Advance the cycle one day, rotating to the next usable plan at a plan's end.

    Logic:
    1. No items: cannot advance
    2. Pointer past the end of the items: reset to the first usable item
    3. Current plan missing or empty: move to the next item (no day consumed)
    4. Room left in the current plan: next day
    5. Otherwise: day 0 of the next item, skipping empty/missing plans

    Args:
        items: Cycle items sorted by order
        day_count: Day count lookup for a plan id
        progress: Pointer to mutate on success
        now: Timestamp stored in ``last_advanced_at``

    Returns:
        CycleResult; ``invalid`` leaves ``progress`` unchanged
    """
    total_items = len(items)
    if total_items == 0:
        return CycleResult("invalid", None, None, "empty_cycle")

    item_index = progress.current_item_index
    day_index = progress.current_day_index

    if item_index >= total_items:
        landed = skip_empty_plans(items, day_count, 0)
        if landed is None:
            return CycleResult("invalid", None, None, "no_valid_plan")
        return _commit(progress, landed, 0, now, "pointer_reset")

    total_days = day_count(items[item_index].plan_id)

    if not total_days:
        landed = skip_empty_plans(items, day_count, next_item_index(item_index, total_items))
        if landed is None:
            return CycleResult("invalid", None, None, "no_valid_plan")
        return _commit(progress, landed, 0, now, "skipped_invalid_plan")

    if day_index + 1 < total_days:
        return _commit(progress, item_index, day_index + 1, now, "next_day")

    landed = skip_empty_plans(items, day_count, next_item_index(item_index, total_items))
    if landed is None:
        return CycleResult("invalid", None, None, "no_valid_plan")
    return _commit(progress, landed, 0, now, "next_plan")


def record_cycle_completion(
    items: list[CycleItem],
    day_count: DayCountLookup,
    progress: CycleProgress,
    completion_date: date,
    now: datetime | None = None,
) -> CycleResult:
    """
    Advance the cycle for a completion on ``completion_date``.

    Same monotonic rule as the single-plan rescue path: only a date strictly
    newer than ``last_completed_date`` advances, and only once.
    """
    last = progress.last_completed_date
    if last is not None and completion_date <= last:
        return CycleResult(
            "noop", progress.current_item_index, progress.current_day_index, "not_newer"
        )

    if progress.advanced_on is not None and progress.advanced_on == completion_date:
        progress.advanced_on = None
        progress.last_completed_date = completion_date
        return CycleResult(
            "noop", progress.current_item_index, progress.current_day_index, "already_advanced"
        )

    result = advance_cycle(items, day_count, progress, now)
    if result.ok:
        progress.last_completed_date = completion_date
    return result


def change_cycle_day(
    items: list[CycleItem],
    plan_days: Callable[[str], list[PlanDay] | None],
    progress: CycleProgress,
    current_record: WorkoutRecord | None,
    new_day_index: int,
    skip_and_advance: bool,
    today: date,
    now: datetime | None = None,
) -> DayResult:
    """
    Switch today's workout to another day of the current cycle plan.

    ``new_day_index`` is 0-indexed into the current plan's sorted days.
    Refused when today's record already has a completed set.  With
    ``skip_and_advance`` the day pointer moves to the day after the
    selected one (wrapping within the plan).
    """
    if current_record is not None and current_record.completed_sets > 0:
        return DayResult("invalid", None, "workout_in_progress")

    if progress.current_item_index >= len(items):
        return DayResult("invalid", None, "item_not_found")

    days = plan_days(items[progress.current_item_index].plan_id)
    if days is None:
        return DayResult("invalid", None, "plan_not_found")

    if not 0 <= new_day_index < len(days):
        return DayResult("invalid", None, "day_not_found")

    if skip_and_advance:
        progress.current_day_index = (new_day_index + 1) % len(days)
        progress.last_advanced_at = now if now is not None else datetime.now()
        progress.advanced_on = today
        return DayResult("advanced", new_day_index, "skipped")

    return DayResult("noop", new_day_index, "changed")


def start_cycle_at(
    items: list[CycleItem],
    plan_days: Callable[[str], list[PlanDay] | None],
    progress: CycleProgress,
    item_index: int,
    day_index: int,
) -> CycleResult:
    """Seed the cycle pointer at a user-chosen (item, day) position."""
    if not 0 <= item_index < len(items):
        return CycleResult("invalid", None, None, "item_not_found")
    days = plan_days(items[item_index].plan_id)
    if not days:
        return CycleResult("invalid", None, None, "empty_plan")
    if not 0 <= day_index < len(days):
        return CycleResult("invalid", None, None, "day_not_found")
    progress.current_item_index = item_index
    progress.current_day_index = day_index
    progress.advanced_on = None
    return CycleResult("noop", item_index, day_index, "started")


def current_cycle_day(
    items: list[CycleItem],
    plan_days: Callable[[str], list[PlanDay] | None],
    progress: CycleProgress | None,
) -> tuple[CycleItem, PlanDay] | None:
    """The (item, day) the cycle pointer resolves to, or None."""
    if progress is None or progress.current_item_index >= len(items):
        return None
    item = items[progress.current_item_index]
    days = plan_days(item.plan_id)
    if days is None or progress.current_day_index >= len(days):
        return None
    return item, days[progress.current_day_index]
