"""
Single-plan progress: open-time day advancement, rescue/backfill, and
manual day change.

The pointer is 1-indexed into the plan's days (by position).  Every
transition mutates the SinglePlanProgress passed in and returns an
explicit result; nothing here touches storage.  Deleting a stale record
or materializing a day is signalled back to the caller.
"""

import logging
from datetime import date
from typing import Callable

from .config import FIRST_DAY_INDEX
from .models import (
    DayResult,
    OpenResult,
    PlanDay,
    RecordStatus,
    SinglePlanProgress,
    WorkoutRecord,
)

logger = logging.getLogger(__name__)


def advance_day_index(current_day_index: int, total_days: int) -> int:
    """
    Next 1-indexed day with wraparound.

    The modulo also folds a pointer that overshoots a shrunken plan back
    into ``1..total_days``.
    """
    if total_days <= 0:
        return current_day_index
    return (current_day_index % total_days) + 1


def day_at_position(days: list[PlanDay], position: int) -> PlanDay | None:
    """Return the day stored at ``position``, or None."""
    for day in days:
        if day.position == position:
            return day
    return None


def _mark_completed(progress: SinglePlanProgress, day: date) -> None:
    """Raise last_completed_date to ``day``; never lowers it."""
    if progress.last_completed_date is None or day > progress.last_completed_date:
        progress.last_completed_date = day


def handle_app_open(
    days: list[PlanDay] | None,
    progress: SinglePlanProgress | None,
    today: date,
    record_status: Callable[[date], RecordStatus],
    profile_id: str,
    plan_id: str,
) -> OpenResult:
    """
    Decide which day to show on ``today`` and advance at most once per day.

    Logic:
    1. Missing or empty plan: "no day" sentinel, progress untouched
    2. No progress yet (or never opened): create/stamp it, never advance
    3. Already opened on this program day: no-op
    4. A day boundary passed since the last open:
       - rest day under the pointer: advance unconditionally
       - the last opened day's record is complete: advance
       - record absent: stay
       - record incomplete: stay, and ask the caller to delete it so the
         same day can be offered again

    Args:
        days: Ordered days of the plan, or None if the plan is gone
        progress: Stored progress for (profile, plan), or None
        today: Program day of the open event
        record_status: Lookup of the workout record status for a program day
        profile_id: Owner profile, used when progress must be created
        plan_id: Plan being followed

    Returns:
        OpenResult with the day index to show
    """
    if days is None:
        logger.info("plan %s not found; no day to show", plan_id)
        return OpenResult("invalid", None, progress, "plan_not_found")

    total_days = len(days)
    if total_days == 0:
        logger.info("plan %s has no days; no day to show", plan_id)
        return OpenResult("invalid", None, progress, "empty_plan")

    if progress is None:
        progress = SinglePlanProgress(profile_id=profile_id, plan_id=plan_id)
        progress.last_opened_date = today
        logger.debug("first open of plan %s on %s", plan_id, today)
        return OpenResult("noop", progress.current_day_index, progress, "first_open")

    last_opened = progress.last_opened_date
    if last_opened is None:
        progress.last_opened_date = today
        return OpenResult("noop", progress.current_day_index, progress, "first_open")

    if last_opened == today:
        return OpenResult("noop", progress.current_day_index, progress, "same_day")

    # Advancement for the last opened day was already applied by a manual skip
    if progress.advanced_on is not None and progress.advanced_on == last_opened:
        progress.advanced_on = None
        progress.last_opened_date = today
        _mark_completed(progress, last_opened)
        stale = last_opened if record_status(last_opened) == "incomplete" else None
        return OpenResult(
            "noop",
            progress.current_day_index,
            progress,
            "already_advanced",
            stale_record_date=stale,
        )

    previous_day = day_at_position(days, progress.current_day_index)
    old_index = progress.current_day_index

    if previous_day is not None and previous_day.is_rest_day:
        progress.current_day_index = advance_day_index(old_index, total_days)
        progress.last_opened_date = today
        _mark_completed(progress, last_opened)
        logger.debug("rest day %d auto-completed -> %d", old_index, progress.current_day_index)
        return OpenResult("advanced", progress.current_day_index, progress, "rest_day")

    status = record_status(last_opened)

    if status == "complete":
        progress.current_day_index = advance_day_index(old_index, total_days)
        progress.last_opened_date = today
        _mark_completed(progress, last_opened)
        logger.debug("day %d completed on %s -> %d", old_index, last_opened, progress.current_day_index)
        return OpenResult("advanced", progress.current_day_index, progress, "completed")

    progress.last_opened_date = today

    if status == "incomplete":
        logger.debug("stale incomplete record on %s; re-offering day %d", last_opened, old_index)
        return OpenResult(
            "noop",
            progress.current_day_index,
            progress,
            "incomplete_record",
            stale_record_date=last_opened,
        )

    return OpenResult("noop", progress.current_day_index, progress, "no_record")


def record_completion(
    progress: SinglePlanProgress,
    completion_date: date,
    total_days: int,
) -> DayResult:
    """
    Rescue path: reconcile a completion logged for ``completion_date``.

    Advances exactly one step only when the date is strictly newer than the
    last recorded completion, so repeating a date or backfilling an older
    day never double-counts or regresses.
    """
    if total_days <= 0:
        return DayResult("invalid", None, "empty_plan")

    last = progress.last_completed_date
    if last is not None and completion_date <= last:
        return DayResult("noop", progress.current_day_index, "not_newer")

    progress.last_completed_date = completion_date

    if progress.advanced_on is not None and progress.advanced_on == completion_date:
        progress.advanced_on = None
        return DayResult("noop", progress.current_day_index, "already_advanced")

    old_index = progress.current_day_index
    progress.current_day_index = advance_day_index(old_index, total_days)
    logger.debug("backfill %s advanced %d -> %d", completion_date, old_index, progress.current_day_index)
    return DayResult("advanced", progress.current_day_index, "completed")


def change_day(
    days: list[PlanDay],
    progress: SinglePlanProgress,
    current_record: WorkoutRecord | None,
    new_day_index: int,
    skip_and_advance: bool,
    today: date,
) -> DayResult:
    """
    Manually switch today's workout to the day at ``new_day_index``.

    Refused when today's record already has a completed set.  The caller
    materializes the returned day into a fresh record.  With
    ``skip_and_advance`` the pointer moves past the selected day and
    ``advanced_on`` is stamped so the next open does not advance again.
    The skip also counts as today's open, so the marker is always consumed
    by the first open of a later program day.
    """
    if current_record is not None and current_record.completed_sets > 0:
        return DayResult("invalid", None, "workout_in_progress")

    if day_at_position(days, new_day_index) is None:
        return DayResult("invalid", None, "day_not_found")

    if skip_and_advance:
        progress.current_day_index = advance_day_index(new_day_index, len(days))
        progress.advanced_on = today
        progress.last_opened_date = today
        logger.debug("skip to day %d; pointer now %d", new_day_index, progress.current_day_index)
        return DayResult("advanced", new_day_index, "skipped")

    return DayResult("noop", new_day_index, "changed")


def start_at(progress: SinglePlanProgress, days: list[PlanDay], day_index: int) -> DayResult:
    """Seed the pointer at a user-chosen day; the next open will not advance."""
    if not days:
        return DayResult("invalid", None, "empty_plan")
    if day_at_position(days, day_index) is None:
        return DayResult("invalid", None, "day_not_found")
    progress.current_day_index = day_index
    progress.last_opened_date = None
    progress.advanced_on = None
    return DayResult("noop", day_index, "started")


def current_plan_day(days: list[PlanDay], progress: SinglePlanProgress | None) -> PlanDay | None:
    """The day the pointer resolves to, or None."""
    index = progress.current_day_index if progress is not None else FIRST_DAY_INDEX
    return day_at_position(days, index)


def day_info(plan_day_id: str, days: list[PlanDay]) -> tuple[int, int, str | None] | None:
    """
    Resolve a linked day's (day_index, total_days, name) by identity.

    ``day_index`` is the 1-indexed place in position order.
    """
    for offset, day in enumerate(days):
        if day.id == plan_day_id:
            return offset + 1, len(days), day.name
    return None
