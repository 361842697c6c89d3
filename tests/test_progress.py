"""
Tests for single-plan progress: open-time advancement, rescue/backfill
and manual day change.
"""

from datetime import date, datetime, timedelta
from itertools import permutations

import pytest

from plan_progress.core.dates import program_day
from plan_progress.core.models import PlanDay, SinglePlanProgress, WorkoutRecord
from plan_progress.core.progress import (
    advance_day_index,
    change_day,
    current_plan_day,
    day_info,
    handle_app_open,
    record_completion,
    start_at,
)

DAY1 = date(2026, 3, 2)


# ===========================================================================
# Helpers
# ===========================================================================

def _make_days(count: int, rest: tuple[int, ...] = ()) -> list[PlanDay]:
    """Build ``count`` days at positions 1..count; ``rest`` positions are rest days."""
    return [
        PlanDay(
            id=f"d{i}",
            position=i,
            name=f"Day {i}",
            is_rest_day=i in rest,
            exercise_count=0 if i in rest else 2,
            planned_sets=0 if i in rest else 6,
        )
        for i in range(1, count + 1)
    ]


def _statuses(mapping: dict[date, str] | None = None):
    mapping = mapping or {}
    return lambda d: mapping.get(d, "absent")


def _make_progress(index: int = 1, last_opened: date | None = DAY1, **kwargs) -> SinglePlanProgress:
    return SinglePlanProgress(
        profile_id="p1",
        plan_id="plan1",
        current_day_index=index,
        last_opened_date=last_opened,
        **kwargs,
    )


def _open(days, progress, today, records=None):
    return handle_app_open(days, progress, today, _statuses(records), "p1", "plan1")


# ===========================================================================
# Open-time advancement
# ===========================================================================

class TestHandleAppOpen:
    """Each branch of the open-time transition."""

    def test_first_open_creates_progress_on_day_one(self):
        result = _open(_make_days(4), None, DAY1)
        assert result.status == "noop"
        assert result.reason == "first_open"
        assert result.day_index == 1
        assert result.progress is not None
        assert result.progress.last_opened_date == DAY1

    def test_never_opened_progress_is_stamped_without_advancing(self):
        progress = _make_progress(index=3, last_opened=None)
        result = _open(_make_days(4), progress, DAY1, {DAY1: "complete"})
        assert result.reason == "first_open"
        assert progress.current_day_index == 3
        assert progress.last_opened_date == DAY1

    def test_repeated_same_day_opens_are_noops(self):
        days = _make_days(4)
        progress = _make_progress(index=2, last_opened=DAY1 - timedelta(days=1))
        records = {DAY1 - timedelta(days=1): "complete"}
        first = _open(days, progress, DAY1, records)
        assert first.day_index == 3
        for _ in range(5):
            again = _open(days, progress, DAY1, records)
            assert again.reason == "same_day"
            assert again.day_index == 3
        assert progress.current_day_index == 3

    def test_missing_plan_returns_sentinel(self):
        progress = _make_progress(index=2)
        result = _open(None, progress, DAY1 + timedelta(days=1))
        assert result.status == "invalid"
        assert result.day_index is None
        assert result.reason == "plan_not_found"
        assert progress.current_day_index == 2
        assert progress.last_opened_date == DAY1

    def test_empty_plan_returns_sentinel_without_mutation(self):
        progress = _make_progress(index=1)
        result = _open([], progress, DAY1 + timedelta(days=1))
        assert result.status == "invalid"
        assert result.reason == "empty_plan"
        assert result.day_index is None
        assert progress.last_opened_date == DAY1

    def test_rest_day_advances_without_record(self):
        progress = _make_progress(index=2)
        result = _open(_make_days(4, rest=(2,)), progress, DAY1 + timedelta(days=1))
        assert result.status == "advanced"
        assert result.reason == "rest_day"
        assert progress.current_day_index == 3

    def test_complete_record_advances(self):
        progress = _make_progress(index=1)
        result = _open(_make_days(4), progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert result.status == "advanced"
        assert result.reason == "completed"
        assert progress.current_day_index == 2
        assert progress.last_opened_date == DAY1 + timedelta(days=1)
        assert progress.last_completed_date == DAY1

    def test_absent_record_stays(self):
        progress = _make_progress(index=2)
        result = _open(_make_days(4), progress, DAY1 + timedelta(days=3))
        assert result.status == "noop"
        assert result.reason == "no_record"
        assert result.stale_record_date is None
        assert progress.current_day_index == 2
        assert progress.last_opened_date == DAY1 + timedelta(days=3)

    def test_incomplete_record_is_flagged_for_deletion(self):
        progress = _make_progress(index=2)
        result = _open(_make_days(4), progress, DAY1 + timedelta(days=1), {DAY1: "incomplete"})
        assert result.status == "noop"
        assert result.reason == "incomplete_record"
        assert result.stale_record_date == DAY1
        assert progress.current_day_index == 2

    def test_wraparound_at_end_of_plan(self):
        progress = _make_progress(index=4)
        _open(_make_days(4), progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert progress.current_day_index == 1

    def test_shrunken_plan_folds_pointer_into_range(self):
        progress = _make_progress(index=5)
        result = _open(_make_days(3), progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert 1 <= result.day_index <= 3

    def test_skip_marker_is_consumed_instead_of_advancing(self):
        progress = _make_progress(index=4, advanced_on=DAY1)
        result = _open(_make_days(4), progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert result.reason == "already_advanced"
        assert progress.current_day_index == 4
        assert progress.advanced_on is None


class TestConcreteScenario:
    """4-day plan on day 3, boundary hour 0."""

    def test_open_reopen_and_older_backfill(self):
        days = _make_days(4)
        progress = _make_progress(index=3, last_opened=date(2026, 3, 1))
        records = {date(2026, 3, 1): "complete"}

        opened = _open(days, progress, program_day(datetime(2026, 3, 3, 2, 0), 0), records)
        assert opened.day_index == 4

        again = _open(days, progress, program_day(datetime(2026, 3, 3, 2, 1), 0), records)
        assert again.day_index == 4

        backfill = record_completion(progress, date(2026, 2, 27), len(days))
        assert backfill.status == "noop"
        assert progress.current_day_index == 4


# ===========================================================================
# Rescue / backfill
# ===========================================================================

class TestRecordCompletion:
    """Monotonic rescue path."""

    def test_first_completion_advances(self):
        progress = _make_progress(index=1)
        result = record_completion(progress, DAY1, 4)
        assert result.status == "advanced"
        assert progress.current_day_index == 2
        assert progress.last_completed_date == DAY1

    def test_same_date_twice_is_noop(self):
        progress = _make_progress(index=1)
        record_completion(progress, DAY1, 4)
        result = record_completion(progress, DAY1, 4)
        assert result.reason == "not_newer"
        assert progress.current_day_index == 2

    def test_older_date_never_regresses(self):
        progress = _make_progress(index=3, last_completed_date=DAY1)
        result = record_completion(progress, DAY1 - timedelta(days=2), 4)
        assert result.status == "noop"
        assert progress.current_day_index == 3
        assert progress.last_completed_date == DAY1

    def test_empty_plan_is_invalid(self):
        progress = _make_progress(index=1)
        result = record_completion(progress, DAY1, 0)
        assert result.status == "invalid"
        assert progress.last_completed_date is None

    def test_wraps_like_open_path(self):
        progress = _make_progress(index=4)
        record_completion(progress, DAY1, 4)
        assert progress.current_day_index == 1

    def test_skip_marker_consumed(self):
        progress = _make_progress(index=3, advanced_on=DAY1)
        result = record_completion(progress, DAY1, 4)
        assert result.reason == "already_advanced"
        assert progress.current_day_index == 3
        assert progress.last_completed_date == DAY1

    def test_any_order_counts_only_new_maxima(self):
        dates = [DAY1 + timedelta(days=n) for n in range(4)]
        for order in permutations(dates):
            progress = _make_progress(index=1)
            running_max = None
            expected_steps = 0
            for d in order:
                if running_max is None or d > running_max:
                    expected_steps += 1
                    running_max = d
                record_completion(progress, d, 10)
            assert progress.current_day_index == 1 + expected_steps
            assert progress.last_completed_date == max(dates)

    def test_sorted_order_counts_every_distinct_date(self):
        progress = _make_progress(index=1)
        for n in (0, 0, 1, 2, 2, 3):
            record_completion(progress, DAY1 + timedelta(days=n), 10)
        assert progress.current_day_index == 5


# ===========================================================================
# Manual day change
# ===========================================================================

class TestChangeDay:
    """change_day refuses in-progress workouts and honours skip-and-advance."""

    def _record(self, completed: int) -> WorkoutRecord:
        return WorkoutRecord(
            profile_id="p1", date=DAY1, plan_id="plan1", plan_day_id="d1",
            planned_sets=6, completed_sets=completed,
        )

    def test_refused_when_sets_logged(self):
        progress = _make_progress(index=1)
        result = change_day(_make_days(4), progress, self._record(1), 3, True, DAY1)
        assert result.status == "invalid"
        assert result.reason == "workout_in_progress"
        assert progress.current_day_index == 1
        assert progress.advanced_on is None

    def test_unknown_day_refused(self):
        progress = _make_progress(index=1)
        result = change_day(_make_days(4), progress, None, 9, False, DAY1)
        assert result.reason == "day_not_found"

    def test_change_without_skip_keeps_pointer(self):
        progress = _make_progress(index=1)
        result = change_day(_make_days(4), progress, self._record(0), 3, False, DAY1)
        assert result.ok
        assert result.day_index == 3
        assert progress.current_day_index == 1

    def test_skip_moves_past_selected_day(self):
        progress = _make_progress(index=1)
        result = change_day(_make_days(4), progress, None, 3, True, DAY1)
        assert result.status == "advanced"
        assert progress.current_day_index == 4
        assert progress.advanced_on == DAY1

    def test_skip_on_last_day_wraps(self):
        progress = _make_progress(index=1)
        change_day(_make_days(4), progress, None, 4, True, DAY1)
        assert progress.current_day_index == 1

    def test_skip_is_not_doubled_by_next_open(self):
        days = _make_days(4)
        progress = _make_progress(index=1)
        change_day(days, progress, None, 2, True, DAY1)
        _open(days, progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert progress.current_day_index == 3

    def test_skip_before_first_open_of_the_day(self):
        """A skip on a day that was never opened still suppresses the next advance."""
        days = _make_days(4)
        day2 = DAY1 + timedelta(days=1)
        progress = _make_progress(index=1, last_opened=DAY1)
        change_day(days, progress, None, 3, True, day2)
        assert progress.last_opened_date == day2

        result = _open(days, progress, day2 + timedelta(days=1), {DAY1: "complete", day2: "complete"})
        assert result.reason == "already_advanced"
        assert progress.current_day_index == 4
        assert progress.advanced_on is None

    def test_incomplete_skipped_day_record_is_flagged_stale(self):
        days = _make_days(4)
        progress = _make_progress(index=1)
        change_day(days, progress, None, 2, True, DAY1)
        result = _open(days, progress, DAY1 + timedelta(days=1), {DAY1: "incomplete"})
        assert result.reason == "already_advanced"
        assert result.stale_record_date == DAY1
        assert progress.current_day_index == 3

    def test_complete_skipped_day_record_is_kept(self):
        days = _make_days(4)
        progress = _make_progress(index=1)
        change_day(days, progress, None, 2, True, DAY1)
        result = _open(days, progress, DAY1 + timedelta(days=1), {DAY1: "complete"})
        assert result.stale_record_date is None


class TestHelpers:
    def test_advance_day_index(self):
        assert advance_day_index(1, 4) == 2
        assert advance_day_index(4, 4) == 1
        assert advance_day_index(3, 0) == 3

    def test_start_at_validates_day(self):
        progress = _make_progress(index=1)
        assert start_at(progress, _make_days(4), 7).reason == "day_not_found"
        assert start_at(progress, [], 1).reason == "empty_plan"
        result = start_at(progress, _make_days(4), 3)
        assert result.ok
        assert progress.current_day_index == 3
        assert progress.last_opened_date is None

    def test_current_plan_day(self):
        days = _make_days(4)
        assert current_plan_day(days, _make_progress(index=2)).id == "d2"
        assert current_plan_day(days, None).id == "d1"
        assert current_plan_day(days, _make_progress(index=9)) is None

    def test_day_info_by_identity(self):
        days = _make_days(4)
        assert day_info("d3", days) == (3, 4, "Day 3")
        assert day_info("missing", days) is None

    def test_progress_rejects_zero_index(self):
        with pytest.raises(ValueError):
            SinglePlanProgress(profile_id="p1", plan_id="plan1", current_day_index=0)
