"""
Host-facing progression engine.

Wires the pure transitions (progress.py, cycle.py, reindex.py, preview.py)
to a PlanStore and a clock, and serializes every transition for the same
key behind a per-key lock:

- ("plan", profile_id, plan_id) for single-plan progress
- ("cycle", cycle_id) for cycle progress

Plan and cycle edits take the locks of every pointer they may move, in a
fixed order, so an edit can never interleave with an open or a backfill.
Preview calls take no lock.
"""

import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date, datetime
from typing import Callable, Iterable, Iterator

from ..config import DEFAULT_PLANNED_SETS_PER_EXERCISE, FIRST_DAY_INDEX
from ..cycle import (
    advance_cycle,
    change_cycle_day,
    current_cycle_day,
    record_cycle_completion,
    skip_empty_plans,
    start_cycle_at,
)
from ..dates import ProgramDay, days_between, program_day
from ..models import (
    Cycle,
    CycleItem,
    CycleProgress,
    CycleResult,
    DayResult,
    OpenResult,
    Plan,
    PlanDay,
    Profile,
    SinglePlanProgress,
    WorkoutRecord,
    new_id,
)
from ..preview import preview_cycle_day_index, preview_day_index, project_cycle
from ..progress import (
    change_day,
    current_plan_day,
    handle_app_open,
    record_completion,
    start_at,
)
from ..reindex import (
    capture_cycle_day_anchor,
    capture_day_anchor,
    capture_item_anchor,
    reindex_days,
    reindex_items,
    resolve_cycle_day_pointer,
    resolve_day_pointer,
    resolve_item_pointer,
)
from ..store import PlanStore, days_of, items_of, materialize_day, workout_record_status

logger = logging.getLogger(__name__)

LockKey = tuple[str, ...]


class KeyedLocks:
    """Lazily created re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[LockKey, threading.RLock] = {}

    def _get(self, key: LockKey) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        """Acquire the locks for ``keys`` in sorted order."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._get(key))
            yield


def plan_key(profile_id: str, plan_id: str) -> LockKey:
    return ("plan", profile_id, plan_id)


def cycle_key(cycle_id: str) -> LockKey:
    return ("cycle", cycle_id)


class ProgressionEngine:
    """
    Progression operations for one PlanStore.

    Args:
        store: Ordered-record store
        clock: Returns the current local timestamp
        planned_sets_per_exercise: Default set count for days added without one
    """

    def __init__(
        self,
        store: PlanStore,
        clock: Callable[[], datetime] = datetime.now,
        planned_sets_per_exercise: int = DEFAULT_PLANNED_SETS_PER_EXERCISE,
    ):
        self.store = store
        self.clock = clock
        self.planned_sets_per_exercise = planned_sets_per_exercise
        self.locks = KeyedLocks()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def today(self, profile: Profile) -> ProgramDay:
        """Current program day for the profile's boundary hour."""
        return program_day(self.clock(), profile.day_boundary_hour)

    def _day_count(self, plan_id: str) -> int | None:
        plan = self.store.get_plan(plan_id)
        return plan.day_count if plan is not None else None

    def _plan_days(self, plan_id: str) -> list[PlanDay] | None:
        return days_of(self.store, plan_id)

    def active_cycle(self, profile: Profile) -> Cycle | None:
        for cycle in self.store.cycles_of(profile.id):
            if cycle.is_active:
                return cycle
        return None

    def _cycle_progress(self, cycle_id: str) -> CycleProgress:
        progress = self.store.get_cycle_progress(cycle_id)
        if progress is None:
            progress = CycleProgress(cycle_id=cycle_id)
            self.store.save_cycle_progress(progress)
        return progress

    # ------------------------------------------------------------------
    # Single plan
    # ------------------------------------------------------------------

    def open_plan(self, profile: Profile, plan_id: str | None = None) -> OpenResult:
        """
        Run the open-time day advancement for the profile's plan.

        Deletes the stale incomplete record when the transition asks for it
        and commits the progress.
        """
        plan_id = plan_id or profile.active_plan_id
        if plan_id is None:
            return OpenResult("invalid", None, None, "plan_not_found")

        today = self.today(profile)
        with self.locks.hold(plan_key(profile.id, plan_id)):
            result = handle_app_open(
                days=days_of(self.store, plan_id),
                progress=self.store.get_plan_progress(profile.id, plan_id),
                today=today,
                record_status=lambda d: workout_record_status(self.store, profile.id, plan_id, d),
                profile_id=profile.id,
                plan_id=plan_id,
            )
            if result.stale_record_date is not None:
                self.store.delete_workout_record(profile.id, plan_id, result.stale_record_date)
            if result.progress is not None:
                self.store.save_plan_progress(result.progress)

        logger.debug("open plan %s on %s: %s (%s)", plan_id, today, result.status, result.reason)
        return result

    def record_completion(self, profile: Profile, plan_id: str, completion_date: date) -> DayResult:
        """Rescue path for a retroactively logged completion on a single plan."""
        with self.locks.hold(plan_key(profile.id, plan_id)):
            days = days_of(self.store, plan_id)
            if days is None:
                return DayResult("invalid", None, "plan_not_found")
            progress = self.store.get_plan_progress(profile.id, plan_id)
            if progress is None:
                progress = SinglePlanProgress(profile_id=profile.id, plan_id=plan_id)
            result = record_completion(progress, completion_date, len(days))
            if result.ok:
                self.store.save_plan_progress(progress)
        return result

    def start_plan(self, profile: Profile, plan_id: str, day_index: int = FIRST_DAY_INDEX) -> DayResult:
        """Make ``plan_id`` the active single plan, starting at ``day_index``."""
        with self.locks.hold(plan_key(profile.id, plan_id)):
            days = days_of(self.store, plan_id)
            if days is None:
                return DayResult("invalid", None, "plan_not_found")
            progress = self.store.get_plan_progress(profile.id, plan_id) or SinglePlanProgress(
                profile_id=profile.id, plan_id=plan_id
            )
            result = start_at(progress, days, day_index)
            if not result.ok:
                return result
            self.store.save_plan_progress(progress)

        profile.active_plan_id = plan_id
        profile.execution_mode = "single"
        self.store.save_profile(profile)
        return result

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def advance_cycle(self, cycle_id: str) -> CycleResult:
        """Advance a cycle one day (plan rotation with empty-plan skipping)."""
        with self.locks.hold(cycle_key(cycle_id)):
            items = items_of(self.store, cycle_id)
            if items is None:
                return CycleResult("invalid", None, None, "cycle_not_found")
            progress = self._cycle_progress(cycle_id)
            result = advance_cycle(items, self._day_count, progress, now=self.clock())
            if result.ok:
                self.store.save_cycle_progress(progress)
        return result

    def record_cycle_completion(self, cycle_id: str, completion_date: date) -> CycleResult:
        """Advance a cycle for a completion, at most once per program day."""
        with self.locks.hold(cycle_key(cycle_id)):
            items = items_of(self.store, cycle_id)
            if items is None:
                return CycleResult("invalid", None, None, "cycle_not_found")
            progress = self._cycle_progress(cycle_id)
            result = record_cycle_completion(
                items, self._day_count, progress, completion_date, now=self.clock()
            )
            if result.ok:
                self.store.save_cycle_progress(progress)
        return result

    def set_active_cycle(self, profile: Profile, cycle_id: str) -> bool:
        """Activate one cycle and deactivate the profile's others."""
        target = self.store.get_cycle(cycle_id)
        if target is None or target.profile_id != profile.id:
            return False
        cycles = self.store.cycles_of(profile.id)
        with self.locks.hold(*[cycle_key(c.id) for c in cycles]):
            for cycle in cycles:
                cycle = self.store.get_cycle(cycle.id) or cycle
                if cycle.is_active != (cycle.id == cycle_id):
                    cycle.is_active = cycle.id == cycle_id
                    self.store.save_cycle(cycle)
            self._cycle_progress(cycle_id)
        profile.execution_mode = "cycle"
        self.store.save_profile(profile)
        return True

    def start_cycle(
        self, profile: Profile, cycle_id: str, item_index: int = 0, day_index: int = 0
    ) -> CycleResult:
        """Activate a cycle and seed its pointer at (item_index, day_index)."""
        items = items_of(self.store, cycle_id)
        if items is None:
            return CycleResult("invalid", None, None, "cycle_not_found")
        with self.locks.hold(cycle_key(cycle_id)):
            progress = self._cycle_progress(cycle_id)
            result = start_cycle_at(items, self._plan_days, progress, item_index, day_index)
            if not result.ok:
                return result
            self.store.save_cycle_progress(progress)
        self.set_active_cycle(profile, cycle_id)
        return result

    def reset_cycle(self, cycle_id: str) -> None:
        """Send a cycle back to day 0 of item 0."""
        with self.locks.hold(cycle_key(cycle_id)):
            progress = self._cycle_progress(cycle_id)
            progress.reset()
            self.store.save_cycle_progress(progress)

    # ------------------------------------------------------------------
    # Today
    # ------------------------------------------------------------------

    def setup_today(self, profile: Profile) -> WorkoutRecord | None:
        """
        Resolve today's day and make sure a workout record exists for it.

        Returns:
            Today's record, or None in free mode / when nothing can be shown
        """
        if profile.execution_mode == "cycle":
            return self._setup_cycle_today(profile)
        return self._setup_plan_today(profile)

    def _setup_plan_today(self, profile: Profile) -> WorkoutRecord | None:
        plan_id = profile.active_plan_id
        if plan_id is None:
            return None

        today = self.today(profile)
        existing = self.store.get_workout_record(profile.id, today)
        if existing is not None and existing.plan_id == plan_id and existing.plan_day_id is not None:
            return existing

        self._reconcile_plan(plan_id)

        with self.locks.hold(plan_key(profile.id, plan_id)):
            result = self.open_plan(profile, plan_id)
            plan = self.store.get_plan(plan_id)
            if result.day_index is None or result.progress is None or plan is None:
                return None

            day = current_plan_day(plan.sorted_days, result.progress)
            if day is None:
                return None

            return self._materialize_unless_linked(profile, plan_id, day, today, cycle_id=None)

    def _setup_cycle_today(self, profile: Profile) -> WorkoutRecord | None:
        cycle = self.active_cycle(profile)
        if cycle is None:
            return None

        today = self.today(profile)
        existing = self.store.get_workout_record(profile.id, today)
        if existing is not None and existing.cycle_id == cycle.id and existing.plan_day_id is not None:
            return existing

        # Items before plans: plan reconciliation reads the item under the pointer
        if self.edit_cycle(cycle.id, lambda c: None) is None:
            return None
        for plan_id in {item.plan_id for item in cycle.items}:
            self._reconcile_plan(plan_id)

        with self.locks.hold(cycle_key(cycle.id)):
            cycle = self.store.get_cycle(cycle.id) or cycle
            items = cycle.sorted_items
            if not items:
                return None
            progress = self._cycle_progress(cycle.id)

            if progress.current_item_index >= len(items):
                progress.current_item_index = len(items) - 1
                progress.current_day_index = 0
            days = self._plan_days(items[progress.current_item_index].plan_id)
            if days:
                clamped = resolve_cycle_day_pointer(days, None, progress.current_day_index)
                if clamped is not None and clamped != progress.current_day_index:
                    logger.debug("cycle day pointer %d clamped to %d", progress.current_day_index, clamped)
                    progress.current_day_index = clamped

            resolved = current_cycle_day(items, self._plan_days, progress)
            if resolved is None:
                landed = skip_empty_plans(items, self._day_count, progress.current_item_index)
                if landed is None:
                    return None
                progress.current_item_index = landed
                progress.current_day_index = 0
                resolved = current_cycle_day(items, self._plan_days, progress)
                if resolved is None:
                    return None
            self.store.save_cycle_progress(progress)

            item, day = resolved
            return self._materialize_unless_linked(profile, item.plan_id, day, today, cycle_id=cycle.id)

    def _materialize_unless_linked(
        self,
        profile: Profile,
        plan_id: str,
        day: PlanDay,
        today: ProgramDay,
        cycle_id: str | None,
    ) -> WorkoutRecord:
        existing = self.store.get_workout_record(profile.id, today)
        if existing is not None:
            if existing.plan_day_id == day.id and existing.plan_id == plan_id:
                return existing
            # A free-mode record with nothing logged can be taken over
            if existing.plan_id is not None or existing.completed_sets > 0:
                return existing
        return materialize_day(self.store, profile.id, plan_id, day, today, cycle_id=cycle_id)

    # ------------------------------------------------------------------
    # Logging completions
    # ------------------------------------------------------------------

    def log_completion(self, profile: Profile, completion_date: date) -> DayResult | CycleResult:
        """
        Route a completion for ``completion_date``.

        Single plan: a day the open-time path has already moved past goes
        through the rescue path; the current program day only raises
        ``last_completed_date`` (the next open advances).  Cycle: the cycle
        advances through the monotonic completion rule.
        """
        if profile.execution_mode == "cycle":
            cycle = self.active_cycle(profile)
            if cycle is None:
                return CycleResult("invalid", None, None, "cycle_not_found")
            return self.record_cycle_completion(cycle.id, completion_date)

        plan_id = profile.active_plan_id
        if plan_id is None:
            return DayResult("invalid", None, "plan_not_found")

        with self.locks.hold(plan_key(profile.id, plan_id)):
            progress = self.store.get_plan_progress(profile.id, plan_id)
            if (
                progress is not None
                and progress.last_opened_date is not None
                and completion_date < progress.last_opened_date
            ):
                return self.record_completion(profile, plan_id, completion_date)

            if progress is None:
                return DayResult("noop", None, "pending_open")
            if progress.last_completed_date is None or completion_date > progress.last_completed_date:
                progress.last_completed_date = completion_date
                self.store.save_plan_progress(progress)
            return DayResult("noop", progress.current_day_index, "pending_open")

    def log_sets(self, profile: Profile, count: int, on: date | None = None) -> WorkoutRecord | None:
        """
        Add ``count`` completed sets to the record for ``on`` (default today).

        When this completes the record, the completion is routed through
        log_completion.
        """
        on = on or self.today(profile)
        record = self.store.get_workout_record(profile.id, on)
        if record is None:
            return None
        was_complete = record.is_complete
        record.completed_sets = max(0, record.completed_sets + count)
        self.store.save_workout_record(record)
        if record.is_complete and not was_complete:
            self.log_completion(profile, on)
        return record

    def complete_day(self, profile: Profile, on: date) -> DayResult | CycleResult:
        """Mark the record for ``on`` complete (creating one if absent) and route it."""
        record = self.store.get_workout_record(profile.id, on)
        if record is None:
            cycle = self.active_cycle(profile) if profile.execution_mode == "cycle" else None
            plan_id = profile.active_plan_id
            if cycle is not None:
                progress = self._cycle_progress(cycle.id)
                resolved = current_cycle_day(cycle.sorted_items, self._plan_days, progress)
                plan_id = resolved[0].plan_id if resolved is not None else None
            record = WorkoutRecord(
                profile_id=profile.id,
                date=on,
                plan_id=plan_id,
                cycle_id=cycle.id if cycle is not None else None,
            )
        record.completed_sets = max(record.completed_sets, record.planned_sets)
        self.store.save_workout_record(record)
        return self.log_completion(profile, on)

    # ------------------------------------------------------------------
    # Manual day change
    # ------------------------------------------------------------------

    def change_day(self, profile: Profile, new_day_index: int, skip_and_advance: bool = False) -> DayResult:
        """
        Replace today's workout with the day at ``new_day_index`` (1-indexed).

        Refused while today's record has completed sets.
        """
        today = self.today(profile)
        record = self.store.get_workout_record(profile.id, today)

        if profile.execution_mode == "cycle":
            cycle = self.active_cycle(profile)
            if cycle is None:
                return DayResult("invalid", None, "cycle_not_found")
            with self.locks.hold(cycle_key(cycle.id)):
                items = cycle.sorted_items
                progress = self._cycle_progress(cycle.id)
                result = change_cycle_day(
                    items, self._plan_days, progress, record, new_day_index - 1,
                    skip_and_advance, today, now=self.clock(),
                )
                if not result.ok:
                    return result
                self.store.save_cycle_progress(progress)
                plan_id = items[progress.current_item_index].plan_id
                day = (self._plan_days(plan_id) or [])[new_day_index - 1]
                materialize_day(self.store, profile.id, plan_id, day, today, cycle_id=cycle.id)
            return DayResult(result.status, new_day_index, result.reason)

        plan_id = profile.active_plan_id
        if plan_id is None:
            return DayResult("invalid", None, "plan_not_found")
        with self.locks.hold(plan_key(profile.id, plan_id)):
            plan = self.store.get_plan(plan_id)
            if plan is None:
                return DayResult("invalid", None, "plan_not_found")
            # The skip marker must land on a day that was opened
            self.open_plan(profile, plan_id)
            progress = self.store.get_plan_progress(profile.id, plan_id) or SinglePlanProgress(
                profile_id=profile.id, plan_id=plan_id, last_opened_date=today
            )
            result = change_day(plan.sorted_days, progress, record, new_day_index, skip_and_advance, today)
            if not result.ok:
                return result
            self.store.save_plan_progress(progress)
            day = plan.day_at(new_day_index)
            if day is not None:
                materialize_day(self.store, profile.id, plan_id, day, today)
        return result

    # ------------------------------------------------------------------
    # Preview (no locks, no writes)
    # ------------------------------------------------------------------

    def preview(self, profile: Profile, target: date) -> tuple[int, int, str | None] | None:
        """
        Forecast (day_index, total_days, name) for ``target``; 1-indexed.

        Never creates or mutates progress.
        """
        diff = days_between(self.today(profile), target)

        if profile.execution_mode == "cycle":
            cycle = self.active_cycle(profile)
            if cycle is None:
                return None
            progress = self.store.get_cycle_progress(cycle.id)
            items = cycle.sorted_items
            if progress is None or progress.current_item_index >= len(items):
                return None
            days = self._plan_days(items[progress.current_item_index].plan_id)
            if not days:
                return None
            index = preview_cycle_day_index(progress.current_day_index, len(days), diff)
            if index is None:
                return None
            return index + 1, len(days), days[index].name

        plan_id = profile.active_plan_id
        if plan_id is None:
            return None
        days = self._plan_days(plan_id)
        if not days:
            return None
        progress = self.store.get_plan_progress(profile.id, plan_id)
        current = progress.current_day_index if progress is not None else FIRST_DAY_INDEX
        index = preview_day_index(current, len(days), diff)
        if index is None:
            return None
        return index, len(days), days[index - 1].name

    def forecast_cycle(self, cycle_id: str, steps: int) -> list[tuple[int, int]]:
        """(item_index, day_index) after each of the next ``steps`` completions."""
        items = items_of(self.store, cycle_id)
        progress = self.store.get_cycle_progress(cycle_id)
        if items is None or progress is None:
            return []
        return project_cycle(items, self._day_count, progress, steps)

    # ------------------------------------------------------------------
    # Editing through the reindex reconciler
    # ------------------------------------------------------------------

    def _cycles_referencing(self, plan: Plan) -> list[Cycle]:
        return [
            c for c in self.store.cycles_of(plan.profile_id)
            if any(i.plan_id == plan.id for i in c.items)
        ]

    def edit_plan(self, plan_id: str, mutate: Callable[[Plan], None]) -> Plan | None:
        """
        Apply ``mutate`` to a plan's days while keeping every pointer on it valid.

        Each pointer's day identity is captured first; after the mutation and
        re-densifying, the pointer follows that identity or is clamped.
        """
        plan = self.store.get_plan(plan_id)
        if plan is None:
            return None

        profile_ids = [p.profile_id for p in self.store.plan_progress_for_plan(plan_id)]
        cycles = self._cycles_referencing(plan)
        keys: list[LockKey] = [plan_key(pid, plan_id) for pid in profile_ids]
        keys += [cycle_key(c.id) for c in cycles]

        with self.locks.hold(*keys):
            plan = self.store.get_plan(plan_id) or plan
            single = [
                p for p in (self.store.get_plan_progress(pid, plan_id) for pid in profile_ids)
                if p is not None
            ]
            single_anchors = [(p, capture_day_anchor(plan.days, p.current_day_index)) for p in single]

            cycle_anchors: list[tuple[CycleProgress, str | None]] = []
            for cycle in cycles:
                cp = self.store.get_cycle_progress(cycle.id)
                items = cycle.sorted_items
                if cp is None or cp.current_item_index >= len(items):
                    continue
                if items[cp.current_item_index].plan_id == plan_id:
                    cycle_anchors.append((cp, capture_cycle_day_anchor(plan.days, cp.current_day_index)))

            mutate(plan)
            reindex_days(plan.days)
            self.store.save_plan(plan)

            for progress, anchor in single_anchors:
                new_index = resolve_day_pointer(plan.days, anchor, progress.current_day_index)
                if new_index is not None and new_index != progress.current_day_index:
                    progress.current_day_index = new_index
                    self.store.save_plan_progress(progress)

            for cp, anchor in cycle_anchors:
                new_index = resolve_cycle_day_pointer(plan.days, anchor, cp.current_day_index)
                if new_index is not None and new_index != cp.current_day_index:
                    cp.current_day_index = new_index
                    self.store.save_cycle_progress(cp)

        return plan

    def _reconcile_plan(self, plan_id: str) -> None:
        """
        Re-densify a plan edited outside the engine and move every pointer on it.

        Pointers follow their day by stored position, or are clamped when
        that day is gone.
        """
        self.edit_plan(plan_id, lambda plan: None)

    def add_day(
        self,
        plan_id: str,
        name: str | None = None,
        is_rest_day: bool = False,
        exercise_count: int = 0,
        planned_sets: int | None = None,
        position: int | None = None,
    ) -> PlanDay | None:
        """Insert a day (at the end by default) and return it."""
        if planned_sets is None:
            planned_sets = 0 if is_rest_day else exercise_count * self.planned_sets_per_exercise
        created: list[PlanDay] = []

        def mutate(plan: Plan) -> None:
            target = plan.next_position() if position is None else max(FIRST_DAY_INDEX, position)
            for day in plan.days:
                if day.position >= target:
                    day.position += 1
            day = PlanDay(
                id=new_id(),
                position=target,
                name=name,
                is_rest_day=is_rest_day,
                exercise_count=exercise_count,
                planned_sets=planned_sets,
            )
            plan.days.append(day)
            created.append(day)

        if self.edit_plan(plan_id, mutate) is None:
            return None
        return created[0]

    def remove_day(self, plan_id: str, day_id: str) -> bool:
        """Delete a day; pointers on it are clamped into range."""
        removed: list[bool] = []

        def mutate(plan: Plan) -> None:
            before = len(plan.days)
            plan.days[:] = [d for d in plan.days if d.id != day_id]
            removed.append(len(plan.days) != before)

        return self.edit_plan(plan_id, mutate) is not None and removed[0]

    def move_day(self, plan_id: str, day_id: str, new_position: int) -> bool:
        """Move a day to ``new_position`` (1-indexed), shifting the others."""
        moved: list[bool] = []

        def mutate(plan: Plan) -> None:
            ordered = plan.sorted_days
            day = next((d for d in ordered if d.id == day_id), None)
            if day is None:
                moved.append(False)
                return
            ordered.remove(day)
            target = max(0, min(new_position - 1, len(ordered)))
            ordered.insert(target, day)
            _renumber(ordered, FIRST_DAY_INDEX)
            moved.append(True)

        return self.edit_plan(plan_id, mutate) is not None and moved[0]

    def duplicate_day(self, plan_id: str, day_id: str) -> PlanDay | None:
        """Copy a day to the end of the plan."""
        created: list[PlanDay] = []

        def mutate(plan: Plan) -> None:
            source = plan.day_by_id(day_id)
            if source is None:
                return
            copy = PlanDay(
                id=new_id(),
                position=plan.next_position(),
                name=source.name,
                is_rest_day=source.is_rest_day,
                exercise_count=source.exercise_count,
                planned_sets=source.planned_sets,
            )
            plan.days.append(copy)
            created.append(copy)

        self.edit_plan(plan_id, mutate)
        return created[0] if created else None

    def edit_cycle(self, cycle_id: str, mutate: Callable[[Cycle], None]) -> Cycle | None:
        """
        Apply ``mutate`` to a cycle's items while keeping its pointer valid.

        When the item under the pointer is gone the item pointer is clamped
        and the day pointer restarts at 0 (it belonged to another plan).
        """
        cycle = self.store.get_cycle(cycle_id)
        if cycle is None:
            return None

        with self.locks.hold(cycle_key(cycle_id)):
            cycle = self.store.get_cycle(cycle_id) or cycle
            progress = self.store.get_cycle_progress(cycle_id)
            anchor = (
                capture_item_anchor(cycle.items, progress.current_item_index)
                if progress is not None else None
            )

            mutate(cycle)
            reindex_items(cycle.items)
            self.store.save_cycle(cycle)

            if progress is not None:
                new_index = resolve_item_pointer(cycle.items, anchor, progress.current_item_index)
                anchor_kept = anchor is not None and cycle.item_by_id(anchor) is not None
                if new_index is None:
                    progress.reset()
                elif not anchor_kept:
                    progress.current_item_index = new_index
                    progress.current_day_index = 0
                else:
                    progress.current_item_index = new_index
                self.store.save_cycle_progress(progress)

        return cycle

    def add_cycle_plan(self, cycle_id: str, plan_id: str) -> CycleItem | None:
        """Append a plan reference to the end of a cycle."""
        created: list[CycleItem] = []

        def mutate(cycle: Cycle) -> None:
            order = max((i.order for i in cycle.items), default=-1) + 1
            item = CycleItem(id=new_id(), plan_id=plan_id, order=order)
            cycle.items.append(item)
            created.append(item)

        if self.edit_cycle(cycle_id, mutate) is None:
            return None
        return created[0]

    def remove_cycle_item(self, cycle_id: str, item_id: str) -> bool:
        removed: list[bool] = []

        def mutate(cycle: Cycle) -> None:
            before = len(cycle.items)
            cycle.items[:] = [i for i in cycle.items if i.id != item_id]
            removed.append(len(cycle.items) != before)

        return self.edit_cycle(cycle_id, mutate) is not None and removed[0]

    def move_cycle_item(self, cycle_id: str, item_id: str, new_order: int) -> bool:
        """Move an item to ``new_order`` (0-indexed), shifting the others."""
        moved: list[bool] = []

        def mutate(cycle: Cycle) -> None:
            ordered = cycle.sorted_items
            item = next((i for i in ordered if i.id == item_id), None)
            if item is None:
                moved.append(False)
                return
            ordered.remove(item)
            ordered.insert(max(0, min(new_order, len(ordered))), item)
            for order, entry in enumerate(ordered):
                entry.order = order
            moved.append(True)

        return self.edit_cycle(cycle_id, mutate) is not None and moved[0]

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_plan(self, profile: Profile, name: str) -> Plan:
        plan = Plan(id=new_id(), profile_id=profile.id, name=name)
        self.store.save_plan(plan)
        return plan

    def create_cycle(self, profile: Profile, name: str, plan_ids: Iterable[str] = ()) -> Cycle:
        cycle = Cycle(id=new_id(), profile_id=profile.id, name=name)
        cycle.items = [CycleItem(id=new_id(), plan_id=pid, order=n) for n, pid in enumerate(plan_ids)]
        self.store.save_cycle(cycle)
        return cycle


def _renumber(days: list[PlanDay], base: int) -> None:
    for offset, day in enumerate(days):
        day.position = offset + base
