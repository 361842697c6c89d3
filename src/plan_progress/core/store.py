"""
Plan Store collaborator interface.

The progression core only reads ordered days/items, asks whether a
program day's workout record is absent/incomplete/complete, and asks the
store to delete a stale record or materialize a day.  Progress objects
are loaded and saved through the same interface so the engine can commit
them after an in-memory transition.

InMemoryPlanStore is a complete dict-backed implementation used by tests
and embedding hosts; io.plan_store.JsonPlanStore persists to disk.
"""

from datetime import date
from typing import Protocol, runtime_checkable

from .models import (
    Cycle,
    CycleItem,
    CycleProgress,
    Plan,
    PlanDay,
    Profile,
    RecordStatus,
    SinglePlanProgress,
    WorkoutRecord,
)


@runtime_checkable
class PlanStore(Protocol):
    """Ordered-record store the progression engine depends on."""

    def get_profile(self, profile_id: str) -> Profile | None: ...

    def save_profile(self, profile: Profile) -> None: ...

    def get_plan(self, plan_id: str) -> Plan | None: ...

    def save_plan(self, plan: Plan) -> None: ...

    def get_cycle(self, cycle_id: str) -> Cycle | None: ...

    def save_cycle(self, cycle: Cycle) -> None: ...

    def cycles_of(self, profile_id: str) -> list[Cycle]: ...

    def get_workout_record(self, profile_id: str, day: date) -> WorkoutRecord | None: ...

    def save_workout_record(self, record: WorkoutRecord) -> None: ...

    def delete_workout_record(self, profile_id: str, plan_id: str, day: date) -> None: ...

    def get_plan_progress(self, profile_id: str, plan_id: str) -> SinglePlanProgress | None: ...

    def plan_progress_for_plan(self, plan_id: str) -> list[SinglePlanProgress]: ...

    def save_plan_progress(self, progress: SinglePlanProgress) -> None: ...

    def get_cycle_progress(self, cycle_id: str) -> CycleProgress | None: ...

    def save_cycle_progress(self, progress: CycleProgress) -> None: ...


def days_of(store: PlanStore, plan_id: str) -> list[PlanDay] | None:
    """Ordered days of a plan, or None if the plan does not exist."""
    plan = store.get_plan(plan_id)
    if plan is None:
        return None
    return plan.sorted_days


def items_of(store: PlanStore, cycle_id: str) -> list[CycleItem] | None:
    """Ordered items of a cycle, or None if the cycle does not exist."""
    cycle = store.get_cycle(cycle_id)
    if cycle is None:
        return None
    return cycle.sorted_items


def workout_record_status(
    store: PlanStore, profile_id: str, plan_id: str, day: date
) -> RecordStatus:
    """
    Completion status of the record for ``day``.

    A record logged against a different plan (or in free mode) is
    reported as absent: it is not this plan's business.
    """
    record = store.get_workout_record(profile_id, day)
    if record is None or record.plan_id != plan_id:
        return "absent"
    return record.status


def materialize_day(
    store: PlanStore,
    profile_id: str,
    plan_id: str,
    day: PlanDay,
    on: date,
    cycle_id: str | None = None,
) -> WorkoutRecord:
    """
    Expand a plan day into a fresh workout record for ``on``.

    Replaces whatever record existed for that program day.  Rest days
    materialize with zero planned sets.
    """
    record = WorkoutRecord(
        profile_id=profile_id,
        date=on,
        plan_id=plan_id,
        plan_day_id=day.id,
        cycle_id=cycle_id,
        planned_sets=0 if day.is_rest_day else day.planned_sets,
        completed_sets=0,
    )
    store.save_workout_record(record)
    return record


class InMemoryPlanStore:
    """Dict-backed PlanStore."""

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.plans: dict[str, Plan] = {}
        self.cycles: dict[str, Cycle] = {}
        self.records: dict[tuple[str, date], WorkoutRecord] = {}
        self.plan_progress: dict[tuple[str, str], SinglePlanProgress] = {}
        self.cycle_progress: dict[str, CycleProgress] = {}

    def save_profile(self, profile: Profile) -> None:
        self.profiles[profile.id] = profile

    def get_profile(self, profile_id: str) -> Profile | None:
        return self.profiles.get(profile_id)

    def get_plan(self, plan_id: str) -> Plan | None:
        return self.plans.get(plan_id)

    def save_plan(self, plan: Plan) -> None:
        self.plans[plan.id] = plan

    def delete_plan(self, plan_id: str) -> None:
        self.plans.pop(plan_id, None)
        for key in [k for k in self.plan_progress if k[1] == plan_id]:
            del self.plan_progress[key]

    def get_cycle(self, cycle_id: str) -> Cycle | None:
        return self.cycles.get(cycle_id)

    def save_cycle(self, cycle: Cycle) -> None:
        self.cycles[cycle.id] = cycle

    def cycles_of(self, profile_id: str) -> list[Cycle]:
        return [c for c in self.cycles.values() if c.profile_id == profile_id]

    def get_workout_record(self, profile_id: str, day: date) -> WorkoutRecord | None:
        return self.records.get((profile_id, day))

    def save_workout_record(self, record: WorkoutRecord) -> None:
        self.records[(record.profile_id, record.date)] = record

    def delete_workout_record(self, profile_id: str, plan_id: str, day: date) -> None:
        record = self.records.get((profile_id, day))
        if record is not None and record.plan_id == plan_id:
            del self.records[(profile_id, day)]

    def get_plan_progress(self, profile_id: str, plan_id: str) -> SinglePlanProgress | None:
        return self.plan_progress.get((profile_id, plan_id))

    def plan_progress_for_plan(self, plan_id: str) -> list[SinglePlanProgress]:
        return [p for (_, pid), p in self.plan_progress.items() if pid == plan_id]

    def save_plan_progress(self, progress: SinglePlanProgress) -> None:
        self.plan_progress[(progress.profile_id, progress.plan_id)] = progress

    def get_cycle_progress(self, cycle_id: str) -> CycleProgress | None:
        return self.cycle_progress.get(cycle_id)

    def save_cycle_progress(self, progress: CycleProgress) -> None:
        self.cycle_progress[progress.cycle_id] = progress
