"""
Data models for plan-progress.

All core dataclasses representing plans, cycles, workout records and the
progress pointers that walk through them.  Progress objects are plain
value-like state; the functions in progress.py and cycle.py mutate them
and return explicit result values instead of raising.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from .config import (
    DEFAULT_DAY_BOUNDARY_HOUR,
    DEFAULT_EXECUTION_MODE,
    EXECUTION_MODES,
    FIRST_CYCLE_INDEX,
    FIRST_DAY_INDEX,
)
from .dates import validate_boundary_hour

ExecutionMode = Literal["single", "cycle"]
RecordStatus = Literal["absent", "incomplete", "complete"]
TransitionStatus = Literal["advanced", "noop", "invalid"]


def new_id() -> str:
    """Return a fresh opaque identity."""
    return uuid.uuid4().hex


@dataclass
class PlanDay:
    """
    One scheduled day inside a plan.

    ``position`` is 1-indexed and mutable (reordering and deletion move it);
    ``id`` is the stable identity the reindex reconciler anchors on.
    """

    id: str
    position: int
    name: str | None = None
    is_rest_day: bool = False
    exercise_count: int = 0  # 0 = empty, a non-advancing state
    planned_sets: int = 0  # total sets materialized into a workout record

    def __post_init__(self) -> None:
        """Validate day data."""
        if self.exercise_count < 0:
            raise ValueError("exercise_count must be non-negative")
        if self.planned_sets < 0:
            raise ValueError("planned_sets must be non-negative")

    @property
    def is_empty(self) -> bool:
        """True for a training day with nothing to do."""
        return self.exercise_count == 0 and not self.is_rest_day

    @property
    def display_name(self) -> str:
        return self.name or f"Day {self.position}"


@dataclass
class Plan:
    """
    An ordered, mutable sequence of PlanDay entries belonging to one profile.

    Positions are unique but may have gaps after a deletion until the
    reindex reconciler re-densifies them.
    """

    id: str
    profile_id: str
    name: str
    days: list[PlanDay] = field(default_factory=list)

    @property
    def sorted_days(self) -> list[PlanDay]:
        """Days sorted by position."""
        return sorted(self.days, key=lambda d: d.position)

    @property
    def day_count(self) -> int:
        return len(self.days)

    def day_at(self, position: int) -> PlanDay | None:
        """Return the day stored at ``position`` (not the list offset), or None."""
        for day in self.days:
            if day.position == position:
                return day
        return None

    def day_by_id(self, day_id: str) -> PlanDay | None:
        """Return the day with the given identity, or None."""
        for day in self.days:
            if day.id == day_id:
                return day
        return None

    def next_position(self) -> int:
        """Position one past the current maximum."""
        return max((d.position for d in self.days), default=0) + 1


@dataclass
class CycleItem:
    """A reference from a cycle to a plan, at a 0-indexed ``order``."""

    id: str
    plan_id: str
    order: int


@dataclass
class Cycle:
    """
    An ordered sequence of plan references rotated through over time.

    At most one cycle per profile is active.
    """

    id: str
    profile_id: str
    name: str
    is_active: bool = False
    items: list[CycleItem] = field(default_factory=list)

    @property
    def sorted_items(self) -> list[CycleItem]:
        """Items sorted by order."""
        return sorted(self.items, key=lambda i: i.order)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def item_by_id(self, item_id: str) -> CycleItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass
class SinglePlanProgress:
    """
    Pointer into one plan's days for one profile.

    ``advanced_on`` marks a program day whose advancement was already
    applied by a manual skip; the open-time path consumes it instead of
    advancing a second time.
    """

    profile_id: str
    plan_id: str
    current_day_index: int = FIRST_DAY_INDEX  # 1-indexed
    last_opened_date: date | None = None
    last_completed_date: date | None = None  # monotonically non-decreasing
    advanced_on: date | None = None

    def __post_init__(self) -> None:
        """Validate progress data."""
        if self.current_day_index < FIRST_DAY_INDEX:
            raise ValueError("current_day_index must be >= 1")


@dataclass
class CycleProgress:
    """Pointer into a cycle's items plus a day pointer within the current plan."""

    cycle_id: str
    current_item_index: int = FIRST_CYCLE_INDEX  # 0-indexed
    current_day_index: int = FIRST_CYCLE_INDEX  # 0-indexed
    last_advanced_at: datetime | None = None  # informational
    last_completed_date: date | None = None
    advanced_on: date | None = None

    def __post_init__(self) -> None:
        """Validate progress data."""
        if self.current_item_index < 0:
            raise ValueError("current_item_index must be non-negative")
        if self.current_day_index < 0:
            raise ValueError("current_day_index must be non-negative")

    def reset(self) -> None:
        """Return to the first day of the first item."""
        self.current_item_index = FIRST_CYCLE_INDEX
        self.current_day_index = FIRST_CYCLE_INDEX
        self.last_advanced_at = None
        self.last_completed_date = None
        self.advanced_on = None


@dataclass
class Profile:
    """
    A local user profile.

    ``day_boundary_hour`` decides which program day a timestamp belongs to;
    ``execution_mode`` selects single-plan or cycle progression.
    """

    id: str
    name: str = "default"
    day_boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR
    execution_mode: ExecutionMode = DEFAULT_EXECUTION_MODE  # type: ignore[assignment]
    active_plan_id: str | None = None

    def __post_init__(self) -> None:
        """Validate profile data."""
        validate_boundary_hour(self.day_boundary_hour)
        if self.execution_mode not in EXECUTION_MODES:
            raise ValueError(
                f"Invalid execution_mode: {self.execution_mode!r}. "
                f"Must be one of {EXECUTION_MODES}"
            )


@dataclass
class WorkoutRecord:
    """
    The workout logged (or being logged) on one program day.

    Complete means every planned set has been logged; a record with no
    planned sets (a rest day) is complete as soon as it exists.
    """

    profile_id: str
    date: date
    plan_id: str | None = None
    plan_day_id: str | None = None
    cycle_id: str | None = None
    planned_sets: int = 0
    completed_sets: int = 0

    def __post_init__(self) -> None:
        """Validate record data."""
        if self.planned_sets < 0:
            raise ValueError("planned_sets must be non-negative")
        if self.completed_sets < 0:
            raise ValueError("completed_sets must be non-negative")

    @property
    def status(self) -> RecordStatus:
        return "complete" if self.completed_sets >= self.planned_sets else "incomplete"

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"


@dataclass
class OpenResult:
    """
    Outcome of the open-time day-advancement transition.

    ``day_index`` is None for the "no day" sentinel.  ``stale_record_date``
    is set when the host should delete an incomplete record so the same
    day can be offered again.
    """

    status: TransitionStatus
    day_index: int | None
    progress: SinglePlanProgress | None
    reason: str
    stale_record_date: date | None = None


@dataclass
class CycleResult:
    """Outcome of a cycle transition."""

    status: TransitionStatus
    item_index: int | None
    day_index: int | None
    reason: str

    @property
    def ok(self) -> bool:
        return self.status != "invalid"


@dataclass
class DayResult:
    """Outcome of a single-plan rescue or a manual day change."""

    status: TransitionStatus
    day_index: int | None
    reason: str

    @property
    def ok(self) -> bool:
        return self.status != "invalid"
