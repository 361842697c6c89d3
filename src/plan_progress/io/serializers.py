"""
JSON serialization for plan-progress data models.

Handles conversion between dataclasses and JSON-compatible dicts.
Dates are stored as YYYY-MM-DD strings, timestamps as ISO 8601.
"""

import json
import re
from datetime import date, datetime
from typing import Any

from ..core.config import EXECUTION_MODES
from ..core.models import (
    Cycle,
    CycleItem,
    CycleProgress,
    Plan,
    PlanDay,
    Profile,
    SinglePlanProgress,
    WorkoutRecord,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e


def validate_non_negative(value: int, name: str) -> int:
    """
    Validate that a value is a non-negative integer.

    Raises:
        ValidationError: If value is negative or not an int
    """
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _date_or_none(value: str | None) -> date | None:
    return validate_date(value) if value is not None else None


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValidationError(f"Missing required field: {key}")
    return data[key]


def plan_day_to_dict(day: PlanDay) -> dict[str, Any]:
    return {
        "id": day.id,
        "position": day.position,
        "name": day.name,
        "is_rest_day": day.is_rest_day,
        "exercise_count": day.exercise_count,
        "planned_sets": day.planned_sets,
    }


def dict_to_plan_day(data: dict[str, Any]) -> PlanDay:
    """
    Convert dict to PlanDay.

    Raises:
        ValidationError: If data is invalid
    """
    return PlanDay(
        id=str(_require(data, "id")),
        position=validate_non_negative(_require(data, "position"), "position"),
        name=data.get("name"),
        is_rest_day=bool(data.get("is_rest_day", False)),
        exercise_count=validate_non_negative(data.get("exercise_count", 0), "exercise_count"),
        planned_sets=validate_non_negative(data.get("planned_sets", 0), "planned_sets"),
    )


def plan_to_dict(plan: Plan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "profile_id": plan.profile_id,
        "name": plan.name,
        "days": [plan_day_to_dict(d) for d in plan.sorted_days],
    }


def dict_to_plan(data: dict[str, Any]) -> Plan:
    return Plan(
        id=str(_require(data, "id")),
        profile_id=str(_require(data, "profile_id")),
        name=str(data.get("name", "")),
        days=[dict_to_plan_day(d) for d in data.get("days", [])],
    )


def cycle_to_dict(cycle: Cycle) -> dict[str, Any]:
    return {
        "id": cycle.id,
        "profile_id": cycle.profile_id,
        "name": cycle.name,
        "is_active": cycle.is_active,
        "items": [
            {"id": i.id, "plan_id": i.plan_id, "order": i.order} for i in cycle.sorted_items
        ],
    }


def dict_to_cycle(data: dict[str, Any]) -> Cycle:
    items = [
        CycleItem(
            id=str(_require(i, "id")),
            plan_id=str(_require(i, "plan_id")),
            order=validate_non_negative(_require(i, "order"), "order"),
        )
        for i in data.get("items", [])
    ]
    return Cycle(
        id=str(_require(data, "id")),
        profile_id=str(_require(data, "profile_id")),
        name=str(data.get("name", "")),
        is_active=bool(data.get("is_active", False)),
        items=items,
    )


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "name": profile.name,
        "day_boundary_hour": profile.day_boundary_hour,
        "execution_mode": profile.execution_mode,
        "active_plan_id": profile.active_plan_id,
    }


def dict_to_profile(data: dict[str, Any]) -> Profile:
    """
    Convert dict to Profile.

    Raises:
        ValidationError: If data is invalid
    """
    mode = data.get("execution_mode", "single")
    if mode not in EXECUTION_MODES:
        raise ValidationError(f"Invalid execution_mode: {mode}. Must be one of {EXECUTION_MODES}")
    try:
        return Profile(
            id=str(_require(data, "id")),
            name=str(data.get("name", "default")),
            day_boundary_hour=int(data.get("day_boundary_hour", 0)),
            execution_mode=mode,
            active_plan_id=data.get("active_plan_id"),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def plan_progress_to_dict(progress: SinglePlanProgress) -> dict[str, Any]:
    return {
        "profile_id": progress.profile_id,
        "plan_id": progress.plan_id,
        "current_day_index": progress.current_day_index,
        "last_opened_date": _iso(progress.last_opened_date),
        "last_completed_date": _iso(progress.last_completed_date),
        "advanced_on": _iso(progress.advanced_on),
    }


def dict_to_plan_progress(data: dict[str, Any]) -> SinglePlanProgress:
    index = validate_non_negative(data.get("current_day_index", 1), "current_day_index")
    if index < 1:
        raise ValidationError("current_day_index must be >= 1")
    return SinglePlanProgress(
        profile_id=str(_require(data, "profile_id")),
        plan_id=str(_require(data, "plan_id")),
        current_day_index=index,
        last_opened_date=_date_or_none(data.get("last_opened_date")),
        last_completed_date=_date_or_none(data.get("last_completed_date")),
        advanced_on=_date_or_none(data.get("advanced_on")),
    )


def cycle_progress_to_dict(progress: CycleProgress) -> dict[str, Any]:
    return {
        "cycle_id": progress.cycle_id,
        "current_item_index": progress.current_item_index,
        "current_day_index": progress.current_day_index,
        "last_advanced_at": (
            progress.last_advanced_at.isoformat() if progress.last_advanced_at else None
        ),
        "last_completed_date": _iso(progress.last_completed_date),
        "advanced_on": _iso(progress.advanced_on),
    }


def dict_to_cycle_progress(data: dict[str, Any]) -> CycleProgress:
    advanced_at = data.get("last_advanced_at")
    try:
        last_advanced_at = datetime.fromisoformat(advanced_at) if advanced_at else None
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {advanced_at}") from e
    return CycleProgress(
        cycle_id=str(_require(data, "cycle_id")),
        current_item_index=validate_non_negative(
            data.get("current_item_index", 0), "current_item_index"
        ),
        current_day_index=validate_non_negative(
            data.get("current_day_index", 0), "current_day_index"
        ),
        last_advanced_at=last_advanced_at,
        last_completed_date=_date_or_none(data.get("last_completed_date")),
        advanced_on=_date_or_none(data.get("advanced_on")),
    )


def workout_record_to_dict(record: WorkoutRecord) -> dict[str, Any]:
    return {
        "profile_id": record.profile_id,
        "date": record.date.isoformat(),
        "plan_id": record.plan_id,
        "plan_day_id": record.plan_day_id,
        "cycle_id": record.cycle_id,
        "planned_sets": record.planned_sets,
        "completed_sets": record.completed_sets,
    }


def dict_to_workout_record(data: dict[str, Any]) -> WorkoutRecord:
    """
    Convert dict to WorkoutRecord.

    Raises:
        ValidationError: If data is invalid
    """
    return WorkoutRecord(
        profile_id=str(_require(data, "profile_id")),
        date=validate_date(_require(data, "date")),
        plan_id=data.get("plan_id"),
        plan_day_id=data.get("plan_day_id"),
        cycle_id=data.get("cycle_id"),
        planned_sets=validate_non_negative(data.get("planned_sets", 0), "planned_sets"),
        completed_sets=validate_non_negative(data.get("completed_sets", 0), "completed_sets"),
    )


def workout_to_json_line(record: WorkoutRecord) -> str:
    """Serialize a record as a single compact JSON line (no trailing newline)."""
    return json.dumps(workout_record_to_dict(record), separators=(",", ":"))


def json_line_to_workout(line: str) -> WorkoutRecord:
    """
    Parse a JSONL line into a WorkoutRecord.

    Raises:
        ValidationError: If the line is not valid JSON or data is invalid
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Workout line must be a JSON object")
    return dict_to_workout_record(data)
