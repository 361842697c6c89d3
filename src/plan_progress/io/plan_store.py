"""
JSON-file storage for profiles, plans, cycles, progress and workouts.

Layout inside the data directory:
- profile.json: the local profile
- plans.json: {"plans": [...], "cycles": [...]}
- progress.json: {"plans": [...], "cycles": [...]} progress pointers
- workouts.jsonl: one workout record per line, sorted by date
"""

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import Any

from ..core.config import (
    PLANS_FILE_NAME,
    PROFILE_FILE_NAME,
    PROGRESS_FILE_NAME,
    WORKOUTS_FILE_NAME,
)
from ..core.models import Cycle, CycleProgress, Plan, Profile, SinglePlanProgress, WorkoutRecord
from .serializers import (
    ValidationError,
    cycle_progress_to_dict,
    cycle_to_dict,
    dict_to_cycle,
    dict_to_cycle_progress,
    dict_to_plan,
    dict_to_plan_progress,
    dict_to_profile,
    json_line_to_workout,
    plan_progress_to_dict,
    plan_to_dict,
    profile_to_dict,
    workout_to_json_line,
)

logger = logging.getLogger(__name__)


class JsonPlanStore:
    """
    PlanStore persisted as JSON files in one directory.

    Every read goes to disk, so several stores (or processes) on the same
    directory see each other's writes.  Read-modify-write cycles within
    one store are serialized by an internal lock.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the data files
        """
        self.data_dir = Path(data_dir)
        self.profile_path = self.data_dir / PROFILE_FILE_NAME
        self.plans_path = self.data_dir / PLANS_FILE_NAME
        self.progress_path = self.data_dir / PROGRESS_FILE_NAME
        self.workouts_path = self.data_dir / WORKOUTS_FILE_NAME
        self._lock = threading.RLock()

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        return self.profile_path.exists()

    def init(self, profile: Profile) -> None:
        """
        Create the data directory and files, saving ``profile``.

        Existing plans, progress and workouts are left untouched.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self.save_profile(profile)
            if not self.plans_path.exists():
                self._write_json(self.plans_path, {"plans": [], "cycles": []})
            if not self.progress_path.exists():
                self._write_json(self.progress_path, {"plans": [], "cycles": []})
            if not self.workouts_path.exists():
                self.workouts_path.touch()
        logger.info("initialized data directory %s", self.data_dir)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _require(self, path: Path) -> None:
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}. Run 'init' first.")

    def _read_json(self, path: Path) -> dict[str, Any]:
        self._require(path)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Error parsing {path}: expected a JSON object")
        return data

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def load_profile(self) -> Profile:
        """
        Load the local profile.

        Raises:
            FileNotFoundError: If the store was never initialized
            ValidationError: If profile.json is invalid
        """
        return dict_to_profile(self._read_json(self.profile_path))

    def get_profile(self, profile_id: str) -> Profile | None:
        if not self.profile_path.exists():
            return None
        profile = self.load_profile()
        return profile if profile.id == profile_id else None

    def save_profile(self, profile: Profile) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self._write_json(self.profile_path, profile_to_dict(profile))

    # ------------------------------------------------------------------
    # Plans and cycles
    # ------------------------------------------------------------------

    def _load_catalog(self) -> tuple[list[Plan], list[Cycle]]:
        data = self._read_json(self.plans_path)
        plans = [dict_to_plan(p) for p in data.get("plans", [])]
        cycles = [dict_to_cycle(c) for c in data.get("cycles", [])]
        return plans, cycles

    def _write_catalog(self, plans: list[Plan], cycles: list[Cycle]) -> None:
        self._write_json(
            self.plans_path,
            {
                "plans": [plan_to_dict(p) for p in plans],
                "cycles": [cycle_to_dict(c) for c in cycles],
            },
        )

    def list_plans(self) -> list[Plan]:
        return self._load_catalog()[0]

    def get_plan(self, plan_id: str) -> Plan | None:
        for plan in self.list_plans():
            if plan.id == plan_id:
                return plan
        return None

    def save_plan(self, plan: Plan) -> None:
        with self._lock:
            plans, cycles = self._load_catalog()
            plans = [p for p in plans if p.id != plan.id] + [plan]
            self._write_catalog(plans, cycles)

    def delete_plan(self, plan_id: str) -> None:
        """Remove a plan and its single-plan progress; cycle items keep referencing it."""
        with self._lock:
            plans, cycles = self._load_catalog()
            self._write_catalog([p for p in plans if p.id != plan_id], cycles)
            single, cycle_progress = self._load_progress()
            self._write_progress([p for p in single if p.plan_id != plan_id], cycle_progress)

    def list_cycles(self) -> list[Cycle]:
        return self._load_catalog()[1]

    def get_cycle(self, cycle_id: str) -> Cycle | None:
        for cycle in self.list_cycles():
            if cycle.id == cycle_id:
                return cycle
        return None

    def save_cycle(self, cycle: Cycle) -> None:
        with self._lock:
            plans, cycles = self._load_catalog()
            cycles = [c for c in cycles if c.id != cycle.id] + [cycle]
            self._write_catalog(plans, cycles)

    def cycles_of(self, profile_id: str) -> list[Cycle]:
        return [c for c in self.list_cycles() if c.profile_id == profile_id]

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def _load_progress(self) -> tuple[list[SinglePlanProgress], list[CycleProgress]]:
        data = self._read_json(self.progress_path)
        single = [dict_to_plan_progress(p) for p in data.get("plans", [])]
        cycles = [dict_to_cycle_progress(c) for c in data.get("cycles", [])]
        return single, cycles

    def _write_progress(self, single: list[SinglePlanProgress], cycles: list[CycleProgress]) -> None:
        self._write_json(
            self.progress_path,
            {
                "plans": [plan_progress_to_dict(p) for p in single],
                "cycles": [cycle_progress_to_dict(c) for c in cycles],
            },
        )

    def get_plan_progress(self, profile_id: str, plan_id: str) -> SinglePlanProgress | None:
        for progress in self._load_progress()[0]:
            if progress.profile_id == profile_id and progress.plan_id == plan_id:
                return progress
        return None

    def plan_progress_for_plan(self, plan_id: str) -> list[SinglePlanProgress]:
        return [p for p in self._load_progress()[0] if p.plan_id == plan_id]

    def save_plan_progress(self, progress: SinglePlanProgress) -> None:
        with self._lock:
            single, cycles = self._load_progress()
            single = [
                p for p in single
                if (p.profile_id, p.plan_id) != (progress.profile_id, progress.plan_id)
            ] + [progress]
            self._write_progress(single, cycles)

    def get_cycle_progress(self, cycle_id: str) -> CycleProgress | None:
        for progress in self._load_progress()[1]:
            if progress.cycle_id == cycle_id:
                return progress
        return None

    def save_cycle_progress(self, progress: CycleProgress) -> None:
        with self._lock:
            single, cycles = self._load_progress()
            cycles = [c for c in cycles if c.cycle_id != progress.cycle_id] + [progress]
            self._write_progress(single, cycles)

    # ------------------------------------------------------------------
    # Workout records
    # ------------------------------------------------------------------

    def load_workouts(self) -> list[WorkoutRecord]:
        """
        Load all workout records.

        Returns:
            Records sorted by date

        Raises:
            FileNotFoundError: If workouts.jsonl doesn't exist
            ValidationError: If a line is invalid
        """
        self._require(self.workouts_path)
        records: list[WorkoutRecord] = []
        with open(self.workouts_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json_line_to_workout(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.workouts_path}: {e}"
                    ) from e
        records.sort(key=lambda r: r.date)
        return records

    def _write_workouts(self, records: list[WorkoutRecord]) -> None:
        with open(self.workouts_path, "w") as f:
            for record in sorted(records, key=lambda r: r.date):
                f.write(workout_to_json_line(record) + "\n")

    def get_workout_record(self, profile_id: str, day: date) -> WorkoutRecord | None:
        for record in self.load_workouts():
            if record.profile_id == profile_id and record.date == day:
                return record
        return None

    def save_workout_record(self, record: WorkoutRecord) -> None:
        """Insert or replace the record for (profile, program day)."""
        with self._lock:
            records = [
                r for r in self.load_workouts()
                if (r.profile_id, r.date) != (record.profile_id, record.date)
            ]
            records.append(record)
            self._write_workouts(records)

    def delete_workout_record(self, profile_id: str, plan_id: str, day: date) -> None:
        """Delete the record for ``day`` if it belongs to ``plan_id``."""
        with self._lock:
            records = self.load_workouts()
            kept = [
                r for r in records
                if not (r.profile_id == profile_id and r.date == day and r.plan_id == plan_id)
            ]
            if len(kept) != len(records):
                logger.debug("deleted stale workout record on %s", day)
                self._write_workouts(kept)
