"""
Tests for the JSON-file store and serializers.
"""

from datetime import date, datetime

import pytest

from plan_progress.core.engine.progression import ProgressionEngine
from plan_progress.core.models import (
    Cycle,
    CycleItem,
    CycleProgress,
    Plan,
    PlanDay,
    Profile,
    SinglePlanProgress,
    WorkoutRecord,
)
from plan_progress.core.store import PlanStore
from plan_progress.io.plan_store import JsonPlanStore
from plan_progress.io.serializers import (
    ValidationError,
    dict_to_plan_progress,
    dict_to_profile,
    json_line_to_workout,
    validate_date,
    workout_to_json_line,
)


def _make_store(tmp_path) -> JsonPlanStore:
    store = JsonPlanStore(tmp_path / "data")
    store.init(Profile(id="p1", name="me", day_boundary_hour=3))
    return store


def _make_plan() -> Plan:
    return Plan(
        id="plan1",
        profile_id="p1",
        name="Main",
        days=[
            PlanDay(id="d1", position=1, name="Push", exercise_count=2, planned_sets=6),
            PlanDay(id="d2", position=2, is_rest_day=True),
        ],
    )


class TestJsonPlanStore:
    """Round trips through the on-disk files."""

    def test_init_creates_files(self, tmp_path):
        store = _make_store(tmp_path)
        assert store.exists()
        for path in (store.profile_path, store.plans_path, store.progress_path, store.workouts_path):
            assert path.exists()
        assert isinstance(store, PlanStore)

    def test_profile_round_trip(self, tmp_path):
        store = _make_store(tmp_path)
        profile = store.load_profile()
        assert profile.name == "me"
        assert profile.day_boundary_hour == 3
        assert store.get_profile("p1") == profile
        assert store.get_profile("other") is None

    def test_plan_and_cycle_round_trip(self, tmp_path):
        store = _make_store(tmp_path)
        store.save_plan(_make_plan())
        store.save_cycle(
            Cycle(id="c1", profile_id="p1", name="Rot", is_active=True,
                  items=[CycleItem(id="i0", plan_id="plan1", order=0)])
        )
        assert store.get_plan("plan1") == _make_plan()
        assert store.get_cycle("c1").items[0].plan_id == "plan1"
        assert [c.id for c in store.cycles_of("p1")] == ["c1"]
        assert store.get_plan("missing") is None

    def test_save_plan_replaces(self, tmp_path):
        store = _make_store(tmp_path)
        plan = _make_plan()
        store.save_plan(plan)
        plan.name = "Renamed"
        store.save_plan(plan)
        assert [p.name for p in store.list_plans()] == ["Renamed"]

    def test_progress_round_trip(self, tmp_path):
        store = _make_store(tmp_path)
        progress = SinglePlanProgress(
            profile_id="p1", plan_id="plan1", current_day_index=3,
            last_opened_date=date(2026, 3, 2), last_completed_date=date(2026, 3, 1),
            advanced_on=date(2026, 3, 2),
        )
        store.save_plan_progress(progress)
        cycle_progress = CycleProgress(
            cycle_id="c1", current_item_index=1, current_day_index=2,
            last_advanced_at=datetime(2026, 3, 2, 9, 30),
        )
        store.save_cycle_progress(cycle_progress)
        assert store.get_plan_progress("p1", "plan1") == progress
        assert store.plan_progress_for_plan("plan1") == [progress]
        assert store.get_cycle_progress("c1") == cycle_progress

    def test_workout_records_are_keyed_by_program_day(self, tmp_path):
        store = _make_store(tmp_path)
        first = WorkoutRecord(profile_id="p1", date=date(2026, 3, 2), plan_id="plan1", planned_sets=6)
        store.save_workout_record(first)
        replacement = WorkoutRecord(
            profile_id="p1", date=date(2026, 3, 2), plan_id="plan1", planned_sets=6, completed_sets=2
        )
        store.save_workout_record(replacement)
        store.save_workout_record(WorkoutRecord(profile_id="p1", date=date(2026, 3, 1)))
        records = store.load_workouts()
        assert [r.date for r in records] == [date(2026, 3, 1), date(2026, 3, 2)]
        assert store.get_workout_record("p1", date(2026, 3, 2)).completed_sets == 2

    def test_delete_only_touches_matching_plan(self, tmp_path):
        store = _make_store(tmp_path)
        store.save_workout_record(WorkoutRecord(profile_id="p1", date=date(2026, 3, 2), plan_id="other"))
        store.delete_workout_record("p1", "plan1", date(2026, 3, 2))
        assert store.get_workout_record("p1", date(2026, 3, 2)) is not None
        store.delete_workout_record("p1", "other", date(2026, 3, 2))
        assert store.get_workout_record("p1", date(2026, 3, 2)) is None

    def test_delete_plan_drops_its_progress(self, tmp_path):
        store = _make_store(tmp_path)
        store.save_plan(_make_plan())
        store.save_plan_progress(SinglePlanProgress(profile_id="p1", plan_id="plan1"))
        store.delete_plan("plan1")
        assert store.get_plan("plan1") is None
        assert store.get_plan_progress("p1", "plan1") is None

    def test_uninitialized_store(self, tmp_path):
        store = JsonPlanStore(tmp_path / "nowhere")
        assert not store.exists()
        with pytest.raises(FileNotFoundError, match="Run 'init' first"):
            store.load_profile()
        with pytest.raises(FileNotFoundError):
            store.load_workouts()

    def test_corrupt_workout_line_reports_line_number(self, tmp_path):
        store = _make_store(tmp_path)
        store.workouts_path.write_text('{"profile_id": "p1", "date": "2026-03-02"}\nnot json\n')
        with pytest.raises(ValidationError, match="line 2"):
            store.load_workouts()

    def test_engine_runs_over_json_store(self, tmp_path):
        store = _make_store(tmp_path)
        store.save_plan(_make_plan())
        profile = store.load_profile()
        engine = ProgressionEngine(store, clock=lambda: datetime(2026, 3, 2, 10, 0))
        assert engine.start_plan(profile, "plan1").ok
        record = engine.setup_today(profile)
        assert record.plan_day_id == "d1"
        assert store.load_profile().active_plan_id == "plan1"
        assert store.get_workout_record("p1", date(2026, 3, 2)).planned_sets == 6


class TestSerializers:
    def test_validate_date(self):
        assert validate_date("2026-03-02") == date(2026, 3, 2)
        with pytest.raises(ValidationError):
            validate_date("2026-3-2")
        with pytest.raises(ValidationError):
            validate_date("2026-02-30")

    def test_progress_index_below_one_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_plan_progress({"profile_id": "p1", "plan_id": "x", "current_day_index": 0})

    def test_missing_field_rejected(self):
        with pytest.raises(ValidationError, match="plan_id"):
            dict_to_plan_progress({"profile_id": "p1"})

    def test_bad_profile_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_profile({"id": "p1", "execution_mode": "free"})
        with pytest.raises(ValidationError):
            dict_to_profile({"id": "p1", "day_boundary_hour": 30})

    def test_workout_line(self):
        record = WorkoutRecord(profile_id="p1", date=date(2026, 3, 2), plan_id="plan1", planned_sets=4)
        line = workout_to_json_line(record)
        assert "\n" not in line
        assert json_line_to_workout(line) == record
        with pytest.raises(ValidationError):
            json_line_to_workout('{"profile_id": "p1", "date": "2026-03-02", "completed_sets": -1}')
