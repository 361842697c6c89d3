"""
Configuration constants for the progression engine.

All adjustable defaults are centralized here.  Runtime overrides
(bundled settings.yaml, ~/.plan-progress/settings.yaml, environment)
are merged by core.engine.config_loader.
"""

from typing import Final

# =============================================================================
# PROGRAM DAY BOUNDARY
# =============================================================================

DEFAULT_DAY_BOUNDARY_HOUR: Final[int] = 0  # 0 = plain calendar-date truncation
MIN_DAY_BOUNDARY_HOUR: Final[int] = 0
MAX_DAY_BOUNDARY_HOUR: Final[int] = 23

# =============================================================================
# POINTER BASES
# =============================================================================

FIRST_DAY_INDEX: Final[int] = 1  # single-plan day pointers are 1-indexed
FIRST_CYCLE_INDEX: Final[int] = 0  # cycle item/day pointers are 0-indexed

# =============================================================================
# WORKOUT MATERIALIZATION
# =============================================================================

DEFAULT_PLANNED_SETS_PER_EXERCISE: Final[int] = 3

# =============================================================================
# EXECUTION MODES
# =============================================================================

EXECUTION_MODES: Final[tuple[str, ...]] = ("single", "cycle")
DEFAULT_EXECUTION_MODE: Final[str] = "single"

# =============================================================================
# STORAGE
# =============================================================================

DATA_DIR_NAME: Final[str] = ".plan-progress"
SETTINGS_FILE_NAME: Final[str] = "settings.yaml"
PLANS_FILE_NAME: Final[str] = "plans.json"
PROGRESS_FILE_NAME: Final[str] = "progress.json"
WORKOUTS_FILE_NAME: Final[str] = "workouts.jsonl"
PROFILE_FILE_NAME: Final[str] = "profile.json"

ENV_DAY_BOUNDARY_HOUR: Final[str] = "PLAN_PROGRESS_DAY_BOUNDARY_HOUR"
