"""
YAML → settings loader.

Loads engine settings from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.plan-progress/settings.yaml and
the PLAN_PROGRESS_DAY_BOUNDARY_HOUR environment variable.

Usage:
    from plan_progress.core.engine.config_loader import load_settings
    settings = load_settings()
    boundary = settings["day_boundary_hour"]

If the bundled YAML cannot be parsed the Python defaults from config.py
are used.  If the user override file exists but has parse errors, a
warning is logged and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    DATA_DIR_NAME,
    DEFAULT_DAY_BOUNDARY_HOUR,
    DEFAULT_PLANNED_SETS_PER_EXERCISE,
    ENV_DAY_BOUNDARY_HOUR,
    SETTINGS_FILE_NAME,
)
from ..dates import validate_boundary_hour

logger = logging.getLogger(__name__)

_DEFAULTS: dict[str, Any] = {
    "day_boundary_hour": DEFAULT_DAY_BOUNDARY_HOUR,
    "data_dir": "",
    "planned_sets_per_exercise": DEFAULT_PLANNED_SETS_PER_EXERCISE,
}

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (and log) on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable settings file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not a mapping", path)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _coerce(settings: dict[str, Any]) -> dict[str, Any]:
    """Normalize types and fall back to defaults for invalid values."""
    out = dict(settings)
    try:
        out["day_boundary_hour"] = validate_boundary_hour(int(out["day_boundary_hour"]))
    except (TypeError, ValueError) as e:
        logger.warning("invalid day_boundary_hour %r (%s); using default", out["day_boundary_hour"], e)
        out["day_boundary_hour"] = DEFAULT_DAY_BOUNDARY_HOUR
    try:
        out["planned_sets_per_exercise"] = max(0, int(out["planned_sets_per_exercise"]))
    except (TypeError, ValueError):
        out["planned_sets_per_exercise"] = DEFAULT_PLANNED_SETS_PER_EXERCISE
    out["data_dir"] = str(out.get("data_dir") or "")
    return out


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_user_dir() -> Path:
    """Return ~/.plan-progress (not created)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / DATA_DIR_NAME


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    ref = importlib.resources.files("plan_progress").joinpath(SETTINGS_FILE_NAME)
    with importlib.resources.as_file(ref) as p:
        return p if p.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.plan-progress/settings.yaml if it exists, else None."""
    p = get_user_dir() / SETTINGS_FILE_NAME
    return p if p.exists() else None


def load_settings(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Load and merge settings.

    Load order (later overrides earlier):
    1. Python defaults from config.py
    2. Bundled src/plan_progress/settings.yaml
    3. User override at ~/.plan-progress/settings.yaml
    4. PLAN_PROGRESS_DAY_BOUNDARY_HOUR environment variable

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Dict with day_boundary_hour, data_dir, planned_sets_per_exercise
    """
    env = os.environ if environ is None else environ
    settings: dict[str, Any] = dict(_DEFAULTS)

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        settings = _deep_merge(settings, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        settings = _deep_merge(settings, _load_yaml_file(user))

    raw_hour = env.get(ENV_DAY_BOUNDARY_HOUR)
    if raw_hour:
        settings["day_boundary_hour"] = raw_hour

    return _coerce(settings)


def resolve_data_dir(settings: dict[str, Any]) -> Path:
    """Data directory from settings, defaulting to ~/.plan-progress."""
    configured = settings.get("data_dir")
    if configured:
        return Path(configured).expanduser()
    return get_user_dir()
