"""
Program-day normalization.

A "program day" is the calendar date a timestamp belongs to once the
configurable day boundary hour is applied: with a boundary of 3, anything
before 03:00 still counts as the previous day.  These are the only date
comparison primitives the rest of the core uses; raw timestamps are never
compared directly.

All functions are pure and work in naive local time.
"""

from datetime import date, datetime, timedelta

from .config import MAX_DAY_BOUNDARY_HOUR, MIN_DAY_BOUNDARY_HOUR

ProgramDay = date


def validate_boundary_hour(boundary_hour: int) -> int:
    """
    Validate a day boundary hour.

    Raises:
        ValueError: If the hour is outside 0..23
    """
    if not MIN_DAY_BOUNDARY_HOUR <= boundary_hour <= MAX_DAY_BOUNDARY_HOUR:
        raise ValueError(
            f"day boundary hour must be in {MIN_DAY_BOUNDARY_HOUR}..{MAX_DAY_BOUNDARY_HOUR}, "
            f"got {boundary_hour}"
        )
    return boundary_hour


def program_day(at: datetime, boundary_hour: int = 0) -> ProgramDay:
    """
    Map a timestamp onto its program day.

    If the hour of ``at`` is strictly before ``boundary_hour`` the timestamp
    belongs to the previous calendar date.  With ``boundary_hour=0`` this is
    plain date truncation.

    Args:
        at: Local timestamp
        boundary_hour: Hour (0-23) at which a new program day starts

    Returns:
        The program day as a ``datetime.date``
    """
    validate_boundary_hour(boundary_hour)
    if at.hour < boundary_hour:
        return (at - timedelta(days=1)).date()
    return at.date()


def today_program_day(boundary_hour: int = 0, now: datetime | None = None) -> ProgramDay:
    """Program day for ``now`` (defaults to the current local time)."""
    return program_day(now if now is not None else datetime.now(), boundary_hour)


def is_same_day(a: ProgramDay, b: ProgramDay) -> bool:
    """True if both program days are the same date."""
    return a == b


def days_between(a: ProgramDay, b: ProgramDay) -> int:
    """Signed number of whole program days from ``a`` to ``b`` (``b - a``)."""
    return (b - a).days


def add_days(day: ProgramDay, days: int) -> ProgramDay:
    """Shift a program day by a signed number of days."""
    return day + timedelta(days=days)


def is_same_program_day(a: datetime, b: datetime, boundary_hour: int = 0) -> bool:
    """True if two timestamps fall in the same boundary-shifted 24h window."""
    return program_day(a, boundary_hour) == program_day(b, boundary_hour)


def parse_program_day(value: str) -> ProgramDay:
    """
    Parse an ISO ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date: {value}. Expected YYYY-MM-DD") from e
