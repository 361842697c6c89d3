"""plan-progress: day-advancement engine for multi-day and multi-plan workout programs."""

__version__ = "0.1.0"
