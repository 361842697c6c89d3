"""
CLI entry point using Typer.

Provides commands for plan progression:
- init / status: profile and current position
- plan-*: create and edit plans, follow one
- cycle-*: create and edit cycles, follow one
- today / log-sets / complete / change-day / preview: the daily workflow
"""

from .app import app
from .commands import cycles, plans, profile, workout  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
