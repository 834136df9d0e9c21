from __future__ import annotations

from datetime import date


def get_today() -> date:
    """Wall-clock date for the current request. Override in tests for a fixed day."""
    return date.today()
