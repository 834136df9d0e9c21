from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta

DAY = "day"
WEEK = "week"
MONTH = "month"
YEAR = "year"

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


@dataclass(frozen=True)
class PeriodWindow:
    """
    Date range an expense must fall in to count toward a period.
    `value` is the display/filter key: YYYY-MM-DD (day, week start), YYYY-MM or YYYY.
    `end` is exclusive; None means open-ended (week runs through "now").
    """

    kind: str
    value: str
    start: date
    end: date | None

    def contains(self, d: date) -> bool:
        if d < self.start:
            return False
        return self.end is None or d < self.end


@dataclass(frozen=True)
class PeriodWindows:
    today: date
    day: PeriodWindow
    week: PeriodWindow
    month: PeriodWindow
    year: PeriodWindow

    def get(self, kind: str) -> PeriodWindow | None:
        return {DAY: self.day, WEEK: self.week, MONTH: self.month, YEAR: self.year}.get(kind)


def week_start(today: date) -> date:
    """Monday of today's ISO week; Sunday goes back 6 days, not forward."""
    return today - timedelta(days=today.isoweekday() - 1)


def day_window(today: date) -> PeriodWindow:
    return PeriodWindow(DAY, today.isoformat(), today, today + timedelta(days=1))


def week_window(today: date) -> PeriodWindow:
    monday = week_start(today)
    return PeriodWindow(WEEK, monday.isoformat(), monday, None)


def month_window(month: date | str) -> PeriodWindow:
    first = parse_month(month) if isinstance(month, str) else month.replace(day=1)
    if first.month == 12:
        nxt = date(first.year + 1, 1, 1)
    else:
        nxt = date(first.year, first.month + 1, 1)
    return PeriodWindow(MONTH, f"{first.year:04d}-{first.month:02d}", first, nxt)


def year_window(today: date) -> PeriodWindow:
    return PeriodWindow(YEAR, f"{today.year:04d}", date(today.year, 1, 1), date(today.year + 1, 1, 1))


def resolve_periods(today: date) -> PeriodWindows:
    return PeriodWindows(
        today=today,
        day=day_window(today),
        week=week_window(today),
        month=month_window(today),
        year=year_window(today),
    )


def parse_month(value: str) -> date:
    """First day of a YYYY-MM month string. Raises ValueError for anything else."""
    v = (value or "").strip()
    if not MONTH_RE.match(v):
        raise ValueError(f"Month must be in YYYY-MM format: {value!r}")
    year, month = int(v[:4]), int(v[5:])
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {value!r}")
    return date(year, month, 1)
