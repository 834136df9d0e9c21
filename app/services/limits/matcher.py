from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from app.models.spending_limit import LimitPeriod
from app.services.limits.periods import DAY, MONTH, WEEK, YEAR, PeriodWindow, PeriodWindows
from app.services.limits.store import LimitRecord

logger = logging.getLogger("app.limits")

PERIOD_WINDOW_KIND = {
    LimitPeriod.DAILY.value: DAY,
    LimitPeriod.WEEKLY.value: WEEK,
    LimitPeriod.MONTHLY.value: MONTH,
    LimitPeriod.YEARLY.value: YEAR,
}

PERIOD_LABELS = {
    LimitPeriod.DAILY.value: "Today",
    LimitPeriod.WEEKLY.value: "This Week",
    LimitPeriod.MONTHLY.value: "This Month",
    LimitPeriod.YEARLY.value: "This Year",
}


@dataclass(frozen=True)
class ApplicableLimit:
    limit: LimitRecord
    window: PeriodWindow
    label: str


def window_for_period(period: str, windows: PeriodWindows) -> PeriodWindow | None:
    kind = PERIOD_WINDOW_KIND.get(period)
    return windows.get(kind) if kind else None


def category_applies(limit_category: str | None, candidate_category: str) -> bool:
    # Exact, case-sensitive match; a NULL category is a total limit.
    return limit_category is None or limit_category == candidate_category


def applicable_limits(
    candidate_date: date,
    candidate_category: str,
    limits: Iterable[LimitRecord],
    windows: PeriodWindows,
) -> list[ApplicableLimit]:
    """
    Limits whose current window (computed from today) contains the candidate date
    and whose category covers the candidate. Input order is preserved.
    """
    out: list[ApplicableLimit] = []
    for limit in limits:
        window = window_for_period(limit.period, windows)
        if window is None:
            logger.warning(
                "limit_skipped_unknown_period id=%s period=%r",
                getattr(limit, "id", None),
                limit.period,
            )
            continue
        if not window.contains(candidate_date):
            continue
        if not category_applies(limit.category, candidate_category):
            continue
        out.append(ApplicableLimit(limit=limit, window=window, label=PERIOD_LABELS[limit.period]))
    return out
