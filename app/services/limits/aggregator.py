from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.services.limits.periods import PeriodWindow
from app.services.limits.store import CategorySpend, DaySpend, SpendStore


@dataclass(frozen=True)
class PeriodSummary:
    window: PeriodWindow
    total: Decimal
    count: int
    category_count: int
    by_category: list[CategorySpend]
    by_day: list[DaySpend] | None = None

    def spent_for(self, category: str | None) -> Decimal:
        """Period total for a category, or the whole period when category is None."""
        if category is None:
            return self.total
        for row in self.by_category:
            if row.category == category:
                return row.total
        return Decimal("0")


class SpendAggregator:
    """
    Builds a PeriodSummary from a single grouped read, so the total, the category
    breakdown and the day breakdown always describe the same rows.
    """

    def __init__(self, store: SpendStore):
        self.store = store

    def aggregate(self, user_id: int, window: PeriodWindow, *, include_days: bool = False) -> PeriodSummary:
        if include_days:
            return self._aggregate_with_days(user_id, window)
        rows = self.store.sum_expenses_by_category(user_id, window)
        return self._summary(window, rows)

    def _aggregate_with_days(self, user_id: int, window: PeriodWindow) -> PeriodSummary:
        cat_totals: dict[str, Decimal] = {}
        cat_counts: dict[str, int] = {}
        day_totals: dict[date, Decimal] = {}
        for r in self.store.sum_expenses_by_day_and_category(user_id, window):
            cat_totals[r.category] = cat_totals.get(r.category, Decimal("0")) + r.total
            cat_counts[r.category] = cat_counts.get(r.category, 0) + r.count
            day_totals[r.date] = day_totals.get(r.date, Decimal("0")) + r.total
        rows = [CategorySpend(category=c, total=t, count=cat_counts[c]) for c, t in sorted(cat_totals.items())]
        by_day = [DaySpend(date=d, total=t) for d, t in sorted(day_totals.items())]
        return self._summary(window, rows, by_day)

    @staticmethod
    def _summary(window: PeriodWindow, rows: list[CategorySpend], by_day: list[DaySpend] | None = None) -> PeriodSummary:
        # sorted() is stable, so equal totals keep the incoming order.
        by_category = sorted(rows, key=lambda r: r.total, reverse=True)
        return PeriodSummary(
            window=window,
            total=sum((r.total for r in by_category), Decimal("0")),
            count=sum(r.count for r in by_category),
            category_count=len(by_category),
            by_category=by_category,
            by_day=by_day,
        )
