from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.expense import Expense
from app.schemas.expense import ExpenseRead
from app.schemas.summary import (
    CategoryTotal,
    DashboardOverview,
    DayTotal,
    LimitProgress,
    MonthSummaryResponse,
    PeriodSummaryRead,
)
from app.services.limits.aggregator import PeriodSummary, SpendAggregator
from app.services.limits.classifier import classify, display_pct, usage_percentage
from app.services.limits.matcher import PERIOD_LABELS, window_for_period
from app.services.limits.periods import month_window, resolve_periods
from app.services.limits.store import SpendStoreError, SqlSpendStore, to_decimal

RECENT_EXPENSES = 5


def _period_read(summary: PeriodSummary) -> PeriodSummaryRead:
    return PeriodSummaryRead(
        period=summary.window.value,
        start=summary.window.start,
        total=summary.total,
        count=summary.count,
        categories=summary.category_count,
        by_category=[CategoryTotal.model_validate(c) for c in summary.by_category],
    )


def recent_expenses(db: Session, user_id: int, limit: int = RECENT_EXPENSES) -> list[Expense]:
    q = (
        select(Expense)
        .where(Expense.user_id == user_id)
        .order_by(Expense.date.desc(), Expense.id.desc())
        .limit(limit)
    )
    try:
        return list(db.execute(q).scalars().all())
    except SQLAlchemyError as exc:
        raise SpendStoreError("Failed to load recent expenses") from exc


class DashboardService:
    def __init__(self, db: Session, today: date):
        self.db = db
        self.today = today
        self.store = SqlSpendStore(db)
        self.aggregator = SpendAggregator(self.store)

    def month_summary(self, user_id: int, month: str) -> MonthSummaryResponse:
        window = month_window(month)
        summary = self.aggregator.aggregate(user_id, window, include_days=True)
        return MonthSummaryResponse(
            month=window.value,
            total=summary.total,
            count=summary.count,
            by_category=[CategoryTotal.model_validate(c) for c in summary.by_category],
            by_day=[DayTotal.model_validate(d) for d in summary.by_day or []],
        )

    def overview(self, user_id: int) -> DashboardOverview:
        windows = resolve_periods(self.today)
        summaries = {
            w.kind: self.aggregator.aggregate(user_id, w)
            for w in (windows.day, windows.week, windows.month, windows.year)
        }

        progress: list[LimitProgress] = []
        for limit in self.store.get_limits_for_user(user_id):
            window = window_for_period(limit.period, windows)
            if window is None:
                continue
            amount = to_decimal(limit.limit_amount)
            spent = summaries[window.kind].spent_for(limit.category)
            result = classify(amount, spent, to_decimal(0))
            progress.append(
                LimitProgress(
                    id=limit.id,
                    period=limit.period,
                    label=PERIOD_LABELS[limit.period],
                    category=limit.category,
                    limit_amount=amount,
                    spent=spent,
                    remaining=max(amount - spent, to_decimal(0)),
                    percentage=display_pct(usage_percentage(spent, amount)),
                    status=result.severity if result else "ok",
                )
            )

        return DashboardOverview(
            today=_period_read(summaries[windows.day.kind]),
            week=_period_read(summaries[windows.week.kind]),
            month=_period_read(summaries[windows.month.kind]),
            year=_period_read(summaries[windows.year.kind]),
            limits=progress,
            recent_expenses=[ExpenseRead.model_validate(e) for e in recent_expenses(self.db, user_id)],
        )
