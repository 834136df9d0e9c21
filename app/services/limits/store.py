from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.expense import Expense
from app.models.spending_limit import SpendingLimit
from app.services.limits.periods import DAY, PeriodWindow


class SpendStoreError(RuntimeError):
    """Data access failed while reading limits or spend totals."""


@dataclass(frozen=True)
class SpendTotals:
    total: Decimal
    count: int
    category_count: int


@dataclass(frozen=True)
class CategorySpend:
    category: str
    total: Decimal
    count: int = 0


@dataclass(frozen=True)
class DaySpend:
    date: date
    total: Decimal


@dataclass(frozen=True)
class DayCategorySpend:
    date: date
    category: str
    total: Decimal
    count: int


class LimitRecord(Protocol):
    id: int
    period: str
    category: str | None
    limit_amount: Decimal


class SpendStore(Protocol):
    def get_limits_for_user(self, user_id: int) -> list[LimitRecord]: ...

    def sum_expenses(self, user_id: int, window: PeriodWindow) -> SpendTotals: ...

    def sum_expenses_by_category(self, user_id: int, window: PeriodWindow) -> list[CategorySpend]: ...

    def sum_expenses_by_day_and_category(self, user_id: int, window: PeriodWindow) -> list[DayCategorySpend]: ...


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def window_clause(window: PeriodWindow):
    if window.kind == DAY:
        return Expense.date == window.start
    clauses = [Expense.date >= window.start]
    if window.end is not None:
        clauses.append(Expense.date < window.end)
    return and_(*clauses)


class SqlSpendStore:
    """SpendStore over a SQLAlchemy session. All filter values are bound parameters."""

    def __init__(self, db: Session):
        self.db = db

    def get_limits_for_user(self, user_id: int) -> list[SpendingLimit]:
        q = (
            select(SpendingLimit)
            .where(SpendingLimit.user_id == user_id)
            .order_by(SpendingLimit.period, SpendingLimit.id)
        )
        try:
            return list(self.db.execute(q).scalars().all())
        except SQLAlchemyError as exc:
            raise SpendStoreError("Failed to load spending limits") from exc

    def sum_expenses(self, user_id: int, window: PeriodWindow) -> SpendTotals:
        q = select(
            func.coalesce(func.sum(Expense.amount), 0),
            func.count(Expense.id),
            func.count(distinct(Expense.category)),
        ).where(Expense.user_id == user_id, window_clause(window))
        try:
            total, count, categories = self.db.execute(q).one()
        except SQLAlchemyError as exc:
            raise SpendStoreError(f"Failed to sum expenses for {window.kind} {window.value}") from exc
        return SpendTotals(total=to_decimal(total), count=int(count or 0), category_count=int(categories or 0))

    def sum_expenses_by_category(self, user_id: int, window: PeriodWindow) -> list[CategorySpend]:
        total_col = func.coalesce(func.sum(Expense.amount), 0).label("total")
        q = (
            select(Expense.category, total_col, func.count(Expense.id))
            .where(Expense.user_id == user_id, window_clause(window))
            .group_by(Expense.category)
            .order_by(total_col.desc(), Expense.category)
        )
        try:
            rows = self.db.execute(q).all()
        except SQLAlchemyError as exc:
            raise SpendStoreError(f"Failed to group expenses by category for {window.kind} {window.value}") from exc
        return [CategorySpend(category=c, total=to_decimal(t), count=int(n or 0)) for c, t, n in rows]

    def sum_expenses_by_day_and_category(self, user_id: int, window: PeriodWindow) -> list[DayCategorySpend]:
        q = (
            select(
                Expense.date,
                Expense.category,
                func.coalesce(func.sum(Expense.amount), 0),
                func.count(Expense.id),
            )
            .where(Expense.user_id == user_id, window_clause(window))
            .group_by(Expense.date, Expense.category)
            .order_by(Expense.date, Expense.category)
        )
        try:
            rows = self.db.execute(q).all()
        except SQLAlchemyError as exc:
            raise SpendStoreError(f"Failed to group expenses by day and category for {window.kind} {window.value}") from exc
        return [
            DayCategorySpend(date=d, category=c, total=to_decimal(t), count=int(n or 0))
            for d, c, t, n in rows
        ]
