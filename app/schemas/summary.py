from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel

from app.schemas.expense import ExpenseRead
from app.schemas.types import Money


class CategoryTotal(BaseModel):
    category: str
    total: Money

    model_config = {"from_attributes": True}


class DayTotal(BaseModel):
    date: date
    total: Money

    model_config = {"from_attributes": True}


class MonthSummaryResponse(BaseModel):
    ok: bool = True
    month: str
    total: Money
    count: int
    by_category: list[CategoryTotal]
    by_day: list[DayTotal]


class PeriodSummaryRead(BaseModel):
    period: str
    start: date
    total: Money
    count: int
    categories: int
    by_category: list[CategoryTotal]


class LimitProgress(BaseModel):
    id: int
    period: str
    label: str
    category: Optional[str] = None
    limit_amount: Money
    spent: Money
    remaining: Money
    percentage: float
    status: Literal["ok", "warning", "exceeded"]


class DashboardOverview(BaseModel):
    ok: bool = True
    today: PeriodSummaryRead
    week: PeriodSummaryRead
    month: PeriodSummaryRead
    year: PeriodSummaryRead
    limits: list[LimitProgress]
    recent_expenses: list[ExpenseRead]
