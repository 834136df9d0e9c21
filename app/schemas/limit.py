from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.spending_limit import LimitPeriod
from app.schemas.types import IsoDate, Money


class SpendingLimitSet(BaseModel):
    period: LimitPeriod
    category: Optional[str] = Field(None, max_length=128, description="Omit or leave blank for a total limit")
    limit_amount: Money = Field(..., gt=0, max_digits=12, decimal_places=2, allow_inf_nan=False)

    @field_validator("category")
    @classmethod
    def _blank_is_total(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class SpendingLimitRead(BaseModel):
    id: int
    period: str
    category: Optional[str] = None
    limit_amount: Money
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SpendingLimitSaved(BaseModel):
    ok: bool = True
    limit: SpendingLimitRead
    message: str = "Spending limit updated successfully."


class SpendingLimitList(BaseModel):
    ok: bool = True
    limits: list[SpendingLimitRead]


class LimitCheckRequest(BaseModel):
    date: IsoDate
    category: str = Field(..., min_length=1, max_length=128)
    amount: Money = Field(..., ge=0, allow_inf_nan=False)


class LimitWarningRead(BaseModel):
    period: str
    category: str
    limit_amount: Money
    current_spent: Money
    new_total: Money
    percentage: float
    severity: Literal["warning", "exceeded"]
    remaining: Optional[Money] = None
    overage: Optional[Money] = None

    model_config = {"from_attributes": True}


class LimitCheckResponse(BaseModel):
    ok: bool = True
    has_warnings: bool
    warnings: list[LimitWarningRead]
