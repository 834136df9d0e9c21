from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.types import IsoDate, Money


class ExpenseBase(BaseModel):
    date: IsoDate
    category: str = Field(..., min_length=1, max_length=128)
    amount: Money = Field(..., ge=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    note: Optional[str] = Field(None, max_length=1000)


class ExpenseCreate(ExpenseBase):
    @field_validator("category")
    @classmethod
    def _strip_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("category cannot be blank")
        return v


class ExpenseUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    date: Optional[IsoDate] = None
    category: Optional[str] = Field(None, min_length=1, max_length=128)
    amount: Optional[Money] = Field(None, ge=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("category")
    @classmethod
    def _strip_category(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("category cannot be blank")
        return v


class ExpenseRead(ExpenseBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExpenseCreated(BaseModel):
    ok: bool = True
    expense_id: int


class ExpenseList(BaseModel):
    ok: bool = True
    expenses: list[ExpenseRead]
