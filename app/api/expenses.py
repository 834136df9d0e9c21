from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, get_current_user
from app.db.session import get_db
from app.models.expense import Expense
from app.schemas.expense import ExpenseCreate, ExpenseCreated, ExpenseList, ExpenseRead, ExpenseUpdate

router = APIRouter(prefix="/api/expenses", tags=["expenses"])
logger = logging.getLogger("app.expenses")

# Columns that cannot be cleared by sending null in a partial update.
REQUIRED_FIELDS = ("date", "category", "amount")


def get_owned_expense(db: Session, expense_id: int, user: SessionUser) -> Expense:
    row = db.get(Expense, expense_id)
    if not row:
        raise HTTPException(status_code=404, detail="Expense not found")
    if row.user_id != user.user_id:
        logger.warning("expense_forbidden id=%s user=%s owner=%s", expense_id, user.user_id, row.user_id)
        raise HTTPException(status_code=403, detail="Forbidden")
    return row


@router.post("", response_model=ExpenseCreated, status_code=201)
@router.post("/add", response_model=ExpenseCreated, status_code=201, include_in_schema=False)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> ExpenseCreated:
    row = Expense(
        user_id=current.user_id,
        date=payload.date,
        category=payload.category,
        amount=payload.amount,
        note=payload.note,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("expense_created id=%s user=%s date=%s amount=%s", row.id, current.user_id, row.date, row.amount)
    return ExpenseCreated(expense_id=row.id)


@router.get("", response_model=ExpenseList)
def list_expenses(
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
    on_date: date | None = Query(None, alias="date"),
    category: str | None = Query(None, min_length=1, max_length=128),
) -> ExpenseList:
    q = select(Expense).where(Expense.user_id == current.user_id)
    if on_date:
        q = q.where(Expense.date == on_date)
    if category:
        q = q.where(Expense.category == category)
    rows = db.execute(q.order_by(Expense.date.desc(), Expense.id.desc())).scalars().all()
    return ExpenseList(expenses=[ExpenseRead.model_validate(r) for r in rows])


@router.get("/{expense_id}")
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> dict:
    row = get_owned_expense(db, expense_id, current)
    return {"ok": True, "expense": ExpenseRead.model_validate(row).model_dump(mode="json")}


@router.put("/{expense_id}")
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> dict:
    row = get_owned_expense(db, expense_id, current)
    changes = payload.model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k not in REQUIRED_FIELDS}
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided to update")
    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    logger.info("expense_updated id=%s user=%s fields=%s", row.id, current.user_id, ",".join(sorted(changes)))
    return {"ok": True, "expense": ExpenseRead.model_validate(row).model_dump(mode="json")}


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> dict:
    row = get_owned_expense(db, expense_id, current)
    db.delete(row)
    db.commit()
    logger.info("expense_deleted id=%s user=%s", expense_id, current.user_id)
    return {"ok": True, "deleted": 1}
