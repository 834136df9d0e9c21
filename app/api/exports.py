from __future__ import annotations

import csv
import io

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, get_current_user
from app.db.session import get_db
from app.models.expense import Expense

router = APIRouter(prefix="/api/exports", tags=["exports"])

HEADER = ["id", "date", "category", "amount", "note"]


def _rows(db: Session, user_id: int) -> list[list[str]]:
    expenses = db.execute(
        select(Expense).where(Expense.user_id == user_id).order_by(Expense.date, Expense.id)
    ).scalars().all()
    return [[str(e.id), e.date.isoformat(), e.category, f"{e.amount:.2f}", e.note or ""] for e in expenses]


@router.get("/expenses.csv")
def export_expenses_csv(
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> Response:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(HEADER)
    w.writerows(_rows(db, current.user_id))
    return Response(
        content=out.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="expenses.csv"'},
    )


@router.get("/expenses.xlsx")
def export_expenses_xlsx(
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> Response:
    wb = Workbook()
    ws = wb.active
    ws.title = "Expenses"
    ws.append(HEADER)
    for r in _rows(db, current.user_id):
        ws.append([int(r[0]), r[1], r[2], float(r[3]), r[4]])
    bio = io.BytesIO()
    wb.save(bio)
    return Response(
        content=bio.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="expenses.xlsx"'},
    )
