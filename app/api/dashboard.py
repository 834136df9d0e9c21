from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, get_current_user
from app.core.clock import get_today
from app.db.session import get_db
from app.models.spending_limit import SpendingLimit
from app.schemas.limit import (
    LimitCheckRequest,
    LimitCheckResponse,
    LimitWarningRead,
    SpendingLimitList,
    SpendingLimitRead,
    SpendingLimitSaved,
    SpendingLimitSet,
)
from app.schemas.summary import DashboardOverview
from app.services.dashboard_service import DashboardService
from app.services.limits import CandidateExpense, InvalidCandidateError, LimitEvaluator, SpendStoreError, SqlSpendStore

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])
logger = logging.getLogger("app.limits")


def _find_limit(db: Session, user_id: int, period: str, category: str | None) -> SpendingLimit | None:
    q = select(SpendingLimit).where(SpendingLimit.user_id == user_id, SpendingLimit.period == period)
    if category is None:
        q = q.where(SpendingLimit.category.is_(None))
    else:
        q = q.where(SpendingLimit.category == category)
    return db.execute(q).scalars().first()


def upsert_limit(db: Session, user_id: int, payload: SpendingLimitSet) -> SpendingLimit:
    """Insert or replace the amount of the (user, period, category) limit."""
    period = payload.period.value
    row = _find_limit(db, user_id, period, payload.category)
    if row:
        row.limit_amount = payload.limit_amount
        db.commit()
        return row
    row = SpendingLimit(user_id=user_id, period=period, category=payload.category, limit_amount=payload.limit_amount)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same key first; update that row instead.
        db.rollback()
        row = _find_limit(db, user_id, period, payload.category)
        if row is None:
            raise
        row.limit_amount = payload.limit_amount
        db.commit()
    return row


@router.get("/overview", response_model=DashboardOverview)
def overview(
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
    today: date = Depends(get_today),
) -> DashboardOverview:
    try:
        return DashboardService(db, today).overview(current.user_id)
    except SpendStoreError:
        logger.exception("dashboard_overview_failed user=%s", current.user_id)
        raise HTTPException(status_code=500, detail="Database error")


@router.post("/set-limit", response_model=SpendingLimitSaved)
def set_limit(
    payload: SpendingLimitSet,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> SpendingLimitSaved:
    row = upsert_limit(db, current.user_id, payload)
    db.refresh(row)
    logger.info(
        "limit_saved id=%s user=%s period=%s category=%r amount=%s",
        row.id,
        current.user_id,
        row.period,
        row.category,
        row.limit_amount,
    )
    return SpendingLimitSaved(limit=SpendingLimitRead.model_validate(row))


@router.get("/limits", response_model=SpendingLimitList)
def list_limits(
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> SpendingLimitList:
    try:
        rows = SqlSpendStore(db).get_limits_for_user(current.user_id)
    except SpendStoreError:
        logger.exception("limits_list_failed user=%s", current.user_id)
        raise HTTPException(status_code=500, detail="Database error")
    return SpendingLimitList(limits=[SpendingLimitRead.model_validate(r) for r in rows])


@router.delete("/limit/{limit_id}")
def delete_limit(
    limit_id: int,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
) -> dict:
    row = db.get(SpendingLimit, limit_id)
    if not row or row.user_id != current.user_id:
        raise HTTPException(status_code=404, detail="Limit not found")
    db.delete(row)
    db.commit()
    logger.info("limit_deleted id=%s user=%s", limit_id, current.user_id)
    return {"ok": True, "message": "Limit deleted successfully."}


@router.post("/check-limit", response_model=LimitCheckResponse, response_model_exclude_none=True)
def check_limit(
    payload: LimitCheckRequest,
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
    today: date = Depends(get_today),
) -> LimitCheckResponse:
    try:
        candidate = CandidateExpense.parse(payload.date, payload.category, payload.amount)
    except InvalidCandidateError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    evaluator = LimitEvaluator(SqlSpendStore(db), today_provider=lambda: today)
    try:
        result = evaluator.evaluate(current.user_id, candidate)
    except SpendStoreError:
        logger.exception("limit_check_failed user=%s", current.user_id)
        raise HTTPException(status_code=500, detail="Database error")
    return LimitCheckResponse(
        has_warnings=result.has_warnings,
        warnings=[LimitWarningRead.model_validate(w) for w in result.warnings],
    )
