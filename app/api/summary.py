from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, get_current_user
from app.core.clock import get_today
from app.db.session import get_db
from app.schemas.summary import MonthSummaryResponse
from app.services.dashboard_service import DashboardService
from app.services.limits.store import SpendStoreError

router = APIRouter(prefix="/api/summary", tags=["summary"])
logger = logging.getLogger("app.summary")


@router.get("/month", response_model=MonthSummaryResponse)
def month_summary(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    db: Session = Depends(get_db),
    current: SessionUser = Depends(get_current_user),
    today: date = Depends(get_today),
) -> MonthSummaryResponse:
    try:
        return DashboardService(db, today).month_summary(current.user_id, month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SpendStoreError:
        logger.exception("month_summary_failed user=%s month=%s", current.user_id, month)
        raise HTTPException(status_code=500, detail="Database error")
