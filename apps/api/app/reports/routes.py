"""Reports API routes."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.common.db import get_db
from app.common.models import User
from app.reports import schemas
from app.reports.service import BudgetReportService, ReportFilters

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/budget", response_model=schemas.BudgetReportResponse)
async def get_budget_report(
    status_filter: str = Query("APPROVED", alias="status"),
    type: Optional[str] = Query(None),
    bucket: Optional[str] = Query(None),
    event_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Budget overview.

    Pass ``status=all`` to include every status, ``bucket=ALL`` for both
    buckets and ``event_id=none`` for expenses not tied to an event.
    Members only see their own contributions and expenses.
    """
    filters = ReportFilters(
        status=status_filter,
        type=type,
        bucket=bucket,
        event_id=event_id,
        start_date=start_date,
        end_date=end_date,
    )
    report = BudgetReportService.get_budget_report(db, filters, user.role, user.id)
    return schemas.BudgetReportResponse.model_validate(report)
