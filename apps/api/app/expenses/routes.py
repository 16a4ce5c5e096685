"""Expense and event API routes."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user, require_admin
from app.common.audit import list_audit_logs
from app.common.db import get_db
from app.common.models import Event, Expense, User
from app.contributions.routes import audit_log_response
from app.contributions.schemas import AuditLogResponse, PendingCountResponse
from app.expenses import schemas
from app.expenses.service import EventService, ExpenseService

router = APIRouter(prefix="/admin/expenses", tags=["expenses"])
events_router = APIRouter(prefix="/admin/events", tags=["events"])
member_router = APIRouter(prefix="/me/expenses", tags=["member"])


def expense_response(e: Expense) -> schemas.ExpenseResponse:
    return schemas.ExpenseResponse(
        id=e.id,
        amount=e.amount,
        vendor=e.vendor,
        purpose=e.purpose,
        description=e.description,
        date=e.date,
        category=e.category,
        bucket=e.bucket,
        event_id=e.event_id,
        event=schemas.EventRef.model_validate(e.event) if e.event else None,
        status=e.status,
        submitted_by=e.submitted_by,
        approved_by=e.approved_by,
        approved_at=e.approved_at.isoformat() if e.approved_at else None,
        created_at=e.created_at.isoformat(),
        updated_at=e.updated_at.isoformat(),
    )


def event_response(event: Event) -> schemas.EventResponse:
    return schemas.EventResponse(
        id=event.id,
        name=event.name,
        description=event.description,
        date=event.date,
        created_at=event.created_at.isoformat(),
    )


# Expense Routes
@router.post("", response_model=schemas.ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    request: schemas.ExpenseCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Record an expense. It is approved immediately."""
    expense = ExpenseService.create_expense(db, admin.id, request.model_dump())
    return expense_response(expense)


@router.post("/bulk", response_model=schemas.BulkExpenseResponse)
async def create_expenses_bulk(
    request: schemas.BulkExpenseRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Create many expenses at once.

    A missing or invalid bucket on any row rejects the whole upload. Other
    per-row failures are reported against the row's index while the
    remaining rows are still created.
    """
    results = ExpenseService.create_expenses_bulk(
        db, admin.id, [item.model_dump() for item in request.expenses]
    )
    created = sum(1 for r in results if r.success)
    return schemas.BulkExpenseResponse(
        created=created,
        failed=len(results) - created,
        results=[
            schemas.BulkItemResponse(
                index=r.index,
                success=r.success,
                expense=expense_response(r.expense) if r.expense else None,
                error=r.error,
            )
            for r in results
        ],
    )


@router.get("", response_model=list[schemas.ExpenseResponse])
async def list_expenses(
    status_filter: Optional[str] = Query(None, alias="status"),
    bucket: Optional[str] = Query(None),
    event_id: Optional[UUID] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    submitted_by: Optional[UUID] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List expenses, newest first."""
    expenses = ExpenseService.list_expenses(
        db=db,
        status=status_filter,
        bucket=bucket,
        event_id=event_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        submitted_by=submitted_by,
    )
    return [expense_response(e) for e in expenses]


@router.get("/pending/count", response_model=PendingCountResponse)
async def count_pending_expenses(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return PendingCountResponse(count=ExpenseService.count_pending(db))


@router.get("/{expense_id}", response_model=schemas.ExpenseResponse)
async def get_expense(
    expense_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return expense_response(ExpenseService.get_expense(db, expense_id))


@router.patch("/{expense_id}", response_model=schemas.ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    request: schemas.ExpenseUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Partially update an expense. Omitted fields are left unchanged."""
    expense = ExpenseService.update_expense(db, admin.id, expense_id, request)
    return expense_response(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ExpenseService.delete_expense(db, admin.id, expense_id)


@router.put("/{expense_id}/approve", response_model=schemas.ExpenseResponse)
async def approve_expense(
    expense_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return expense_response(ExpenseService.approve_expense(db, admin.id, expense_id))


@router.put("/{expense_id}/reject", response_model=schemas.ExpenseResponse)
async def reject_expense(
    expense_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return expense_response(ExpenseService.reject_expense(db, admin.id, expense_id))


@router.get("/{expense_id}/audit-logs", response_model=list[AuditLogResponse])
async def get_expense_audit_logs(
    expense_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ExpenseService.get_expense(db, expense_id)
    return [
        audit_log_response(entry)
        for entry in list_audit_logs(db, "EXPENSE", expense_id)
    ]


# Event Routes
@events_router.post("", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: schemas.EventCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    event = EventService.create_event(
        db,
        admin.id,
        name=request.name,
        description=request.description,
        event_date=request.date,
    )
    return event_response(event)


@events_router.get("", response_model=list[schemas.EventResponse])
async def list_events(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return [event_response(e) for e in EventService.list_events(db)]


@events_router.get("/{event_id}", response_model=schemas.EventResponse)
async def get_event(
    event_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return event_response(EventService.get_event(db, event_id))


@events_router.patch("/{event_id}", response_model=schemas.EventResponse)
async def update_event(
    event_id: UUID,
    request: schemas.EventUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return event_response(EventService.update_event(db, admin.id, event_id, request))


@events_router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delete an event. Its expenses are kept and detached from it."""
    EventService.delete_event(db, admin.id, event_id)


# Member Routes
@member_router.get("", response_model=schemas.MemberExpenseSummaryResponse)
async def my_expenses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Expenses the caller submitted, with totals per status."""
    summary = ExpenseService.member_summary(db, user.id)
    return schemas.MemberExpenseSummaryResponse(
        approved_total=summary["approved_total"],
        pending_total=summary["pending_total"],
        rejected_total=summary["rejected_total"],
        expenses=[expense_response(e) for e in summary["expenses"]],
    )


@member_router.post("", response_model=schemas.ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def submit_expense(
    request: schemas.ExpenseCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submit an expense for reimbursement. It starts out pending."""
    expense = ExpenseService.submit_expense(db, user.id, request.model_dump())
    return expense_response(expense)


@member_router.patch("/{expense_id}", response_model=schemas.ExpenseResponse)
async def update_own_expense(
    expense_id: UUID,
    request: schemas.OwnExpenseUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit one of the caller's own expenses while it is still pending."""
    expense = ExpenseService.update_own_expense(db, user.id, expense_id, request)
    return expense_response(expense)
