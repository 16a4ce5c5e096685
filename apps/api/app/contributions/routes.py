"""Contribution API routes."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user, require_admin
from app.common.audit import list_audit_logs
from app.common.db import get_db
from app.common.models import AuditLogEntry, Contribution, User
from app.contributions import schemas
from app.contributions.service import ContributionService

router = APIRouter(prefix="/admin/contributions", tags=["contributions"])
member_router = APIRouter(prefix="/me/contributions", tags=["member"])


def contribution_response(c: Contribution) -> schemas.ContributionResponse:
    return schemas.ContributionResponse(
        id=c.id,
        user_id=c.user_id,
        user=schemas.MemberRef.model_validate(c.user) if c.user else None,
        amount=c.amount,
        date=c.date,
        type=c.type,
        status=c.status,
        lift_percentage=c.lift_percentage,
        aa_percentage=c.aa_percentage,
        lift_amount=c.lift_amount,
        aa_amount=c.aa_amount,
        notes=c.notes,
        created_by=c.created_by,
        approved_by=c.approved_by,
        approved_at=c.approved_at.isoformat() if c.approved_at else None,
        created_at=c.created_at.isoformat(),
        updated_at=c.updated_at.isoformat(),
    )


def audit_log_response(entry: AuditLogEntry) -> schemas.AuditLogResponse:
    return schemas.AuditLogResponse(
        id=entry.id,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        action=entry.action,
        user_id=entry.user_id,
        user_name=entry.user.name if entry.user else None,
        notes=entry.notes,
        timestamp=entry.timestamp.isoformat(),
    )


# Admin Routes
@router.post("", response_model=schemas.ContributionResponse, status_code=status.HTTP_201_CREATED)
async def create_contribution(
    request: schemas.ContributionCreateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Record a contribution for a member. It is approved immediately."""
    contribution = ContributionService.create_contribution(
        db=db,
        actor_id=admin.id,
        member_id=request.user_id,
        amount=request.amount,
        contribution_date=request.date,
        contribution_type=request.type,
        notes=request.notes,
        lift_percentage=request.lift_percentage,
        aa_percentage=request.aa_percentage,
    )
    return contribution_response(contribution)


@router.get("", response_model=list[schemas.ContributionResponse])
async def list_contributions(
    status_filter: Optional[str] = Query(None, alias="status"),
    type: Optional[str] = Query(None, pattern="^(BASIC|ADDITIONAL)$"),
    bucket: Optional[str] = Query(None),
    user_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List contributions, newest first."""
    contributions = ContributionService.list_contributions(
        db=db,
        status=status_filter,
        contribution_type=type,
        bucket=bucket,
        member_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )
    return [contribution_response(c) for c in contributions]


@router.get("/pending/count", response_model=schemas.PendingCountResponse)
async def count_pending_contributions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return schemas.PendingCountResponse(count=ContributionService.count_pending(db))


@router.get("/{contribution_id}", response_model=schemas.ContributionResponse)
async def get_contribution(
    contribution_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return contribution_response(
        ContributionService.get_contribution(db, contribution_id)
    )


@router.patch("/{contribution_id}", response_model=schemas.ContributionResponse)
async def update_contribution(
    contribution_id: UUID,
    request: schemas.ContributionUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Partially update a contribution. Omitted fields are left unchanged."""
    contribution = ContributionService.update_contribution(
        db=db,
        actor_id=admin.id,
        contribution_id=contribution_id,
        changes=request,
    )
    return contribution_response(contribution)


@router.delete("/{contribution_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contribution(
    contribution_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ContributionService.delete_contribution(db, admin.id, contribution_id)


@router.put("/{contribution_id}/approve", response_model=schemas.ContributionResponse)
async def approve_contribution(
    contribution_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return contribution_response(
        ContributionService.approve_contribution(db, admin.id, contribution_id)
    )


@router.put("/{contribution_id}/reject", response_model=schemas.ContributionResponse)
async def reject_contribution(
    contribution_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return contribution_response(
        ContributionService.reject_contribution(db, admin.id, contribution_id)
    )


@router.get("/{contribution_id}/audit-logs", response_model=list[schemas.AuditLogResponse])
async def get_contribution_audit_logs(
    contribution_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approval history of a contribution, newest first."""
    ContributionService.get_contribution(db, contribution_id)
    return [
        audit_log_response(entry)
        for entry in list_audit_logs(db, "CONTRIBUTION", contribution_id)
    ]


# Member Routes
@member_router.get("", response_model=schemas.MemberContributionSummaryResponse)
async def my_contributions(
    type: Optional[str] = Query(None, pattern="^(BASIC|ADDITIONAL)$"),
    bucket: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's contributions and totals."""
    summary = ContributionService.member_summary(
        db, user.id, contribution_type=type, bucket=bucket
    )
    return schemas.MemberContributionSummaryResponse(
        total=summary["total"],
        pending_total=summary["pending_total"],
        lift_total=summary["lift_total"],
        aa_total=summary["aa_total"],
        contributions=[contribution_response(c) for c in summary["contributions"]],
    )


@member_router.post("", response_model=schemas.ContributionResponse, status_code=status.HTTP_201_CREATED)
async def submit_contribution(
    request: schemas.ContributionSubmitRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submit a contribution for review."""
    contribution = ContributionService.submit_contribution(
        db=db,
        member_id=user.id,
        amount=request.amount,
        contribution_type=request.type,
        contribution_date=request.date,
        notes=request.notes,
        lift_percentage=request.lift_percentage,
        aa_percentage=request.aa_percentage,
    )
    return contribution_response(contribution)
