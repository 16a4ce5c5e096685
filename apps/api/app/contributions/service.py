"""Contribution ledger service layer."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.common.audit import create_audit_log
from app.common.models import (
    BUCKETS,
    CONTRIBUTION_TYPES,
    LEDGER_STATUSES,
    Contribution,
    User,
    utcnow,
)
from app.contributions.schemas import ContributionUpdateRequest
from app.contributions.split import compute_split, split_amount, to_money
from app.core.errors import NotFoundError, ValidationAPIError
from app.core.metrics import emit_ledger_event
from app.settings.service import SettingsService

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def validate_status(status: str) -> str:
    if status not in LEDGER_STATUSES:
        raise ValidationAPIError(f"Invalid status: {status}", field="status")
    return status


def validate_bucket(bucket: str) -> str:
    if bucket not in BUCKETS:
        raise ValidationAPIError(f"Invalid bucket: {bucket}", field="bucket")
    return bucket


def contribution_bucket_clause(bucket: str):
    """Contributions carrying a positive share in ``bucket``."""
    validate_bucket(bucket)
    if bucket == "LIFT":
        return Contribution.lift_amount > 0
    return Contribution.aa_amount > 0


def _actor_name(db: Session, actor_id: UUID) -> str:
    actor = db.get(User, actor_id)
    return actor.name if actor else str(actor_id)


class ContributionService:
    """Service for recording, editing and approving contributions."""

    @staticmethod
    def _insert(
        db: Session,
        actor_id: UUID,
        member_id: UUID,
        amount: Any,
        contribution_date: date,
        contribution_type: str,
        status: str,
        notes: Optional[str],
        lift_percentage: Any,
        aa_percentage: Any,
    ) -> Contribution:
        split = compute_split(
            amount,
            contribution_type,
            lift_percentage,
            aa_percentage,
            default_lift_percentage=SettingsService.get_default_lift_percentage(db),
        )

        if not db.get(User, member_id):
            raise NotFoundError("Member", member_id)

        contribution = Contribution(
            user_id=member_id,
            amount=to_money(amount),
            date=contribution_date,
            type=contribution_type,
            status=status,
            lift_percentage=split.lift_percentage,
            aa_percentage=split.aa_percentage,
            lift_amount=split.lift_amount,
            aa_amount=split.aa_amount,
            notes=notes,
            created_by=actor_id,
        )
        if status == "APPROVED":
            contribution.approved_by = actor_id
            contribution.approved_at = utcnow()

        db.add(contribution)
        db.commit()
        db.refresh(contribution)

        logger.info(
            "Contribution recorded",
            extra={
                "contribution_id": str(contribution.id),
                "member_id": str(member_id),
                "type": contribution_type,
                "status": status,
                "amount": str(contribution.amount),
            },
        )
        emit_ledger_event("CONTRIBUTION", "created", contribution.amount, status=status)
        return contribution

    @staticmethod
    def create_contribution(
        db: Session,
        actor_id: UUID,
        member_id: UUID,
        amount: Any,
        contribution_date: date,
        contribution_type: str,
        notes: Optional[str] = None,
        lift_percentage: Any = None,
        aa_percentage: Any = None,
    ) -> Contribution:
        """Record a contribution on a member's behalf. Approved immediately."""
        return ContributionService._insert(
            db,
            actor_id,
            member_id,
            amount,
            contribution_date,
            contribution_type,
            "APPROVED",
            notes,
            lift_percentage,
            aa_percentage,
        )

    @staticmethod
    def submit_contribution(
        db: Session,
        member_id: UUID,
        amount: Any,
        contribution_type: str,
        contribution_date: Optional[date] = None,
        notes: Optional[str] = None,
        lift_percentage: Any = None,
        aa_percentage: Any = None,
    ) -> Contribution:
        """Self-service submission by a member. Starts PENDING."""
        return ContributionService._insert(
            db,
            member_id,
            member_id,
            amount,
            contribution_date or date.today(),
            contribution_type,
            "PENDING",
            notes,
            lift_percentage,
            aa_percentage,
        )

    @staticmethod
    def get_contribution(db: Session, contribution_id: UUID) -> Contribution:
        contribution = db.get(Contribution, contribution_id)
        if not contribution:
            raise NotFoundError("Contribution", contribution_id)
        return contribution

    @staticmethod
    def update_contribution(
        db: Session,
        actor_id: UUID,
        contribution_id: UUID,
        changes: ContributionUpdateRequest,
    ) -> Contribution:
        """
        Apply a partial update to a contribution.

        BASIC contributions always take the current default split, so any
        edit re-derives their percentages. ADDITIONAL contributions keep
        their stored percentages unless the update supplies new ones, and
        their amounts are recomputed only when amount, type or a percentage
        changes.

        Setting status here stamps the approver but writes no audit entry;
        approve_contribution/reject_contribution are the audited path.
        """
        contribution = ContributionService.get_contribution(db, contribution_id)
        provided = changes.model_fields_set

        for field in ("amount", "date", "type", "status"):
            if field in provided and getattr(changes, field) is None:
                raise ValidationAPIError(f"{field} cannot be null", field=field)

        amount = contribution.amount
        if "amount" in provided:
            amount = to_money(changes.amount)

        contribution_type = contribution.type
        if "type" in provided:
            if changes.type not in CONTRIBUTION_TYPES:
                raise ValidationAPIError(
                    f"Invalid contribution type: {changes.type}", field="type"
                )
            contribution_type = changes.type

        percentages_supplied = (
            "lift_percentage" in provided or "aa_percentage" in provided
        )

        if contribution_type == "BASIC":
            split = compute_split(
                amount,
                "BASIC",
                default_lift_percentage=SettingsService.get_default_lift_percentage(db),
            )
        elif percentages_supplied:
            lift = (
                changes.lift_percentage
                if "lift_percentage" in provided
                else contribution.lift_percentage
            )
            aa = (
                changes.aa_percentage
                if "aa_percentage" in provided
                else contribution.aa_percentage
            )
            split = compute_split(amount, "ADDITIONAL", lift, aa)
        elif amount != contribution.amount or contribution_type != contribution.type:
            split = split_amount(
                amount, contribution.lift_percentage, contribution.aa_percentage
            )
        else:
            split = None

        contribution.amount = amount
        contribution.type = contribution_type
        if split is not None:
            contribution.lift_percentage = split.lift_percentage
            contribution.aa_percentage = split.aa_percentage
            contribution.lift_amount = split.lift_amount
            contribution.aa_amount = split.aa_amount

        if "date" in provided:
            contribution.date = changes.date
        if "notes" in provided:
            contribution.notes = changes.notes
        if "status" in provided:
            contribution.status = validate_status(changes.status)
            if changes.status in ("APPROVED", "REJECTED"):
                contribution.approved_by = actor_id
                contribution.approved_at = utcnow()

        db.commit()
        db.refresh(contribution)

        logger.info(
            "Contribution updated",
            extra={
                "contribution_id": str(contribution_id),
                "actor_id": str(actor_id),
                "fields": sorted(provided),
            },
        )
        return contribution

    @staticmethod
    def _decide(
        db: Session, actor_id: UUID, contribution_id: UUID, status: str
    ) -> Contribution:
        contribution = ContributionService.get_contribution(db, contribution_id)

        contribution.status = status
        contribution.approved_by = actor_id
        contribution.approved_at = utcnow()

        create_audit_log(
            db,
            actor_id,
            "CONTRIBUTION",
            contribution.id,
            status,
            notes=f"Contribution {status.lower()} by {_actor_name(db, actor_id)}",
        )

        db.commit()
        db.refresh(contribution)

        logger.info(
            f"Contribution {status.lower()}",
            extra={
                "contribution_id": str(contribution_id),
                "actor_id": str(actor_id),
            },
        )
        emit_ledger_event("CONTRIBUTION", status.lower(), contribution.amount)
        return contribution

    @staticmethod
    def approve_contribution(
        db: Session, actor_id: UUID, contribution_id: UUID
    ) -> Contribution:
        """Approve a contribution and append an audit entry.

        Approving an already approved contribution is not an error; it
        re-stamps the approver and appends another entry.
        """
        return ContributionService._decide(db, actor_id, contribution_id, "APPROVED")

    @staticmethod
    def reject_contribution(
        db: Session, actor_id: UUID, contribution_id: UUID
    ) -> Contribution:
        """Reject a contribution and append an audit entry."""
        return ContributionService._decide(db, actor_id, contribution_id, "REJECTED")

    @staticmethod
    def delete_contribution(db: Session, actor_id: UUID, contribution_id: UUID) -> None:
        contribution = ContributionService.get_contribution(db, contribution_id)
        db.delete(contribution)
        db.commit()
        logger.info(
            "Contribution deleted",
            extra={"contribution_id": str(contribution_id), "actor_id": str(actor_id)},
        )

    @staticmethod
    def list_contributions(
        db: Session,
        status: Optional[str] = None,
        contribution_type: Optional[str] = None,
        bucket: Optional[str] = None,
        member_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Contribution]:
        """List contributions, newest created first.

        The bucket filter matches contributions with a positive share in
        that bucket, so a 50/50 contribution appears under both.
        """
        stmt = select(Contribution)

        if status:
            stmt = stmt.where(Contribution.status == validate_status(status))
        if contribution_type:
            stmt = stmt.where(Contribution.type == contribution_type)
        if bucket:
            stmt = stmt.where(contribution_bucket_clause(bucket))
        if member_id:
            stmt = stmt.where(Contribution.user_id == member_id)
        if start_date:
            stmt = stmt.where(Contribution.date >= start_date)
        if end_date:
            stmt = stmt.where(Contribution.date <= end_date)

        stmt = stmt.order_by(Contribution.created_at.desc())
        return list(db.execute(stmt).unique().scalars().all())

    @staticmethod
    def member_summary(
        db: Session,
        member_id: UUID,
        contribution_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> dict:
        """
        A member's own contributions with totals.

        ``total`` and the bucket totals count approved contributions only;
        ``pending_total`` shows what is still awaiting review.
        """
        stmt = select(Contribution).where(Contribution.user_id == member_id)
        if contribution_type:
            stmt = stmt.where(Contribution.type == contribution_type)
        if bucket:
            stmt = stmt.where(contribution_bucket_clause(bucket))
        stmt = stmt.order_by(Contribution.date.desc(), Contribution.created_at.desc())

        contributions = list(db.execute(stmt).unique().scalars().all())
        approved = [c for c in contributions if c.status == "APPROVED"]

        return {
            "total": sum((c.amount for c in approved), ZERO),
            "pending_total": sum(
                (c.amount for c in contributions if c.status == "PENDING"), ZERO
            ),
            "lift_total": sum((c.lift_amount for c in approved), ZERO),
            "aa_total": sum((c.aa_amount for c in approved), ZERO),
            "contributions": contributions,
        }

    @staticmethod
    def count_pending(db: Session) -> int:
        return db.execute(
            select(func.count(Contribution.id)).where(Contribution.status == "PENDING")
        ).scalar_one()
