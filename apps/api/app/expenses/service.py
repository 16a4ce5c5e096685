"""Expense ledger and event service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.audit import create_audit_log
from app.common.models import BUCKETS, Event, Expense, User, utcnow
from app.contributions.service import validate_bucket, validate_status
from app.contributions.split import to_money
from app.core.errors import (
    APIError,
    ForbiddenError,
    NotFoundError,
    ValidationAPIError,
)
from app.core.metrics import emit_ledger_event
from app.expenses.schemas import (
    EventUpdateRequest,
    ExpenseUpdateRequest,
    OwnExpenseUpdateRequest,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Fields a member may change on their own pending expense
OWN_EDITABLE_FIELDS = (
    "amount",
    "vendor",
    "purpose",
    "description",
    "date",
    "category",
    "event_id",
)


@dataclass
class BulkItemResult:
    """Outcome of one item of a bulk create."""

    index: int
    expense: Optional[Expense] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.expense is not None


def _required_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationAPIError(f"{field} is required", field=field)
    return str(value).strip()


def _actor_name(db: Session, actor_id: UUID) -> str:
    actor = db.get(User, actor_id)
    return actor.name if actor else str(actor_id)


class EventService:
    """Service for managing events that group expenses."""

    @staticmethod
    def create_event(
        db: Session,
        actor_id: UUID,
        name: str,
        description: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> Event:
        event = Event(
            name=_required_text(name, "name"),
            description=description,
            date=event_date,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(
            "Event created",
            extra={"event_id": str(event.id), "actor_id": str(actor_id)},
        )
        return event

    @staticmethod
    def get_event(db: Session, event_id: UUID) -> Event:
        event = db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    @staticmethod
    def list_events(db: Session) -> list[Event]:
        """List events, most recent first. Undated events sort last."""
        stmt = select(Event).order_by(
            Event.date.is_(None), Event.date.desc(), Event.name
        )
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def update_event(
        db: Session, actor_id: UUID, event_id: UUID, changes: EventUpdateRequest
    ) -> Event:
        event = EventService.get_event(db, event_id)
        provided = changes.model_fields_set

        if "name" in provided:
            event.name = _required_text(changes.name, "name")
        if "description" in provided:
            event.description = changes.description
        if "date" in provided:
            event.date = changes.date

        db.commit()
        db.refresh(event)
        logger.info(
            "Event updated",
            extra={"event_id": str(event_id), "actor_id": str(actor_id)},
        )
        return event

    @staticmethod
    def delete_event(db: Session, actor_id: UUID, event_id: UUID) -> int:
        """
        Delete an event.

        Expenses that referenced it are kept and detached (event_id set to
        NULL) in the same transaction.

        Returns:
            Number of expenses detached
        """
        event = EventService.get_event(db, event_id)

        detached = db.execute(
            update(Expense)
            .where(Expense.event_id == event_id)
            .values(event_id=None)
            .execution_options(synchronize_session="fetch")
        ).rowcount
        db.delete(event)
        db.commit()

        logger.info(
            "Event deleted",
            extra={
                "event_id": str(event_id),
                "actor_id": str(actor_id),
                "detached_expenses": detached,
            },
        )
        return detached


class ExpenseService:
    """Service for recording, editing and approving expenses."""

    @staticmethod
    def _build(
        db: Session, actor_id: UUID, payload: Mapping[str, Any], status: str
    ) -> Expense:
        """Validate a create payload and build an unsaved Expense."""
        bucket = payload.get("bucket")
        if not bucket:
            raise ValidationAPIError("bucket is required", field="bucket")
        validate_bucket(bucket)

        expense_date = payload.get("date")
        if expense_date is None:
            raise ValidationAPIError("date is required", field="date")

        event_id = payload.get("event_id")
        if event_id is not None:
            EventService.get_event(db, event_id)

        expense = Expense(
            amount=to_money(payload.get("amount")),
            vendor=payload.get("vendor"),
            purpose=_required_text(payload.get("purpose"), "purpose"),
            description=payload.get("description"),
            date=expense_date,
            category=_required_text(payload.get("category"), "category"),
            bucket=bucket,
            event_id=event_id,
            status=status,
            submitted_by=actor_id,
        )
        if status == "APPROVED":
            expense.approved_by = actor_id
            expense.approved_at = utcnow()
        return expense

    @staticmethod
    def _save(db: Session, expense: Expense) -> Expense:
        db.add(expense)
        db.commit()
        db.refresh(expense)

        logger.info(
            "Expense recorded",
            extra={
                "expense_id": str(expense.id),
                "bucket": expense.bucket,
                "status": expense.status,
                "amount": str(expense.amount),
            },
        )
        emit_ledger_event(
            "EXPENSE", "created", expense.amount, bucket=expense.bucket
        )
        return expense

    @staticmethod
    def create_expense(
        db: Session, actor_id: UUID, payload: Mapping[str, Any]
    ) -> Expense:
        """Record an expense as an administrator. Approved immediately."""
        expense = ExpenseService._build(db, actor_id, payload, "APPROVED")
        return ExpenseService._save(db, expense)

    @staticmethod
    def submit_expense(
        db: Session, member_id: UUID, payload: Mapping[str, Any]
    ) -> Expense:
        """Member submission for reimbursement. Starts PENDING."""
        expense = ExpenseService._build(db, member_id, payload, "PENDING")
        return ExpenseService._save(db, expense)

    @staticmethod
    def create_expenses_bulk(
        db: Session, actor_id: UUID, payloads: Sequence[Mapping[str, Any]]
    ) -> list[BulkItemResult]:
        """
        Create many approved expenses.

        Every bucket is checked before anything is written; one missing or
        invalid bucket rejects the whole batch. After that each item is
        committed on its own, so a failure on one item is recorded in its
        result and does not undo or block the others.

        Args:
            db: Database session
            actor_id: Administrator creating the expenses
            payloads: Expense create payloads

        Returns:
            One BulkItemResult per payload, in input order
        """
        if not payloads:
            raise ValidationAPIError("No expenses provided", field="expenses")

        bad_buckets = [
            {
                "index": index,
                "field": "bucket",
                "message": f"Invalid bucket: {payload.get('bucket')}",
            }
            for index, payload in enumerate(payloads)
            if payload.get("bucket") not in BUCKETS
        ]
        if bad_buckets:
            raise ValidationAPIError(
                "Every expense needs a bucket of LIFT or ALUMNI_ASSOCIATION",
                errors=bad_buckets,
            )

        results: list[BulkItemResult] = []
        for index, payload in enumerate(payloads):
            try:
                expense = ExpenseService._build(db, actor_id, payload, "APPROVED")
                results.append(
                    BulkItemResult(index=index, expense=ExpenseService._save(db, expense))
                )
            except (APIError, SQLAlchemyError) as e:
                db.rollback()
                message = e.message if isinstance(e, APIError) else "Database error"
                logger.warning(
                    "Bulk expense item failed",
                    extra={"index": index, "error": str(e)},
                )
                results.append(BulkItemResult(index=index, error=message))

        logger.info(
            "Bulk expense upload finished",
            extra={
                "actor_id": str(actor_id),
                "created_count": sum(1 for r in results if r.success),
                "failed_count": sum(1 for r in results if not r.success),
            },
        )
        return results

    @staticmethod
    def get_expense(db: Session, expense_id: UUID) -> Expense:
        expense = db.get(Expense, expense_id)
        if not expense:
            raise NotFoundError("Expense", expense_id)
        return expense

    @staticmethod
    def _apply_changes(
        db: Session,
        expense: Expense,
        changes: Union[ExpenseUpdateRequest, OwnExpenseUpdateRequest],
        fields: Sequence[str],
    ) -> list[str]:
        provided = [f for f in fields if f in changes.model_fields_set]

        for field in provided:
            value = getattr(changes, field)
            if field == "amount":
                expense.amount = to_money(value)
            elif field in ("purpose", "category"):
                setattr(expense, field, _required_text(value, field))
            elif field == "date":
                if value is None:
                    raise ValidationAPIError("date cannot be null", field="date")
                expense.date = value
            elif field == "bucket":
                if value is None:
                    raise ValidationAPIError("bucket cannot be null", field="bucket")
                expense.bucket = validate_bucket(value)
            elif field == "event_id":
                if value is not None:
                    EventService.get_event(db, value)
                expense.event_id = value
            else:
                setattr(expense, field, value)
        return provided

    @staticmethod
    def update_expense(
        db: Session,
        actor_id: UUID,
        expense_id: UUID,
        changes: ExpenseUpdateRequest,
    ) -> Expense:
        """
        Apply a partial update to an expense (admin).

        A status change stamps the approver but writes no audit entry; use
        approve_expense/reject_expense for the audited path.
        """
        expense = ExpenseService.get_expense(db, expense_id)
        provided = ExpenseService._apply_changes(
            db, expense, changes, OWN_EDITABLE_FIELDS + ("bucket",)
        )

        if "status" in changes.model_fields_set:
            if changes.status is None:
                raise ValidationAPIError("status cannot be null", field="status")
            expense.status = validate_status(changes.status)
            if changes.status in ("APPROVED", "REJECTED"):
                expense.approved_by = actor_id
                expense.approved_at = utcnow()
            provided.append("status")

        db.commit()
        db.refresh(expense)
        logger.info(
            "Expense updated",
            extra={
                "expense_id": str(expense_id),
                "actor_id": str(actor_id),
                "fields": sorted(provided),
            },
        )
        return expense

    @staticmethod
    def update_own_expense(
        db: Session,
        member_id: UUID,
        expense_id: UUID,
        changes: OwnExpenseUpdateRequest,
    ) -> Expense:
        """Let a member edit their own expense while it is still pending."""
        expense = ExpenseService.get_expense(db, expense_id)
        if expense.submitted_by != member_id:
            raise ForbiddenError("You can only edit expenses you submitted")
        if expense.status != "PENDING":
            raise ValidationAPIError(
                "Only pending expenses can be edited", field="status"
            )

        provided = ExpenseService._apply_changes(
            db, expense, changes, OWN_EDITABLE_FIELDS
        )

        db.commit()
        db.refresh(expense)
        logger.info(
            "Expense updated by submitter",
            extra={
                "expense_id": str(expense_id),
                "member_id": str(member_id),
                "fields": sorted(provided),
            },
        )
        return expense

    @staticmethod
    def delete_expense(db: Session, actor_id: UUID, expense_id: UUID) -> None:
        expense = ExpenseService.get_expense(db, expense_id)
        db.delete(expense)
        db.commit()
        logger.info(
            "Expense deleted",
            extra={"expense_id": str(expense_id), "actor_id": str(actor_id)},
        )

    @staticmethod
    def _decide(db: Session, actor_id: UUID, expense_id: UUID, status: str) -> Expense:
        expense = ExpenseService.get_expense(db, expense_id)

        expense.status = status
        expense.approved_by = actor_id
        expense.approved_at = utcnow()

        create_audit_log(
            db,
            actor_id,
            "EXPENSE",
            expense.id,
            status,
            notes=f"Expense {status.lower()} by {_actor_name(db, actor_id)}",
        )

        db.commit()
        db.refresh(expense)

        logger.info(
            f"Expense {status.lower()}",
            extra={"expense_id": str(expense_id), "actor_id": str(actor_id)},
        )
        emit_ledger_event("EXPENSE", status.lower(), expense.amount)
        return expense

    @staticmethod
    def approve_expense(db: Session, actor_id: UUID, expense_id: UUID) -> Expense:
        """Approve an expense and append an audit entry."""
        return ExpenseService._decide(db, actor_id, expense_id, "APPROVED")

    @staticmethod
    def reject_expense(db: Session, actor_id: UUID, expense_id: UUID) -> Expense:
        """Reject an expense and append an audit entry."""
        return ExpenseService._decide(db, actor_id, expense_id, "REJECTED")

    @staticmethod
    def list_expenses(
        db: Session,
        status: Optional[str] = None,
        bucket: Optional[str] = None,
        event_id: Optional[UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        submitted_by: Optional[UUID] = None,
    ) -> list[Expense]:
        """List expenses, newest created first."""
        stmt = select(Expense)

        if status:
            stmt = stmt.where(Expense.status == validate_status(status))
        if bucket:
            stmt = stmt.where(Expense.bucket == validate_bucket(bucket))
        if event_id:
            stmt = stmt.where(Expense.event_id == event_id)
        if category:
            stmt = stmt.where(Expense.category == category)
        if start_date:
            stmt = stmt.where(Expense.date >= start_date)
        if end_date:
            stmt = stmt.where(Expense.date <= end_date)
        if submitted_by:
            stmt = stmt.where(Expense.submitted_by == submitted_by)

        stmt = stmt.order_by(Expense.created_at.desc())
        return list(db.execute(stmt).unique().scalars().all())

    @staticmethod
    def member_summary(db: Session, member_id: UUID) -> dict:
        """Expenses a member submitted, with totals per status."""
        expenses = list(
            db.execute(
                select(Expense)
                .where(Expense.submitted_by == member_id)
                .order_by(Expense.date.desc(), Expense.created_at.desc())
            )
            .unique()
            .scalars()
            .all()
        )

        def total(status: str) -> Decimal:
            return sum((e.amount for e in expenses if e.status == status), ZERO)

        return {
            "approved_total": total("APPROVED"),
            "pending_total": total("PENDING"),
            "rejected_total": total("REJECTED"),
            "expenses": expenses,
        }

    @staticmethod
    def count_pending(db: Session) -> int:
        return db.execute(
            select(func.count(Expense.id)).where(Expense.status == "PENDING")
        ).scalar_one()
