"""Budget report service: totals and breakdowns over the ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.common.models import BUCKETS, CONTRIBUTION_TYPES, Contribution, Expense
from app.contributions.service import (
    contribution_bucket_clause,
    validate_bucket,
    validate_status,
)
from app.core.errors import ValidationAPIError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Filter values meaning "do not filter"
ALL_STATUSES = "all"
ALL_BUCKETS = "ALL"
ALL_EVENTS = "all"
NO_EVENT = "none"


@dataclass(frozen=True)
class ReportFilters:
    """
    Filters for the budget report.

    Attributes:
        status: Ledger status to include; "all" disables the filter
        type: Contribution type (BASIC/ADDITIONAL); contributions only
        bucket: LIFT or ALUMNI_ASSOCIATION; "ALL" disables the filter
        event_id: Event UUID, or "none" for expenses without an event;
            expenses only
        start_date: Inclusive lower bound on entry date
        end_date: Inclusive upper bound on entry date
    """

    status: str = "APPROVED"
    type: Optional[str] = None
    bucket: Optional[str] = None
    event_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _parse_event_filter(event_id: str):
    if event_id.lower() in (NO_EVENT, "null"):
        return Expense.event_id.is_(None)
    try:
        return Expense.event_id == UUID(event_id)
    except ValueError as e:
        raise ValidationAPIError(
            f"Invalid event_id: {event_id}", field="event_id"
        ) from e


class BudgetReportService:
    """Builds the budget overview for admins and members."""

    @staticmethod
    def _contribution_conditions(
        filters: ReportFilters, owner_id: Optional[UUID]
    ) -> list:
        conditions = []
        if filters.status and filters.status != ALL_STATUSES:
            conditions.append(Contribution.status == validate_status(filters.status))
        if filters.type and filters.type != ALL_STATUSES:
            if filters.type not in CONTRIBUTION_TYPES:
                raise ValidationAPIError(
                    f"Invalid contribution type: {filters.type}", field="type"
                )
            conditions.append(Contribution.type == filters.type)
        if filters.bucket and filters.bucket != ALL_BUCKETS:
            conditions.append(contribution_bucket_clause(filters.bucket))
        if filters.start_date:
            conditions.append(Contribution.date >= filters.start_date)
        if filters.end_date:
            conditions.append(Contribution.date <= filters.end_date)
        if owner_id is not None:
            conditions.append(Contribution.user_id == owner_id)
        return conditions

    @staticmethod
    def _expense_conditions(filters: ReportFilters, owner_id: Optional[UUID]) -> list:
        conditions = []
        if filters.status and filters.status != ALL_STATUSES:
            conditions.append(Expense.status == validate_status(filters.status))
        if filters.bucket and filters.bucket != ALL_BUCKETS:
            conditions.append(Expense.bucket == validate_bucket(filters.bucket))
        if filters.event_id and filters.event_id.lower() != ALL_EVENTS:
            conditions.append(_parse_event_filter(filters.event_id))
        if filters.start_date:
            conditions.append(Expense.date >= filters.start_date)
        if filters.end_date:
            conditions.append(Expense.date <= filters.end_date)
        if owner_id is not None:
            conditions.append(Expense.submitted_by == owner_id)
        return conditions

    @staticmethod
    def get_budget_report(
        db: Session,
        filters: ReportFilters,
        caller_role: str,
        caller_id: UUID,
    ) -> dict[str, Any]:
        """
        Compute the budget overview.

        Totals, counts and the type/category breakdowns honour every filter.
        The per-bucket cards ignore the bucket filter (and only that filter)
        so both always show complete figures for the rest of the selection.
        Non-admin callers only see contributions they own and expenses they
        submitted.

        Args:
            db: Database session
            filters: Report filters
            caller_role: "ADMIN" or "ALUMNI"
            caller_id: ID of the requesting user

        Returns:
            Dictionary matching schemas.BudgetReportResponse
        """
        owner_id = None if caller_role == "ADMIN" else caller_id

        contribution_where = BudgetReportService._contribution_conditions(
            filters, owner_id
        )
        expense_where = BudgetReportService._expense_conditions(filters, owner_id)

        unbucketed = replace(filters, bucket=None)
        contribution_where_all_buckets = BudgetReportService._contribution_conditions(
            unbucketed, owner_id
        )
        expense_where_all_buckets = BudgetReportService._expense_conditions(
            unbucketed, owner_id
        )

        # Overall totals
        total_contributions, contribution_count = db.execute(
            select(
                func.coalesce(func.sum(Contribution.amount), 0),
                func.count(Contribution.id),
            ).where(*contribution_where)
        ).one()
        total_expenses, expense_count = db.execute(
            select(
                func.coalesce(func.sum(Expense.amount), 0),
                func.count(Expense.id),
            ).where(*expense_where)
        ).one()
        total_contributions = _money(total_contributions)
        total_expenses = _money(total_expenses)

        # Bucket cards
        lift_in, aa_in = db.execute(
            select(
                func.coalesce(func.sum(Contribution.lift_amount), 0),
                func.coalesce(func.sum(Contribution.aa_amount), 0),
            ).where(*contribution_where_all_buckets)
        ).one()
        spent_by_bucket = {
            bucket: _money(amount)
            for bucket, amount in db.execute(
                select(Expense.bucket, func.sum(Expense.amount))
                .where(*expense_where_all_buckets)
                .group_by(Expense.bucket)
            ).all()
        }
        contributed_by_bucket = {
            "LIFT": _money(lift_in),
            "ALUMNI_ASSOCIATION": _money(aa_in),
        }
        buckets = {}
        for bucket in BUCKETS:
            contributed = contributed_by_bucket[bucket]
            spent = spent_by_bucket.get(bucket, _money(None))
            buckets[bucket] = {
                "contributions": contributed,
                "expenses": spent,
                "balance": contributed - spent,
            }

        # Breakdowns
        by_type_rows = dict(
            db.execute(
                select(Contribution.type, func.sum(Contribution.amount))
                .where(*contribution_where)
                .group_by(Contribution.type)
            ).all()
        )
        by_contribution_type = {
            contribution_type: _money(by_type_rows.get(contribution_type))
            for contribution_type in CONTRIBUTION_TYPES
        }

        by_category = [
            {"category": category, "amount": _money(amount)}
            for category, amount in db.execute(
                select(Expense.category, func.sum(Expense.amount))
                .where(*expense_where)
                .group_by(Expense.category)
                .order_by(Expense.category)
            ).all()
        ]
        by_category_and_bucket = [
            {"category": category, "bucket": bucket, "amount": _money(amount)}
            for category, bucket, amount in db.execute(
                select(Expense.category, Expense.bucket, func.sum(Expense.amount))
                .where(*expense_where)
                .group_by(Expense.category, Expense.bucket)
                .order_by(Expense.category, Expense.bucket)
            ).all()
        ]

        logger.info(
            "Budget report generated",
            extra={
                "caller_id": str(caller_id),
                "scoped": owner_id is not None,
                "contribution_count": contribution_count,
                "expense_count": expense_count,
            },
        )

        return {
            "total_contributions": total_contributions,
            "total_expenses": total_expenses,
            "remaining": total_contributions - total_expenses,
            "contribution_count": contribution_count,
            "expense_count": expense_count,
            "buckets": buckets,
            "by_contribution_type": by_contribution_type,
            "by_category": by_category,
            "by_category_and_bucket": by_category_and_bucket,
        }
