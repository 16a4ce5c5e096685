"""Pydantic schemas for the Reports module."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class BucketTotals(BaseModel):
    contributions: Decimal
    expenses: Decimal
    balance: Decimal


class BucketBreakdown(BaseModel):
    LIFT: BucketTotals
    ALUMNI_ASSOCIATION: BucketTotals


class ContributionTypeBreakdown(BaseModel):
    BASIC: Decimal
    ADDITIONAL: Decimal


class CategoryAmount(BaseModel):
    category: str
    amount: Decimal


class CategoryBucketAmount(BaseModel):
    category: str
    bucket: str
    amount: Decimal


class BudgetReportResponse(BaseModel):
    """Budget overview: totals, per-bucket balances and breakdowns."""

    total_contributions: Decimal
    total_expenses: Decimal
    remaining: Decimal
    contribution_count: int
    expense_count: int
    buckets: BucketBreakdown
    by_contribution_type: ContributionTypeBreakdown
    by_category: list[CategoryAmount] = Field(default_factory=list)
    by_category_and_bucket: list[CategoryBucketAmount] = Field(default_factory=list)
