"""Pydantic schemas for the Expenses and Events modules."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

BUCKET_PATTERN = "^(LIFT|ALUMNI_ASSOCIATION)$"
STATUS_PATTERN = "^(PENDING|APPROVED|REJECTED)$"


# Expense Schemas
class ExpenseCreateRequest(BaseModel):
    """Request to record an expense."""

    amount: Decimal = Field(..., gt=0)
    vendor: Optional[str] = Field(None, max_length=200)
    purpose: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    date: dt.date
    category: str = Field(..., min_length=1, max_length=100)
    bucket: str = Field(..., pattern=BUCKET_PATTERN)
    event_id: Optional[UUID] = None


class BulkExpenseItem(BaseModel):
    """One row of a bulk upload.

    Rules are checked by the service so one bad row is reported against its
    index instead of failing request parsing.
    """

    amount: Decimal
    vendor: Optional[str] = None
    purpose: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    category: Optional[str] = None
    bucket: Optional[str] = None
    event_id: Optional[UUID] = None


class BulkExpenseRequest(BaseModel):
    expenses: list[BulkExpenseItem]


class ExpenseUpdateRequest(BaseModel):
    """Partial update of an expense (admin).

    Only fields present in the payload are applied; ``event_id: null``
    detaches the expense from its event.
    """

    amount: Optional[Decimal] = Field(None, gt=0)
    vendor: Optional[str] = Field(None, max_length=200)
    purpose: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    bucket: Optional[str] = Field(None, pattern=BUCKET_PATTERN)
    event_id: Optional[UUID] = None
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)


class OwnExpenseUpdateRequest(BaseModel):
    """Partial update a member may make to their own pending expense."""

    amount: Optional[Decimal] = Field(None, gt=0)
    vendor: Optional[str] = Field(None, max_length=200)
    purpose: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    event_id: Optional[UUID] = None

    # bucket and status are not editable by the submitter
    model_config = {
        "extra": "forbid",
    }


class EventRef(BaseModel):
    id: UUID
    name: str

    model_config = {
        "from_attributes": True,
    }


class ExpenseResponse(BaseModel):
    """Response with expense details."""

    id: UUID
    amount: Decimal
    vendor: Optional[str]
    purpose: str
    description: Optional[str]
    date: dt.date
    category: str
    bucket: str
    event_id: Optional[UUID]
    event: Optional[EventRef]
    status: str
    submitted_by: Optional[UUID]
    approved_by: Optional[UUID]
    approved_at: Optional[str]
    created_at: str
    updated_at: str


class BulkItemResponse(BaseModel):
    index: int
    success: bool
    expense: Optional[ExpenseResponse] = None
    error: Optional[str] = None


class BulkExpenseResponse(BaseModel):
    """Per-item outcome of a bulk upload."""

    created: int
    failed: int
    results: list[BulkItemResponse]


class MemberExpenseSummaryResponse(BaseModel):
    approved_total: Decimal
    pending_total: Decimal
    rejected_total: Decimal
    expenses: list[ExpenseResponse]


# Event Schemas
class EventCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[dt.date] = None


class EventUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[dt.date] = None


class EventResponse(BaseModel):
    """Response with event details."""

    id: UUID
    name: str
    description: Optional[str]
    date: Optional[dt.date]
    created_at: str

    model_config = {
        "from_attributes": True,
    }
