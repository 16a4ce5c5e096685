"""Pydantic schemas for the Contributions module."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

TYPE_PATTERN = "^(BASIC|ADDITIONAL)$"
STATUS_PATTERN = "^(PENDING|APPROVED|REJECTED)$"


class ContributionCreateRequest(BaseModel):
    """Request to record a contribution on behalf of a member (admin)."""

    user_id: UUID
    amount: Decimal = Field(..., gt=0)
    date: dt.date
    type: str = Field(..., pattern=TYPE_PATTERN)
    notes: Optional[str] = None
    # Only read for ADDITIONAL contributions
    lift_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    aa_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class ContributionSubmitRequest(BaseModel):
    """Request from a member to submit their own contribution."""

    amount: Decimal = Field(..., gt=0)
    date: Optional[dt.date] = None
    type: str = Field(..., pattern=TYPE_PATTERN)
    notes: Optional[str] = None
    lift_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    aa_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class ContributionUpdateRequest(BaseModel):
    """Partial update of a contribution.

    Only fields present in the payload are applied (``model_fields_set``);
    an explicit ``null`` clears nullable fields such as ``notes``.
    """

    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[dt.date] = None
    type: Optional[str] = Field(None, pattern=TYPE_PATTERN)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    notes: Optional[str] = None
    lift_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    aa_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class MemberRef(BaseModel):
    """Owning member, expanded on contribution responses."""

    id: UUID
    name: str
    email: str

    model_config = {
        "from_attributes": True,
    }


class ContributionResponse(BaseModel):
    """Response with contribution details."""

    id: UUID
    user_id: UUID
    user: Optional[MemberRef]
    amount: Decimal
    date: dt.date
    type: str
    status: str
    lift_percentage: Decimal
    aa_percentage: Decimal
    lift_amount: Decimal
    aa_amount: Decimal
    notes: Optional[str]
    created_by: Optional[UUID]
    approved_by: Optional[UUID]
    approved_at: Optional[str]
    created_at: str
    updated_at: str


class MemberContributionSummaryResponse(BaseModel):
    """A member's own contributions with status and bucket totals."""

    total: Decimal
    pending_total: Decimal
    lift_total: Decimal
    aa_total: Decimal
    contributions: list[ContributionResponse]


class PendingCountResponse(BaseModel):
    count: int


class AuditLogResponse(BaseModel):
    """One entry of an approval/rejection trail."""

    id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    user_id: Optional[UUID]
    user_name: Optional[str]
    notes: Optional[str]
    timestamp: str
