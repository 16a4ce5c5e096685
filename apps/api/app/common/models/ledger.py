"""Ledger domain models (contributions, expenses, events, settings, audit log)."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    TIMESTAMP,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.common.models.base import (
    AuditAction,
    AuditEntityType,
    Base,
    Bucket,
    ContributionType,
    LedgerStatus,
    utcnow,
)
from app.common.models.members import User


class Contribution(Base):
    """Member contribution, split between the LIFT and Alumni Association buckets."""

    __tablename__ = "contributions"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(ContributionType, nullable=False)
    status: Mapped[str] = mapped_column(
        LedgerStatus, nullable=False, default="PENDING"
    )
    lift_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    aa_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    lift_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    aa_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_at: Mapped[Optional[dt.datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(User, foreign_keys=[user_id], lazy="joined")

    __table_args__ = (
        Index("ix_contributions_status_date", "status", "date"),
    )


class Event(Base):
    """Event or activity that expenses can be grouped under."""

    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )


class Expense(Base):
    """Expense charged wholly to one bucket."""

    __tablename__ = "expenses"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    vendor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    purpose: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    bucket: Mapped[str] = mapped_column(Bucket, nullable=False)
    event_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        LedgerStatus, nullable=False, default="PENDING"
    )
    submitted_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    approved_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_at: Mapped[Optional[dt.datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )

    event: Mapped[Optional[Event]] = relationship(Event, lazy="joined")

    __table_args__ = (
        Index("ix_expenses_status_bucket", "status", "bucket"),
    )


class Setting(Base):
    """Administrator-editable key/value setting."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_by: Mapped[Optional[UUID]] = mapped_column(Uuid(as_uuid=True))
    updated_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )


class AuditLogEntry(Base):
    """Approval/rejection record. Rows are only ever inserted."""

    __tablename__ = "audit_log"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    # No FK: entries outlive the contribution or expense they describe
    entity_type: Mapped[str] = mapped_column(AuditEntityType, nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    action: Mapped[str] = mapped_column(AuditAction, nullable=False)
    user_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )

    user: Mapped[Optional[User]] = relationship(User, lazy="joined")

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
    )
