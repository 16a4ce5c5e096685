"""Base classes and enums shared across all models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Enum, MetaData
from sqlalchemy.orm import DeclarativeBase


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Value sets, reused by the services for validation
USER_ROLES = ("ADMIN", "ALUMNI")
CONTRIBUTION_TYPES = ("BASIC", "ADDITIONAL")
LEDGER_STATUSES = ("PENDING", "APPROVED", "REJECTED")
BUCKETS = ("LIFT", "ALUMNI_ASSOCIATION")
AUDIT_ENTITY_TYPES = ("CONTRIBUTION", "EXPENSE")
AUDIT_ACTIONS = ("APPROVED", "REJECTED")

# Enums
UserRole = Enum(*USER_ROLES, name="user_role")
ContributionType = Enum(*CONTRIBUTION_TYPES, name="contribution_type")
LedgerStatus = Enum(*LEDGER_STATUSES, name="ledger_status")
Bucket = Enum(*BUCKETS, name="bucket")
AuditEntityType = Enum(*AUDIT_ENTITY_TYPES, name="audit_entity_type")
AuditAction = Enum(*AUDIT_ACTIONS, name="audit_action")
