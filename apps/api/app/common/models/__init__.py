"""Models package - re-exports every model so callers can write
``from app.common.models import Contribution, Base``.

Models are organized into:
- base: Base class, metadata, and enums
- members: member identity (owned outside the ledger)
- ledger: contributions, expenses, events, settings, audit log
"""

from __future__ import annotations

from app.common.models.base import (
    Base,
    metadata,
    NAMING_CONVENTION,
    utcnow,
    # Value sets
    USER_ROLES,
    CONTRIBUTION_TYPES,
    LEDGER_STATUSES,
    BUCKETS,
    AUDIT_ENTITY_TYPES,
    AUDIT_ACTIONS,
    # Enums
    UserRole,
    ContributionType,
    LedgerStatus,
    Bucket,
    AuditEntityType,
    AuditAction,
)

from app.common.models.members import User

from app.common.models.ledger import (
    Contribution,
    Event,
    Expense,
    Setting,
    AuditLogEntry,
)

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utcnow",
    "USER_ROLES",
    "CONTRIBUTION_TYPES",
    "LEDGER_STATUSES",
    "BUCKETS",
    "AUDIT_ENTITY_TYPES",
    "AUDIT_ACTIONS",
    "UserRole",
    "ContributionType",
    "LedgerStatus",
    "Bucket",
    "AuditEntityType",
    "AuditAction",
    "User",
    "Contribution",
    "Event",
    "Expense",
    "Setting",
    "AuditLogEntry",
]
