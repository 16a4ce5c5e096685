"""Audit trail for approval and rejection of ledger entries.

The trail is append-only; there is no update or delete helper.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.common.models import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES, AuditLogEntry
from app.core.errors import ValidationAPIError

logger = logging.getLogger(__name__)


def create_audit_log(
    db: Session,
    actor_id: Optional[UUID],
    entity_type: str,
    entity_id: UUID,
    action: str,
    notes: Optional[str] = None,
) -> AuditLogEntry:
    """
    Append an audit log entry.

    The entry is flushed, not committed, so it lands in the same transaction
    as the status change it records.

    Args:
        db: Database session
        actor_id: ID of the user performing the action
        entity_type: "CONTRIBUTION" or "EXPENSE"
        entity_id: ID of the contribution or expense
        action: "APPROVED" or "REJECTED"
        notes: Free-form description of the action

    Returns:
        Created AuditLogEntry instance
    """
    if entity_type not in AUDIT_ENTITY_TYPES:
        raise ValidationAPIError(
            f"Unknown audit entity type: {entity_type}", field="entity_type"
        )
    if action not in AUDIT_ACTIONS:
        raise ValidationAPIError(f"Unknown audit action: {action}", field="action")

    entry = AuditLogEntry(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=actor_id,
        notes=notes,
    )
    db.add(entry)
    db.flush()

    logger.info(
        "Audit entry appended",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "action": action,
            "actor_id": str(actor_id) if actor_id else None,
        },
    )
    return entry


def list_audit_logs(
    db: Session, entity_type: str, entity_id: UUID
) -> list[AuditLogEntry]:
    """Return the audit entries for one entity, newest first."""
    stmt = (
        select(AuditLogEntry)
        .where(
            AuditLogEntry.entity_type == entity_type,
            AuditLogEntry.entity_id == entity_id,
        )
        .order_by(AuditLogEntry.timestamp.desc())
    )
    return list(db.execute(stmt).scalars().all())
