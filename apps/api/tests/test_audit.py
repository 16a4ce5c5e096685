"""Tests for audit logging utilities."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from app.common.audit import create_audit_log, list_audit_logs
from app.common.models import AuditLogEntry, User
from app.core.errors import ValidationAPIError


class TestCreateAuditLog:
    """Test audit log creation."""

    def test_create_audit_log(self, db: Session, admin_user: User):
        """Test creating an entry with all fields."""
        entity_id = uuid4()

        entry = create_audit_log(
            db=db,
            actor_id=admin_user.id,
            entity_type="CONTRIBUTION",
            entity_id=entity_id,
            action="APPROVED",
            notes="Contribution approved by Ada Admin",
        )

        assert entry.id is not None
        assert entry.user_id == admin_user.id
        assert entry.entity_type == "CONTRIBUTION"
        assert entry.entity_id == entity_id
        assert entry.action == "APPROVED"
        assert entry.timestamp is not None

    def test_flushed_not_committed(self, db: Session, admin_user: User):
        """Test the entry is rolled back with the caller's transaction."""
        entity_id = uuid4()
        create_audit_log(db, admin_user.id, "EXPENSE", entity_id, "REJECTED")

        assert len(list_audit_logs(db, "EXPENSE", entity_id)) == 1

        db.rollback()

        assert list_audit_logs(db, "EXPENSE", entity_id) == []

    def test_unknown_entity_type(self, db: Session, admin_user: User):
        """Test entity types are restricted."""
        with pytest.raises(ValidationAPIError, match="entity type"):
            create_audit_log(db, admin_user.id, "EVENT", uuid4(), "APPROVED")

    def test_unknown_action(self, db: Session, admin_user: User):
        """Test actions are restricted."""
        with pytest.raises(ValidationAPIError, match="audit action"):
            create_audit_log(db, admin_user.id, "EXPENSE", uuid4(), "DELETED")


class TestListAuditLogs:
    """Test audit log listing."""

    def test_newest_first_and_scoped(self, db: Session, admin_user: User):
        """Test entries are listed newest first for one entity only."""
        entity_id = uuid4()
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        db.add_all(
            [
                AuditLogEntry(
                    entity_type="CONTRIBUTION",
                    entity_id=entity_id,
                    action="APPROVED",
                    user_id=admin_user.id,
                    timestamp=base,
                ),
                AuditLogEntry(
                    entity_type="CONTRIBUTION",
                    entity_id=entity_id,
                    action="REJECTED",
                    user_id=admin_user.id,
                    timestamp=base + timedelta(minutes=5),
                ),
                AuditLogEntry(
                    entity_type="EXPENSE",
                    entity_id=entity_id,
                    action="APPROVED",
                    user_id=admin_user.id,
                    timestamp=base,
                ),
            ]
        )
        db.commit()

        logs = list_audit_logs(db, "CONTRIBUTION", entity_id)

        assert [log.action for log in logs] == ["REJECTED", "APPROVED"]
        assert logs[0].user.name == "Ada Admin"
