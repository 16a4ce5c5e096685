"""Member identity model.

Accounts are managed by the wider LIFT application; the ledger only needs
enough of the row to reference owners, submitters and approvers.
"""

from __future__ import annotations

import datetime as dt
from uuid import UUID, uuid4

from sqlalchemy import Boolean, String, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, UserRole, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(UserRole, nullable=False, default="ALUMNI")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
