# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration request model.

A registration request is an applicant's submitted, not-yet-decided
application for platform access. Rows are never deleted; the status
column moves at most once from pending to approved or rejected.

At most one pending-or-approved request may exist per email. The partial
unique index below is the authoritative duplicate guard; the service
pre-check only exists to fail early with a friendly message.
"""

import enum

from sqlalchemy import CheckConstraint, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin

ACTIVE_EMAIL_INDEX = "uq_registration_requests_active_email"

_ACTIVE_STATUS_CLAUSE = "status IN ('pending', 'approved')"


class RegistrationStatus(str, enum.Enum):
    """Lifecycle status of a registration request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RegistrationStatus.PENDING


class RegistrationRequest(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    """Applicant-submitted registration awaiting an administrator decision."""

    __tablename__ = "registration_requests"
    __private_columns__ = frozenset({"password_hash"})
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="valid_registration_status",
        ),
        Index(
            ACTIVE_EMAIL_INDEX,
            "email",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_CLAUSE),
            sqlite_where=text(_ACTIVE_STATUS_CLAUSE),
        ),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employee_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RegistrationStatus.PENDING.value,
        server_default=RegistrationStatus.PENDING.value,
        index=True,
    )

    @property
    def is_pending(self) -> bool:
        return self.status == RegistrationStatus.PENDING.value
