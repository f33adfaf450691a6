# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Append-only approval log.

One row per terminal decision on a registration request. Rows are never
updated or deleted; the unique constraint on registration_id keeps a
second decision from being recorded for the same request.
"""

import enum

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class ApprovalAction(str, enum.Enum):
    """Recorded outcome of a decision."""

    APPROVED_AS_REGULAR = "approved_as_regular"
    APPROVED_WITH_COMPANY = "approved_with_company"
    REJECTED = "rejected"


class ApprovalLog(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    """Who decided a registration request, how and why."""

    __tablename__ = "approval_logs"
    __table_args__ = (
        CheckConstraint(
            "action IN ('approved_as_regular', 'approved_with_company', 'rejected')",
            name="valid_approval_action",
        ),
        UniqueConstraint("registration_id", name="uq_approval_logs_registration"),
    )

    registration_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("registration_requests.id"),
        nullable=False,
        index=True,
    )
    # Null for rejections
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_by: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    company_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
