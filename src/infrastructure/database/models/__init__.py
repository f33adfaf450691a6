# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models.

Importing this package registers every table on Base.metadata, which the
Alembic environment and the test fixtures rely on.
"""

from src.infrastructure.database.models.approval_log import ApprovalAction, ApprovalLog
from src.infrastructure.database.models.base import Base, CreatedAtMixin, TimestampMixin
from src.infrastructure.database.models.company import Company
from src.infrastructure.database.models.registration import (
    ACTIVE_EMAIL_INDEX,
    RegistrationRequest,
    RegistrationStatus,
)
from src.infrastructure.database.models.user import (
    ApprovalStatus,
    User,
    UserProfile,
    UserRole,
)

__all__ = [
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "Company",
    "RegistrationRequest",
    "RegistrationStatus",
    "ACTIVE_EMAIL_INDEX",
    "User",
    "UserProfile",
    "UserRole",
    "ApprovalStatus",
    "ApprovalLog",
    "ApprovalAction",
]
