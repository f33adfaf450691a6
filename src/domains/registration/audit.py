# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Append-only approval audit trail."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import ApprovalAction, ApprovalLog

logger = logging.getLogger(__name__)


class AuditTrail:
    """Writes and reads approval log entries.

    ``append`` joins the caller's transaction; it flushes so constraint
    violations surface immediately but never commits. Entries are never
    updated or deleted.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def append(
        self,
        registration_id: str,
        approved_by: str,
        action: ApprovalAction,
        user_id: str | None = None,
        company_id: str | None = None,
        notes: str | None = None,
    ) -> ApprovalLog:
        """Record a terminal decision.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the insert fails, including
                when the request already has a log entry.
        """
        entry = ApprovalLog(
            registration_id=registration_id,
            user_id=user_id,
            approved_by=approved_by,
            action=action.value,
            company_id=company_id,
            notes=notes,
        )
        self._db.add(entry)
        await self._db.flush()

        logger.info(
            "Approval log appended: registration=%s, action=%s, by=%s",
            registration_id,
            action.value,
            approved_by,
        )
        return entry

    async def list_for_registration(self, registration_id: str) -> list[ApprovalLog]:
        """Return the log entries for a request, oldest first."""
        result = await self._db.execute(
            select(ApprovalLog)
            .where(ApprovalLog.registration_id == registration_id)
            .order_by(ApprovalLog.created_at, ApprovalLog.id)
        )
        return list(result.scalars().all())
