# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-side queries for the administrator review screen."""

import logging
from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.registration.errors import RegistrationNotFoundError, ValidationError
from src.infrastructure.database.models import Company, RegistrationRequest, RegistrationStatus

logger = logging.getLogger(__name__)

STATUS_ALL = "all"
VALID_STATUS_FILTERS = frozenset({s.value for s in RegistrationStatus} | {STATUS_ALL})

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


@dataclass
class RegistrationPage:
    """A page of registration requests and the unpaged total."""

    items: list[RegistrationRequest]
    total: int
    limit: int
    offset: int


@dataclass
class RegistrationStats:
    """Request counts by status."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class RegistrationQueries:
    """Lists, counts and looks up registration data."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_registrations(
        self,
        status: str = RegistrationStatus.PENDING.value,
        search: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> RegistrationPage:
        """List requests, newest first.

        Args:
            status: pending, approved, rejected or all.
            search: Case-insensitive text matched against email, full name
                and department.
            limit: Page size, capped at MAX_PAGE_SIZE.
            offset: Number of rows to skip.

        Raises:
            ValidationError: If the status filter or paging is invalid.
        """
        if status not in VALID_STATUS_FILTERS:
            raise ValidationError(f"Unknown status filter: {status}", field="status")
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative", field="limit")
        limit = min(limit, MAX_PAGE_SIZE)

        conditions = []
        if status != STATUS_ALL:
            conditions.append(RegistrationRequest.status == status)

        term = search.strip() if search else ""
        if term:
            conditions.append(
                or_(
                    RegistrationRequest.email.icontains(term, autoescape=True),
                    RegistrationRequest.full_name.icontains(term, autoescape=True),
                    RegistrationRequest.department.icontains(term, autoescape=True),
                )
            )

        total_result = await self._db.execute(
            select(func.count()).select_from(RegistrationRequest).where(*conditions)
        )
        total = total_result.scalar_one()

        result = await self._db.execute(
            select(RegistrationRequest)
            .where(*conditions)
            .order_by(RegistrationRequest.created_at.desc(), RegistrationRequest.id.desc())
            .limit(limit)
            .offset(offset)
        )
        items = list(result.scalars().all())

        logger.debug(
            "Listed registrations: status=%s, search=%r, returned=%d, total=%d",
            status,
            term,
            len(items),
            total,
        )
        return RegistrationPage(items=items, total=total, limit=limit, offset=offset)

    async def get_stats(self) -> RegistrationStats:
        """Count requests per status."""
        result = await self._db.execute(
            select(RegistrationRequest.status, func.count()).group_by(RegistrationRequest.status)
        )
        stats = RegistrationStats()
        for status, count in result.all():
            if status in (s.value for s in RegistrationStatus):
                setattr(stats, status, count)
            stats.total += count
        return stats

    async def get_registration(self, registration_id: str) -> RegistrationRequest:
        """Fetch a single request.

        Raises:
            RegistrationNotFoundError: If it does not exist.
        """
        request = await self._db.get(RegistrationRequest, registration_id)
        if request is None:
            raise RegistrationNotFoundError(registration_id)
        return request

    async def list_companies(self) -> list[Company]:
        """All companies, ordered by name."""
        result = await self._db.execute(select(Company).order_by(Company.name, Company.id))
        return list(result.scalars().all())
