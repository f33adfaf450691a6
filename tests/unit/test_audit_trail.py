# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the approval audit trail."""

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from src.domains.registration import AuditTrail, RegistrationIntake
from src.infrastructure.database.models import ApprovalAction


@pytest_asyncio.fixture
async def registration_id(session_factory, hasher, make_candidate) -> str:
    async with session_factory() as session:
        request = await RegistrationIntake(session, hasher).submit(make_candidate())
        return request.id


@pytest.mark.asyncio
class TestAuditTrail:
    """Tests for AuditTrail."""

    async def test_append_joins_caller_transaction(
        self, session_factory, registration_id, sample_admin_id
    ) -> None:
        """Test that append flushes but leaves the commit to the caller."""
        async with session_factory() as session:
            entry = await AuditTrail(session).append(
                registration_id=registration_id,
                approved_by=sample_admin_id,
                action=ApprovalAction.REJECTED,
                notes="Incomplete details",
            )
            assert entry.id is not None
            await session.rollback()

        async with session_factory() as session:
            assert await AuditTrail(session).list_for_registration(registration_id) == []

    async def test_append_and_list(
        self, session_factory, registration_id, sample_admin_id
    ) -> None:
        """Test that committed entries can be read back."""
        async with session_factory() as session:
            await AuditTrail(session).append(
                registration_id=registration_id,
                approved_by=sample_admin_id,
                action=ApprovalAction.REJECTED,
            )
            await session.commit()

        async with session_factory() as session:
            entries = await AuditTrail(session).list_for_registration(registration_id)

        assert len(entries) == 1
        assert entries[0].action == ApprovalAction.REJECTED.value
        assert entries[0].approved_by == sample_admin_id
        assert entries[0].created_at is not None

    async def test_one_entry_per_registration(
        self, session_factory, registration_id, sample_admin_id
    ) -> None:
        """Test that a second terminal decision cannot be logged."""
        async with session_factory() as session:
            await AuditTrail(session).append(
                registration_id=registration_id,
                approved_by=sample_admin_id,
                action=ApprovalAction.REJECTED,
            )
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(IntegrityError):
                await AuditTrail(session).append(
                    registration_id=registration_id,
                    approved_by=sample_admin_id,
                    action=ApprovalAction.APPROVED_AS_REGULAR,
                )
            await session.rollback()

    async def test_list_unknown_registration(self, db_session) -> None:
        """Test listing entries for a request without a decision."""
        assert await AuditTrail(db_session).list_for_registration("missing") == []
