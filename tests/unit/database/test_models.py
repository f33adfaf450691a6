# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests table definitions, constraints, and helper methods.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from src.infrastructure.database.models import (
    ACTIVE_EMAIL_INDEX,
    ApprovalAction,
    Base,
    RegistrationRequest,
    RegistrationStatus,
    User,
    UserRole,
)


def _request(email: str = "a@x.com", status: str = "pending") -> RegistrationRequest:
    return RegistrationRequest(
        email=email,
        password_hash="$2b$04$placeholder",
        first_name="Ann",
        last_name="Lee",
        full_name="Ann Lee",
        status=status,
    )


class TestMetadata:
    """Tests for the declared schema."""

    def test_tables_registered(self) -> None:
        """Test that every workflow table is part of the metadata."""
        assert set(Base.metadata.tables) == {
            "companies",
            "registration_requests",
            "users",
            "user_profiles",
            "approval_logs",
        }

    def test_active_email_index_is_partial_and_unique(self) -> None:
        """Test the duplicate guard index definition."""
        table = Base.metadata.tables["registration_requests"]
        index = next(i for i in table.indexes if i.name == ACTIVE_EMAIL_INDEX)

        assert index.unique is True
        assert [c.name for c in index.columns] == ["email"]
        assert "status IN ('pending', 'approved')" in str(
            index.dialect_options["postgresql"]["where"]
        )


class TestEnums:
    """Tests for model enums."""

    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            (RegistrationStatus.PENDING, False),
            (RegistrationStatus.APPROVED, True),
            (RegistrationStatus.REJECTED, True),
        ],
    )
    def test_terminal_statuses(self, status: RegistrationStatus, terminal: bool) -> None:
        """Test which statuses end the lifecycle."""
        assert status.is_terminal is terminal

    def test_values(self) -> None:
        """Test stored string values."""
        assert UserRole.USER.value == "user"
        assert {a.value for a in ApprovalAction} == {
            "approved_as_regular",
            "approved_with_company",
            "rejected",
        }


class TestToDict:
    """Tests for Base.to_dict."""

    def test_omits_private_columns(self) -> None:
        """Test that the password hash never leaves the model."""
        request = _request()
        request.id = "r-1"

        data = request.to_dict()

        assert data["email"] == "a@x.com"
        assert "password_hash" not in data

    def test_renders_datetimes_as_utc_iso(self) -> None:
        """Test that naive datetimes read back from SQLite are treated as UTC."""
        user = User(
            id="u-1",
            email="a@x.com",
            approved_at=datetime(2025, 3, 1, 9, 30),
        )

        assert user.to_dict()["approved_at"] == "2025-03-01T09:30:00+00:00"

    def test_aware_datetimes_are_converted(self) -> None:
        """Test conversion of non-UTC offsets."""
        user = User(
            id="u-1",
            email="a@x.com",
            approved_at=datetime(2025, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=2))),
        )

        assert user.to_dict()["approved_at"] == "2025-03-01T07:30:00+00:00"


@pytest.mark.asyncio
class TestConstraints:
    """Tests for constraints enforced by the database."""

    async def test_defaults_on_insert(self, db_session) -> None:
        """Test id, status and created_at defaults."""
        request = _request()
        db_session.add(request)
        await db_session.commit()

        assert len(request.id) == 36
        assert request.status == RegistrationStatus.PENDING.value
        assert request.created_at is not None
        assert request.is_pending

    async def test_one_live_request_per_email(self, session_factory) -> None:
        """Test that pending and approved requests share one email slot."""
        async with session_factory() as session:
            session.add(_request(status="approved"))
            await session.commit()

        async with session_factory() as session:
            session.add(_request())
            with pytest.raises(IntegrityError):
                await session.commit()

    async def test_rejected_requests_do_not_block(self, session_factory) -> None:
        """Test that rejected requests are outside the unique index."""
        async with session_factory() as session:
            session.add_all([_request(status="rejected"), _request(status="rejected"), _request()])
            await session.commit()

    async def test_invalid_status_rejected(self, session_factory) -> None:
        """Test the status check constraint."""
        async with session_factory() as session:
            session.add(_request(status="archived"))
            with pytest.raises(IntegrityError):
                await session.commit()
