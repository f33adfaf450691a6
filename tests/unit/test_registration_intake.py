# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for registration intake."""

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import IntegrityError

from src.domains.registration import (
    DuplicateEmailError,
    RegistrationIntake,
    ValidationError,
    normalize_email,
    validate_candidate,
)
from src.domains.registration.intake import (
    EXISTING_USER_MESSAGE,
    PENDING_DUPLICATE_MESSAGE,
    is_active_email_violation,
)
from src.infrastructure.database.models import (
    ACTIVE_EMAIL_INDEX,
    RegistrationRequest,
    RegistrationStatus,
    User,
)
from src.infrastructure.events import ChangeOp, Tables


async def _count_requests(session_factory, email: str | None = None) -> int:
    async with session_factory() as session:
        query = select(func.count()).select_from(RegistrationRequest)
        if email is not None:
            query = query.where(RegistrationRequest.email == email)
        result = await session.execute(query)
        return result.scalar_one()


class TestValidateCandidate:
    """Tests for form validation."""

    def test_valid_form_has_no_errors(self, make_candidate) -> None:
        """Test that a complete form passes."""
        assert validate_candidate(make_candidate()) == {}

    def test_invalid_email(self, make_candidate) -> None:
        """Test that an email without a domain part is rejected."""
        errors = validate_candidate(make_candidate(email="not-an-email"))

        assert errors == {"email": "Email is invalid"}

    def test_missing_email(self, make_candidate) -> None:
        """Test that a blank email is reported as required."""
        errors = validate_candidate(make_candidate(email="   "))

        assert errors["email"] == "Email is required"

    def test_short_password(self, make_candidate) -> None:
        """Test the minimum password length."""
        errors = validate_candidate(make_candidate(password="12345"))

        assert errors == {"password": "Password must be at least 6 characters"}

    def test_custom_minimum_password_length(self, make_candidate) -> None:
        """Test that the minimum length is configurable."""
        errors = validate_candidate(make_candidate(password="secret1"), min_password_length=10)

        assert "password" in errors

    def test_password_mismatch(self, make_candidate) -> None:
        """Test that the confirmation must match."""
        errors = validate_candidate(make_candidate(confirm_password="secret2"))

        assert errors == {"confirm_password": "Passwords do not match"}

    def test_names_required(self, make_candidate) -> None:
        """Test that first and last name must not be blank."""
        errors = validate_candidate(make_candidate(first_name=" ", last_name=""))

        assert set(errors) == {"first_name", "last_name"}

    def test_collects_all_errors(self, make_candidate) -> None:
        """Test that every invalid field is reported at once."""
        errors = validate_candidate(
            make_candidate(email="bad", password="1", confirm_password="2", first_name="")
        )

        assert set(errors) == {"email", "password", "confirm_password", "first_name"}


class TestNormalizeEmail:
    """Tests for email normalization."""

    def test_trims_and_lowercases(self) -> None:
        """Test that emails are compared case-insensitively."""
        assert normalize_email("  Ann.Lee@Example.COM ") == "ann.lee@example.com"


class TestIsActiveEmailViolation:
    """Tests for recognising live-email index violations."""

    def test_postgres_index_name(self) -> None:
        """Test that PostgreSQL errors naming the index are recognised."""
        error = IntegrityError(
            "INSERT",
            {},
            Exception(f'duplicate key value violates unique constraint "{ACTIVE_EMAIL_INDEX}"'),
        )
        assert is_active_email_violation(error)

    def test_sqlite_column(self) -> None:
        """Test that SQLite errors naming the email column are recognised."""
        error = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: registration_requests.email")
        )
        assert is_active_email_violation(error)

    def test_check_constraint(self) -> None:
        """Test that check constraint failures are not email violations."""
        error = IntegrityError(
            "INSERT", {}, Exception("CHECK constraint failed: valid_registration_status")
        )
        assert not is_active_email_violation(error)


@pytest.mark.asyncio
class TestSubmit:
    """Tests for RegistrationIntake.submit."""

    async def test_creates_pending_request(self, db_session, hasher, make_candidate) -> None:
        """Test that a valid submission yields one pending request."""
        intake = RegistrationIntake(db_session, hasher)

        request = await intake.submit(make_candidate(phone="  ", department=" Sales "))

        assert request.id
        assert request.status == RegistrationStatus.PENDING.value
        assert request.email == "a@x.com"
        assert request.full_name == "Ann Lee"
        assert request.phone is None
        assert request.department == "Sales"

    async def test_stores_only_password_hash(
        self, db_session, hasher, make_candidate
    ) -> None:
        """Test that the plaintext password is never stored."""
        intake = RegistrationIntake(db_session, hasher)

        request = await intake.submit(make_candidate())

        assert request.password_hash != "secret1"
        assert hasher.verify("secret1", request.password_hash)
        assert "password_hash" not in request.to_dict()

    async def test_email_is_normalized(
        self, db_session, session_factory, hasher, make_candidate
    ) -> None:
        """Test that mixed-case emails are stored lower-cased."""
        intake = RegistrationIntake(db_session, hasher)

        await intake.submit(make_candidate(email="  A@X.COM "))

        assert await _count_requests(session_factory, "a@x.com") == 1

    async def test_validation_error_has_no_side_effects(
        self, db_session, session_factory, hasher, make_candidate
    ) -> None:
        """Test that an invalid form stores nothing."""
        intake = RegistrationIntake(db_session, hasher)

        with pytest.raises(ValidationError) as exc_info:
            await intake.submit(make_candidate(password="123"))

        assert "password" in exc_info.value.errors
        assert await _count_requests(session_factory) == 0

    async def test_duplicate_pending_email(
        self, session_factory, hasher, make_candidate
    ) -> None:
        """Test that a second submission for a pending email is rejected."""
        async with session_factory() as session:
            await RegistrationIntake(session, hasher).submit(make_candidate())

        async with session_factory() as session:
            with pytest.raises(DuplicateEmailError) as exc_info:
                await RegistrationIntake(session, hasher).submit(
                    make_candidate(email="A@x.com", first_name="Other")
                )

        assert exc_info.value.message == PENDING_DUPLICATE_MESSAGE
        assert exc_info.value.field == "email"
        assert await _count_requests(session_factory, "a@x.com") == 1

    async def test_duplicate_existing_user(
        self, session_factory, hasher, make_candidate
    ) -> None:
        """Test that an email owned by a user is rejected."""
        async with session_factory() as session:
            session.add(User(id="user-1", email="a@x.com", role="user", approval_status="approved"))
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(DuplicateEmailError) as exc_info:
                await RegistrationIntake(session, hasher).submit(make_candidate())

        assert exc_info.value.message == EXISTING_USER_MESSAGE

    async def test_rejected_email_can_register_again(
        self, session_factory, hasher, make_candidate
    ) -> None:
        """Test that a rejected request does not block a new submission."""
        async with session_factory() as session:
            request = await RegistrationIntake(session, hasher).submit(make_candidate())
            request.status = RegistrationStatus.REJECTED.value
            await session.commit()

        async with session_factory() as session:
            again = await RegistrationIntake(session, hasher).submit(make_candidate())

        assert again.status == RegistrationStatus.PENDING.value
        assert await _count_requests(session_factory, "a@x.com") == 2

    async def test_constraint_violation_maps_to_duplicate(
        self, session_factory, hasher, make_candidate, monkeypatch
    ) -> None:
        """Test that losing the race to the unique index reports DuplicateEmail."""
        async with session_factory() as session:
            await RegistrationIntake(session, hasher).submit(make_candidate())

        async def skip_check(self, email: str) -> None:
            return None

        monkeypatch.setattr(RegistrationIntake, "_check_duplicate", skip_check)

        async with session_factory() as session:
            with pytest.raises(DuplicateEmailError):
                await RegistrationIntake(session, hasher).submit(make_candidate())

        assert await _count_requests(session_factory, "a@x.com") == 1

    async def test_other_constraint_violation_propagates(
        self, session_factory, hasher, make_candidate
    ) -> None:
        """Test that a non-email integrity error is not reported as a duplicate."""

        def invalid_status(mapper, connection, target) -> None:
            target.status = "archived"

        event.listen(RegistrationRequest, "before_insert", invalid_status)
        try:
            async with session_factory() as session:
                with pytest.raises(IntegrityError) as exc_info:
                    await RegistrationIntake(session, hasher).submit(make_candidate())
        finally:
            event.remove(RegistrationRequest, "before_insert", invalid_status)

        assert not is_active_email_violation(exc_info.value)
        assert await _count_requests(session_factory) == 0

    async def test_publishes_insert_event(
        self, db_session, hasher, change_bus, make_candidate
    ) -> None:
        """Test that a committed submission is announced on the bus."""
        subscription = change_bus.subscribe(Tables.REGISTRATION_REQUESTS, {ChangeOp.INSERT})
        intake = RegistrationIntake(db_session, hasher, bus=change_bus)

        request = await intake.submit(make_candidate())
        event = await subscription.get()

        assert event.op == ChangeOp.INSERT
        assert event.row["id"] == request.id
        assert event.row["status"] == "pending"
        assert "password_hash" not in event.row
