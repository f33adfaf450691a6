# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration intake.

Validates an applicant's submission and stores it as a pending
registration request. Nothing else happens at this stage: no identity,
account or notification is created until an administrator approves.

Duplicate detection is two-layered. A pre-check rejects emails that
already belong to a pending or approved request, or to an existing user,
with a friendly message. The partial unique index on
registration_requests.email is what actually guarantees uniqueness under
concurrent submissions; its violation is reported as the same
DuplicateEmailError.

Example:
    >>> intake = RegistrationIntake(db, PasswordHasher())
    >>> request = await intake.submit(candidate)
    >>> request.status
    'pending'
"""

import asyncio
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import RegistrationSettings
from src.domains.auth.password import MAX_PASSWORD_BYTES, PasswordHasher
from src.domains.registration.errors import DuplicateEmailError, ValidationError
from src.infrastructure.database.models import (
    ACTIVE_EMAIL_INDEX,
    RegistrationRequest,
    RegistrationStatus,
    User,
)
from src.infrastructure.events import ChangeEvent, ChangeNotificationBus, Tables
from src.models.registration import RegistrationSubmitRequest

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

PENDING_DUPLICATE_MESSAGE = "A registration with this email is already pending approval"
EXISTING_USER_MESSAGE = "A user with this email already exists"

_ACTIVE_STATUSES = (RegistrationStatus.PENDING.value, RegistrationStatus.APPROVED.value)


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address."""
    return email.strip().lower()


def is_active_email_violation(error: IntegrityError) -> bool:
    """Whether an integrity error comes from the live-email unique index.

    PostgreSQL names the index; SQLite names the indexed column.
    """
    message = str(error.orig)
    return ACTIVE_EMAIL_INDEX in message or "registration_requests.email" in message


def _clean(value: str | None) -> str | None:
    """Trim optional text, turning blanks into None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_candidate(
    candidate: RegistrationSubmitRequest,
    min_password_length: int = 6,
) -> dict[str, str]:
    """Check a submission and collect per-field error messages.

    Returns:
        Mapping of field name to message; empty when the form is valid.
    """
    errors: dict[str, str] = {}

    email = candidate.email.strip()
    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.match(email):
        errors["email"] = "Email is invalid"

    if not candidate.password:
        errors["password"] = "Password is required"
    elif len(candidate.password) < min_password_length:
        errors["password"] = f"Password must be at least {min_password_length} characters"
    elif len(candidate.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors["password"] = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"

    if candidate.password != candidate.confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    if not candidate.first_name.strip():
        errors["first_name"] = "First name is required"

    if not candidate.last_name.strip():
        errors["last_name"] = "Last name is required"

    return errors


class RegistrationIntake:
    """Accepts applicant submissions as pending registration requests.

    Attributes:
        _db: Async database session.
        _hasher: bcrypt hasher for the submitted password.
        _bus: Change bus notified after the insert commits.
        _settings: Workflow settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        hasher: PasswordHasher,
        bus: ChangeNotificationBus | None = None,
        settings: RegistrationSettings | None = None,
    ) -> None:
        self._db = db
        self._hasher = hasher
        self._bus = bus
        self._settings = settings or RegistrationSettings()

    async def submit(self, candidate: RegistrationSubmitRequest) -> RegistrationRequest:
        """Validate and store a registration request.

        Args:
            candidate: The applicant's form.

        Returns:
            The stored request, status pending.

        Raises:
            ValidationError: If any field is missing or malformed.
            DuplicateEmailError: If the email is already in use.
        """
        errors = validate_candidate(candidate, self._settings.min_password_length)
        if errors:
            logger.info("Registration rejected: invalid fields %s", ", ".join(sorted(errors)))
            raise ValidationError("Registration form is invalid", errors=errors)

        email = normalize_email(candidate.email)
        await self._check_duplicate(email)

        first_name = candidate.first_name.strip()
        last_name = candidate.last_name.strip()
        password_hash = await asyncio.to_thread(self._hasher.hash, candidate.password)

        request = RegistrationRequest(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            full_name=f"{first_name} {last_name}".strip(),
            phone=_clean(candidate.phone),
            bio=_clean(candidate.bio),
            department=_clean(candidate.department),
            position=_clean(candidate.position),
            employee_id=_clean(candidate.employee_id),
            status=RegistrationStatus.PENDING.value,
        )
        self._db.add(request)

        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            if not is_active_email_violation(e):
                raise
            # Lost a race with a concurrent submission for the same email
            logger.info("Registration rejected: duplicate email %s (constraint)", email)
            raise DuplicateEmailError(PENDING_DUPLICATE_MESSAGE) from e

        logger.info("Registration submitted: %s (%s)", request.id, email)

        if self._bus is not None:
            await self._bus.publish(
                ChangeEvent.insert(Tables.REGISTRATION_REQUESTS, request.to_dict())
            )

        return request

    async def _check_duplicate(self, email: str) -> None:
        """Reject emails held by a live request or an existing user."""
        result = await self._db.execute(
            select(RegistrationRequest.status)
            .where(
                RegistrationRequest.email == email,
                RegistrationRequest.status.in_(_ACTIVE_STATUSES),
            )
            .limit(1)
        )
        existing_status = result.scalar_one_or_none()
        if existing_status == RegistrationStatus.PENDING.value:
            logger.info("Registration rejected: pending request exists for %s", email)
            raise DuplicateEmailError(PENDING_DUPLICATE_MESSAGE)
        if existing_status == RegistrationStatus.APPROVED.value:
            logger.info("Registration rejected: approved request exists for %s", email)
            raise DuplicateEmailError(EXISTING_USER_MESSAGE)

        result = await self._db.execute(select(User.id).where(User.email == email).limit(1))
        if result.scalar_one_or_none() is not None:
            logger.info("Registration rejected: user exists for %s", email)
            raise DuplicateEmailError(EXISTING_USER_MESSAGE)
