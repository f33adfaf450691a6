# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration workflow errors.

Every error carries a human-readable message and, where it applies, the
offending input field or the provisioning step that failed. The API
layer maps each class to an HTTP status.
"""

from typing import Any

STILL_PENDING_NOTE = "The registration request is still pending and can be retried."


class RegistrationError(Exception):
    """Base exception for registration workflow errors.

    Attributes:
        message: Human-readable error description.
        field: Input field the error refers to, if any.
        step: Workflow step that failed, if any.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        step: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.step = step

    def to_dict(self) -> dict[str, Any]:
        """Build the error payload returned to callers."""
        detail: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.field:
            detail["field"] = self.field
        if self.step:
            detail["step"] = self.step
        return detail


class ValidationError(RegistrationError):
    """Raised when input is missing or malformed.

    Attributes:
        errors: Per-field error messages.
    """

    def __init__(
        self,
        message: str,
        errors: dict[str, str] | None = None,
        field: str | None = None,
    ) -> None:
        self.errors = dict(errors or {})
        if field and field not in self.errors:
            self.errors[field] = message
        if field is None and len(self.errors) == 1:
            field = next(iter(self.errors))
        super().__init__(message, field=field)

    def to_dict(self) -> dict[str, Any]:
        detail = super().to_dict()
        detail["errors"] = self.errors
        return detail


class CompanyNotFoundError(ValidationError):
    """Raised when an approve-company decision names an unknown company."""

    def __init__(self, company_id: str) -> None:
        super().__init__(f"Company not found: {company_id}", field="company_id")
        self.company_id = company_id


class DuplicateEmailError(RegistrationError):
    """Raised when a live request or an account already uses the email."""

    def __init__(self, message: str) -> None:
        super().__init__(message, field="email")


class RegistrationNotFoundError(RegistrationError):
    """Raised when a registration request does not exist."""

    def __init__(self, registration_id: str) -> None:
        super().__init__(f"Registration request not found: {registration_id}")
        self.registration_id = registration_id


class InvalidStateError(RegistrationError):
    """Raised when deciding a request that is no longer pending."""

    def __init__(self, registration_id: str, current_status: str) -> None:
        super().__init__(
            f"Registration request {registration_id} is already {current_status}"
        )
        self.registration_id = registration_id
        self.current_status = current_status


class ConflictError(RegistrationError):
    """Raised when another decision claimed the request first."""

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            f"Registration request {registration_id} was decided concurrently by another administrator"
        )
        self.registration_id = registration_id


class ProvisioningError(RegistrationError):
    """Base class for mandatory provisioning step failures.

    The decision is aborted and the request stays pending.
    """

    def __init__(self, message: str, step: str) -> None:
        super().__init__(f"{message}. {STILL_PENDING_NOTE}", step=step)


class AuthProvisioningError(ProvisioningError):
    """Raised when the external identity could not be created."""

    def __init__(self, message: str) -> None:
        super().__init__(message, step="identity")


class UserRecordError(ProvisioningError):
    """Raised when the local user row could not be written."""

    def __init__(self, message: str, identity_id: str | None = None) -> None:
        super().__init__(message, step="user_record")
        self.identity_id = identity_id


class ProfileWriteWarning(RegistrationError):
    """Non-fatal failure to write the user profile.

    Recorded in logs and on the provisioning result, never raised.
    """

    def __init__(self, message: str, user_id: str) -> None:
        super().__init__(message, step="user_profile")
        self.user_id = user_id


class DecisionRecordError(RegistrationError):
    """Raised when the decision could not be committed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"{message}. {STILL_PENDING_NOTE}", step="approval_log")


class UnauthorizedError(RegistrationError):
    """Raised when no acting administrator is identified."""

    def __init__(self, message: str = "An acting administrator id is required") -> None:
        super().__init__(message)
