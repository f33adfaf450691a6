# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""External identity provider client.

Approved applicants get a durable identity in the authentication service
before any local account row exists. The service speaks the GoTrue admin
API:

- ``POST /auth/v1/admin/users`` creates a user. We send the bcrypt hash
  from the registration request as ``password_hash`` together with
  ``email_confirm: true`` so the account is usable immediately.
- ``DELETE /auth/v1/admin/users/{id}`` removes a user. Used to compensate
  when the local account row cannot be written.

Both calls authenticate with the service-role key.

Example:
    provider = GoTrueIdentityProvider(settings.identity)
    identity_id = await provider.create_identity(
        email="a@x.com",
        password_hash=request.password_hash,
        email_confirmed=True,
        metadata={"first_name": "Ann", "last_name": "Lee"},
    )
    await provider.close()
"""

import logging
from typing import Any, Protocol

import httpx

from src.core.config.settings import IdentityProviderSettings

logger = logging.getLogger(__name__)

ADMIN_USERS_PATH = "/auth/v1/admin/users"


class IdentityServiceError(Exception):
    """Raised when the authentication service rejects or fails a call.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status returned by the service, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class IdentityProvider(Protocol):
    """Operations the registration workflow needs from the auth service."""

    async def create_identity(
        self,
        email: str,
        password_hash: str,
        email_confirmed: bool,
        metadata: dict[str, Any],
    ) -> str:
        """Create an identity and return its id.

        Raises:
            IdentityServiceError: If the identity could not be created.
        """
        ...

    async def delete_identity(self, identity_id: str) -> None:
        """Delete an identity. Deleting a missing identity is not an error.

        Raises:
            IdentityServiceError: If the deletion failed.
        """
        ...


def _error_message(response: httpx.Response) -> str:
    """Pull the most useful message out of a GoTrue error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.text


class GoTrueIdentityProvider:
    """IdentityProvider backed by the GoTrue admin API over httpx.

    Args:
        settings: Base URL, service key and timeout.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        settings: IdentityProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/"),
            headers=settings.auth_headers,
            timeout=settings.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def create_identity(
        self,
        email: str,
        password_hash: str,
        email_confirmed: bool,
        metadata: dict[str, Any],
    ) -> str:
        payload = {
            "email": email,
            "password_hash": password_hash,
            "email_confirm": email_confirmed,
            "user_metadata": metadata,
        }

        try:
            response = await self._client.post(ADMIN_USERS_PATH, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(
                "Identity creation rejected for %s: %s (HTTP %d)",
                email,
                message,
                e.response.status_code,
            )
            raise IdentityServiceError(message, e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error("Identity service unreachable: %s", str(e))
            raise IdentityServiceError(f"Identity service unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise IdentityServiceError("Identity service returned invalid JSON") from e

        # Some deployments wrap the user object
        user = data.get("user", data) if isinstance(data, dict) else {}
        identity_id = user.get("id") if isinstance(user, dict) else None
        if not identity_id:
            raise IdentityServiceError("Identity service response did not include an id")

        logger.info("Identity created: %s (%s)", identity_id, email)
        return str(identity_id)

    async def delete_identity(self, identity_id: str) -> None:
        try:
            response = await self._client.delete(f"{ADMIN_USERS_PATH}/{identity_id}")
            if response.status_code == 404:
                logger.info("Identity %s already absent", identity_id)
                return
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            raise IdentityServiceError(message, e.response.status_code) from e
        except httpx.RequestError as e:
            raise IdentityServiceError(f"Identity service unreachable: {e}") from e

        logger.info("Identity deleted: %s", identity_id)
