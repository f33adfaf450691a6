# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints:
- Database sessions
- The identity provider client and notification service
- The change bus and password hasher
- The acting administrator id

Tests replace any of these through ``app.dependency_overrides``.

Example:
    @router.get("/registrations")
    async def list_registrations(
        db: AsyncSession = Depends(get_db),
        admin_id: str = Depends(get_acting_admin),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.domains.auth.identity import GoTrueIdentityProvider, IdentityProvider
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)
from src.infrastructure.notifications import NotificationService
from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

_identity_provider: GoTrueIdentityProvider | None = None
_notification_service: NotificationService | None = None
_password_hasher = PasswordHasher()


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def init_identity_provider() -> None:
    """Create the shared identity provider client."""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = GoTrueIdentityProvider(get_settings().identity)


async def close_identity_provider() -> None:
    """Close the shared identity provider client."""
    global _identity_provider
    if _identity_provider is not None:
        await _identity_provider.close()
        _identity_provider = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


def get_identity_provider() -> IdentityProvider:
    """Get the identity provider client."""
    if _identity_provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider not initialized",
        )
    return _identity_provider


def get_notification_service() -> NotificationService:
    """Get the notification service, creating it on first use."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService.from_settings(get_settings())
    return _notification_service


def get_password_hasher() -> PasswordHasher:
    """Get the password hasher."""
    return _password_hasher


def get_acting_admin(
    x_actor_id: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the administrator performing the request.

    Authentication happens upstream; the gateway forwards the
    authenticated administrator's user id in the X-Actor-Id header.

    Raises:
        HTTPException: 401 if the header is missing or blank.
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "UnauthorizedError",
                "message": "An acting administrator id is required",
            },
        )
    admin_id = x_actor_id.strip()
    clear_context()
    bind_context(admin_id=admin_id)
    return admin_id
