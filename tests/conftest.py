# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across test types:
- A file-backed SQLite database (aiosqlite) built from the models
- Fake identity provider and notifier
- A fast password hasher and a private change bus
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.core.config import clear_settings_cache
from src.domains.auth.identity import IdentityServiceError
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.connection import create_sessionmaker
from src.infrastructure.database.models import Base, Company
from src.infrastructure.events import ChangeNotificationBus, reset_change_bus
from src.models.registration import RegistrationSubmitRequest


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Keep cached settings and the change bus from leaking between tests."""
    clear_settings_cache()
    reset_change_bus()
    yield
    reset_change_bus()
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


def _enable_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy control BEGIN so SAVEPOINTs behave, and enforce FKs."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database with every table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'registration.db'}")
    _enable_sqlite_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker configured like the application's."""
    return create_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session on the test database."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def company(session_factory: async_sessionmaker[AsyncSession]) -> Company:
    """Persist a company for approve-with-company decisions."""
    async with session_factory() as session:
        company = Company(name="Acme Learning", email="hr@acme.test")
        session.add(company)
        await session.commit()
        return company


# =============================================================================
# Fakes
# =============================================================================


class FakeIdentityProvider:
    """In-memory identity provider recording every call.

    Set ``create_error`` or ``delete_error`` to make the next calls fail.
    """

    def __init__(self) -> None:
        self.identities: dict[str, dict[str, Any]] = {}
        self.created: list[dict[str, Any]] = []
        self.deleted: list[str] = []
        self.create_error: Exception | None = None
        self.delete_error: Exception | None = None

    async def create_identity(
        self,
        email: str,
        password_hash: str,
        email_confirmed: bool,
        metadata: dict[str, Any],
    ) -> str:
        if self.create_error is not None:
            raise self.create_error
        identity_id = str(uuid4())
        record = {
            "id": identity_id,
            "email": email,
            "password_hash": password_hash,
            "email_confirmed": email_confirmed,
            "metadata": metadata,
        }
        self.identities[identity_id] = record
        self.created.append(record)
        return identity_id

    async def delete_identity(self, identity_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.identities.pop(identity_id, None)
        self.deleted.append(identity_id)


class FakeNotifier:
    """Records approval notifications; optionally raises."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def notify_account_approved(
        self,
        user_id: str,
        email: str,
        full_name: str | None = None,
        company_name: str | None = None,
    ) -> list:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "user_id": user_id,
                "email": email,
                "full_name": full_name,
                "company_name": company_name,
            }
        )
        return []


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    """Provide a fake identity provider."""
    return FakeIdentityProvider()


@pytest.fixture
def identity_service_error() -> type[IdentityServiceError]:
    """Expose the identity error type to tests configuring failures."""
    return IdentityServiceError


@pytest.fixture
def notifier() -> FakeNotifier:
    """Provide a fake approval notifier."""
    return FakeNotifier()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Provide a low-cost bcrypt hasher."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def change_bus() -> ChangeNotificationBus:
    """Provide a private change bus."""
    return ChangeNotificationBus()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_admin_id() -> str:
    """Provide a sample administrator ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def make_candidate():
    """Build registration forms with overridable fields."""

    def _make(**overrides: Any) -> RegistrationSubmitRequest:
        data: dict[str, Any] = {
            "email": "a@x.com",
            "password": "secret1",
            "confirm_password": "secret1",
            "first_name": "Ann",
            "last_name": "Lee",
        }
        data.update(overrides)
        if "password" in overrides and "confirm_password" not in overrides:
            data["confirm_password"] = overrides["password"]
        return RegistrationSubmitRequest(**data)

    return _make
