# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column mixins."""

from datetime import datetime
from typing import Any, ClassVar
from uuid import uuid4

from sqlalchemy import DateTime, String, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.utils.datetime import format_iso, utc_now


def new_id() -> str:
    """Generate a string UUID primary key."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base for all models."""

    # Columns never exposed outside the persistence layer
    __private_columns__: ClassVar[frozenset[str]] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Serialize loaded column values to a JSON-friendly dict.

        Datetimes are rendered as ISO-8601 UTC strings. Private columns and
        attributes that are not loaded are omitted, so this never triggers
        a lazy load.
        """
        state = inspect(self)
        unloaded = state.unloaded
        data: dict[str, Any] = {}
        for attr in state.mapper.column_attrs:
            if attr.key in self.__private_columns__ or attr.key in unloaded:
                continue
            value = getattr(self, attr.key)
            if isinstance(value, datetime):
                value = format_iso(value)
            data[attr.key] = value
        return data


class UUIDPrimaryKeyMixin:
    """String UUID primary key, generated client side."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class CreatedAtMixin:
    """Creation timestamp, UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )


class TimestampMixin(CreatedAtMixin):
    """Creation and last-update timestamps, UTC."""

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=utc_now,
    )
