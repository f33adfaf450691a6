# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed change events published after committed writes.

A ChangeEvent says that a row in one of the registration tables was
inserted or updated. Consumers treat it as a refetch signal and re-query
the lists they display; the row snapshot is a convenience, not a delta
stream.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.utils.datetime import utc_now


class Tables:
    """Table names that carry change events."""

    REGISTRATION_REQUESTS = "registration_requests"
    USERS = "users"
    USER_PROFILES = "user_profiles"
    APPROVAL_LOGS = "approval_logs"
    COMPANIES = "companies"

    ALL = frozenset(
        {
            REGISTRATION_REQUESTS,
            USERS,
            USER_PROFILES,
            APPROVAL_LOGS,
            COMPANIES,
        }
    )


class ChangeOp(str, enum.Enum):
    """Kind of write that produced a change event."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed write on one table.

    Attributes:
        table: Table the row belongs to.
        op: Kind of write.
        row: Serialized column values of the row after the write.
        event_id: Unique event identifier.
        timestamp: When the event was created.
    """

    table: str
    op: ChangeOp
    row: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)

    @classmethod
    def insert(cls, table: str, row: dict[str, Any]) -> "ChangeEvent":
        return cls(table=table, op=ChangeOp.INSERT, row=row)

    @classmethod
    def update(cls, table: str, row: dict[str, Any]) -> "ChangeEvent":
        return cls(table=table, op=ChangeOp.UPDATE, row=row)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "event_id": self.event_id,
            "table": self.table,
            "op": self.op.value,
            "row": self.row,
            "timestamp": self.timestamp.isoformat(),
        }
