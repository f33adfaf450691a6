# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Change-notification infrastructure.

Services publish typed ChangeEvents after committing; presentation layers
subscribe per table and refetch.

Quick Start:
    from src.infrastructure.events import ChangeEvent, Tables, get_change_bus

    bus = get_change_bus()
    await bus.publish(ChangeEvent.insert(Tables.REGISTRATION_REQUESTS, row))
"""

from src.infrastructure.events.bus import (
    ChangeHandler,
    ChangeNotificationBus,
    ChangeSubscription,
    get_change_bus,
    reset_change_bus,
)
from src.infrastructure.events.types import ChangeEvent, ChangeOp, Tables

__all__ = [
    "ChangeEvent",
    "ChangeHandler",
    "ChangeNotificationBus",
    "ChangeOp",
    "ChangeSubscription",
    "Tables",
    "get_change_bus",
    "reset_change_bus",
]
