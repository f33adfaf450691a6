# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification infrastructure.

Example:
    from src.infrastructure.notifications import NotificationService

    service = NotificationService.from_settings(settings)
    await service.notify_account_approved(user_id, email, full_name)
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    NotificationPayload,
)
from src.infrastructure.notifications.service import ACCOUNT_APPROVED, NotificationService

__all__ = [
    "ACCOUNT_APPROVED",
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "EmailChannel",
    "NotificationPayload",
    "NotificationService",
]
