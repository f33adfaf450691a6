# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for account lifecycle messages.

After an approval has been committed the registration workflow asks this
service to tell the new user that their account is active. Delivery is
best-effort: failures come back as ChannelResult values and are logged,
never raised into the workflow.
"""

import logging

from src.core.config.settings import Settings
from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    EmailChannel,
    NotificationPayload,
)

logger = logging.getLogger(__name__)

ACCOUNT_APPROVED = "account_approved"


class NotificationService:
    """Dispatches account notifications through the configured channels.

    Args:
        channels: Delivery channels; the e-mail channel in deployment.
        login_url: Link included in approval messages, if any.
    """

    def __init__(
        self,
        channels: list[BaseChannel],
        login_url: str | None = None,
    ) -> None:
        self._channels = channels
        self._login_url = login_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationService":
        """Build the service with an SMTP channel from settings."""
        origins = settings.cors.origins_list
        return cls(
            channels=[EmailChannel(settings.smtp)],
            login_url=origins[0] if origins else None,
        )

    async def notify_account_approved(
        self,
        user_id: str,
        email: str,
        full_name: str | None = None,
        company_name: str | None = None,
    ) -> list[ChannelResult]:
        """Tell a newly provisioned user that their account is active.

        Args:
            user_id: ID of the new user.
            email: Address the account was created for.
            full_name: Display name for the greeting.
            company_name: Company the account was assigned to, if any.

        Returns:
            One result per channel.
        """
        if company_name:
            message = (
                f"Your registration has been approved and your account is now active "
                f"as a member of {company_name}. You can sign in with the email "
                f"address and password you registered with."
            )
        else:
            message = (
                "Your registration has been approved and your account is now active. "
                "You can sign in with the email address and password you registered with."
            )

        payload = NotificationPayload(
            notification_type=ACCOUNT_APPROVED,
            title="Your account has been approved",
            message=message,
            recipient_id=user_id,
            recipient_email=email,
            recipient_name=full_name,
            data={"company_name": company_name} if company_name else {},
            action_url=self._login_url,
            action_label="Sign in",
        )

        results = []
        for channel in self._channels:
            result = await channel.send(payload)
            if result.is_sent:
                logger.info(
                    "Approval notification sent: user=%s, channel=%s",
                    user_id,
                    channel.channel_type.value,
                )
            else:
                logger.warning(
                    "Approval notification not delivered: user=%s, channel=%s, status=%s, reason=%s",
                    user_id,
                    channel.channel_type.value,
                    result.status.value,
                    result.error_message,
                )
            results.append(result)

        return results
