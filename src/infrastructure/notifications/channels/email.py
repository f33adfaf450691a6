# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel using async SMTP.

This channel sends email notifications using aiosmtplib. It generates
both plain text and HTML versions of every message.

Configuration comes from SMTPSettings (SMTP_HOST, SMTP_PORT,
SMTP_USERNAME, SMTP_PASSWORD, SMTP_USE_TLS, SMTP_FROM_EMAIL,
SMTP_FROM_NAME). When any required value is missing the channel reports
every send as skipped.
"""

import html
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib

from src.core.config.settings import SMTPSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class EmailChannel(BaseChannel):
    """Email notification channel using async SMTP."""

    def __init__(self, settings: SMTPSettings) -> None:
        super().__init__()
        self._settings = settings
        if not settings.is_configured:
            self.logger.warning(
                "Email notifications disabled: SMTP_HOST, SMTP_USERNAME, "
                "SMTP_PASSWORD, or SMTP_FROM_EMAIL not set"
            )

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.EMAIL

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send email notification via SMTP.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status. SMTP errors are reported
            as a failed result, never raised.
        """
        if not self._settings.is_configured:
            return self.create_skipped_result("SMTP configuration incomplete")

        if not payload.recipient_email:
            return self.create_skipped_result("No recipient email address")

        message = self._build_email_message(payload)
        password = self._settings.password.get_secret_value() if self._settings.password else None

        try:
            await aiosmtplib.send(
                message,
                hostname=self._settings.host,
                port=self._settings.port,
                username=self._settings.username,
                password=password,
                start_tls=self._settings.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.warning(
                "Failed to send email to %s: %s",
                payload.recipient_email,
                str(e),
            )
            return self.create_failure_result(
                f"SMTP error: {e}",
                metadata={"recipient": payload.recipient_email},
            )

        self.logger.info("Email sent to %s: %s", payload.recipient_email, payload.title)
        return self.create_success_result(
            message_id=message["Message-ID"],
            metadata={"recipient": payload.recipient_email},
        )

    def _build_email_message(self, payload: NotificationPayload) -> MIMEMultipart:
        """Build the MIME message with plain text and HTML parts."""
        message = MIMEMultipart("alternative")

        message["From"] = f"{self._settings.from_name} <{self._settings.from_email}>"
        message["To"] = payload.recipient_email
        message["Subject"] = payload.title
        message["Message-ID"] = make_msgid(domain=self._settings.from_email.split("@")[-1])

        message.attach(MIMEText(self._build_plain_text(payload), "plain", "utf-8"))
        message.attach(MIMEText(self._build_html(payload), "html", "utf-8"))

        return message

    def _build_plain_text(self, payload: NotificationPayload) -> str:
        lines = [payload.title, "=" * len(payload.title), ""]

        if payload.recipient_name:
            lines.extend([f"Hello {payload.recipient_name},", ""])

        lines.extend([payload.message, ""])

        if payload.action_url:
            lines.extend([f"{payload.action_label or 'Sign in'}: {payload.action_url}", ""])

        lines.extend(["---", f"This message was sent by {self._settings.from_name}."])
        return "\n".join(lines)

    def _build_html(self, payload: NotificationPayload) -> str:
        title = html.escape(payload.title)
        body = html.escape(payload.message).replace("\n", "<br>")

        greeting = ""
        if payload.recipient_name:
            greeting = f"<p style=\"margin: 0 0 16px 0;\">Hello {html.escape(payload.recipient_name)},</p>"

        action_button = ""
        if payload.action_url:
            label = html.escape(payload.action_label or "Sign in")
            action_button = f"""
            <div style="margin: 24px 0;">
                <a href="{html.escape(payload.action_url, quote=True)}"
                   style="background-color: #4F46E5; color: white;
                          padding: 12px 24px; text-decoration: none;
                          border-radius: 6px; font-weight: 500;">
                    {label}
                </a>
            </div>
            """

        sender = html.escape(self._settings.from_name)
        content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto,
             'Helvetica Neue', Arial, sans-serif; line-height: 1.6;
             color: #1F2937; margin: 0; padding: 0; background-color: #F3F4F6;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: white; border-radius: 8px; padding: 32px;">
            <h1 style="color: #4F46E5; font-size: 24px; margin: 0 0 24px 0;">{title}</h1>
            <div style="font-size: 16px; color: #374151;">
                {greeting}
                <p style="margin: 0 0 16px 0;">{body}</p>
            </div>
            {action_button}
            <div style="border-top: 1px solid #E5E7EB; padding-top: 16px;
                        margin-top: 24px; font-size: 12px; color: #9CA3AF;">
                <p style="margin: 0;">This message was sent by {sender}.</p>
            </div>
        </div>
    </div>
</body>
</html>
        """
        return content.strip()
