# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel using async SMTP.

Sends plain text and HTML alternatives through aiosmtplib. Configuration
comes from SMTPSettings (SMTP_* environment variables); when no host or
sender is configured every send is reported as skipped.
"""

import html
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib

from edutransfer.core.config.settings import SMTPSettings
from edutransfer.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)


class EmailChannel(BaseChannel):
    """Email notification channel using async SMTP."""

    def __init__(self, settings: SMTPSettings) -> None:
        super().__init__()
        self.settings = settings

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.EMAIL

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send email notification via SMTP.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        if not self.settings.is_configured:
            return self.create_skipped_result("Email channel not configured")

        if not payload.recipient_email:
            return self.create_skipped_result("No recipient email address")

        message = self.build_message(payload)
        password = self.settings.password.get_secret_value() if self.settings.password else None

        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.host,
                port=self.settings.port,
                username=self.settings.username,
                password=password,
                start_tls=self.settings.use_tls,
                timeout=self.settings.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error(
                "Failed to send email to %s: %s",
                payload.recipient_email,
                str(e),
                exc_info=True,
            )
            return self.create_failure_result(
                f"SMTP error: {str(e)}",
                metadata={"recipient": payload.recipient_email},
            )

        self.logger.info("Email sent to %s: %s", payload.recipient_email, payload.title)
        return self.create_success_result(
            message_id=message["Message-ID"],
            metadata={"recipient": payload.recipient_email},
        )

    def build_message(self, payload: NotificationPayload) -> MIMEMultipart:
        """Build the MIME message with plain text and HTML parts."""
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.settings.from_name} <{self.settings.from_email}>"
        message["To"] = payload.recipient_email or ""
        message["Subject"] = payload.title
        message["Message-ID"] = make_msgid(domain="edutransfer")

        message.attach(MIMEText(self._build_plain_text(payload), "plain", "utf-8"))
        message.attach(MIMEText(self._build_html(payload), "html", "utf-8"))
        return message

    def _build_plain_text(self, payload: NotificationPayload) -> str:
        lines = [payload.title, "=" * len(payload.title), ""]
        if payload.recipient_name:
            lines.extend([f"Dear {payload.recipient_name},", ""])
        lines.extend([payload.message, ""])
        if payload.highlight:
            lines.extend([f"    {payload.highlight}", ""])
        lines.extend([
            "---",
            f"Sent by {payload.school_name or self.settings.from_name} via EduTransfer.",
        ])
        return "\n".join(lines)

    def _build_html(self, payload: NotificationPayload) -> str:
        title = html.escape(payload.title)
        body = html.escape(payload.message).replace("\n", "<br>")
        sender = html.escape(payload.school_name or self.settings.from_name)

        greeting = ""
        if payload.recipient_name:
            greeting = f"<p>Dear {html.escape(payload.recipient_name)},</p>"

        highlight = ""
        if payload.highlight:
            highlight = (
                '<div style="margin: 24px 0; padding: 16px; background-color: #F3F4F6; '
                'border-radius: 6px; font-family: monospace; font-size: 22px; '
                f'letter-spacing: 2px; text-align: center;">{html.escape(payload.highlight)}</div>'
            )

        return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #1F2937;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #4F46E5; font-size: 22px;">{title}</h1>
        {greeting}
        <p>{body}</p>
        {highlight}
        <p style="font-size: 12px; color: #9CA3AF;">Sent by {sender} via EduTransfer.</p>
    </div>
</body>
</html>"""
