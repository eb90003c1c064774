# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outgoing email via async SMTP.

Uses aiosmtplib with the SMTP_* settings. When SMTP is not configured the
sender logs a warning and skips delivery, so local environments work
without a mail server.

Example:
    sender = EmailSender(get_settings().smtp)
    await sender.send_password_reset("parent@example.com", "Ayse", token)
"""

import html
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from src.core.config.settings import SMTPSettings

logger = logging.getLogger(__name__)


class EmailSender:
    """Sends plain text + HTML emails through SMTP.

    Attributes:
        _settings: SMTP configuration.
    """

    def __init__(self, settings: SMTPSettings) -> None:
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.is_configured

    async def send(self, to: str, subject: str, text: str, html_body: str | None = None) -> bool:
        """Send an email.

        Args:
            to: Recipient address.
            subject: Subject line.
            text: Plain text body.
            html_body: Optional HTML alternative.

        Returns:
            True if the message was handed to the SMTP server, False if
            delivery was skipped or failed.
        """
        if not self.enabled:
            logger.warning("Email delivery skipped (SMTP not configured): to=%s", to)
            return False

        message = self._build_message(to, subject, text, html_body)
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
            logger.error("Failed to send email to %s: %s", to, str(e), exc_info=True)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_password_reset(self, to: str, name: str, token: str) -> bool:
        """Send a password reset link.

        Args:
            to: Recipient address.
            name: Recipient first name for the greeting.
            token: Signed reset token appended to the reset URL.
        """
        link = f"{self._settings.frontend_url.rstrip('/')}/reset-password?token={token}"
        text = (
            f"Hello {name},\n\n"
            "We received a request to reset your EduTrack password.\n"
            f"Use the link below within the next hour:\n\n{link}\n\n"
            "If you did not request this, you can ignore this email."
        )
        html_body = (
            f"<p>Hello {html.escape(name)},</p>"
            "<p>We received a request to reset your EduTrack password.</p>"
            f'<p><a href="{html.escape(link, quote=True)}">Reset your password</a></p>'
            "<p>The link expires in one hour. If you did not request this, "
            "you can ignore this email.</p>"
        )
        return await self.send(to, "Reset your EduTrack password", text, html_body)

    def _build_message(
        self,
        to: str,
        subject: str,
        text: str,
        html_body: str | None,
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self._settings.from_name} <{self._settings.from_email}>"
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(text, "plain", "utf-8"))
        if html_body:
            message.attach(MIMEText(html_body, "html", "utf-8"))
        return message
