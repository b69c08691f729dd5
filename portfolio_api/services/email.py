"""Utility helpers for sending transactional emails."""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from portfolio_api.config.settings import MailConfig


class EmailServiceError(RuntimeError):
    """Raised when the email service cannot deliver a message."""


class SmtpMailer:
    """Send plain text emails through the configured SMTP provider."""

    def __init__(self, config: MailConfig) -> None:
        self._config = config

    @property
    def owner_address(self) -> Optional[str]:
        return self._config.owner_address

    async def send_email(
        self,
        *,
        recipient: str,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
    ) -> None:
        mail_settings = self._config
        if not mail_settings.is_configured():
            raise EmailServiceError("SMTP settings are not configured.")

        message = EmailMessage()
        message["From"] = mail_settings.sender
        message["To"] = recipient
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(body)

        password = (
            mail_settings.password.get_secret_value()
            if mail_settings.password is not None
            else None
        )

        def _send_sync() -> None:
            context = ssl.create_default_context()
            if mail_settings.use_ssl:
                with smtplib.SMTP_SSL(
                    mail_settings.host,
                    mail_settings.port,
                    context=context,
                    timeout=mail_settings.timeout,
                ) as client:
                    if mail_settings.username and password:
                        client.login(mail_settings.username, password)
                    client.send_message(message)
                return

            with smtplib.SMTP(
                mail_settings.host,
                mail_settings.port,
                timeout=mail_settings.timeout,
            ) as client:
                if mail_settings.use_tls:
                    client.starttls(context=context)
                if mail_settings.username and password:
                    client.login(mail_settings.username, password)
                client.send_message(message)

        try:
            await asyncio.to_thread(_send_sync)
        except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network errors
            raise EmailServiceError("Failed to send email.") from exc


__all__ = ["EmailServiceError", "SmtpMailer"]
