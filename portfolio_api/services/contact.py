"""Contact form relay: owner notification plus sender acknowledgment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import BackgroundTasks

from portfolio_api.services.email import EmailServiceError
from portfolio_api.telemetry import increment_contact_email

logger = logging.getLogger(__name__)

_ACK_SUBJECT = "Thank you for getting in touch"
LINKEDIN_URL = "https://www.linkedin.com/in/rahulsingh05/"


class Mailer(Protocol):
    owner_address: Optional[str]

    async def send_email(
        self,
        *,
        recipient: str,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
    ) -> None: ...


@dataclass(frozen=True)
class ContactSubmission:
    name: str
    email: str
    subject: str
    message: str


def _single_line(value: str) -> str:
    return " ".join(value.split())


def build_notification_body(submission: ContactSubmission) -> str:
    return (
        "New message from the portfolio contact form.\n\n"
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n"
        f"Subject: {submission.subject}\n\n"
        f"{submission.message}\n"
    )


def build_acknowledgement_body(submission: ContactSubmission) -> str:
    return (
        f"Hi {submission.name},\n\n"
        "Thank you for reaching out through my portfolio website. I've received "
        "your message and appreciate you taking the time to connect.\n\n"
        "I personally review all messages and will respond as soon as possible.\n\n"
        "What happens next?\n"
        "  - Your message will be reviewed carefully\n"
        "  - You can expect a response within 24-48 hours\n"
        "  - For professional networking, feel free to connect with me on LinkedIn: "
        f"{LINKEDIN_URL}\n\n"
        "Best regards,\n"
        "Rahul Singh\n\n"
        "--\n"
        "This is an automated acknowledgment confirming receipt of your message.\n"
    )


class ContactRelay:
    """Deliver contact submissions to the site owner and acknowledge the sender."""

    def __init__(self, mailer: Mailer, *, owner_address: Optional[str] = None) -> None:
        self._mailer = mailer
        self._owner_address = owner_address or mailer.owner_address

    async def relay(
        self,
        submission: ContactSubmission,
        background_tasks: BackgroundTasks,
    ) -> None:
        """Send the owner notification; queue the acknowledgment on success.

        Raises:
            EmailServiceError: when the owner notification cannot be delivered.
        """

        if not self._owner_address:
            increment_contact_email("notification", "failure")
            raise EmailServiceError("No contact recipient is configured.")

        try:
            await self._mailer.send_email(
                recipient=self._owner_address,
                subject=f"New contact form submission: {_single_line(submission.subject)}",
                body=build_notification_body(submission),
                reply_to=submission.email,
            )
        except EmailServiceError:
            increment_contact_email("notification", "failure")
            logger.exception("Contact notification failed")
            raise

        increment_contact_email("notification", "success")
        background_tasks.add_task(self.send_acknowledgement, submission)

    async def send_acknowledgement(self, submission: ContactSubmission) -> None:
        """Acknowledge the sender. Failures are logged and never re-raised."""

        try:
            await self._mailer.send_email(
                recipient=submission.email,
                subject=_ACK_SUBJECT,
                body=build_acknowledgement_body(submission),
            )
        except Exception:
            increment_contact_email("acknowledgement", "failure")
            logger.exception("Contact acknowledgment failed")
            return

        increment_contact_email("acknowledgement", "success")


__all__ = [
    "ContactRelay",
    "ContactSubmission",
    "Mailer",
    "build_acknowledgement_body",
    "build_notification_body",
]
