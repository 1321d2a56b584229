"""Email notification service — sends contact submissions to the site owner."""

from __future__ import annotations

import pathlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from contact_api.errors import NotificationError
from contact_api.models.submission import Submission
from contact_api.notifications.resend_client import ResendClient

logger = structlog.get_logger()

TEMPLATES_DIR = pathlib.Path(__file__).parent / "templates"


def _nl2br(value: str) -> Markup:
    return escape(value).replace("\n", Markup("<br>\n"))


templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
templates.filters["nl2br"] = _nl2br


@dataclass
class DeliveryResult:
    """Outcome of one notification attempt."""

    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


class Notifier(Protocol):
    async def send(self, submission: Submission) -> DeliveryResult:
        ...


def build_subject(name: str, organization: Optional[str]) -> str:
    subject = f"New Contact: {name}"
    if organization:
        subject += f" ({organization})"
    return subject


def render_contact_email(
    submission: Submission,
    received_at: Optional[datetime] = None,
) -> RenderedEmail:
    """Render subject, HTML and plain-text parts for a submission."""
    received_at = received_at or datetime.now(timezone.utc)
    context = {
        "name": submission.name,
        "email": submission.email,
        "organization": submission.organization,
        "message": submission.message,
        "received_at": received_at.strftime("%A, %B %d, %Y at %H:%M:%S %Z"),
    }
    return RenderedEmail(
        subject=build_subject(submission.name, submission.organization),
        html=templates.get_template("contact_email.html").render(**context),
        text=templates.get_template("contact_email.txt").render(**context).strip(),
    )


class EmailNotifier:
    """Sends formatted submission notifications via Resend."""

    def __init__(self, client: ResendClient, from_address: str, to_address: str):
        self.client = client
        self.from_address = from_address
        self.to_address = to_address

    def verify_config(self) -> bool:
        """Log whether the notifier can send; the service starts either way."""
        missing = []
        if not self.client.configured:
            missing.append("RESEND_API_KEY")
        if not self.to_address:
            missing.append("EMAIL_TO")
        if missing:
            logger.error("email_config_invalid", missing=missing)
            return False
        logger.info("email_config_verified", to=self.to_address)
        return True

    async def send(self, submission: Submission) -> DeliveryResult:
        """Send a notification for a stored submission.

        Args:
            submission: The stored submission

        Returns:
            DeliveryResult; failures carry the reason and are never raised
        """
        try:
            if not self.to_address:
                raise NotificationError("EMAIL_TO is not set")
            email = render_contact_email(submission)
            message_id = await self.client.send_email(
                from_address=self.from_address,
                to=[self.to_address],
                subject=email.subject,
                html=email.html,
                text=email.text,
                reply_to=submission.email,
            )
        except Exception as e:
            logger.error(
                "notification_failed",
                submission_id=str(submission.id),
                error=str(e),
            )
            return DeliveryResult(success=False, error=str(e))

        logger.info(
            "notification_sent",
            submission_id=str(submission.id),
            message_id=message_id,
        )
        return DeliveryResult(success=True, message_id=message_id)
