"""Submission model — one stored contact-form message."""

from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contact_api.models.base import Base, TimestampMixin, UUIDMixin

PREVIEW_LENGTH = 50


class Submission(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "contact_submissions"

    # Sender
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, index=True)
    organization: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Notification outcome
    notified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    notify_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Request metadata (internal only)
    client_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    client_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    @property
    def message_preview(self) -> str:
        if len(self.message) > PREVIEW_LENGTH:
            return self.message[:PREVIEW_LENGTH] + "..."
        return self.message

    def __repr__(self) -> str:
        return f"<Submission {self.id} notified={self.notified}>"
