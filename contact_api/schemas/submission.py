"""Submission schemas for the API and the store."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    """Single validation failure reported to the caller."""

    field: str
    message: str


class ClientInfo(BaseModel):
    """Best-effort request metadata stored alongside a submission."""

    address: Optional[str] = None
    agent: Optional[str] = None


class SubmissionSummary(BaseModel):
    """Public view of a stored submission.

    Leaves out the client address, client agent and notify error columns.
    """

    id: str
    name: str
    email: str
    organization: Optional[str] = None
    message: str
    message_preview: str
    notified: bool
    created_at: datetime
    updated_at: datetime


class SubmissionReceipt(BaseModel):
    id: str
    timestamp: datetime


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str
    data: SubmissionReceipt
