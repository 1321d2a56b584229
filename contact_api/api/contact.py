"""Contact form API — submission and health endpoints."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_api.api.dependencies import (
    api_rate_limit,
    contact_rate_limit,
    get_client_info,
    get_notifier,
)
from contact_api.database import get_db
from contact_api.errors import ValidationError
from contact_api.notifications.email import Notifier
from contact_api.repositories.submission import SubmissionRepository
from contact_api.schemas.submission import ClientInfo, SubmissionReceipt, SubmissionResponse
from contact_api.submissions.handler import SubmissionHandler, SubmissionStage

logger = structlog.get_logger()

router = APIRouter(prefix="/api/contact", tags=["contact"])

SUCCESS_MESSAGE = "Thank you for your message! I'll get back to you soon."
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
MALFORMED_BODY = [{"field": "body", "message": "Malformed request body"}]


async def read_payload(request: Request) -> dict[str, Any]:
    """Read the submission body, JSON or form-encoded."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        try:
            form = await request.form()
        except StarletteHTTPException as e:
            logger.info("malformed_form_body", error=str(e.detail))
            raise ValidationError(MALFORMED_BODY) from e
        return {key: value for key, value in form.items() if isinstance(value, str)}

    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if not isinstance(data, dict):
        raise ValidationError(MALFORMED_BODY)
    return data


@router.post(
    "",
    response_model=SubmissionResponse,
    dependencies=[Depends(api_rate_limit), Depends(contact_rate_limit)],
    summary="Submit the contact form",
    description=(
        "Validates and stores a contact form submission, then emails the site "
        "owner. A 200 means the submission was stored; delivery of the "
        "notification email is not guaranteed and is not reported here."
    ),
)
async def submit_contact(
    request: Request,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    client: ClientInfo = Depends(get_client_info),
) -> SubmissionResponse:
    """Submit a contact form.

    Args:
        request: Incoming request (JSON or form-encoded body)
        db: Database session
        notifier: Email notifier
        client: Source address and user-agent

    Returns:
        SubmissionResponse with the stored id and creation timestamp
    """
    raw = await read_payload(request)
    handler = SubmissionHandler(SubmissionRepository(db), notifier)
    outcome = await handler.handle(raw, client)

    logger.info(
        "submission_stage",
        stage=SubmissionStage.RESPONDED.value,
        submission_id=str(outcome.submission.id),
        notified=outcome.delivery.success,
    )
    return SubmissionResponse(
        message=SUCCESS_MESSAGE,
        data=SubmissionReceipt(
            id=str(outcome.submission.id),
            timestamp=outcome.submission.created_at,
        ),
    )


@router.get("/health")
async def contact_health() -> dict:
    """Health check endpoint."""
    return {
        "success": True,
        "message": "Contact API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
