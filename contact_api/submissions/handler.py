"""Submission handler — runs one contact submission through its lifecycle.

Order: received → validated → stored → notify_attempted → responded.
A failed notification does not fail the submission: the record is already
stored, so the caller still gets a success response and the failure is kept
on the record (``notified=False`` plus ``notify_error``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import structlog

from contact_api.errors import ValidationError
from contact_api.models.submission import Submission
from contact_api.notifications.email import DeliveryResult, Notifier
from contact_api.repositories.submission import SubmissionRepository
from contact_api.schemas.submission import ClientInfo
from contact_api.validation import validate_submission

logger = structlog.get_logger()


class SubmissionStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STORED = "stored"
    NOTIFY_ATTEMPTED = "notify_attempted"
    RESPONDED = "responded"


@dataclass
class SubmissionOutcome:
    submission: Submission
    delivery: DeliveryResult


class SubmissionHandler:
    """Validates, stores and notifies for one contact submission."""

    def __init__(self, repository: SubmissionRepository, notifier: Notifier):
        self.repository = repository
        self.notifier = notifier

    async def handle(
        self,
        raw: Mapping[str, Any],
        client: Optional[ClientInfo] = None,
    ) -> SubmissionOutcome:
        """Process raw form values.

        Raises:
            ValidationError: Input failed validation; nothing was stored
            PersistenceError: The record could not be stored or updated
        """
        self._advance(SubmissionStage.RECEIVED)
        result = validate_submission(raw)
        if not result.ok:
            logger.info(
                "submission_rejected",
                fields=[e.field for e in result.errors],
                client_address=client.address if client else None,
            )
            raise ValidationError([e.model_dump() for e in result.errors])
        self._advance(SubmissionStage.VALIDATED)

        submission = await self.repository.create(result.fields, client)
        self._advance(SubmissionStage.STORED, submission)

        delivery = await self.notifier.send(submission)
        await self.repository.mark_notified(submission.id, delivery.success, delivery.error)
        self._advance(SubmissionStage.NOTIFY_ATTEMPTED, submission, notified=delivery.success)

        return SubmissionOutcome(submission=submission, delivery=delivery)

    def _advance(
        self,
        stage: SubmissionStage,
        submission: Optional[Submission] = None,
        **context: Any,
    ) -> None:
        logger.debug(
            "submission_stage",
            stage=stage.value,
            submission_id=str(submission.id) if submission else None,
            **context,
        )
