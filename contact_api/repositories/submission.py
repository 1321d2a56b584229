"""Submission repository — stores submissions and their notification outcome."""

from __future__ import annotations

import uuid
from typing import Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contact_api.errors import PersistenceError
from contact_api.models.submission import Submission
from contact_api.schemas.submission import ClientInfo, SubmissionSummary
from contact_api.validation import ContactSubmissionIn

logger = structlog.get_logger()

CLIENT_AGENT_MAX = 512
DEFAULT_RECENT_LIMIT = 10


def _as_uuid(value: Union[str, uuid.UUID]) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(value)


class SubmissionRepository:
    """Manages submission creation, outcome updates and lookups."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        fields: ContactSubmissionIn,
        client: Optional[ClientInfo] = None,
    ) -> Submission:
        """Persist a new submission.

        Args:
            fields: Validated, normalized form fields
            client: Request metadata (address and user-agent)

        Returns:
            The committed Submission with id and timestamps

        Raises:
            PersistenceError: If the record could not be written
        """
        client = client or ClientInfo()
        agent = client.agent[:CLIENT_AGENT_MAX] if client.agent else None

        submission = Submission(
            name=fields.name,
            email=fields.email,
            organization=fields.organization,
            message=fields.message,
            notified=False,
            client_address=client.address,
            client_agent=agent,
        )

        self.db.add(submission)
        await self._commit("create")

        logger.info(
            "submission_created",
            submission_id=str(submission.id),
            email=submission.email,
            client_address=client.address,
        )
        return submission

    async def mark_notified(
        self,
        submission_id: Union[str, uuid.UUID],
        success: bool,
        error: Optional[str] = None,
    ) -> Submission:
        """Record the outcome of a notification attempt.

        A successful attempt clears any previous error.
        """
        submission = await self.get(submission_id)
        if submission is None:
            raise PersistenceError(f"Submission {submission_id} not found")

        submission.notified = success
        submission.notify_error = None if success else (error or "Unknown error")
        await self._commit("mark_notified")

        logger.debug(
            "submission_outcome_recorded",
            submission_id=str(submission.id),
            notified=success,
        )
        return submission

    async def get(self, submission_id: Union[str, uuid.UUID]) -> Optional[Submission]:
        """Look up a submission by id."""
        try:
            return await self.db.get(Submission, _as_uuid(submission_id))
        except SQLAlchemyError as e:
            logger.error("submission_lookup_failed", error=str(e))
            raise PersistenceError(str(e)) from e

    async def list_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[SubmissionSummary]:
        """Most recent submissions, newest first, without internal fields.

        Raises:
            ValueError: If ``limit`` is negative
        """
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        stmt = select(Submission).order_by(Submission.created_at.desc()).limit(limit)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("submission_list_failed", error=str(e))
            raise PersistenceError(str(e)) from e

        return [
            SubmissionSummary(
                id=str(s.id),
                name=s.name,
                email=s.email,
                organization=s.organization,
                message=s.message,
                message_preview=s.message_preview,
                notified=s.notified,
                created_at=s.created_at,
                updated_at=s.updated_at,
            )
            for s in result.scalars().all()
        ]

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("submission_write_failed", operation=operation, error=str(e))
            raise PersistenceError(str(e)) from e
