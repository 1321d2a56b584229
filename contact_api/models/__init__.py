"""SQLAlchemy ORM models."""

from contact_api.models.base import Base
from contact_api.models.submission import Submission

__all__ = [
    "Base",
    "Submission",
]
