"""Contact form validation.

``validate_submission`` is a pure function: raw values in, either normalized
fields or a list of field failures out. No I/O happens here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from contact_api.schemas.submission import FieldError

NAME_PATTERN = re.compile(r"[A-Za-z\s'-]+")

NAME_MIN, NAME_MAX = 2, 100
ORGANIZATION_MAX = 200
MESSAGE_MIN, MESSAGE_MAX = 10, 2000


def _clean(value: Any) -> str:
    """Turn a raw form value into trimmed text."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


class ContactSubmissionIn(BaseModel):
    """Normalized contact form fields.

    Attributes:
        name: Sender's name, 2-100 letters, spaces, hyphens or apostrophes
        email: Sender's address, lower-cased
        organization: Optional organization, at most 200 characters
        message: Message body, 10-2000 characters
    """

    name: str = ""
    email: str = ""
    organization: Optional[str] = None
    message: str = ""

    model_config = {"validate_default": True}

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def trim_text(cls, value: Any) -> str:
        return _clean(value)

    @field_validator("organization", mode="before")
    @classmethod
    def trim_optional(cls, value: Any) -> Optional[str]:
        return _clean(value) or None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "Name is required")
        if not NAME_MIN <= len(value) <= NAME_MAX:
            raise PydanticCustomError("length", "Name must be between 2 and 100 characters")
        if not NAME_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "pattern",
                "Name can only contain letters, spaces, hyphens, and apostrophes",
            )
        return value

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "Email is required")
        try:
            result = validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email", "Please provide a valid email address")
        return result.normalized.lower()

    @field_validator("organization")
    @classmethod
    def validate_organization(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > ORGANIZATION_MAX:
            raise PydanticCustomError(
                "length", "Organization name cannot exceed 200 characters"
            )
        return value

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "Message is required")
        if not MESSAGE_MIN <= len(value) <= MESSAGE_MAX:
            raise PydanticCustomError(
                "length", "Message must be between 10 and 2000 characters"
            )
        return value


@dataclass
class ValidationResult:
    """Outcome of validating one submission."""

    fields: Optional[ContactSubmissionIn] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.fields is not None


def validate_submission(raw: Mapping[str, Any]) -> ValidationResult:
    """Validate raw contact form values.

    Args:
        raw: Field values as received (JSON object or form data)

    Returns:
        ValidationResult with normalized fields, or one error per failing field
    """
    try:
        fields = ContactSubmissionIn.model_validate(dict(raw))
    except PydanticValidationError as e:
        errors = [
            FieldError(field=str(err["loc"][0]) if err["loc"] else "body", message=err["msg"])
            for err in e.errors()
        ]
        return ValidationResult(errors=errors)
    return ValidationResult(fields=fields)
