"""
Validation for public contact form submissions.

Only ``<`` and ``>`` are escaped. This is a narrow guard against markup
injection in the operator view, not a general HTML sanitizer.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from shared.errors import ValidationFailure

DEFAULT_MAX_MESSAGE_LENGTH = 5000

REQUIRED_FIELDS_ERROR = "Name, email and message are required."
MESSAGE_TOO_LONG_ERROR = "Message too long."


def sanitize_text(value: Any) -> str:
    """Trim and escape the markup delimiters of a free-text field."""
    if value is None:
        return ""
    return str(value).strip().replace("<", "&lt;").replace(">", "&gt;")


class ContactSubmission(BaseModel):
    """A submission that passed validation; all fields are sanitized."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)

    name: str
    email: str
    message: str

    @field_validator("message", mode="before")
    @classmethod
    def limit_message_length(cls, v: Any, info: ValidationInfo) -> Any:
        limit = (info.context or {}).get("max_message_length", DEFAULT_MAX_MESSAGE_LENGTH)
        if isinstance(v, str) and len(v) > limit:
            raise PydanticCustomError("message_too_long", MESSAGE_TOO_LONG_ERROR, {"max_length": limit})
        return v

    @field_validator("name", "email", "message")
    @classmethod
    def sanitize(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if not cleaned:
            raise PydanticCustomError("required", REQUIRED_FIELDS_ERROR)
        return cleaned


def parse_submission(payload: Any, max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH) -> ContactSubmission:
    """Validate a decoded JSON body.

    Raises ValidationFailure. A missing or empty field is reported ahead of
    an over-length message.
    """
    if not isinstance(payload, dict):
        raise ValidationFailure(REQUIRED_FIELDS_ERROR)

    try:
        return ContactSubmission.model_validate(
            payload, context={"max_message_length": max_message_length}
        )
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        too_long = all(err["type"] == "message_too_long" for err in e.errors())
        message = MESSAGE_TOO_LONG_ERROR if too_long else REQUIRED_FIELDS_ERROR
        raise ValidationFailure(message, {"fields": fields}) from e
