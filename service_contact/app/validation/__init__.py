"""
Submission validation and sanitization.
"""

from .submission import (
    DEFAULT_MAX_MESSAGE_LENGTH,
    ContactSubmission,
    parse_submission,
    sanitize_text,
)

__all__ = [
    "DEFAULT_MAX_MESSAGE_LENGTH",
    "ContactSubmission",
    "parse_submission",
    "sanitize_text",
]
