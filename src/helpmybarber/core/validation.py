"""Validation of generate requests before any upstream call is made.

Both checks raise :class:`ValidationError` whose message is intended to be
returned to the caller as-is: every failure here describes something the
caller can fix by changing their input.
"""

from __future__ import annotations

import base64
import binascii
import logging
from enum import Enum

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 500
MAX_IMAGE_BYTES = 10 * 1024 * 1024

# Case-insensitive substring match, not word match: "Scripted fade" is rejected
# because it contains "script".
BLOCKED_SUBSTRINGS = ("script", "javascript", "html", "css", "<", ">", "http", "www")


class ValidationFailure(str, Enum):
    """Reason a request failed validation."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    BLOCKED_CONTENT = "blocked_content"
    INVALID_FORMAT = "invalid_format"
    TOO_LARGE = "too_large"


_MESSAGES = {
    ValidationFailure.EMPTY: "Please enter a description for your desired haircut.",
    ValidationFailure.TOO_LONG: (
        f"Description is too long. Please keep it under {MAX_PROMPT_LENGTH} characters."
    ),
    ValidationFailure.BLOCKED_CONTENT: "Please use a different description for your haircut.",
    ValidationFailure.INVALID_FORMAT: "Invalid image data",
    ValidationFailure.TOO_LARGE: "Image is too large. Please upload an image under 10MB.",
}


class ValidationError(Exception):
    """User-friendly validation error.

    Attributes:
        kind: Which check failed.
        message: Sentence safe to show to the caller.
    """

    def __init__(self, kind: ValidationFailure, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or _MESSAGES[kind]
        super().__init__(self.message)


def validate_image(base64_data: str) -> bytes:
    """Validate a base64-encoded image and return its decoded bytes.

    The size limit is checked against ``len(base64_data) * 3 / 4`` rather
    than the exact decoded length, which can over-count by up to two bytes
    for padded input.  Images right at the limit are therefore judged by the
    estimate, not by their true size.

    Args:
        base64_data: Standard (padded) base64 text.

    Returns:
        The decoded image bytes.

    Raises:
        ValidationError: ``INVALID_FORMAT`` if the text is not valid base64,
            ``TOO_LARGE`` if the estimated decoded size exceeds 10 MiB.
    """
    try:
        decoded = base64.b64decode(base64_data, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Rejected image data: {e}")
        raise ValidationError(ValidationFailure.INVALID_FORMAT) from e

    estimated_size = len(base64_data) * 3 / 4
    if estimated_size > MAX_IMAGE_BYTES:
        logger.debug(f"Rejected image of roughly {estimated_size:.0f} bytes")
        raise ValidationError(ValidationFailure.TOO_LARGE)

    return decoded


def validate_prompt(text: str) -> None:
    """Validate a haircut description.

    Checks run in order (empty, length, blocklist) and the first failure is
    raised.

    Args:
        text: Style description supplied by the caller.

    Raises:
        ValidationError: ``EMPTY``, ``TOO_LONG`` or ``BLOCKED_CONTENT``.
    """
    if not text.strip():
        raise ValidationError(ValidationFailure.EMPTY)

    if len(text) > MAX_PROMPT_LENGTH:
        raise ValidationError(ValidationFailure.TOO_LONG)

    lowered = text.lower()
    for blocked in BLOCKED_SUBSTRINGS:
        if blocked in lowered:
            logger.debug(f"Rejected prompt containing blocked substring {blocked!r}")
            raise ValidationError(ValidationFailure.BLOCKED_CONTENT)
