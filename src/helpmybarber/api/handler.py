"""Orchestration of a single ``POST /api/generate`` request.

:func:`handle_generate` runs the request through the gate and the generation
client and decides what the caller sees:

1. Rate limit — 429 when the client is over quota.
2. Validation — image first, then prompt; 400 with the specific reason.
3. Generation — exactly one upstream call.  Any failure is logged with its
   detail and reported to the caller as a generic 500.
4. Success — 200 with the generated variations.

The function is independent of FastAPI so it can be tested without an
application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from helpmybarber.api.models import GenerateRequest, GenerateResponse
from helpmybarber.core.gemini_client import GenerationError
from helpmybarber.core.models import ImageVariation
from helpmybarber.core.rate_limiter import RateLimiter
from helpmybarber.core.validation import ValidationError, validate_image, validate_prompt

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please wait a minute before trying again."
GENERATION_FAILED_MESSAGE = "Failed to generate images"


class ImageGenerator(Protocol):
    """Anything that can turn a prompt and a photo into variations."""

    async def generate(
        self, prompt: str, image_bytes: bytes, generate_angles: bool = False
    ) -> list[ImageVariation]: ...


@dataclass(frozen=True)
class HandlerResult:
    """HTTP status code paired with the response body."""

    status_code: int
    response: GenerateResponse


async def handle_generate(
    request: GenerateRequest,
    client_id: str,
    *,
    rate_limiter: RateLimiter,
    client: ImageGenerator,
) -> HandlerResult:
    """Process one generate request.

    Args:
        request: Parsed request body.
        client_id: Identifier used for rate limiting (the caller's address).
        rate_limiter: Shared limiter instance.
        client: Generation client.

    Returns:
        The status code and response body to send.
    """
    if not rate_limiter.allow(client_id):
        logger.warning(f"Rate limit exceeded for client {client_id}")
        return HandlerResult(429, GenerateResponse.failure(TOO_MANY_REQUESTS_MESSAGE))

    try:
        image_bytes = validate_image(request.image_data)
        validate_prompt(request.prompt)
    except ValidationError as e:
        logger.warning(f"Validation failed for client {client_id}: {e.kind.value}")
        return HandlerResult(400, GenerateResponse.failure(e.message))

    try:
        variations = await client.generate(
            request.prompt,
            image_bytes,
            generate_angles=request.generate_angles,
        )
    except GenerationError as e:
        logger.error(f"Generation failed for client {client_id}: {e}", exc_info=True)
        return HandlerResult(500, GenerateResponse.failure(GENERATION_FAILED_MESSAGE))

    return HandlerResult(200, GenerateResponse.ok(variations))
