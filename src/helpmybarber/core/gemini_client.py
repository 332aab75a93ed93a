"""Gemini image-generation client.

This module provides :class:`GeminiClient`, which turns a haircut description
and a user photo into one or more generated :class:`ImageVariation` objects by
calling the Gemini ``generateContent`` endpoint.

Request Modes
-------------
**Single view** (``generate_angles=False``)
    Uses the front-view template.  Every inline image in every candidate of
    the response becomes one ``front`` variation.

**Combined angles** (``generate_angles=True``)
    Uses the side-and-back template.  Only the first candidate is read; later
    candidates tend to restate the first rather than add new samples.  The
    first inline image is tagged ``side``, the second ``back``, and anything
    after that is ignored.

Parts that carry only text are skipped: the model often explains itself
alongside (or instead of) the images.

Error Handling
--------------
All failures are raised as subclasses of :class:`GenerationError`:

- :class:`MissingCredentialError` — no API key in the environment.  Raised
  before any network activity.
- :class:`UpstreamError` — non-2xx status.  Carries the status code and a
  truncated body.
- :class:`UpstreamTransportError` — the request never produced a response.
- :class:`ResponseParseError` — the body is not a JSON object.  Malformed
  candidates, parts and fields inside it are skipped instead.
- :class:`NoImagesGeneratedError` — the call succeeded but returned no usable
  image.

Nothing is retried.

Usage
-----
::

    client = GeminiClient(PromptTemplates.load(path))
    variations = await client.generate("buzz cut", image_bytes, generate_angles=False)
    await client.aclose()
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Annotated, Any

import httpx
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)
from pydantic import ValidationError as PydanticValidationError

from helpmybarber.core.config import config
from helpmybarber.core.models import Angle, ImageVariation
from helpmybarber.core.prompts import PromptTemplates

logger = logging.getLogger(__name__)

# The uploaded photo is always declared as JPEG; the web client compresses to
# JPEG before upload.
UPLOAD_MIME_TYPE = "image/jpeg"

_ANGLE_ORDER = (Angle.SIDE, Angle.BACK)


# ---------------------------------------------------------------------------
# Errors.
# ---------------------------------------------------------------------------


class GenerationError(Exception):
    """Base class for every failure of :meth:`GeminiClient.generate`."""


class MissingCredentialError(GenerationError):
    """The API key environment variable is unset or empty."""


class UpstreamError(GenerationError):
    """The upstream API answered with a non-success status code."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Gemini API error: {status_code} - {body}")


class UpstreamTransportError(GenerationError):
    """The request failed before a response was received."""


class ResponseParseError(GenerationError):
    """The upstream response body could not be interpreted."""


class NoImagesGeneratedError(GenerationError):
    """The upstream call succeeded but produced no inline images."""


# ---------------------------------------------------------------------------
# Upstream response schema.
#
# Every field is optional and nothing below the top-level object is allowed
# to fail validation: a missing or wrongly typed field reads as "nothing here"
# and a malformed candidate or part is dropped, not rejected.
# ---------------------------------------------------------------------------


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except PydanticValidationError:
        return None


def _drop_invalid(items: list | None) -> list | None:
    if items is None:
        return None
    return [item for item in items if item is not None]


_lenient = WrapValidator(_none_if_invalid)


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class InlineData(_UpstreamModel):
    mime_type: Annotated[str | None, _lenient] = Field(default=None, alias="mimeType")
    data: Annotated[str | None, _lenient] = None


class Part(_UpstreamModel):
    text: Annotated[str | None, _lenient] = None
    inline_data: Annotated[InlineData | None, _lenient] = Field(default=None, alias="inlineData")

    def image(self) -> tuple[str, str] | None:
        """Return ``(mime_type, data)`` if this part holds a complete image."""
        if self.inline_data is None:
            return None
        if self.inline_data.mime_type is None or self.inline_data.data is None:
            return None
        return self.inline_data.mime_type, self.inline_data.data


class Content(_UpstreamModel):
    parts: Annotated[
        list[Annotated[Part | None, _lenient]] | None,
        _lenient,
        AfterValidator(_drop_invalid),
    ] = None


class Candidate(_UpstreamModel):
    content: Annotated[Content | None, _lenient] = None

    def parts(self) -> list[Part]:
        if self.content is None or self.content.parts is None:
            return []
        return self.content.parts


class GeminiResponse(_UpstreamModel):
    candidates: Annotated[
        list[Annotated[Candidate | None, _lenient]] | None,
        _lenient,
        AfterValidator(_drop_invalid),
    ] = None


# ---------------------------------------------------------------------------
# Response interpretation.
# ---------------------------------------------------------------------------


def extract_front_views(response: GeminiResponse) -> list[ImageVariation]:
    """Collect every inline image across all candidates as ``front`` views."""
    variations: list[ImageVariation] = []
    for candidate in response.candidates or []:
        for part in candidate.parts():
            image = part.image()
            if image is None:
                continue
            mime_type, data = image
            variations.append(ImageVariation.from_inline_data(mime_type, data, Angle.FRONT))
    return variations


def extract_side_and_back_views(response: GeminiResponse) -> list[ImageVariation]:
    """Tag the first two inline images of the first candidate ``side`` and ``back``."""
    if not response.candidates:
        return []

    variations: list[ImageVariation] = []
    for part in response.candidates[0].parts():
        image = part.image()
        if image is None:
            continue
        mime_type, data = image
        variations.append(
            ImageVariation.from_inline_data(mime_type, data, _ANGLE_ORDER[len(variations)])
        )
        if len(variations) == len(_ANGLE_ORDER):
            break
    return variations


def build_request_body(instruction: str, image_base64: str) -> dict:
    """Build the two-part ``generateContent`` payload."""
    return {
        "contents": [
            {
                "parts": [
                    {"text": instruction},
                    {
                        "inline_data": {
                            "mime_type": UPLOAD_MIME_TYPE,
                            "data": image_base64,
                        }
                    },
                ]
            }
        ]
    }


# ---------------------------------------------------------------------------
# Client.
# ---------------------------------------------------------------------------


class GeminiClient:
    """Async client for haircut image generation.

    One :class:`httpx.AsyncClient` is created (or injected) per instance and
    reused for every call.  No request timeout is set beyond what the network
    layer imposes.

    Attributes:
        endpoint (str):
            Full ``generateContent`` URL.
        api_key_env (str):
            Environment variable holding the API key.
    """

    def __init__(
        self,
        prompts: PromptTemplates,
        *,
        http_client: httpx.AsyncClient | None = None,
        endpoint: str | None = None,
        api_key_env: str | None = None,
        error_body_limit: int = 1000,
    ) -> None:
        """Initialise the client.

        Args:
            prompts: Templates used to build the instruction text.
            http_client: Client used for outbound calls.  A new one without a
                timeout is created when omitted.
            endpoint: Full ``generateContent`` URL.  Defaults to
                ``config.gemini_endpoint``.
            api_key_env: Name of the environment variable holding the key.
                Defaults to ``config.api_key_env``.
            error_body_limit: Characters of an error body kept on
                :class:`UpstreamError` and in logs.
        """
        self._prompts = prompts
        self._http = http_client or httpx.AsyncClient(timeout=None)
        self.endpoint = endpoint or config.gemini_endpoint
        self.api_key_env = api_key_env or config.api_key_env
        self._error_body_limit = error_body_limit

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    def _api_key(self) -> str:
        api_key = os.environ.get(self.api_key_env)
        if not api_key:
            raise MissingCredentialError(f"{self.api_key_env} environment variable not set")
        return api_key

    async def generate(
        self,
        prompt: str,
        image_bytes: bytes,
        generate_angles: bool = False,
    ) -> list[ImageVariation]:
        """Generate haircut previews for a photo.

        Args:
            prompt: Haircut description, already validated.
            image_bytes: Raw bytes of the uploaded photo.
            generate_angles: ``True`` for side and back views, ``False`` for
                the front view.

        Returns:
            Non-empty list of variations.  Front-view requests may return any
            number; angle requests return at most two (side, then back).

        Raises:
            GenerationError: One of the subclasses described in the module
                docstring.
        """
        api_key = self._api_key()

        logger.info(
            f"Calling Gemini generate (generate_angles={generate_angles}, "
            f"prompt_len={len(prompt)})"
        )

        if generate_angles:
            instruction = self._prompts.render_side_and_back_views(prompt)
            view_label = "side/back views"
        else:
            instruction = self._prompts.render_front_view(prompt)
            view_label = "front view"

        image_base64 = base64.b64encode(image_bytes).decode("ascii")
        response = await self._post(build_request_body(instruction, image_base64), api_key)

        if generate_angles:
            variations = extract_side_and_back_views(response)
        else:
            variations = extract_front_views(response)

        if not variations:
            logger.error(f"Gemini returned zero images for {view_label}")
            raise NoImagesGeneratedError(f"No images generated for {view_label}")

        logger.info(f"Gemini returned {len(variations)} image(s) for {view_label}")
        return variations

    async def _post(self, body: dict, api_key: str) -> GeminiResponse:
        try:
            response = await self._http.post(
                self.endpoint,
                headers={"x-goog-api-key": api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e!r}")
            raise UpstreamTransportError(f"Gemini request failed: {e!r}") from e

        if not response.is_success:
            error_text = response.text[: self._error_body_limit]
            logger.error(f"Gemini API error: status={response.status_code} body={error_text}")
            raise UpstreamError(response.status_code, error_text)

        try:
            return GeminiResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"Could not parse Gemini response: {e}")
            raise ResponseParseError("JSON parse error") from e
