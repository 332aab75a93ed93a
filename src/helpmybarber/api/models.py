"""Pydantic request and response models for the Help My Barber API.

These models define the JSON schema of ``POST /api/generate``.  Field names
are camelCase on the wire to match the web client; Python code uses the
snake_case attribute names.

Models
------
GenerateRequest
    Photo, haircut description, and whether to generate extra angles.
GenerateResponse
    Success flag, generated variations, and an optional failure message.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from helpmybarber.core.models import ImageVariation


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Only the JSON shape is checked here.  Content rules (prompt length,
    blocked words, image size) are applied by
    :mod:`helpmybarber.core.validation` so that their failures produce
    friendly messages rather than schema errors.

    Attributes:
        prompt: Description of the desired haircut.
        image_data: Base64-encoded photo of the user.
        generate_angles: ``True`` to request side and back views instead of
            the front view.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(
        ...,
        description="Description of the desired haircut.",
    )
    image_data: str = Field(
        ...,
        alias="imageData",
        description="Base64-encoded photo (standard alphabet, padded).",
    )
    generate_angles: bool = Field(
        default=False,
        alias="generateAngles",
        description="Generate side and back views instead of the front view.",
    )


class GenerateResponse(BaseModel):
    """Response body for the ``POST /api/generate`` endpoint.

    A successful response always carries at least one variation and no
    message; a failed response carries no variations.

    Attributes:
        success: Whether generation succeeded.
        variations: Generated images in response order.
        message: Reason for failure, ``None`` on success.
    """

    success: bool
    variations: list[ImageVariation] = Field(default_factory=list)
    message: str | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> GenerateResponse:
        if self.success:
            if self.message is not None:
                raise ValueError("a successful response cannot carry a message")
            if not self.variations:
                raise ValueError("a successful response needs at least one variation")
        elif self.variations:
            raise ValueError("a failed response cannot carry variations")
        return self

    @classmethod
    def ok(cls, variations: list[ImageVariation]) -> GenerateResponse:
        """Build a success response."""
        return cls(success=True, variations=variations)

    @classmethod
    def failure(cls, message: str) -> GenerateResponse:
        """Build a failure response with *message*."""
        return cls(success=False, message=message)
