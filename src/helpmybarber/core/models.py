"""Domain types shared by the generation client and the API layer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Angle(str, Enum):
    """Camera angle depicted by a generated image.

    The angle is assigned from the position of the image in the upstream
    response, not from any metadata the model returns.
    """

    FRONT = "front"
    SIDE = "side"
    BACK = "back"


class ImageVariation(BaseModel):
    """One generated image, embedded as a data URL, tagged with its angle.

    Attributes:
        image: ``data:<mime>;base64,<payload>`` string usable directly as an
            image source.
        angle: Camera angle the image depicts.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    image: str = Field(..., description="Data URL of the generated image.")
    angle: Angle = Field(..., description="Camera angle: front, side or back.")

    @classmethod
    def from_inline_data(cls, mime_type: str, data: str, angle: Angle) -> ImageVariation:
        """Build a variation from an upstream inline-data part.

        Both the mime type and the base64 payload are required; callers skip
        parts that lack either.
        """
        return cls(image=f"data:{mime_type};base64,{data}", angle=angle)
