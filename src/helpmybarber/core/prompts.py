"""Prompt templates for haircut generation.

Two templates are loaded from a JSON file at startup:

``front_view``
    Used for the default single-view request.  The model is asked to
    restyle the hair in the uploaded photo, keeping the person unchanged.
``side_and_back_views``
    Used when the caller asks for extra angles.  The model is asked for a
    side profile followed by a view from behind, in that order.

File Format
-----------
::

    {
      "front_view": {"template": "... {haircut} ..."},
      "side_and_back_views": {"template": "... {haircut} ..."}
    }

Rendering replaces every ``{haircut}`` placeholder with the caller's text
verbatim.  No escaping is applied; request validation is the only guard on
what reaches the model.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PLACEHOLDER = "{haircut}"


class PromptConfigError(Exception):
    """The prompt template file is missing, unreadable or malformed."""


@dataclass(frozen=True)
class PromptTemplates:
    """The pair of templates used to build generation instructions.

    Attributes:
        front_view: Template for the single front-view request.
        side_and_back_views: Template for the combined side/back request.
    """

    front_view: str
    side_and_back_views: str

    @classmethod
    def load(cls, path: Path) -> PromptTemplates:
        """Load templates from a JSON file.

        Args:
            path: Location of the template file.

        Returns:
            The loaded templates.

        Raises:
            PromptConfigError: If the file cannot be read, is not valid JSON,
                or does not define both templates as strings.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise PromptConfigError(f"Cannot read prompt templates from {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise PromptConfigError(f"Prompt template file {path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PromptConfigError(f"Prompt template file {path} must contain a JSON object")

        templates = {}
        for name in ("front_view", "side_and_back_views"):
            section = data.get(name)
            template = section.get("template") if isinstance(section, dict) else None
            if not isinstance(template, str):
                raise PromptConfigError(f"Prompt template file {path} has no {name}.template")
            if PLACEHOLDER not in template:
                logger.warning(f"Template {name} in {path} has no {PLACEHOLDER} placeholder")
            templates[name] = template

        logger.info(f"Loaded prompt templates from {path}")
        return cls(**templates)

    def render_front_view(self, haircut_description: str) -> str:
        """Return the front-view instruction for *haircut_description*."""
        return self.front_view.replace(PLACEHOLDER, haircut_description)

    def render_side_and_back_views(self, haircut_description: str) -> str:
        """Return the side-and-back instruction for *haircut_description*."""
        return self.side_and_back_views.replace(PLACEHOLDER, haircut_description)
