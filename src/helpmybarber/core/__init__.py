"""Core functionality for haircut preview generation.

This package holds everything that makes decisions, independent of the HTTP
layer:

- **config.py**: Configuration management using Pydantic Settings
- **models.py**: ``Angle`` and ``ImageVariation`` domain types
- **rate_limiter.py**: Per-client sliding-window request counter
- **validation.py**: Image and prompt checks run before any upstream call
- **prompts.py**: Front and side/back instruction templates
- **gemini_client.py**: Gemini ``generateContent`` client and response parsing

Usage Example
-------------
    from helpmybarber.core import GeminiClient, PromptTemplates, config

    client = GeminiClient(
        PromptTemplates.load(config.prompts_file),
        endpoint=config.gemini_endpoint,
    )
    variations = await client.generate("textured crop", image_bytes)
"""

from helpmybarber.core.config import HelpMyBarberConfig, config
from helpmybarber.core.gemini_client import GeminiClient, GenerationError
from helpmybarber.core.models import Angle, ImageVariation
from helpmybarber.core.prompts import PromptConfigError, PromptTemplates
from helpmybarber.core.rate_limiter import RateLimiter
from helpmybarber.core.validation import ValidationError, ValidationFailure

__all__ = [
    "Angle",
    "GeminiClient",
    "GenerationError",
    "HelpMyBarberConfig",
    "ImageVariation",
    "PromptConfigError",
    "PromptTemplates",
    "RateLimiter",
    "ValidationError",
    "ValidationFailure",
    "config",
]
