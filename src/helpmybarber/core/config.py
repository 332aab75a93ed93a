"""Configuration management for the Help My Barber API.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the HELPMYBARBER_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (HELPMYBARBER_* prefix)
2. .env file in the project root
3. Default values defined in HelpMyBarberConfig

Example .env file:
    HELPMYBARBER_SERVER_PORT=3001
    HELPMYBARBER_GEMINI_MODEL=gemini-2.5-flash-image-preview
    HELPMYBARBER_RATE_LIMIT_REQUESTS=10
    GEMINI_API_KEY=...

The Gemini credential
---------------------
The API key is deliberately *not* a settings field.  It is read from the
process environment by :class:`~helpmybarber.core.gemini_client.GeminiClient`
on every call, using the variable named by ``api_key_env``
(``GEMINI_API_KEY`` by default).  A missing key fails each generation attempt
rather than process startup.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

Usage Example
-------------
    from helpmybarber.core.config import config

    print(config.server_port)
    print(config.gemini_endpoint)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Templates shipped with the package.
DEFAULT_PROMPTS_FILE = Path(__file__).resolve().parent.parent / "data" / "prompts.json"


class HelpMyBarberConfig(BaseSettings):
    """Main configuration for the Help My Barber API.

    Attributes
    ----------
    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Bind port (1024-65535)
        log_level : str
            Log level handed to uvicorn

    Upstream Settings:
        gemini_api_base : str
            Base URL of the Generative Language API
        gemini_model : str
            Model identifier used in the ``generateContent`` path
        api_key_env : str
            Name of the environment variable holding the API key
        upstream_error_body_limit : int
            Characters of an upstream error body kept for logging

    Request Gate:
        rate_limit_requests : int
            Requests allowed per client within one window
        rate_limit_window_seconds : float
            Length of the sliding window
        rate_limit_sweep_interval : int
            Checks between sweeps of fully stale clients
        max_request_bytes : int
            Largest accepted request body
        trust_forwarded_for : bool
            Identify clients by the first ``X-Forwarded-For`` hop

    Paths:
        prompts_file : Path
            JSON file holding the prompt templates

    Examples
    --------
        >>> custom_config = HelpMyBarberConfig(
        ...     rate_limit_requests=5,
        ...     server_port=8080,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HELPMYBARBER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Server settings
    server_host: str = Field(
        default="127.0.0.1",
        description="Server bind address",
    )
    server_port: int = Field(
        default=3001,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["critical", "error", "warning", "info", "debug"] = Field(
        default="info",
        description="Log level passed to uvicorn",
    )

    # Upstream generation API
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language API",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash-image-preview",
        description="Image-capable Gemini model identifier",
    )
    api_key_env: str = Field(
        default="GEMINI_API_KEY",
        description="Environment variable that holds the Gemini API key",
    )
    upstream_error_body_limit: int = Field(
        default=1000,
        description="Maximum characters of an upstream error body written to logs",
        ge=0,
    )

    # Request gate
    rate_limit_requests: int = Field(default=10, ge=1, le=1000)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, le=3600)
    rate_limit_sweep_interval: int = Field(
        default=100,
        description="Number of rate-limit checks between stale-client sweeps",
        ge=1,
    )
    max_request_bytes: int = Field(
        default=16 * 1024 * 1024,
        description="Largest accepted request body in bytes",
        ge=1,
    )
    trust_forwarded_for: bool = Field(
        default=False,
        description="Use the first X-Forwarded-For hop as the client identifier",
    )
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Paths
    prompts_file: Path = Field(
        default=DEFAULT_PROMPTS_FILE,
        description="JSON file with the front_view and side_and_back_views templates",
    )

    @property
    def gemini_endpoint(self) -> str:
        """Full ``generateContent`` URL for the configured model."""
        return f"{self.gemini_api_base.rstrip('/')}/models/{self.gemini_model}:generateContent"


# Global configuration instance
# Loads values from environment variables (HELPMYBARBER_* prefix) and .env file.
config = HelpMyBarberConfig()
