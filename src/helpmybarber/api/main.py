"""Help My Barber — FastAPI Application.

This module is the single entry point for the web service.  It defines the
application factory, the module-level ``app`` instance, all routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** is loaded from ``HELPMYBARBER_*`` environment variables
  via :class:`~helpmybarber.core.config.HelpMyBarberConfig`.
- **Prompt templates** are read once at startup; an unreadable template file
  aborts startup.
- **Rate limiting** uses one :class:`~helpmybarber.core.rate_limiter.RateLimiter`
  owned by the application and kept on ``app.state``.
- **Image generation** is delegated to
  :class:`~helpmybarber.core.gemini_client.GeminiClient`, which reuses one
  HTTP client for the lifetime of the process.

Endpoints
---------
========  ==================  ====================================
Method    Path                Purpose
========  ==================  ====================================
GET       ``/``               Liveness greeting
GET       ``/health``         Health check
POST      ``/api/generate``   Generate haircut previews
========  ==================  ====================================

Usage
-----
CLI (installed entry point)::

    helpmybarber

Direct invocation::

    python -m helpmybarber.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from helpmybarber import __version__
from helpmybarber.api.handler import handle_generate
from helpmybarber.api.models import GenerateRequest, GenerateResponse
from helpmybarber.core.config import HelpMyBarberConfig, config
from helpmybarber.core.gemini_client import GeminiClient
from helpmybarber.core.prompts import PromptTemplates
from helpmybarber.core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """Return the identifier used to rate-limit *request*.

    This is the peer address of the connection.  Behind a reverse proxy every
    request would share the proxy's address, so when ``trust_forwarded_for``
    is set the first ``X-Forwarded-For`` hop is used instead.

    Args:
        request: The incoming request.
        trust_forwarded_for: Whether to honour ``X-Forwarded-For``.

    Returns:
        Client address, or ``"unknown"`` when none is available.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def create_app(settings: HelpMyBarberConfig | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration to use.  Defaults to the global ``config``.

    Returns:
        A configured application.  Collaborators are created when the
        application starts, not here.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the shared collaborators on startup and release them on shutdown.

        Raises:
            PromptConfigError: If the prompt template file cannot be loaded.
        """
        # --- Startup -------------------------------------------------------
        prompts = PromptTemplates.load(settings.prompts_file)
        app.state.rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            sweep_interval=settings.rate_limit_sweep_interval,
        )
        gemini_client = GeminiClient(
            prompts,
            endpoint=settings.gemini_endpoint,
            api_key_env=settings.api_key_env,
            error_body_limit=settings.upstream_error_body_limit,
        )
        app.state.generation_client = gemini_client
        logger.info(f"Help My Barber {__version__} ready (model={settings.gemini_model})")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        await gemini_client.aclose()
        logger.info("Gemini client closed on shutdown.")

    app = FastAPI(
        title="Help My Barber",
        description="Preview haircuts on your own photo with Gemini image generation.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Registered before CORS so that CORS wraps the 413 responses too.
    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        """Reject bodies larger than ``max_request_bytes``.

        The limit is checked against ``Content-Length``, so a body streamed
        without one (chunked transfer encoding) is refused with 411.
        """
        if "chunked" in request.headers.get("transfer-encoding", "").lower():
            logger.warning("Rejected chunked request body without Content-Length")
            return JSONResponse(
                status_code=411,
                content=GenerateResponse.failure(
                    "Request body must declare its length"
                ).model_dump(),
            )

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > settings.max_request_bytes:
                logger.warning(f"Rejected request body of {content_length} bytes")
                return JSONResponse(
                    status_code=413,
                    content=GenerateResponse.failure("Request is too large").model_dump(),
                )
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """Return a fixed greeting."""
        return "Hello, World!"

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check() -> str:
        """Return ``OK`` while the process is serving requests."""
        return "OK"

    @app.post("/api/generate", response_model=GenerateResponse)
    async def generate_haircut_images(req: GenerateRequest, request: Request) -> JSONResponse:
        """Generate haircut previews for an uploaded photo.

        Args:
            req: Validated :class:`GenerateRequest` payload.
            request: The raw request, used to identify the client.

        Returns:
            JSON :class:`GenerateResponse` with status 200 on success, 400
            for invalid input, 429 when rate limited, and 500 when
            generation fails.
        """
        result = await handle_generate(
            req,
            client_identifier(request, settings.trust_forwarded_for),
            rate_limiter=request.app.state.rate_limiter,
            client=request.app.state.generation_client,
        )
        return JSONResponse(
            status_code=result.status_code,
            content=result.response.model_dump(mode="json"),
        )

    return app


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~helpmybarber.core.config.config`
    (``HELPMYBARBER_SERVER_HOST``, ``HELPMYBARBER_SERVER_PORT`` and
    ``HELPMYBARBER_LOG_LEVEL``).  Defaults to ``127.0.0.1:3001``.

    This function is registered as the ``helpmybarber`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    uvicorn.run(
        "helpmybarber.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
