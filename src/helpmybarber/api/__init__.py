"""Help My Barber — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the request orchestration.

Modules
-------
main
    FastAPI application factory, routes, and the ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
handler
    Rate limit, validation and generation flow for ``POST /api/generate``.
"""
