"""Guardrails API -- FastAPI application entry point.

@GL-governed
@GL-layer: GL50-69
@GL-semantic: api-main
"""
from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from guardrails.presentation.api.routers import health, preflight, transfer
from guardrails.presentation.middleware import AccessLogMiddleware, RequestIdMiddleware
from guardrails.shared.config import settings
from guardrails.shared.exceptions import GuardrailsError
from guardrails.shared.logging import setup_logging

logger = structlog.get_logger("guardrails.api")


async def guardrails_error_handler(request: Request, exc: GuardrailsError) -> JSONResponse:
    """Map any guardrails error to a fail-closed red body."""
    logger.error("guardrails_error", error_code=exc.error_code, message=exc.message, path=request.url.path)
    return JSONResponse(
        {"overall": "red", "checks": [], "error": exc.message, **exc.to_dict()},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Guardrails Preflight API",
        version="1.0.0",
        description="Dependency pinning, lockfile and audit posture with an enforcement gate.",
    )

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(GuardrailsError, guardrails_error_handler)  # type: ignore[arg-type]

    app.include_router(health.router)
    app.include_router(preflight.router)
    app.include_router(transfer.router)

    return app


app = create_app()


def run() -> None:
    """Entry point for the ``guardrails-api`` console script."""
    import uvicorn

    setup_logging(level=settings.log_level, json_output=settings.log_json, environment=settings.environment)
    uvicorn.run(
        "guardrails.presentation.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
