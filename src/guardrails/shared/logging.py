"""Structured logging for the CLI, the API and the guarded action wrapper.

:func:`setup_logging` routes structlog and stdlib :mod:`logging` through one
processor chain, so ``uvicorn`` and ``httpx`` records render the same way as
guardrails events.  Every event carries:

* ``timestamp`` (UTC ISO-8601), ``level`` and ``logger``
* ``service`` and ``environment``
* any context bound with :func:`structlog.contextvars.bind_contextvars`,
  e.g. ``request_id`` from
  :class:`~guardrails.presentation.middleware.RequestIdMiddleware` or
  ``run_id`` from :func:`bind_run_id`

``json_output=True`` renders single-line JSON; otherwise events go through
:class:`structlog.dev.ConsoleRenderer`.
"""
from __future__ import annotations

import logging
import sys
import uuid
from typing import Any

import structlog

SERVICE_NAME = "guardrails"

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


def _service_context(environment: str) -> Any:
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def _formatter(renderer: Any, pre_chain: list[Any]) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def setup_logging(
    level: str = "info",
    json_output: bool = False,
    log_file: str | None = None,
    *,
    environment: str = "development",
) -> None:
    """Configure structlog with stdlib logging integration.

    Args:
        level: Log level name; unknown names fall back to ``info``.
        json_output: Emit JSON lines instead of console output.
        log_file: Optional extra destination, always written as JSON.
        environment: Value of the ``environment`` field on every event.
    """
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(environment),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), pad_event=40)
    )
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(renderer, shared))
    handlers: list[logging.Handler] = [console]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer(), shared))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in handlers:
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).debug(
        "logging_configured",
        level=level,
        json_output=json_output,
        log_file=log_file or "none",
    )


def bind_run_id(run_id: str | None = None) -> str:
    """Bind a correlation id for a non-HTTP run (CLI invocation) and return it."""
    run_id = run_id or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(run_id=run_id)
    return run_id


__all__ = ["SERVICE_NAME", "bind_run_id", "setup_logging"]
