"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local runs or a
JSONRenderer for production.  ``APP_ENV=production`` selects JSON unless
``json_output`` forces it.

Standard-library ``logging`` is routed through the same formatter so that
httpx, uvicorn and aiosqlite messages come out in the same shape as the
engine's own events.  The CLI passes ``stream=sys.stderr`` so that stdout
carries only command output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output regardless of ``APP_ENV``.
        stream: Destination for rendered lines; defaults to stdout.

    Returns:
        A configured structlog BoundLogger.
    """
    # APP_ENV picks the renderer: "production" => JSON lines; anything else
    # => human-readable console output.
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    out = stream or sys.stdout

    # Shared processor chain, identical for both renderers.  Context vars
    # merge first so request-scoped bindings reach every later processor.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,  # Request-scoped bindings (request_id)
        structlog.processors.add_log_level,        # Inject "level" key
        structlog.processors.StackInfoRenderer(),  # Render stack_info if present
        structlog.dev.set_exc_info,                # Auto-attach exc_info on exception()
        structlog.processors.TimeStamper(fmt="iso"),  # ISO-8601 timestamps
    ]

    # Only the final renderer differs between environments.  Colours only
    # when the destination is a terminal, so piped CLI stderr stays plain.
    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        # Filtering bound logger drops events below log_level before any
        # processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,  # Cache after first .bind()
    )

    # Route stdlib logging (httpx, uvicorn, aiosqlite) through the same
    # processors and renderer.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()   # Drop default handlers to avoid duplicates
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # httpx logs every request at INFO; the scheduler already logs one
    # line per batch.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger.

    If structlog has not been configured yet, calls configure_logging() with defaults.

    Args:
        name: Logger name, typically the module name.

    Returns:
        A structlog BoundLogger bound with the given name.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
