"""Structured logging setup using structlog.

The same shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local development or a
JSONRenderer for production.  The renderer follows the ``APP_ENV``
environment variable (default ``"development"``) unless ``json_output`` forces
JSON.

Standard-library ``logging`` is rewired through the same formatter so that
httpx and chromadb log lines look like ours.
"""

import logging
import os
import sys

import structlog


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output.  When False, JSON is used only when
                     ``APP_ENV`` is ``production``.

    Returns:
        A configured structlog BoundLogger.
    """
    # APP_ENV picks the renderer: "production" gets JSON lines, anything
    # else gets the coloured console output.
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    # Shared by both renderers and by the stdlib bridge below.  Order
    # matters: bound contextvars merge first, exception info is attached
    # before the timestamp and the renderer run.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,  # Per-task bindings (document_id, namespace)
        structlog.processors.add_log_level,        # Inject "level" key
        structlog.processors.StackInfoRenderer(),  # Render stack_info if present
        structlog.dev.set_exc_info,                # Attach exc_info on error()/exception()
        structlog.processors.TimeStamper(fmt="iso"),  # ISO-8601 timestamps
    ]

    # Only the last processor differs between environments.
    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        # Events below log_level are dropped before any processor runs, so
        # per-batch debug events in the embedding loop cost nothing at INFO.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,  # Module-level loggers are bound once
    )

    # Route stdlib records (httpx, chromadb) through the same chain.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()   # Drop default handlers to avoid duplicate lines
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())
    # httpx logs every request line at INFO; keep it out of ingestion logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return structlog.get_logger()
