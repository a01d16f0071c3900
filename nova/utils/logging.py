"""Structured logging for the gateway, built on structlog.

Everything is driven by the injected :class:`~nova.config.settings.Settings`:
``log_level`` sets the threshold and :meth:`Settings.use_json_logs` picks
the JSONRenderer (production, log shippers) over the coloured console
renderer.  Every event carries the ``env`` it was emitted from.

The standard-library loggers the gateway pulls in (uvicorn, httpx,
httpcore) are routed through the same processor chain so their lines look
like ours.  httpx logs one INFO line per upstream request and uvicorn one
per served request, which duplicates what the providers and
``RequestLoggingMiddleware`` already record; those loggers are held at
WARNING unless the gateway itself runs more verbosely.
"""

from __future__ import annotations

import logging
import sys

import structlog

from nova.config.settings import Settings

# Library loggers that are too chatty at INFO for a market-data gateway.
_QUIET_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def _add_env(env: str) -> structlog.types.Processor:
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("env", env)
        return event_dict

    return processor


def configure_logging(settings: Settings | None = None) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge from *settings*.

    Args:
        settings: Application settings.  ``None`` uses development defaults
                  (INFO, console output) without reading the environment.

    Returns:
        A configured structlog BoundLogger.
    """
    if settings is None:
        log_level, use_json, env = "INFO", False, "development"
    else:
        log_level, use_json, env = settings.log_level, settings.use_json_logs(), settings.app_env
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_env(env),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        if level <= logging.DEBUG:
            quiet_level = level
        logging.getLogger(name).setLevel(max(level, quiet_level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
