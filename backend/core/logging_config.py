"""Structured logging configuration using structlog.

Library modules (``simulator.*``) log key-value events through structlog;
API modules use stdlib ``logging``. Both end up in one stdout handler,
rendered as JSON (``LOG_FORMAT=json``) or as colored console lines
(``LOG_FORMAT=text`` or development).

Run-scoped fields such as ``run_id`` are bound by the simulation driver
with ``structlog.contextvars`` and merged into every entry.
"""

import logging
import sys

import structlog
from app.config import Settings, get_settings

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "websockets")


def add_app_context(settings: Settings):
    """Processor stamping each entry with the app name and environment."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("app", settings.APP_NAME)
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict

    return processor


def build_renderer(settings: Settings):
    if settings.is_development or settings.LOG_FORMAT == "text":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging(settings: Settings = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once: the root handler is replaced each time.
    """
    settings = settings or get_settings()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_app_context(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib records (api modules, uvicorn) get the same pre-chain
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            build_renderer(settings),
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Per-node debug events are noisy outside DEBUG
    logging.getLogger("simulator").setLevel(
        logging.DEBUG if settings.DEBUG else root_logger.level
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
