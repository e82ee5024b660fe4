"""Logging for encrypted job arguments.

Library modules only call :func:`get_logger` and emit structured events.
Processes that own their logging (workers, producers, ``scripts/``) call
:func:`setup_logging` once at startup to route those events to the console
and, optionally, a rotating JSON file. Applications with their own
structlog configuration can skip it.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from encrypted_args.config import Settings, get_settings


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ]
    )


def _file_handler(settings: Settings, level: int) -> logging.Handler | None:
    """Build the rotating JSON file handler, or None if it cannot be opened."""
    try:
        Path(settings.log_directory).mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=settings.log_file_path,
            maxBytes=settings.log_file_max_bytes,
            backupCount=settings.log_file_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Continue with console-only logging
        print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)
        return None
    handler.setLevel(level)
    handler.setFormatter(_json_formatter())
    return handler


def setup_logging(level: str | None = None) -> None:
    """Configure structured logging for a process.

    Args:
        level: Log level name overriding the ``LOG_LEVEL`` setting.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    # Console: colored in dev, JSON in prod
    if settings.is_development:
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.dev.ConsoleRenderer(colors=True),
                ]
            )
        )
    else:
        console_handler.setFormatter(_json_formatter())

    handlers: list[logging.Handler] = [console_handler]
    if settings.log_to_file:
        file_handler = _file_handler(settings, log_level)
        if file_handler is not None:
            handlers.append(file_handler)

    for handler in handlers:
        logging.root.addHandler(handler)
    if logging.root.level > log_level or logging.root.level == logging.NOTSET:
        logging.root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
