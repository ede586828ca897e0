"""Logging configuration driven by application settings.

Modules keep logging through ``logging.getLogger(__name__)``; in ``json`` mode
structlog's processor chain renders those stdlib records as one JSON object
per line.
"""

import logging

import structlog

from app.core.config import LogFormatEnum, settings

SIMPLE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter emitting ``timestamp``, ``level``, ``logger``, ``message`` and ``request_id`` when given."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(allow=["request_id"]),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(level: str | None = None, log_format: LogFormatEnum | None = None) -> None:
    """Configure the root logger once from settings."""
    level = level or settings.log_level.value
    log_format = log_format or settings.log_format

    handler = logging.StreamHandler()
    if log_format == LogFormatEnum.json:
        handler.setFormatter(json_formatter())
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    root = logging.getLogger()
    # Replace handlers installed by a previous call
    for existing in list(root.handlers):
        if getattr(existing, "_career_counsel", False):
            root.removeHandler(existing)
    handler._career_counsel = True
    root.addHandler(handler)
    root.setLevel(level)
