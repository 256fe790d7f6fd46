"""Logging setup for the ledger server process.

Modules log through ``logging.getLogger(__name__)``; this module only wires
the root handler. Call :func:`configure_logging` once at process start (the
CLI ``run`` command and :func:`event_ledger.api.server.start_server` do).

The ``json`` format renders standard-library records through structlog's
``ProcessorFormatter``, one JSON object per line.
"""

from __future__ import annotations

import logging.config

import structlog

FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Applied to records that come from plain ``logging`` calls.
JSON_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
]


def build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Return the formatter used by the ``json`` log format."""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=JSON_PRE_CHAIN,
    )


def build_logging_config(level: str = "INFO", fmt: str = "detailed") -> dict:
    """Return a ``logging.config.dictConfig`` mapping for ``level`` and ``fmt``."""
    if fmt == "json":
        formatter: dict = {"()": build_json_formatter}
    else:
        formatter = {"format": FORMATS.get(fmt, FORMATS["detailed"])}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level.upper(), "handlers": ["console"]},
    }


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Install the root handler, defaulting to the values in ``config.logging``."""
    from event_ledger.config import config

    logging.config.dictConfig(
        build_logging_config(level or config.logging.level, fmt or config.logging.format)
    )
