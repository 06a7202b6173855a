"""Logging configuration.

Text output by default; JSON lines (python-json-logger) when ``json`` is set.
"""
from __future__ import annotations

import logging
import logging.config
from typing import Optional

from pythonjsonlogger import jsonlogger


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
                "json": {
                    "()": jsonlogger.JsonFormatter,
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json else "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "absence_notifier": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``absence_notifier`` namespace."""
    short = name.rsplit("absence_notifier.", 1)[-1]
    return logging.getLogger(f"absence_notifier.{short}")


def mask_phone(phone: Optional[str]) -> str:
    """Mask a contact number for log output: +919876543210 -> +91******3210."""
    if not phone or not isinstance(phone, str):
        return "[INVALID_PHONE]"
    cleaned = phone.strip()
    if len(cleaned) < 6:
        return "[REDACTED]"
    return f"{cleaned[:3]}{'*' * max(0, len(cleaned) - 7)}{cleaned[-4:]}"
