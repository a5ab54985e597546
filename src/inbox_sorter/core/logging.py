"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
import re
from typing import Any

from .config import LoggingSettings

_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/\-]+=*", re.IGNORECASE)
_TOKEN_FIELD_PATTERN = re.compile(
    r"""(["']?(?:access|refresh|id)_token["']?\s*[:=]\s*["']?)[^"'&\s,}]+""",
    re.IGNORECASE,
)
_MASK = "[redacted]"


def redact_tokens(text: str) -> str:
    """Mask bearer credentials and ``*_token`` values inside ``text``."""
    masked = _BEARER_PATTERN.sub(rf"\g<1>{_MASK}", text)
    return _TOKEN_FIELD_PATTERN.sub(rf"\g<1>{_MASK}", masked)


class TokenRedactionFilter(logging.Filter):
    """Rewrite log records so OAuth tokens never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for structured JSON logs."""
    return {
        "format": '{{"time": "{asctime}", "level": "{levelname}", '
        '"logger": "{name}", "message": "{message}"}}',
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()

    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact_tokens": {"()": TokenRedactionFilter},
        },
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["redact_tokens"],
                "level": settings.level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": settings.level,
        },
        "loggers": {
            # httpx logs full request lines at INFO.
            "httpx": {"level": "WARNING"},
        },
    }

    logging.config.dictConfig(dict_config)


__all__ = ["TokenRedactionFilter", "configure_logging", "redact_tokens"]
