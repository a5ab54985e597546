"""Datetime helpers shared across the application."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], int]

__all__ = [
    "Clock",
    "epoch_seconds",
]


def epoch_seconds(value: datetime | None = None) -> int:
    """Return whole seconds since the Unix epoch for ``value`` (default: now)."""
    if value is None:
        value = datetime.now(tz=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp())
