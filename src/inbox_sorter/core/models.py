"""Core domain models used across the application."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Category(str, Enum):
    """Closed set of labels an email can receive."""

    IMPORTANT = "Important"
    PROMOTIONS = "Promotions"
    SOCIAL = "Social"
    MARKETING = "Marketing"
    SPAM = "Spam"
    GENERAL = "General"


Classification = dict[str, Category]


@dataclass(slots=True)
class TokenSet:
    """OAuth credentials for one browser session."""

    access_token: str | None
    refresh_token: str | None
    expires_at: int
    scope: str = ""

    @classmethod
    def from_token_response(cls, payload: Mapping[str, Any], now: int) -> TokenSet:
        """Build a token set from a token endpoint JSON response."""
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Token response missing 'access_token'")
        expires_in = int(payload.get("expires_in") or 0)
        refresh_token = payload.get("refresh_token")
        return cls(
            access_token=access_token,
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
            expires_at=now + expires_in,
            scope=str(payload.get("scope") or ""),
        )

    def seconds_remaining(self, now: int) -> int:
        """Return seconds until expiry, negative once expired."""
        return self.expires_at - now


@dataclass(slots=True)
class MimePart:
    """One node of a Gmail ``payload`` tree."""

    mime_type: str | None = None
    filename: str | None = None
    body_data: str | None = None
    parts: tuple[MimePart, ...] = ()
    headers: tuple[tuple[str, str], ...] = ()

    def header(self, name: str) -> str | None:
        """Return the first header value matching ``name`` case-insensitively."""
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return None


@dataclass(slots=True)
class RawMessage:
    """Message as returned by ``messages.get`` with ``format=full``."""

    id: str
    internal_date: int | None = None
    snippet: str | None = None
    payload: MimePart = field(default_factory=MimePart)


@dataclass(slots=True)
class EmailItem:
    """Normalized email ready for display and classification."""

    id: str
    sender: str | None = None
    subject: str | None = None
    snippet: str | None = None
    body_text: str | None = None
    date: str | None = None


__all__ = [
    "Category",
    "Classification",
    "EmailItem",
    "MimePart",
    "RawMessage",
    "TokenSet",
]
