"""Utilities for decoding Gmail message payloads into structured models."""

from __future__ import annotations

import base64
import binascii
import re

from ..core.models import EmailItem, MimePart, RawMessage

_STYLE_BLOCK = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_BLOCK = re.compile(
    r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL
)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


class GmailMessageParser:
    """Convert raw Gmail messages into normalized :class:`EmailItem` values."""

    def parse(self, message: RawMessage) -> EmailItem:
        """Decode headers, snippet and body text of ``message``."""
        payload = message.payload
        return EmailItem(
            id=message.id,
            sender=payload.header("From"),
            subject=payload.header("Subject"),
            snippet=message.snippet,
            body_text=extract_text(payload),
            date=payload.header("Date"),
        )


def extract_text(part: MimePart | None) -> str:
    """Return the first non-empty text body found in preorder, or ``""``."""
    if part is None:
        return ""
    mime_type = (part.mime_type or "").lower()
    if mime_type.startswith("text/plain") and part.body_data:
        return decode_base64url(part.body_data)
    if mime_type.startswith("text/html") and part.body_data:
        return strip_html(decode_base64url(part.body_data))
    for child in part.parts:
        text = extract_text(child)
        if text:
            return text
    return ""


def decode_base64url(data: str) -> str:
    """Decode URL-safe base64 into UTF-8 text; malformed input yields ``""``."""
    normalized = data.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return ""


def strip_html(html: str) -> str:
    """Drop style and script blocks and all tags, then collapse whitespace."""
    text = _STYLE_BLOCK.sub("", html)
    text = _SCRIPT_BLOCK.sub("", text)
    text = _TAG.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


__all__ = ["GmailMessageParser", "decode_base64url", "extract_text", "strip_html"]
