"""Ingestion pipeline components."""

from .fetcher import EmailParserProtocol, MailFetcher
from .parser import GmailMessageParser, decode_base64url, extract_text, strip_html

__all__ = [
    "EmailParserProtocol",
    "GmailMessageParser",
    "MailFetcher",
    "decode_base64url",
    "extract_text",
    "strip_html",
]
