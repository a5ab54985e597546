"""Transport adapters for external mailbox providers."""

from .gmail_client import GmailClient, parse_raw_message

__all__ = ["GmailClient", "parse_raw_message"]
