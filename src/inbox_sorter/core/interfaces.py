"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .models import Classification, EmailItem, RawMessage


class MailboxProvider(Protocol):
    """Abstraction over a mailbox REST API such as Gmail."""

    async def list_message_ids(self, access_token: str, max_results: int) -> list[str]:
        """Return the most recent message ids, newest first."""
        raise NotImplementedError

    async def get_message(self, access_token: str, message_id: str) -> RawMessage:
        """Fetch a single message in full format."""
        raise NotImplementedError


class CategoryService(Protocol):
    """Abstraction for assigning a category to each email."""

    async def classify(self, emails: Sequence[EmailItem]) -> Classification:
        """Return a mapping of email id to category."""
        raise NotImplementedError


__all__ = ["CategoryService", "MailboxProvider"]
