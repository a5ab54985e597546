"""Mail fetching orchestration logic."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..core.interfaces import MailboxProvider
from ..core.models import EmailItem, RawMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_FETCH_CONCURRENCY = 5


class EmailParserProtocol(Protocol):
    """Minimal protocol implemented by message parsers."""

    def parse(self, message: RawMessage) -> EmailItem:
        """Convert a raw provider message into an email item."""
        raise NotImplementedError


class MailFetcher:
    """List recent messages, fetch them concurrently, and decode them."""

    def __init__(
        self,
        mailbox: MailboxProvider,
        parser: EmailParserProtocol,
        *,
        concurrency: int = DEFAULT_FETCH_CONCURRENCY,
    ) -> None:
        """Initialise the fetcher with a mailbox and parser."""
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self._mailbox = mailbox
        self._parser = parser
        self._concurrency = concurrency

    async def fetch_emails(self, access_token: str, max_results: int) -> list[EmailItem]:
        """Return up to ``max_results`` decoded emails in provider list order."""
        ids = await self._mailbox.list_message_ids(access_token, max_results)
        unique_ids = list(dict.fromkeys(ids))[:max_results]
        LOGGER.info("Fetching %d message(s)", len(unique_ids))
        if not unique_ids:
            return []

        semaphore = asyncio.Semaphore(self._concurrency)

        async def fetch_one(message_id: str) -> RawMessage:
            async with semaphore:
                return await self._mailbox.get_message(access_token, message_id)

        tasks = [asyncio.ensure_future(fetch_one(message_id)) for message_id in unique_ids]
        try:
            messages = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # Output ids always come from the list response.
        return [
            self._parser.parse(_with_id(message, message_id))
            for message_id, message in zip(unique_ids, messages)
        ]


def _with_id(message: RawMessage, message_id: str) -> RawMessage:
    if message.id == message_id:
        return message
    LOGGER.warning("Provider returned id %s for %s", message.id, message_id)
    message.id = message_id
    return message


__all__ = ["DEFAULT_FETCH_CONCURRENCY", "EmailParserProtocol", "MailFetcher"]
