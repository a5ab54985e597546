"""Pipeline orchestrator binding token handling, mailbox access and labelling."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager

import httpx

from inbox_sorter.auth import TokenKeeper
from inbox_sorter.core.config import AppSettings
from inbox_sorter.core.errors import MissingCredential, NoInput, NotAuthenticated
from inbox_sorter.core.interfaces import CategoryService, MailboxProvider
from inbox_sorter.core.models import Classification, EmailItem
from inbox_sorter.ingestion import GmailMessageParser, MailFetcher
from inbox_sorter.ingestion.fetcher import DEFAULT_FETCH_CONCURRENCY, EmailParserProtocol
from inbox_sorter.intelligence import LLMCategoryService, OpenAIChatClient
from inbox_sorter.transport import GmailClient

LOGGER = logging.getLogger(__name__)

MIN_RESULTS = 1
MAX_RESULTS = 50

MailboxFactory = Callable[[], AbstractAsyncContextManager[MailboxProvider]]


def clamp_max_results(value: int, cap: int = MAX_RESULTS) -> int:
    """Clamp a requested message count into ``[1, cap]``."""
    return max(MIN_RESULTS, min(cap, value))


class InboxPipeline:
    """Expose ``fetch`` and ``classify`` to the web layer and CLI."""

    def __init__(
        self,
        mailbox_factory: MailboxFactory,
        classifier: CategoryService | None,
        *,
        token_keeper: TokenKeeper | None = None,
        parser: EmailParserProtocol | None = None,
        fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY,
        max_results_cap: int = MAX_RESULTS,
    ) -> None:
        self._mailbox_factory = mailbox_factory
        self._classifier = classifier
        self._token_keeper = token_keeper
        self._parser = parser or GmailMessageParser()
        self._fetch_concurrency = fetch_concurrency
        self._max_results_cap = max_results_cap

    @property
    def token_keeper(self) -> TokenKeeper | None:
        """Return the keeper bound to this pipeline, if any."""
        return self._token_keeper

    async def fetch(self, max_results: int) -> list[EmailItem]:
        """Fetch the most recent ``max_results`` emails for the session user."""
        if self._token_keeper is None:
            raise NotAuthenticated()
        access_token = await self._token_keeper.get_usable_token()
        bounded = clamp_max_results(max_results, self._max_results_cap)
        async with self._mailbox_factory() as mailbox:
            fetcher = MailFetcher(
                mailbox, self._parser, concurrency=self._fetch_concurrency
            )
            emails = await fetcher.fetch_emails(access_token, bounded)
        LOGGER.info("Fetched %d email(s)", len(emails))
        return emails

    async def classify(self, emails: Sequence[EmailItem]) -> Classification:
        """Label ``emails``; ids missing from the result default to General."""
        if not emails:
            raise NoInput()
        if self._classifier is None:
            raise MissingCredential()
        return await self._classifier.classify(emails)


def build_pipeline(
    settings: AppSettings,
    *,
    token_keeper: TokenKeeper | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> InboxPipeline:
    """Wire production components from ``settings``."""

    def mailbox_factory() -> GmailClient:
        return GmailClient(settings.mailbox, transport=http_transport)

    classifier: CategoryService | None = None
    if settings.llm.api_key:
        classifier = LLMCategoryService(
            OpenAIChatClient(settings.llm, transport=http_transport),
            batch_size=settings.classifier.batch_size,
            batch_delay=settings.classifier.batch_delay_ms / 1000,
            body_char_limit=settings.classifier.body_char_limit,
        )

    return InboxPipeline(
        mailbox_factory,
        classifier,
        token_keeper=token_keeper,
        fetch_concurrency=settings.mailbox.fetch_concurrency,
        max_results_cap=settings.mailbox.max_results_cap,
    )


__all__ = ["InboxPipeline", "build_pipeline", "clamp_max_results"]
