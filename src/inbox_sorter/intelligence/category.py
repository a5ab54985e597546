"""LLM-backed categorisation of emails into a fixed taxonomy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence

from inbox_sorter.core.interfaces import CategoryService
from inbox_sorter.core.models import Category, Classification, EmailItem

from .llm import LLMClient
from .prompts import DEFAULT_BODY_CHAR_LIMIT, build_classification_prompt

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 3
DEFAULT_BATCH_DELAY_SECONDS = 1.0

# First matching prefix wins.
_PREFIX_RULES: tuple[tuple[str, Category], ...] = (
    ("important", Category.IMPORTANT),
    ("promotion", Category.PROMOTIONS),
    ("social", Category.SOCIAL),
    ("marketing", Category.MARKETING),
    ("spam", Category.SPAM),
)

Sleeper = Callable[[float], Awaitable[None]]


def normalize_category(raw: str | None) -> Category:
    """Map free text onto the closed category set; unknown text is General."""
    text = (raw or "").strip().lower()
    for prefix, category in _PREFIX_RULES:
        if text.startswith(prefix):
            return category
    return Category.GENERAL


class LLMCategoryService(CategoryService):
    """Categorize emails by prompting an LLM once per email.

    Emails are processed in fixed-size batches. Calls inside a batch run
    concurrently and the next batch starts only after ``batch_delay``
    seconds.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        body_char_limit: int = DEFAULT_BODY_CHAR_LIMIT,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._llm_client = llm_client
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._body_char_limit = body_char_limit
        self._sleep = sleep

    async def classify(self, emails: Sequence[EmailItem]) -> Classification:
        """Return a category for every email id in ``emails``."""
        classifications: Classification = {}
        for index, batch in enumerate(_chunked(emails, self._batch_size)):
            if index and self._batch_delay > 0:
                await self._sleep(self._batch_delay)
            categories = await asyncio.gather(
                *(self._classify_one(email) for email in batch)
            )
            for email, category in zip(batch, categories):
                classifications[email.id] = category
        LOGGER.info(
            "Classified %d email(s) with %s",
            len(classifications),
            self._llm_client.provider_id,
        )
        return classifications

    async def _classify_one(self, email: EmailItem) -> Category:
        prompt = build_classification_prompt(
            email, body_char_limit=self._body_char_limit
        )
        try:
            reply = await self._llm_client.generate(prompt)
        except Exception as exc:  # noqa: BLE001 - per-item isolation
            LOGGER.warning("LLM classification failed for %s: %s", email.id, exc)
            return Category.GENERAL
        return normalize_category(reply)


def _chunked(items: Sequence[EmailItem], size: int) -> Iterator[Sequence[EmailItem]]:
    """Yield successive slices of ``size`` elements."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = ["LLMCategoryService", "normalize_category"]
