"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from helpers import StubUpstream
from inbox_sorter.core.config import (
    AppSettings,
    ClassifierSettings,
    GoogleSettings,
    LlmSettings,
)


@pytest.fixture
def upstream() -> StubUpstream:
    """Fresh set of Google, Gmail and OpenAI stubs."""
    return StubUpstream()


@pytest.fixture
def settings() -> AppSettings:
    """Fully configured settings with batch pacing disabled."""
    return AppSettings(
        google=GoogleSettings(client_id="client-123", client_secret="shh"),
        llm=LlmSettings(api_key="sk-test"),
        classifier=ClassifierSettings(batch_delay_ms=0),
    )
