"""LLM client abstractions used by intelligence features."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from inbox_sorter.core.config import LlmSettings
from inbox_sorter.core.errors import ModelError


class LLMClient(Protocol):
    """Protocol describing the minimal LLM client behaviour."""

    @property
    def provider_id(self) -> str:
        """Identifier describing the backing model/provider."""
        raise NotImplementedError

    async def generate(self, prompt: str) -> str:
        """Return the raw text completion for ``prompt``."""
        raise NotImplementedError


@dataclass(slots=True)
class OpenAIChatClient:
    """Thin async client for the OpenAI chat completions API."""

    settings: LlmSettings
    transport: httpx.AsyncBaseTransport | None = None

    async def generate(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the reply text."""
        if not self.settings.api_key:
            raise ModelError("OpenAI API key is not configured")
        payload: dict[str, object] = {
            "model": self.settings.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_output_tokens,
        }
        async with httpx.AsyncClient(
            timeout=self.settings.timeout_seconds, transport=self.transport
        ) as client:
            try:
                response = await client.post(
                    _resolve_endpoint(self.settings.base_url),
                    json=payload,
                    headers={"Authorization": f"Bearer {self.settings.api_key}"},
                )
            except httpx.HTTPError as exc:
                raise ModelError(f"LLM request failed: {exc}") from exc

        if not response.is_success:
            raise ModelError(f"LLM request failed with status {response.status_code}")
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise ModelError("LLM returned invalid JSON") from exc

        return _extract_content(data)

    @property
    def provider_id(self) -> str:
        """Return a human readable identifier for the configured model."""
        return f"openai:{self.settings.model}"


def _extract_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ModelError("LLM response missing message content") from exc
    if not isinstance(content, str):
        raise ModelError("LLM response content is not text")
    return content


def _resolve_endpoint(base_url: str) -> str:
    return base_url.rstrip("/") + "/chat/completions"


__all__ = ["LLMClient", "ModelError", "OpenAIChatClient"]
