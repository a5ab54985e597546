"""Gmail REST transport adapter providing mailbox access."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from ..core.config import MailboxSettings
from ..core.errors import MailboxGetFailed, MailboxListFailed
from ..core.interfaces import MailboxProvider
from ..core.models import MimePart, RawMessage

LOGGER = logging.getLogger(__name__)


class GmailClient(MailboxProvider):
    """Thin async wrapper around the Gmail ``users.messages`` endpoints."""

    def __init__(
        self,
        settings: MailboxSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client with configuration settings."""
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # Context manager helpers -------------------------------------------------
    async def __aenter__(self) -> GmailClient:
        """Open the HTTP connection pool on entering a context manager scope."""
        self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure sockets are released on context exit, including cancellation."""
        await self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> None:
        """Create the underlying ``httpx.AsyncClient``."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_base.rstrip("/") + "/",
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    async def list_message_ids(self, access_token: str, max_results: int) -> list[str]:
        """Return up to ``max_results`` message ids, most recent first."""
        client = self._require_client()
        LOGGER.debug("Listing up to %s messages", max_results)
        try:
            response = await client.get(
                "users/me/messages",
                params={"maxResults": max_results, "q": ""},
                headers=_auth_headers(access_token),
            )
        except httpx.HTTPError as exc:
            raise MailboxListFailed(body=str(exc)) from exc

        if not response.is_success:
            LOGGER.error("Gmail list failed with status %s", response.status_code)
            raise MailboxListFailed(body=response.text)

        data = _json_object(response)
        messages = data.get("messages") or []
        return [
            str(entry["id"])
            for entry in messages
            if isinstance(entry, Mapping) and entry.get("id")
        ]

    async def get_message(self, access_token: str, message_id: str) -> RawMessage:
        """Fetch ``message_id`` in full format."""
        client = self._require_client()
        LOGGER.debug("Fetching message %s", message_id)
        try:
            response = await client.get(
                f"users/me/messages/{message_id}",
                params={"format": "full"},
                headers=_auth_headers(access_token),
            )
        except httpx.HTTPError as exc:
            raise MailboxGetFailed(message_id, body=str(exc)) from exc

        if not response.is_success:
            LOGGER.error(
                "Gmail get failed for %s with status %s",
                message_id,
                response.status_code,
            )
            raise MailboxGetFailed(message_id, body=response.text)

        return parse_raw_message(_json_object(response), fallback_id=message_id)

    async def close(self) -> None:
        """Close the HTTP connection pool."""
        if self._client is None:
            return
        LOGGER.debug("Closing Gmail HTTP client")
        client, self._client = self._client, None
        await client.aclose()

    # Internal helpers ---------------------------------------------------------
    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Gmail client has not been connected")
        return self._client


def parse_raw_message(data: Mapping[str, Any], *, fallback_id: str) -> RawMessage:
    """Convert a ``messages.get`` JSON document into a :class:`RawMessage`."""
    internal_date: int | None = None
    raw_date = data.get("internalDate")
    if raw_date is not None:
        try:
            internal_date = int(raw_date)
        except (TypeError, ValueError):
            internal_date = None
    snippet = data.get("snippet")
    payload = data.get("payload")
    return RawMessage(
        id=str(data.get("id") or fallback_id),
        internal_date=internal_date,
        snippet=snippet if isinstance(snippet, str) else None,
        payload=_parse_part(payload) if isinstance(payload, Mapping) else MimePart(),
    )


def _parse_part(data: Mapping[str, Any]) -> MimePart:
    body = data.get("body")
    body_data = body.get("data") if isinstance(body, Mapping) else None
    raw_parts = data.get("parts") or []
    raw_headers = data.get("headers") or []
    headers = tuple(
        (str(header.get("name", "")), str(header.get("value", "")))
        for header in raw_headers
        if isinstance(header, Mapping)
    )
    return MimePart(
        mime_type=data.get("mimeType"),
        filename=data.get("filename") or None,
        body_data=body_data if isinstance(body_data, str) else None,
        parts=tuple(_parse_part(part) for part in raw_parts if isinstance(part, Mapping)),
        headers=headers,
    )


def _auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


__all__ = ["GmailClient", "parse_raw_message"]
