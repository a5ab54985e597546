"""Helpers for building Gmail payloads and stubbing upstream HTTP services."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from typing import Any

import httpx


def b64url(text: str) -> str:
    """Encode ``text`` the way Gmail encodes body data."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def gmail_message(
    message_id: str,
    *,
    subject: str | None = "Hello",
    sender: str | None = "alice@example.com",
    body: str = "Body text",
    snippet: str = "Preview",
) -> dict[str, Any]:
    """Return a ``messages.get`` document with a text/plain payload."""
    headers = []
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    headers.append({"name": "Date", "value": "Mon, 1 Jan 2024 00:00:00 +0000"})
    return {
        "id": message_id,
        "internalDate": "1704067200000",
        "snippet": snippet,
        "payload": {
            "mimeType": "text/plain",
            "headers": headers,
            "body": {"data": b64url(body)},
        },
    }


class StubUpstream:
    """Route ``httpx`` requests to Google, Gmail and OpenAI stubs."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_responses: list[httpx.Response] = []
        self.messages: dict[str, dict[str, Any]] = {}
        self.list_status = 200
        self.unreachable_ids: list[str] = []
        self.llm_reply: Callable[[str], str] = lambda _prompt: "General"

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == host]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "oauth2.googleapis.com":
            if self.token_responses:
                return self.token_responses.pop(0)
            return httpx.Response(
                200, json={"access_token": "fresh-token", "expires_in": 3600}
            )
        if host == "gmail.googleapis.com":
            return self._handle_gmail(request)
        if host == "api.openai.com":
            prompt = json.loads(request.content)["messages"][0]["content"]
            return httpx.Response(
                200,
                json={"choices": [{"message": {"content": self.llm_reply(prompt)}}]},
            )
        return httpx.Response(404, text="unknown host")

    def _handle_gmail(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/users/me/messages"):
            if self.list_status != 200:
                return httpx.Response(self.list_status, text="list exploded")
            limit = int(request.url.params.get("maxResults", "100"))
            ids = [*self.messages, *self.unreachable_ids][:limit]
            return httpx.Response(
                200, json={"messages": [{"id": i, "threadId": i} for i in ids]}
            )
        message_id = path.rsplit("/", 1)[-1]
        message = self.messages.get(message_id)
        if message is None:
            return httpx.Response(404, text=f"{message_id} not found")
        return httpx.Response(200, json=message)
