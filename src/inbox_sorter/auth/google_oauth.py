"""Google OAuth 2.0 client for the authorization-code and refresh grants."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from inbox_sorter.core.config import GoogleSettings
from inbox_sorter.core.datetime_utils import Clock, epoch_seconds
from inbox_sorter.core.errors import AuthExchangeFailed, AuthRefreshFailed
from inbox_sorter.core.models import TokenSet

LOGGER = logging.getLogger(__name__)

CALLBACK_PATH = "/api/auth/google/callback"


def redirect_uri_for(origin: str) -> str:
    """Return the callback URL registered for ``origin``."""
    return origin.rstrip("/") + CALLBACK_PATH


class GoogleOAuthClient:
    """Client for Google's authorization and token endpoints."""

    def __init__(
        self,
        settings: GoogleSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = epoch_seconds,
    ) -> None:
        """Initialize the OAuth client with settings and an optional transport."""
        self._settings = settings
        self._transport = transport
        self._clock = clock

    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Generate the consent URL the browser is redirected to."""
        params = {
            "client_id": self._settings.client_id or "",
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._settings.scopes),
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Force consent to get refresh token
            "state": state,
        }
        return f"{self._settings.auth_url}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> TokenSet:
        """Exchange an authorization code for a token set."""
        form = {
            "code": code,
            "client_id": self._settings.client_id or "",
            "client_secret": self._settings.client_secret or "",
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            payload = await self._post_token_form(form)
        except _TokenEndpointError as exc:
            raise AuthExchangeFailed(body=exc.body) from exc
        LOGGER.info("Successfully exchanged authorization code for tokens")
        try:
            return TokenSet.from_token_response(payload, self._clock())
        except ValueError as exc:
            raise AuthExchangeFailed(str(exc)) from exc

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token and return the raw token response."""
        LOGGER.info("Attempting to refresh access token...")
        form = {
            "client_id": self._settings.client_id or "",
            "client_secret": self._settings.client_secret or "",
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        try:
            payload = await self._post_token_form(form)
        except _TokenEndpointError as exc:
            raise AuthRefreshFailed(body=exc.body) from exc
        if not isinstance(payload.get("access_token"), str):
            raise AuthRefreshFailed("Token refresh response missing access token")
        LOGGER.info("Successfully refreshed access token")
        return payload

    async def _post_token_form(self, form: dict[str, str]) -> dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self._settings.timeout_seconds, transport=self._transport
        ) as client:
            try:
                response = await client.post(self._settings.token_url, data=form)
            except httpx.HTTPError as exc:
                raise _TokenEndpointError(str(exc)) from exc

        if response.status_code != 200:
            LOGGER.error("Token endpoint returned %s", response.status_code)
            LOGGER.debug("Response: %s", response.text)
            raise _TokenEndpointError(response.text)

        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise _TokenEndpointError("Token endpoint returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise _TokenEndpointError("Token endpoint returned unexpected payload")
        return data


class _TokenEndpointError(RuntimeError):
    def __init__(self, body: str) -> None:
        super().__init__(body)
        self.body = body


__all__ = ["CALLBACK_PATH", "GoogleOAuthClient", "redirect_uri_for"]
