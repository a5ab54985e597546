"""Proactive access-token refresh for a single browser session."""

from __future__ import annotations

import logging

from inbox_sorter.core.datetime_utils import Clock, epoch_seconds
from inbox_sorter.core.errors import AuthRefreshFailed, NotAuthenticated
from inbox_sorter.core.models import TokenSet

from .google_oauth import GoogleOAuthClient

LOGGER = logging.getLogger(__name__)

DEFAULT_REFRESH_MARGIN = 60


class TokenKeeper:
    """Hold a :class:`TokenSet` and hand out access tokens that are still usable.

    A token is usable while at least ``refresh_margin`` seconds remain before
    ``expires_at``. Otherwise the keeper exchanges the refresh token once and
    caches the result, so repeated calls within the new lifetime cost nothing.
    """

    def __init__(
        self,
        token_set: TokenSet | None,
        oauth_client: GoogleOAuthClient,
        *,
        refresh_margin: int = DEFAULT_REFRESH_MARGIN,
        clock: Clock = epoch_seconds,
    ) -> None:
        self._token_set = token_set
        self._oauth_client = oauth_client
        self._refresh_margin = refresh_margin
        self._clock = clock
        self.refreshed = False

    @property
    def token_set(self) -> TokenSet | None:
        """Return the current token set, including any refreshed values."""
        return self._token_set

    def is_usable(self, now: int | None = None) -> bool:
        """Return ``True`` when the cached access token can be presented as is."""
        tokens = self._token_set
        if tokens is None or not tokens.access_token:
            return False
        current = self._clock() if now is None else now
        return tokens.seconds_remaining(current) >= self._refresh_margin

    async def get_usable_token(self) -> str:
        """Return an access token, refreshing it first when close to expiry."""
        tokens = self._token_set
        if tokens is not None and tokens.access_token and self.is_usable():
            return tokens.access_token

        if tokens is None or not tokens.refresh_token:
            raise NotAuthenticated()

        LOGGER.debug(
            "Access token unusable (expires_at=%s); refreshing", tokens.expires_at
        )
        payload = await self._oauth_client.refresh(tokens.refresh_token)
        now = self._clock()
        try:
            refreshed = TokenSet.from_token_response(payload, now)
        except ValueError as exc:
            raise AuthRefreshFailed(str(exc)) from exc
        access_token = refreshed.access_token
        if not access_token:
            raise AuthRefreshFailed("Token refresh response missing access token")

        tokens.access_token = access_token
        tokens.expires_at = refreshed.expires_at
        if refreshed.refresh_token:
            tokens.refresh_token = refreshed.refresh_token
        if refreshed.scope:
            tokens.scope = refreshed.scope
        self.refreshed = True
        return access_token


__all__ = ["DEFAULT_REFRESH_MARGIN", "TokenKeeper"]
