"""Cookie persistence for the per-browser token set."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from starlette.responses import Response

from inbox_sorter.core.models import TokenSet

ACCESS_TOKEN_COOKIE = "ga_at"
REFRESH_TOKEN_COOKIE = "ga_rt"
EXPIRY_COOKIE = "ga_exp"


@dataclass(slots=True)
class TokenCookies:
    """Read and write a :class:`TokenSet` as HttpOnly cookies."""

    secure: bool = True

    def read(self, request: Request) -> TokenSet | None:
        """Return the token set stored in ``request`` cookies, if any."""
        access_token = request.cookies.get(ACCESS_TOKEN_COOKIE) or None
        refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE) or None
        if access_token is None and refresh_token is None:
            return None
        return TokenSet(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=_parse_expiry(request.cookies.get(EXPIRY_COOKIE)),
        )

    def write(self, response: Response, tokens: TokenSet, *, now: int) -> None:
        """Persist ``tokens`` on ``response``.

        Without a positive lifetime the access token is stored as a session
        cookie rather than with ``Max-Age=0``.
        """
        expires_in = tokens.expires_at - now
        max_age = expires_in if expires_in > 0 else None
        if tokens.access_token:
            self._set(response, ACCESS_TOKEN_COOKIE, tokens.access_token, max_age)
            self._set(response, EXPIRY_COOKIE, str(tokens.expires_at), max_age)
        if tokens.refresh_token:
            self._set(response, REFRESH_TOKEN_COOKIE, tokens.refresh_token, None)

    def clear(self, response: Response) -> None:
        """Expire every token cookie."""
        for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, EXPIRY_COOKIE):
            response.delete_cookie(
                key=name,
                path="/",
                httponly=True,
                samesite="lax",
                secure=self.secure,
            )

    def _set(
        self, response: Response, name: str, value: str, max_age: int | None
    ) -> None:
        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )


def _parse_expiry(raw: str | None) -> int:
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        return 0


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "EXPIRY_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "TokenCookies",
]
