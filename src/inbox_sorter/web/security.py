"""OAuth ``state`` protection for the Google callback."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from fastapi import Request
from starlette.responses import Response

from inbox_sorter.core.errors import InvalidState

STATE_COOKIE_NAME = "ga_state"


@dataclass(slots=True)
class OAuthStateGuard:
    """Bind a random ``state`` value to the browser with a short-lived cookie."""

    cookie_name: str = STATE_COOKIE_NAME
    max_age: int = 600  # 10 minutes
    secure: bool = True

    def generate_state(self) -> str:
        """Return a new cryptographically random state value."""

        return secrets.token_urlsafe(32)

    def set_cookie(self, response: Response, state: str) -> None:
        """Persist the state in an HttpOnly, SameSite=Lax cookie."""

        response.set_cookie(
            key=self.cookie_name,
            value=state,
            max_age=self.max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )

    def clear_cookie(self, response: Response) -> None:
        """Expire the state cookie."""

        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )

    def validate(self, request: Request, state: str | None) -> None:
        """Ensure the returned state matches the value stored in the cookie."""

        stored = request.cookies.get(self.cookie_name)
        if not stored or not state:
            raise InvalidState()
        if not secrets.compare_digest(stored, state):
            raise InvalidState()


__all__ = ["STATE_COOKIE_NAME", "OAuthStateGuard"]
