"""OAuth token handling for the Gmail identity provider."""

from .google_oauth import CALLBACK_PATH, GoogleOAuthClient, redirect_uri_for
from .token_keeper import TokenKeeper

__all__ = ["CALLBACK_PATH", "GoogleOAuthClient", "TokenKeeper", "redirect_uri_for"]
