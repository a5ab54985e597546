"""Error taxonomy surfaced by the mailbox-to-label pipeline."""

from __future__ import annotations

_MAX_DETAIL_CHARS = 500


def _truncate(body: str | None) -> str:
    if not body:
        return ""
    body = body.strip()
    if len(body) <= _MAX_DETAIL_CHARS:
        return body
    return body[:_MAX_DETAIL_CHARS] + "..."


class PipelineError(RuntimeError):
    """Base class for failures reported to the outer application."""

    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(PipelineError):
    """No usable access token and nothing to refresh it with."""

    status_code = 401
    default_message = "Not authenticated"


class InvalidState(PipelineError):
    """The OAuth ``state`` returned by the provider did not match."""

    status_code = 400
    default_message = "Invalid state"


class MissingAuthorizationCode(PipelineError):
    """The OAuth callback arrived without an authorization code."""

    status_code = 400
    default_message = "Missing code"


class _ProviderError(PipelineError):
    """Failure carrying an upstream response body for diagnosis."""

    def __init__(self, message: str | None = None, *, body: str | None = None) -> None:
        self.body = _truncate(body)
        text = message or self.default_message
        if self.body:
            text = f"{text}: {self.body}"
        super().__init__(text)


class AuthExchangeFailed(_ProviderError):
    """Authorization-code exchange was rejected."""

    default_message = "Token exchange failed"


class AuthRefreshFailed(_ProviderError):
    """Refresh-token exchange was rejected; the user must log in again."""

    status_code = 401
    default_message = "Token refresh failed"


class MailboxListFailed(_ProviderError):
    """Listing mailbox messages failed."""

    default_message = "Gmail list failed"


class MailboxGetFailed(_ProviderError):
    """Fetching a single mailbox message failed."""

    default_message = "Gmail message fetch failed"

    def __init__(self, message_id: str, *, body: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(f"{self.default_message} for {message_id}", body=body)


class MissingCredential(PipelineError):
    """The LLM credential is not configured."""

    default_message = "Missing OpenAI key"


class NoInput(PipelineError):
    """Classification was requested for an empty batch."""

    status_code = 400
    default_message = "No emails provided"


class ModelError(PipelineError):
    """The LLM provider failed to respond as expected."""

    default_message = "Classification error"


__all__ = [
    "AuthExchangeFailed",
    "AuthRefreshFailed",
    "InvalidState",
    "MailboxGetFailed",
    "MailboxListFailed",
    "MissingAuthorizationCode",
    "MissingCredential",
    "ModelError",
    "NoInput",
    "NotAuthenticated",
    "PipelineError",
]
