"""FastAPI web application exposing the mailbox-to-label pipeline."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import httpx
from fastapi import Depends, FastAPI, Request, status as http_status
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from starlette.responses import Response

from inbox_sorter.auth import GoogleOAuthClient, TokenKeeper, redirect_uri_for
from inbox_sorter.core import AppSettings, load_app_settings
from inbox_sorter.core.datetime_utils import Clock, epoch_seconds
from inbox_sorter.core.errors import (
    MissingAuthorizationCode,
    NoInput,
    PipelineError,
)
from inbox_sorter.pipeline import InboxPipeline, build_pipeline, clamp_max_results

from .schemas import ClassifyRequest, ClassifyResponse, EmailPayload, SessionResponse
from .security import OAuthStateGuard
from .session import ACCESS_TOKEN_COOKIE, TokenCookies

LOGGER = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_ENV_FILE = _PROJECT_ROOT / ".env"
_ENV_FILE_OVERRIDE_VAR = "INBOX_SORTER_ENV_FILE"


def create_app(
    settings: AppSettings | None = None,
    *,
    http_transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = epoch_seconds,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    app = FastAPI(title="Inbox Sorter")

    # Add GZip compression middleware (compress responses > 1KB)
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    secure = app_settings.session.secure_cookies
    oauth_client = GoogleOAuthClient(
        app_settings.google, transport=http_transport, clock=clock
    )
    state_guard = OAuthStateGuard(
        max_age=app_settings.session.state_ttl_seconds, secure=secure
    )
    token_cookies = TokenCookies(secure=secure)

    def get_pipeline(request: Request) -> InboxPipeline:
        keeper = TokenKeeper(
            token_cookies.read(request),
            oauth_client,
            refresh_margin=app_settings.session.refresh_margin_seconds,
            clock=clock,
        )
        return build_pipeline(
            app_settings, token_keeper=keeper, http_transport=http_transport
        )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(_request: Request, exc: PipelineError) -> Response:
        return _error_response(exc)

    @app.get("/api/auth/google/start")
    async def auth_start(request: Request) -> RedirectResponse:
        """Redirect the browser to Google's consent screen."""
        state = state_guard.generate_state()
        url = oauth_client.get_authorization_url(
            state, _redirect_uri(request, app_settings)
        )
        response = RedirectResponse(url=url, status_code=http_status.HTTP_302_FOUND)
        state_guard.set_cookie(response, state)
        return response

    @app.get("/api/auth/google/callback")
    async def auth_callback(
        request: Request, code: str | None = None, state: str | None = None
    ) -> Response:
        """Finish the OAuth dance and store the resulting tokens."""
        response: Response
        try:
            if not code:
                raise MissingAuthorizationCode()
            state_guard.validate(request, state)
            tokens = await oauth_client.exchange_code(
                code, _redirect_uri(request, app_settings)
            )
        except PipelineError as exc:
            LOGGER.warning("OAuth callback failed: %s", exc.message)
            response = _error_response(exc)
        else:
            response = RedirectResponse(url="/", status_code=http_status.HTTP_302_FOUND)
            token_cookies.write(response, tokens, now=clock())
        state_guard.clear_cookie(response)
        return response

    @app.post("/api/auth/logout")
    async def logout() -> Response:
        """Forget the session tokens."""
        response = Response(status_code=http_status.HTTP_204_NO_CONTENT)
        token_cookies.clear(response)
        return response

    @app.get("/api/auth/session")
    async def session(request: Request) -> SessionResponse:
        """Report whether an access token cookie is present."""
        return SessionResponse(
            authenticated=bool(request.cookies.get(ACCESS_TOKEN_COOKIE))
        )

    @app.get("/api/gmail/fetch")
    async def gmail_fetch(
        request: Request,
        pipeline: InboxPipeline = Depends(get_pipeline),  # noqa: B008
    ) -> Response:
        """Return the most recent emails, refreshing tokens when needed."""
        max_results = _parse_max(
            request.query_params.get("max"),
            default=app_settings.mailbox.default_max_results,
            cap=app_settings.mailbox.max_results_cap,
        )
        response: Response
        try:
            emails = await pipeline.fetch(max_results)
        except PipelineError as exc:
            LOGGER.warning("Mailbox fetch failed: %s", exc.message)
            response = _error_response(exc)
        else:
            response = JSONResponse(
                {"emails": [EmailPayload.from_item(email).to_json() for email in emails]}
            )

        keeper = pipeline.token_keeper
        if keeper is not None and keeper.refreshed and keeper.token_set is not None:
            token_cookies.write(response, keeper.token_set, now=clock())
        return response

    @app.post("/api/classify")
    async def classify(
        request: Request,
        pipeline: InboxPipeline = Depends(get_pipeline),  # noqa: B008
    ) -> ClassifyResponse:
        """Assign one category to each submitted email."""
        payload = await _read_classify_request(request)
        emails = [email.to_item() for email in payload.emails]
        classifications = await pipeline.classify(emails)
        return ClassifyResponse(classifications=classifications)

    return app


def _error_response(exc: PipelineError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _read_classify_request(request: Request) -> ClassifyRequest:
    body = await request.body()
    if not body.strip():
        raise NoInput()
    try:
        return ClassifyRequest.model_validate_json(body)
    except ValidationError as exc:
        raise NoInput() from exc


def _redirect_uri(request: Request, settings: AppSettings) -> str:
    origin = settings.google.public_origin or (
        f"{request.url.scheme}://{request.url.netloc}"
    )
    return redirect_uri_for(origin)


def _parse_max(raw: str | None, *, default: int, cap: int) -> int:
    if raw is None or raw == "":
        return clamp_max_results(default, cap)
    try:
        value = int(raw)
    except ValueError:
        return clamp_max_results(default, cap)
    return clamp_max_results(value, cap)


def _resolve_env_file() -> Path:
    override = os.environ.get(_ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override).expanduser()
    return _DEFAULT_ENV_FILE


__all__ = ["create_app"]
