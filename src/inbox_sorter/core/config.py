"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True)


class GoogleSettings(_Section):
    """Settings for the Google OAuth 2.0 identity provider."""

    client_id: str | None = Field(default=None, description="OAuth client id")
    client_secret: str | None = Field(
        default=None, description="OAuth client secret"
    )
    auth_url: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth",
        description="Authorization endpoint",
    )
    token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Token endpoint for code and refresh exchanges",
    )
    scopes: tuple[str, ...] = Field(
        default=(
            "https://www.googleapis.com/auth/gmail.readonly",
            "openid",
            "email",
            "profile",
        ),
        description="Scopes requested during consent",
    )
    timeout_seconds: float = Field(
        default=15, gt=0, description="Timeout for token endpoint calls"
    )
    public_origin: str | None = Field(
        default=None,
        description="Origin used for the redirect URI instead of the request URL",
    )


class MailboxSettings(_Section):
    """Settings for the Gmail REST API."""

    api_base: str = Field(
        default="https://gmail.googleapis.com/gmail/v1",
        description="Gmail API base URL",
    )
    timeout_seconds: float = Field(
        default=15, gt=0, description="Timeout for each mailbox request"
    )
    fetch_concurrency: int = Field(
        default=5, ge=1, description="Concurrent message fetches"
    )
    default_max_results: int = Field(
        default=15, ge=1, description="Messages fetched when no max is given"
    )
    max_results_cap: int = Field(
        default=50, ge=1, description="Upper bound for messages per request"
    )


class LlmSettings(_Section):
    """Settings for the OpenAI chat completion provider."""

    api_key: str | None = Field(default=None, description="OpenAI API key")
    base_url: str = Field(
        default="https://api.openai.com/v1", description="OpenAI API base URL"
    )
    model: str = Field(default="gpt-4o-mini", description="Model identifier")
    timeout_seconds: float = Field(
        default=30, gt=0, description="Request timeout for LLM calls"
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for LLM completions",
    )
    max_output_tokens: int = Field(
        default=10,
        ge=1,
        description="Maximum tokens to request from the provider",
    )


class ClassifierSettings(_Section):
    """Settings controlling classification pacing."""

    batch_size: int = Field(default=3, ge=1, description="Parallel LLM calls")
    batch_delay_ms: int = Field(
        default=1000, ge=0, description="Pause between consecutive batches"
    )
    body_char_limit: int = Field(
        default=500, ge=0, description="Body characters included in prompts"
    )


class SessionSettings(_Section):
    """Settings for cookie-backed browser sessions."""

    secure_cookies: bool = Field(
        default=True, description="Mark session cookies as Secure"
    )
    refresh_margin_seconds: int = Field(
        default=60, ge=0, description="Refresh tokens this close to expiry"
    )
    state_ttl_seconds: int = Field(
        default=600, ge=1, le=600, description="Lifetime of the OAuth state"
    )


class LoggingSettings(_Section):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class AppSettings(_Section):
    """Aggregated application configuration."""

    google: GoogleSettings = Field(default_factory=GoogleSettings)
    mailbox: MailboxSettings = Field(default_factory=MailboxSettings)
    llm: LlmSettings = Field(default_factory=LlmSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "INBOX_SORTER_"

# Keys shared with other tooling, accepted without the prefix.
WELL_KNOWN_KEYS: dict[str, tuple[str, ...]] = {
    "GOOGLE_CLIENT_ID": ("google", "client_id"),
    "GOOGLE_CLIENT_SECRET": ("google", "client_secret"),
    "OPENAI_API_KEY": ("llm", "api_key"),
}


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    if raw_key in WELL_KNOWN_KEYS:
        return list(WELL_KNOWN_KEYS[raw_key])
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _is_recognized(key: str | None) -> bool:
    return bool(key) and (key.startswith(ENV_PREFIX) or key in WELL_KNOWN_KEYS)


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _coerce_value(value: Any) -> Any:
    if isinstance(value, str) and value == "":
        return None
    if isinstance(value, str):
        lowercase_value = value.lower()
        if lowercase_value == "true":
            return True
        if lowercase_value == "false":
            return False
    return value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and _is_recognized(key)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value for key, value in os.environ.items() if _is_recognized(key)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value = _coerce_value(value)
        if normalized_value is None:
            # Blank values fall back to defaults.
            continue
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings once, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ClassifierSettings",
    "GoogleSettings",
    "LlmSettings",
    "LoggingSettings",
    "MailboxSettings",
    "SessionSettings",
    "load_app_settings",
]
