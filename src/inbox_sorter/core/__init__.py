"""Core utilities for configuration, logging, models, and errors."""

from .config import AppSettings, load_app_settings
from .errors import PipelineError
from .logging import configure_logging
from .models import Category, EmailItem, TokenSet

__all__ = [
    "AppSettings",
    "Category",
    "EmailItem",
    "PipelineError",
    "TokenSet",
    "configure_logging",
    "load_app_settings",
]
