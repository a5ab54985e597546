"""Prompt templates for LLM-driven classification."""

from __future__ import annotations

from inbox_sorter.core.models import Category, EmailItem

DEFAULT_BODY_CHAR_LIMIT = 500


def build_classification_prompt(
    email: EmailItem, *, body_char_limit: int = DEFAULT_BODY_CHAR_LIMIT
) -> str:
    """Compose a prompt asking for exactly one category name."""
    categories = ", ".join(category.value for category in Category)
    body = (email.body_text or "")[:body_char_limit]
    lines = (
        f"Classify this email into exactly one of these categories: {categories}.",
        f"From: {email.sender or 'Unknown'}",
        f"Subject: {email.subject or 'No Subject'}",
        f"Preview: {email.snippet or 'No preview'}",
        f"Body: {body}",
        "ONLY respond with the category name.",
    )
    return "\n".join(lines)


__all__ = ["DEFAULT_BODY_CHAR_LIMIT", "build_classification_prompt"]
