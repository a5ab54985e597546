"""Request and response payloads for the JSON API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from inbox_sorter.core.models import Category, EmailItem


class EmailPayload(BaseModel):
    """Browser-facing representation of an :class:`EmailItem`."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    id: str
    sender: str | None = Field(default=None, alias="from")
    subject: str | None = None
    snippet: str | None = None
    body_text: str | None = Field(default=None, alias="bodyText")
    date: str | None = None

    @classmethod
    def from_item(cls, item: EmailItem) -> EmailPayload:
        return cls(
            id=item.id,
            sender=item.sender,
            subject=item.subject,
            snippet=item.snippet,
            body_text=item.body_text,
            date=item.date,
        )

    def to_item(self) -> EmailItem:
        return EmailItem(
            id=self.id,
            sender=self.sender,
            subject=self.subject,
            snippet=self.snippet,
            body_text=self.body_text,
            date=self.date,
        )

    def to_json(self) -> dict[str, Any]:
        """Serialise with browser field names, omitting absent values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ClassifyRequest(BaseModel):
    """Body of ``POST /api/classify``."""

    model_config = ConfigDict(extra="ignore")

    emails: list[EmailPayload] = Field(default_factory=list)


class ClassifyResponse(BaseModel):
    """Body returned by ``POST /api/classify``."""

    classifications: dict[str, Category]


class SessionResponse(BaseModel):
    """Body returned by ``GET /api/auth/session``."""

    authenticated: bool


__all__ = ["ClassifyRequest", "ClassifyResponse", "EmailPayload", "SessionResponse"]
