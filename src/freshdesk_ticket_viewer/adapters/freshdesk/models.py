from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _FreshdeskModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Contact(_FreshdeskModel):
    id: int | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    mobile: str | None = None
    # Freshdesk sends either a URL string or an object with `avatar_url`.
    avatar: Any = None


class Attachment(_FreshdeskModel):
    id: int
    name: str | None = None
    content_type: str | None = None
    size: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    # Signed upstream URL; only the client may use it.
    attachment_url: str | None = None


class Ticket(_FreshdeskModel):
    id: int
    subject: str | None = None
    description: str | None = None
    description_text: str | None = None

    # Numeric codes; decoded (with defaults) by the normalizer.
    status: Any = None
    priority: Any = None

    requester_id: int | None = None
    requester: Contact | None = None
    responder_id: int | None = None
    responder: Contact | None = None

    created_at: str | None = None
    updated_at: str | None = None
    tags: list[str] | None = None

    type: str | None = None
    source: int | None = None
    group_id: int | None = None
    product_id: int | None = None
    custom_fields: dict[str, Any] | None = None


class Conversation(_FreshdeskModel):
    id: int
    body: str | None = None
    body_text: str | None = None
    from_email: str | None = None
    to_emails: list[str] | None = None
    cc_emails: list[str] | None = None
    bcc_emails: list[str] | None = None
    created_at: str | None = None
    updated_at: str | None = None
    incoming: bool | None = None
    private: bool | None = None
    user_id: int | None = None
    user: Contact | None = None
    attachments: list[Attachment] | None = None


class SearchResults(_FreshdeskModel):
    results: list[Ticket] = Field(default_factory=list)
    total: int = 0


@dataclass(frozen=True, slots=True)
class AttachmentDownload:
    content: bytes
    content_type: str
    # From Content-Disposition; None when the upstream did not name the file.
    filename: str | None


@dataclass(frozen=True, slots=True)
class SearchFilters:
    status: tuple[str, ...] = ()
    priority: tuple[str, ...] = ()
    requester_email: str | None = None
    agent_email: str | None = None
    created_since: str | None = None
    updated_since: str | None = None

    def to_params(self) -> list[tuple[str, str]]:
        """List filters become repeated parameters, scalars a single one; empty values are skipped."""
        params: list[tuple[str, str]] = []
        for key in ("status", "priority"):
            params.extend((key, value) for value in getattr(self, key) if value)
        for key in ("requester_email", "agent_email", "created_since", "updated_since"):
            value = getattr(self, key)
            if value:
                params.append((key, value))
        return params
