from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TicketStatus = Literal["open", "pending", "resolved", "closed"]
TicketPriority = Literal["low", "medium", "high", "urgent"]


class _Record(BaseModel):
    # Records handed to the UI are built fresh per request and never mutated.
    model_config = ConfigDict(extra="forbid", frozen=True)


class Requester(_Record):
    name: str
    email: str
    phone: str | None = None
    avatar: str | None = None


class Agent(_Record):
    name: str
    email: str = ""
    avatar: str | None = None


class Author(_Record):
    name: str
    email: str = ""
    avatar: str | None = None


class Attachment(_Record):
    id: int
    name: str
    content_type: str
    size: int = 0
    created_at: str | None = None
    download_url: str


class Ticket(_Record):
    id: int
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    requester: Requester
    agent: Agent | None = None
    created_at: str | None = None
    updated_at: str | None = None
    tags: list[str] = Field(default_factory=list)

    type: str | None = None
    source: int | None = None
    group_id: int | None = None
    product_id: int | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class Conversation(_Record):
    id: int
    body: str
    body_text: str
    from_email: str
    to_emails: list[str] = Field(default_factory=list)
    cc_emails: list[str] = Field(default_factory=list)
    bcc_emails: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    incoming: bool = False
    private: bool = False
    user: Author
    attachments: list[Attachment] = Field(default_factory=list)


class TicketView(_Record):
    ticket: Ticket
    conversations: list[Conversation] = Field(default_factory=list)


class SearchPage(_Record):
    results: list[Ticket] = Field(default_factory=list)
    total: int = 0
