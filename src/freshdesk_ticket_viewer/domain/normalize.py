"""Map raw Freshdesk payloads to the records served to the UI.

Everything here is pure: no I/O, no logging, same input gives the same record.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from freshdesk_ticket_viewer.adapters.freshdesk import models as raw
from freshdesk_ticket_viewer.domain.attachments import attachment_proxy_path
from freshdesk_ticket_viewer.domain.records import (
    Agent,
    Attachment,
    Author,
    Conversation,
    Requester,
    SearchPage,
    Ticket,
    TicketPriority,
    TicketStatus,
)

UNKNOWN_NAME = "Unknown"
UNASSIGNED_NAME = "Unassigned"
UNKNOWN_EMAIL = "unknown@example.com"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_STATUS_NAMES: dict[int, TicketStatus] = {2: "open", 3: "pending", 4: "resolved", 5: "closed"}
_PRIORITY_NAMES: dict[int, TicketPriority] = {1: "low", 2: "medium", 3: "high", 4: "urgent"}


def _as_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def status_name(code: Any) -> TicketStatus:
    """2..5 map to open/pending/resolved/closed; anything else (1, None, junk) is open."""
    return _STATUS_NAMES.get(_as_code(code), "open")  # type: ignore[arg-type]


def priority_name(code: Any) -> TicketPriority:
    return _PRIORITY_NAMES.get(_as_code(code), "medium")  # type: ignore[arg-type]


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _avatar_url(avatar: Any) -> str | None:
    if isinstance(avatar, str):
        return _text(avatar)
    if isinstance(avatar, dict):
        url = avatar.get("avatar_url") or avatar.get("url")
        return _text(url) if isinstance(url, str) else None
    return None


def resolve_description(ticket: raw.Ticket) -> str:
    """Plain-text description when present, else the (possibly HTML) description."""
    return ticket.description_text or ticket.description or ""


def email_local_part(email: str | None) -> str | None:
    text = _text(email)
    if text is None:
        return None
    return _text(text.split("@", 1)[0])


def author_name(user_name: str | None, from_email: str | None) -> str:
    return _text(user_name) or email_local_part(from_email) or UNKNOWN_NAME


def normalize_requester(contact: raw.Contact | None) -> Requester:
    if contact is None:
        return Requester(name=UNKNOWN_NAME, email=UNKNOWN_EMAIL)
    return Requester(
        name=_text(contact.name) or UNKNOWN_NAME,
        email=_text(contact.email) or UNKNOWN_EMAIL,
        phone=_text(contact.phone) or _text(contact.mobile),
        avatar=_avatar_url(contact.avatar),
    )


def normalize_agent(responder_id: int | None, contact: raw.Contact | None) -> Agent | None:
    """An agent exists only when the ticket has a responder ID."""
    if responder_id is None:
        return None
    if contact is None:
        return Agent(name=UNASSIGNED_NAME)
    return Agent(
        name=_text(contact.name) or UNASSIGNED_NAME,
        email=_text(contact.email) or "",
        avatar=_avatar_url(contact.avatar),
    )


def normalize_ticket(ticket: raw.Ticket) -> Ticket:
    return Ticket(
        id=ticket.id,
        subject=ticket.subject or "",
        description=resolve_description(ticket),
        status=status_name(ticket.status),
        priority=priority_name(ticket.priority),
        requester=normalize_requester(ticket.requester),
        agent=normalize_agent(ticket.responder_id, ticket.responder),
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        tags=list(ticket.tags or []),
        type=ticket.type,
        source=ticket.source,
        group_id=ticket.group_id,
        product_id=ticket.product_id,
        custom_fields=dict(ticket.custom_fields or {}),
    )


def normalize_attachment(attachment: raw.Attachment) -> Attachment:
    name = _text(attachment.name) or f"attachment_{attachment.id}"
    return Attachment(
        id=attachment.id,
        name=name,
        content_type=_text(attachment.content_type) or DEFAULT_CONTENT_TYPE,
        size=attachment.size or 0,
        created_at=attachment.created_at,
        download_url=attachment_proxy_path(attachment.id, name),
    )


def normalize_conversation(conversation: raw.Conversation) -> Conversation:
    user = conversation.user
    user_name = user.name if user is not None else None
    user_email = user.email if user is not None else None
    return Conversation(
        id=conversation.id,
        body=conversation.body or "",
        body_text=conversation.body_text or "",
        from_email=conversation.from_email or "",
        to_emails=list(conversation.to_emails or []),
        cc_emails=list(conversation.cc_emails or []),
        bcc_emails=list(conversation.bcc_emails or []),
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        incoming=bool(conversation.incoming),
        private=bool(conversation.private),
        user=Author(
            name=author_name(user_name, conversation.from_email),
            email=_text(conversation.from_email) or _text(user_email) or "",
            avatar=_avatar_url(user.avatar) if user is not None else None,
        ),
        attachments=[normalize_attachment(a) for a in conversation.attachments or []],
    )


def normalize_conversations(conversations: Iterable[raw.Conversation]) -> list[Conversation]:
    return [normalize_conversation(c) for c in conversations]


def normalize_search(results: raw.SearchResults) -> SearchPage:
    return SearchPage(
        results=[normalize_ticket(t) for t in results.results],
        total=results.total,
    )
