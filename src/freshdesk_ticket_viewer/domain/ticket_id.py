from __future__ import annotations

import re
from typing import Any

_TICKET_URL_RE = re.compile(r"/tickets/(\d+)", re.ASCII)
_DIGITS_RE = re.compile(r"^\d+$", re.ASCII)
_ID_TEXT_RE = re.compile(r"^\+?(\d+)$", re.ASCII)


def coerce_ticket_id(value: Any) -> int | None:
    """Positive int from an int or a digit string (optional leading `+`); None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str) and (match := _ID_TEXT_RE.fullmatch(value.strip())):
        candidate = int(match.group(1))
    else:
        return None
    return candidate if candidate > 0 else None


def ticket_id_from_url(url: str) -> int | None:
    match = _TICKET_URL_RE.search(url or "")
    return coerce_ticket_id(match.group(1)) if match else None


def extract_ticket_id(query: str, *, search_type: str | None) -> int | None:
    """
    Extract a ticket ID from search input.

    `url` searches look for a `/tickets/<id>` segment anywhere in the text; every other
    type expects the whole (trimmed) query to be digits.
    """
    text = (query or "").strip()
    if search_type == "url":
        return ticket_id_from_url(text)
    return coerce_ticket_id(text) if _DIGITS_RE.fullmatch(text) else None
