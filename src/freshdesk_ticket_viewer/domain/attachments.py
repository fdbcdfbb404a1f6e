from __future__ import annotations

import codecs
import re
from urllib.parse import quote, unquote

_FILENAME_EXT_RE = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;\n]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r"filename\s*=\s*(\"[^\"]*\"|'[^']*'|[^;\n]*)", re.IGNORECASE)


def parse_content_disposition(value: str | None) -> str | None:
    """
    Extract the filename from a Content-Disposition header.

    Handles RFC 5987 `filename*=UTF-8''...` (preferred when present), quoted and
    unquoted `filename=` values. Returns None when no usable name is present.
    """
    if not value:
        return None

    ext = _FILENAME_EXT_RE.search(value)
    if ext is not None:
        charset = ext.group(1).strip() or "utf-8"
        try:
            codecs.lookup(charset)
            name = unquote(ext.group(2).strip().strip("\"'"), encoding=charset, errors="strict")
        except (LookupError, UnicodeDecodeError):
            name = ""
        if name:
            return name

    match = _FILENAME_RE.search(value)
    if match is None:
        return None
    name = match.group(1).strip().replace('"', "").replace("'", "")
    return name or None


def resolve_attachment_filename(
    header_filename: str | None,
    requested_filename: str | None,
    attachment_id: int,
) -> str:
    """Upstream header name first, then the name the caller asked for, then `attachment_<id>`."""
    for candidate in (header_filename, requested_filename):
        if candidate and candidate.strip():
            return candidate.strip()
    return f"attachment_{attachment_id}"


def content_disposition_for(filename: str) -> str:
    # Quotes and line breaks cannot appear inside the quoted-string form.
    safe = re.sub(r"[\"\r\n\\]", "_", filename)
    if safe.isascii():
        return f'attachment; filename="{safe}"'
    fallback = "".join(ch if ch.isascii() else "_" for ch in safe)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def attachment_proxy_path(attachment_id: int, filename: str | None) -> str:
    path = f"/attachments/{attachment_id}"
    if filename:
        path += f"?filename={quote(filename, safe='')}"
    return path
