"""Centralized API response helpers for consistent JSON error and success shapes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from starlette.responses import JSONResponse

from freshdesk_ticket_viewer.app.retrieval import RetrievalFailure


def api_error(
    status_code: int,
    error: str,
    *,
    details: str | None = None,
    code: str | None = None,
    context: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Return `{error, details?, code?, <context ids>}` with the given status."""
    content: dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    if code is not None:
        content["code"] = code
    if context:
        content.update(context)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def failure_response(failure: RetrievalFailure) -> JSONResponse:
    return JSONResponse(status_code=failure.status_code, content=failure.to_payload())
