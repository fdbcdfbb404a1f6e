from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request

from freshdesk_ticket_viewer._version import __version__

router = APIRouter()

SERVICE_NAME = "freshdesk-ticket-viewer"


@router.get("/healthz")
def healthz(request: Request) -> dict[str, str | bool]:
    out: dict[str, str | bool] = {"status": "ok", "time": datetime.now(UTC).isoformat()}
    retrieval = getattr(request.app.state, "retrieval", None)
    if retrieval is not None:
        out["upstream_configured"] = retrieval.configured
    settings = getattr(request.app.state, "settings", None)
    if settings is None or not settings.observability.healthz_omit_version:
        out["service"] = SERVICE_NAME
        out["version"] = __version__
    return out
