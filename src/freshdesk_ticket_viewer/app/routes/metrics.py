from __future__ import annotations

import hmac

from fastapi import APIRouter, Request
from pydantic import SecretStr
from starlette.responses import PlainTextResponse, Response

from freshdesk_ticket_viewer.observability.metrics import render_latest

router = APIRouter()

_BEARER_PREFIX = "Bearer "


def _bearer_matches(authorization: str, expected: SecretStr) -> bool:
    """Constant-time comparison of `Authorization: Bearer <token>` against `expected`."""
    wanted = expected.get_secret_value().encode("utf-8")
    if not wanted or not authorization.startswith(_BEARER_PREFIX):
        return False
    provided = authorization[len(_BEARER_PREFIX):].strip().encode("utf-8")
    return bool(provided) and hmac.compare_digest(wanted, provided)


@router.get("/metrics")
def metrics(request: Request) -> Response:
    token = request.app.state.settings.observability.metrics_bearer_token
    if token is not None and not _bearer_matches(request.headers.get("Authorization", ""), token):
        return PlainTextResponse("Unauthorized\n", status_code=401)

    payload, content_type = render_latest()
    return Response(content=payload, headers={"Content-Type": content_type})
