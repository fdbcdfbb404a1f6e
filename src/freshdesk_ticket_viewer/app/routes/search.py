from __future__ import annotations

from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse, Response

from freshdesk_ticket_viewer.adapters.freshdesk.models import SearchFilters
from freshdesk_ticket_viewer.app.responses import failure_response
from freshdesk_ticket_viewer.app.retrieval import RetrievalFailure
from freshdesk_ticket_viewer.app.routes.tickets import retrieval_for

router = APIRouter()


@router.get("/search")
async def search(
    request: Request,
    q: str | None = None,
    type: str | None = None,  # noqa: A002 - public query parameter name
    status: list[str] = Query(default=[]),
    priority: list[str] = Query(default=[]),
    requester_email: str | None = None,
    agent_email: str | None = None,
    created_since: str | None = None,
    updated_since: str | None = None,
) -> Response:
    filters = SearchFilters(
        status=tuple(status),
        priority=tuple(priority),
        requester_email=requester_email,
        agent_email=agent_email,
        created_since=created_since,
        updated_since=updated_since,
    )
    result = await retrieval_for(request).search(type, q, filters)
    if isinstance(result, RetrievalFailure):
        return failure_response(result)
    return JSONResponse(result.value.model_dump(mode="json"))
