from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse, Response

from freshdesk_ticket_viewer.app.responses import failure_response
from freshdesk_ticket_viewer.app.retrieval import RetrievalFailure, TicketRetrieval

router = APIRouter()


def retrieval_for(request: Request) -> TicketRetrieval:
    return request.app.state.retrieval


# IDs are taken as strings so malformed values get our 400 shape rather than a 422.
@router.get("/tickets/{ticket_id}")
async def get_ticket(request: Request, ticket_id: str) -> Response:
    result = await retrieval_for(request).get_ticket(ticket_id)
    if isinstance(result, RetrievalFailure):
        return failure_response(result)
    return JSONResponse(result.value.model_dump(mode="json"))


@router.get("/tickets/{ticket_id}/conversations")
async def get_conversations(request: Request, ticket_id: str, page: str = "1") -> Response:
    result = await retrieval_for(request).get_conversations(ticket_id, page=page)
    if isinstance(result, RetrievalFailure):
        return failure_response(result)
    return JSONResponse([c.model_dump(mode="json") for c in result.value])


@router.get("/tickets/{ticket_id}/view")
async def get_ticket_view(request: Request, ticket_id: str) -> Response:
    result = await retrieval_for(request).get_ticket_view(ticket_id)
    if isinstance(result, RetrievalFailure):
        return failure_response(result)
    return JSONResponse(result.value.model_dump(mode="json"))
