from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import Response

from freshdesk_ticket_viewer.app.responses import failure_response
from freshdesk_ticket_viewer.app.retrieval import RetrievalFailure
from freshdesk_ticket_viewer.app.routes.tickets import retrieval_for
from freshdesk_ticket_viewer.domain.attachments import content_disposition_for

router = APIRouter()

_CACHE_CONTROL = "private, max-age=3600"


@router.get("/attachments/{attachment_id}")
async def download_attachment(
    request: Request, attachment_id: str, filename: str | None = None
) -> Response:
    result = await retrieval_for(request).get_attachment(attachment_id, filename)
    if isinstance(result, RetrievalFailure):
        return failure_response(result)

    attachment = result.value
    return Response(
        content=attachment.content,
        headers={
            "Content-Type": attachment.content_type,
            "Content-Disposition": content_disposition_for(attachment.filename),
            "Content-Length": str(len(attachment.content)),
            "Cache-Control": _CACHE_CONTROL,
        },
    )
