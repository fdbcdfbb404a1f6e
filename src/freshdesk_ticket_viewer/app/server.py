from __future__ import annotations

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from freshdesk_ticket_viewer._version import __version__
from freshdesk_ticket_viewer.app.middleware.rate_limit import RateLimitMiddleware
from freshdesk_ticket_viewer.app.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
)
from freshdesk_ticket_viewer.app.responses import api_error
from freshdesk_ticket_viewer.app.retrieval import ClientFactory, TicketRetrieval
from freshdesk_ticket_viewer.app.routes.attachments import router as attachments_router
from freshdesk_ticket_viewer.app.routes.healthz import router as healthz_router
from freshdesk_ticket_viewer.app.routes.search import router as search_router
from freshdesk_ticket_viewer.app.routes.tickets import router as tickets_router
from freshdesk_ticket_viewer.config.settings import Settings


async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    context = {"request_id": request_id} if request_id else None
    return api_error(
        500,
        "Internal Server Error",
        details="An internal server error occurred.",
        code="internal_error",
        context=context,
        headers=headers,
    )


def _wire_app(
    app: FastAPI, *, settings: Settings, client_factory: ClientFactory | None
) -> None:
    app.state.settings = settings
    app.state.retrieval = TicketRetrieval(settings, client_factory=client_factory)

    app.add_middleware(RateLimitMiddleware, settings=settings)
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(Exception, _global_exception_handler)

    app.include_router(healthz_router)
    app.include_router(tickets_router)
    app.include_router(attachments_router)
    app.include_router(search_router)
    if settings.observability.metrics_enabled:
        from freshdesk_ticket_viewer.app.routes.metrics import router as metrics_router

        app.include_router(metrics_router)


def create_app(
    settings: Settings | None = None, *, client_factory: ClientFactory | None = None
) -> FastAPI:
    """Compose the app; without settings it runs unconfigured and answers with config errors."""
    app = FastAPI(title="freshdesk-ticket-viewer", version=__version__)
    _wire_app(
        app,
        settings=settings if settings is not None else Settings.from_mapping({}),
        client_factory=client_factory,
    )
    return app
