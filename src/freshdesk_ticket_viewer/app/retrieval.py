"""Ticket retrieval: check configuration, validate input, call Freshdesk, normalize.

Every operation returns either `Retrieved` or `RetrievalFailure`; upstream exceptions
never escape this module. Routes and the CLI branch on `RetrievalFailure.kind`.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

import structlog

from freshdesk_ticket_viewer.adapters.freshdesk.client import AsyncFreshdeskClient
from freshdesk_ticket_viewer.adapters.freshdesk.errors import FreshdeskError
from freshdesk_ticket_viewer.adapters.freshdesk.models import SearchFilters
from freshdesk_ticket_viewer.config.settings import Settings
from freshdesk_ticket_viewer.config.validate import upstream_config_issues
from freshdesk_ticket_viewer.domain.attachments import resolve_attachment_filename
from freshdesk_ticket_viewer.domain.error_messages import ErrorMessages, ErrorTitles
from freshdesk_ticket_viewer.domain.errors import ErrorKind, http_status_for
from freshdesk_ticket_viewer.domain.normalize import (
    normalize_conversations,
    normalize_search,
    normalize_ticket,
)
from freshdesk_ticket_viewer.domain.records import Conversation, SearchPage, Ticket, TicketView
from freshdesk_ticket_viewer.domain.ticket_id import coerce_ticket_id, extract_ticket_id
from freshdesk_ticket_viewer.observability import metrics

log = structlog.get_logger(__name__)

_T = TypeVar("_T")

ClientFactory = Callable[[], AsyncFreshdeskClient]


@dataclass(frozen=True, slots=True)
class Retrieved(Generic[_T]):
    value: _T


@dataclass(frozen=True, slots=True)
class RetrievalFailure:
    kind: ErrorKind
    error: str
    details: str
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return http_status_for(self.kind)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details, "code": self.kind.value, **self.context}


@dataclass(frozen=True, slots=True)
class AttachmentFile:
    content: bytes
    content_type: str
    filename: str


def client_factory_for(settings: Settings) -> ClientFactory:
    freshdesk = settings.freshdesk
    transport = settings.hardening.transport

    def _build() -> AsyncFreshdeskClient:
        return AsyncFreshdeskClient(
            domain=freshdesk.domain,
            api_key=freshdesk.api_key.get_secret_value(),
            timeout_seconds=freshdesk.timeout_seconds,
            attachment_timeout_seconds=freshdesk.attachment_timeout_seconds,
            per_page=freshdesk.conversations_per_page,
            verify_tls=freshdesk.verify_tls,
            trust_env=transport.trust_env,
        )

    return _build


class TicketRetrieval:
    def __init__(self, settings: Settings, *, client_factory: ClientFactory | None = None) -> None:
        # Checked once; an unconfigured deployment fails every request before any network call.
        self._config_issues = upstream_config_issues(settings.freshdesk)
        self._client_factory = client_factory or client_factory_for(settings)
        if self._config_issues:
            log.warning(
                "retrieval.upstream_not_configured",
                paths=[issue.path for issue in self._config_issues],
            )

    @property
    def configured(self) -> bool:
        return not self._config_issues

    async def get_ticket(self, raw_id: Any) -> Retrieved[Ticket] | RetrievalFailure:
        if (failure := self._config_failure()) is not None:
            return failure
        ticket_id = coerce_ticket_id(raw_id)
        if ticket_id is None:
            return _invalid_ticket_id(raw_id)

        async with self._client_factory() as client:
            try:
                ticket = await client.get_ticket(ticket_id)
            except FreshdeskError as exc:
                return _ticket_failure(exc, ticket_id)
        return Retrieved(normalize_ticket(ticket))

    async def get_conversations(
        self, raw_id: Any, page: Any = 1
    ) -> Retrieved[list[Conversation]] | RetrievalFailure:
        if (failure := self._config_failure()) is not None:
            return failure
        ticket_id = coerce_ticket_id(raw_id)
        if ticket_id is None:
            return _invalid_ticket_id(raw_id)
        page_number = coerce_ticket_id(page)
        if page_number is None:
            return _fail(
                ErrorKind.INVALID_INPUT,
                "Invalid page",
                f"{page!r} is not a valid page number",
                ticket_id=ticket_id,
            )

        async with self._client_factory() as client:
            try:
                conversations = await client.list_conversations(ticket_id, page=page_number)
            except FreshdeskError as exc:
                if exc.kind is ErrorKind.NOT_FOUND:
                    log.info("retrieval.conversations_not_found", ticket_id=ticket_id)
                    return Retrieved([])
                return _fail(
                    exc.kind,
                    ErrorTitles.CONVERSATIONS_FETCH_FAILED,
                    str(exc),
                    ticket_id=ticket_id,
                )
        return Retrieved(normalize_conversations(conversations))

    async def get_ticket_view(self, raw_id: Any) -> Retrieved[TicketView] | RetrievalFailure:
        """Ticket plus its first page of conversations, fetched concurrently."""
        if (failure := self._config_failure()) is not None:
            return failure
        ticket_id = coerce_ticket_id(raw_id)
        if ticket_id is None:
            return _invalid_ticket_id(raw_id)

        async with self._client_factory() as client:
            ticket_result, conversations_result = await asyncio.gather(
                client.get_ticket(ticket_id),
                client.list_conversations(ticket_id),
                return_exceptions=True,
            )

        if isinstance(ticket_result, FreshdeskError):
            return _ticket_failure(ticket_result, ticket_id)
        if isinstance(ticket_result, BaseException):
            raise ticket_result

        if isinstance(conversations_result, FreshdeskError):
            # A view without conversations is still useful; degrade instead of failing.
            log.warning(
                "retrieval.view_conversations_degraded",
                ticket_id=ticket_id,
                kind=conversations_result.kind.value,
                error=str(conversations_result),
            )
            conversations = []
        elif isinstance(conversations_result, BaseException):
            raise conversations_result
        else:
            conversations = normalize_conversations(conversations_result)

        return Retrieved(
            TicketView(ticket=normalize_ticket(ticket_result), conversations=conversations)
        )

    async def get_attachment(
        self, raw_id: Any, requested_filename: str | None = None
    ) -> Retrieved[AttachmentFile] | RetrievalFailure:
        if (failure := self._config_failure()) is not None:
            return failure
        attachment_id = coerce_ticket_id(raw_id)
        if attachment_id is None:
            return _fail(
                ErrorKind.INVALID_INPUT,
                ErrorTitles.INVALID_ATTACHMENT_ID,
                f"{raw_id!r} is not a valid attachment ID",
            )

        async with self._client_factory() as client:
            try:
                download = await client.get_attachment(attachment_id)
            except FreshdeskError as exc:
                if exc.kind is ErrorKind.NOT_FOUND:
                    return _fail(
                        exc.kind,
                        ErrorTitles.ATTACHMENT_NOT_FOUND,
                        ErrorMessages.ATTACHMENT_NOT_FOUND.format(attachment_id=attachment_id),
                        attachment_id=attachment_id,
                    )
                return _fail(
                    exc.kind,
                    ErrorTitles.ATTACHMENT_FETCH_FAILED,
                    str(exc),
                    attachment_id=attachment_id,
                )

        filename = resolve_attachment_filename(download.filename, requested_filename, attachment_id)
        log.info(
            "retrieval.attachment_fetched",
            attachment_id=attachment_id,
            size=len(download.content),
            content_type=download.content_type,
        )
        return Retrieved(
            AttachmentFile(
                content=download.content,
                content_type=download.content_type,
                filename=filename,
            )
        )

    async def search_by_domain(
        self, domain: str, filters: SearchFilters | None = None
    ) -> Retrieved[SearchPage] | RetrievalFailure:
        if (failure := self._config_failure()) is not None:
            return failure
        email_domain = (domain or "").strip().lstrip("@")
        if not email_domain:
            return _fail(
                ErrorKind.INVALID_INPUT,
                ErrorTitles.SEARCH_QUERY_REQUIRED,
                ErrorMessages.SEARCH_DOMAIN_REQUIRED,
            )

        async with self._client_factory() as client:
            try:
                results = await client.search_tickets(f"requester_email:*@{email_domain}", filters)
            except FreshdeskError as exc:
                return _fail(exc.kind, ErrorTitles.SEARCH_DOMAIN_FAILED, str(exc))

        page = normalize_search(results)
        log.info("retrieval.domain_search", domain=email_domain, found=len(page.results))
        return Retrieved(page)

    async def search(
        self,
        search_type: str | None,
        query: str | None,
        filters: SearchFilters | None = None,
    ) -> Retrieved[SearchPage] | Retrieved[TicketView] | RetrievalFailure:
        """`domain` lists tickets by requester domain; `number`/`url` (default) open one ticket."""
        if (failure := self._config_failure()) is not None:
            return failure
        if not query or not query.strip():
            return _fail(
                ErrorKind.INVALID_INPUT,
                ErrorTitles.SEARCH_QUERY_REQUIRED,
                ErrorTitles.SEARCH_QUERY_REQUIRED,
            )
        if search_type == "domain":
            return await self.search_by_domain(query, filters)

        ticket_id = extract_ticket_id(query, search_type=search_type)
        if ticket_id is None:
            return _fail(
                ErrorKind.INVALID_INPUT,
                ErrorTitles.SEARCH_NO_TICKET_ID,
                ErrorMessages.SEARCH_NO_TICKET_ID,
            )
        result = await self.get_ticket_view(ticket_id)
        if isinstance(result, RetrievalFailure) and result.kind is not ErrorKind.NOT_FOUND:
            return replace(result, error=ErrorTitles.SEARCH_FAILED)
        return result

    def _config_failure(self) -> RetrievalFailure | None:
        if not self._config_issues:
            return None
        return _fail(
            ErrorKind.CONFIGURATION,
            ErrorTitles.CONFIGURATION,
            " ".join(issue.message for issue in self._config_issues),
        )


def _fail(kind: ErrorKind, error: str, details: str, **context: Any) -> RetrievalFailure:
    metrics.retrieval_failures_total.labels(kind=kind.value).inc()
    log.info("retrieval.failed", kind=kind.value, error=error, **context)
    return RetrievalFailure(kind=kind, error=error, details=details, context=context)


def _invalid_ticket_id(raw_id: Any) -> RetrievalFailure:
    return _fail(
        ErrorKind.INVALID_INPUT,
        ErrorTitles.INVALID_TICKET_ID,
        f"{raw_id!r} is not a valid ticket ID",
    )


def _ticket_failure(exc: FreshdeskError, ticket_id: int) -> RetrievalFailure:
    if exc.kind is ErrorKind.NOT_FOUND:
        return _fail(
            exc.kind,
            ErrorTitles.TICKET_NOT_FOUND,
            ErrorMessages.TICKET_NOT_FOUND.format(ticket_id=ticket_id),
            ticket_id=ticket_id,
        )
    return _fail(exc.kind, ErrorTitles.TICKET_FETCH_FAILED, str(exc), ticket_id=ticket_id)
