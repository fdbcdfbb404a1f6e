from __future__ import annotations

import asyncio
import time
from typing import Any, NoReturn

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from freshdesk_ticket_viewer.adapters.freshdesk.errors import (
    AuthenticationError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
)
from freshdesk_ticket_viewer.adapters.freshdesk.models import (
    AttachmentDownload,
    Conversation,
    SearchFilters,
    SearchResults,
    Ticket,
)
from freshdesk_ticket_viewer.adapters.http_util import build_async_client, timeouts_for
from freshdesk_ticket_viewer.domain.attachments import parse_content_disposition
from freshdesk_ticket_viewer.domain.error_messages import ErrorMessages, format_upstream_error
from freshdesk_ticket_viewer.domain.ticket_id import ticket_id_from_url
from freshdesk_ticket_viewer.observability import metrics

log = structlog.get_logger(__name__)

DOMAIN_SUFFIX = ".freshdesk.com"
# Freshdesk API keys are sent as the Basic auth user; the password is ignored upstream.
_AUTH_PASSWORD = "X"

_CONVERSATIONS = TypeAdapter(list[Conversation])


def account_name(domain: str) -> str:
    """Reduce `https://acme.freshdesk.com/`, `acme.freshdesk.com` or `acme` to `acme`."""
    text = (domain or "").strip()
    if "://" in text:
        text = text.split("://", 1)[1]
    text = text.split("/", 1)[0].rstrip(".").lower()
    if text.endswith(DOMAIN_SUFFIX):
        text = text[: -len(DOMAIN_SUFFIX)]
    return text


def base_url_for_domain(domain: str) -> str:
    name = account_name(domain)
    if not name:
        raise ValueError("domain must name a Freshdesk account, e.g. acme or acme.freshdesk.com")
    return f"https://{name}{DOMAIN_SUFFIX}/api/v2/"


class AsyncFreshdeskClient:
    def __init__(
        self,
        *,
        domain: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        attachment_timeout_seconds: float = 15.0,
        per_page: int = 100,
        verify_tls: bool = True,
        trust_env: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = httpx.URL(base_url_for_domain(domain))
        self._auth = httpx.BasicAuth(api_key, _AUTH_PASSWORD)
        self._timeout_seconds = float(timeout_seconds)
        self._attachment_timeout_seconds = float(attachment_timeout_seconds)
        self._per_page = int(per_page)

        self._owns_http_client = http_client is None
        self._http = http_client or build_async_client(
            timeout_seconds=timeout_seconds,
            verify_tls=verify_tls,
            trust_env=trust_env,
        )

    @property
    def base_url(self) -> str:
        return str(self._base_url)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncFreshdeskClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> None:
        await self.aclose()

    async def get_ticket(self, ticket_id: int) -> Ticket:
        payload = await self._request_json(
            "ticket",
            f"tickets/{ticket_id}",
            params=[("include", "requester")],
        )
        return _validate(Ticket, payload, what=f"ticket {ticket_id}")

    async def get_ticket_from_url(self, url: str) -> Ticket:
        ticket_id = ticket_id_from_url(url)
        if ticket_id is None:
            raise InvalidInputError(ErrorMessages.INVALID_TICKET_URL)
        return await self.get_ticket(ticket_id)

    async def list_conversations(self, ticket_id: int, page: int = 1) -> list[Conversation]:
        payload = await self._request_json(
            "conversations",
            f"tickets/{ticket_id}/conversations",
            params=[("page", str(page)), ("per_page", str(self._per_page))],
        )
        try:
            return _CONVERSATIONS.validate_python(payload)
        except ValidationError as exc:
            raise UpstreamError(
                f"Freshdesk conversations response format unexpected for ticket {ticket_id}: "
                f"{exc!s}"
            ) from exc

    async def get_attachment(self, attachment_id: int) -> AttachmentDownload:
        response = await self._request(
            "attachment",
            f"attachments/{attachment_id}",
            headers={"Accept": "*/*"},
            timeout_seconds=self._attachment_timeout_seconds,
            follow_redirects=True,
        )
        return AttachmentDownload(
            content=response.content,
            content_type=response.headers.get("Content-Type") or "application/octet-stream",
            filename=parse_content_disposition(response.headers.get("Content-Disposition")),
        )

    async def search_tickets(
        self, query: str, filters: SearchFilters | None = None
    ) -> SearchResults:
        params = [("query", query)]
        if filters is not None:
            params.extend(filters.to_params())
        payload = await self._request_json("search", "search/tickets", params=params)
        return _validate(SearchResults, payload, what="search results")

    async def _request_json(
        self,
        operation: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
    ) -> Any:
        response = await self._request(operation, path, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                ErrorMessages.INVALID_JSON.format(status=response.status_code),
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def _request(
        self,
        operation: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        timeout_seconds: float | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        seconds = timeout_seconds or self._timeout_seconds
        url = self._base_url.join(path)
        started = time.monotonic()
        try:
            # httpx timeouts bound each phase; the outer deadline bounds the whole exchange.
            async with asyncio.timeout(seconds):
                response = await self._http.request(
                    "GET",
                    url,
                    params=params,
                    headers=headers,
                    auth=self._auth,
                    timeout=timeouts_for(seconds),
                    follow_redirects=follow_redirects,
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            self._observe(operation, "timeout", started)
            message = (
                ErrorMessages.ATTACHMENT_TIMEOUT
                if operation == "attachment"
                else ErrorMessages.TIMEOUT
            )
            log.warning("freshdesk.request_timeout", operation=operation, timeout=seconds)
            raise UpstreamTimeoutError(message) from exc
        except httpx.RequestError as exc:
            self._observe(operation, "network_error", started)
            log.warning("freshdesk.request_network_error", operation=operation, error=str(exc))
            raise NetworkError(ErrorMessages.NETWORK) from exc

        if 200 <= response.status_code < 300:
            self._observe(operation, "ok", started)
            return response

        self._observe(operation, f"http_{response.status_code}", started)
        self._raise_for_status(response, operation=operation)

    def _observe(self, operation: str, outcome: str, started: float) -> None:
        metrics.upstream_requests_total.labels(operation=operation, outcome=outcome).inc()
        metrics.upstream_request_seconds.labels(operation=operation).observe(
            time.monotonic() - started
        )

    def _raise_for_status(self, response: httpx.Response, *, operation: str) -> NoReturn:
        status = response.status_code
        url = str(response.request.url)
        log.info("freshdesk.request_failed", operation=operation, status=status, url=url)

        if status == 401:
            raise AuthenticationError(ErrorMessages.AUTHENTICATION)
        if status == 404:
            raise NotFoundError(f"Freshdesk resource not found (status=404) at {url}")

        body = response.text
        raise UpstreamError(format_upstream_error(status, body), status_code=status, body=body)


def _validate(model: type[BaseModel], payload: Any, *, what: str) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamError(f"Freshdesk {what} response format unexpected: {exc!s}") from exc
