from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from freshdesk_ticket_viewer.adapters.freshdesk.client import AsyncFreshdeskClient
from freshdesk_ticket_viewer.adapters.freshdesk.models import SearchFilters
from freshdesk_ticket_viewer.app.retrieval import (
    RetrievalFailure,
    Retrieved,
    TicketRetrieval,
)
from freshdesk_ticket_viewer.domain.errors import ErrorKind
from freshdesk_ticket_viewer.domain.records import SearchPage, TicketView

BASE = "https://acme.freshdesk.com/api/v2"

_TICKET = {
    "id": 12345,
    "subject": "VPN down",
    "description_text": "It is down",
    "status": 2,
    "priority": 3,
    "requester": {"name": "Ann", "email": "ann@example.com"},
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-02T00:00:00Z",
}


def _no_network_factory() -> AsyncFreshdeskClient:
    raise AssertionError("no upstream client may be built for this request")


def _retrieval(make_settings, **overrides) -> TicketRetrieval:  # noqa: ANN001, ANN003
    return TicketRetrieval(make_settings(overrides or None))


def _unconfigured(make_settings, freshdesk: dict) -> TicketRetrieval:  # noqa: ANN001
    return TicketRetrieval(
        make_settings({"freshdesk": freshdesk}), client_factory=_no_network_factory
    )


@pytest.mark.parametrize("raw_id", ["abc", "0", "-1", "12abc", "", "1.5"])
def test_invalid_ticket_id_is_rejected_without_network(make_settings, raw_id: str) -> None:
    retrieval = TicketRetrieval(make_settings(), client_factory=_no_network_factory)

    for call in (retrieval.get_ticket, retrieval.get_conversations, retrieval.get_ticket_view):
        result = asyncio.run(call(raw_id))
        assert isinstance(result, RetrievalFailure)
        assert result.kind is ErrorKind.INVALID_INPUT
        assert result.status_code == 400
        assert result.error == "Invalid ticket ID"


def test_invalid_attachment_id_is_rejected_without_network(make_settings) -> None:
    retrieval = TicketRetrieval(make_settings(), client_factory=_no_network_factory)
    result = asyncio.run(retrieval.get_attachment("nope"))
    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 400
    assert result.error == "Invalid attachment ID"


@pytest.mark.parametrize(
    ("freshdesk", "missing"),
    [
        ({"domain": "", "api_key": "k"}, "FRESHDESK_DOMAIN"),
        ({"domain": "your-domain", "api_key": "k"}, "FRESHDESK_DOMAIN"),
        ({"domain": "your-domain.freshdesk.com", "api_key": "k"}, "FRESHDESK_DOMAIN"),
        ({"domain": "acme", "api_key": ""}, "FRESHDESK_API_KEY"),
        ({"domain": "acme", "api_key": "your-api-key"}, "FRESHDESK_API_KEY"),
    ],
)
def test_unconfigured_upstream_fails_every_operation(
    make_settings, freshdesk: dict, missing: str
) -> None:
    retrieval = _unconfigured(make_settings, freshdesk)
    assert retrieval.configured is False

    calls = [
        retrieval.get_ticket("12345"),
        retrieval.get_ticket("not-a-number"),
        retrieval.get_conversations("12345"),
        retrieval.get_ticket_view("12345"),
        retrieval.get_attachment("1"),
        retrieval.search("number", "12345"),
        retrieval.search("domain", "example.com"),
    ]
    for coro in calls:
        result = asyncio.run(coro)
        assert isinstance(result, RetrievalFailure)
        assert result.kind is ErrorKind.CONFIGURATION
        assert result.status_code == 500
        assert result.error == "Configuration Error"
        assert missing in result.details


def test_get_ticket_returns_normalized_record(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(200, json=_TICKET))
        result = asyncio.run(_retrieval(make_settings).get_ticket("12345"))

    assert isinstance(result, Retrieved)
    assert result.value.id == 12345
    assert result.value.status == "open"
    assert result.value.priority == "high"
    assert result.value.agent is None


def test_get_ticket_not_found_is_ticket_scoped(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/999").mock(return_value=httpx.Response(404))
        result = asyncio.run(_retrieval(make_settings).get_ticket("999"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 404
    assert result.to_payload() == {
        "error": "Ticket Not Found",
        "details": "Ticket #999 does not exist or you don't have permission to access it.",
        "code": "not_found",
        "ticket_id": 999,
    }


@pytest.mark.parametrize(
    ("response", "kind"),
    [
        (httpx.Response(401), ErrorKind.AUTHENTICATION),
        (httpx.Response(500, text="boom"), ErrorKind.UPSTREAM),
        (httpx.ReadTimeout("slow"), ErrorKind.TIMEOUT),
        (httpx.ConnectError("refused"), ErrorKind.NETWORK),
    ],
)
def test_get_ticket_other_failures_are_500(make_settings, response, kind: ErrorKind) -> None:  # noqa: ANN001
    with respx.mock:
        route = respx.get(f"{BASE}/tickets/5")
        if isinstance(response, Exception):
            route.mock(side_effect=response)
        else:
            route.mock(return_value=response)
        result = asyncio.run(_retrieval(make_settings).get_ticket("5"))

    assert isinstance(result, RetrievalFailure)
    assert result.kind is kind
    assert result.status_code == 500
    assert result.error == "Failed to Fetch Ticket"
    assert result.details
    assert result.context == {"ticket_id": 5}


def test_get_conversations_not_found_is_empty_list(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/5/conversations").mock(return_value=httpx.Response(404))
        result = asyncio.run(_retrieval(make_settings).get_conversations("5"))

    assert isinstance(result, Retrieved)
    assert result.value == []


def test_get_conversations_rejects_bad_page(make_settings) -> None:
    retrieval = TicketRetrieval(make_settings(), client_factory=_no_network_factory)
    result = asyncio.run(retrieval.get_conversations("5", page="zero"))
    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 400


def test_get_conversations_other_failure_is_500(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/5/conversations").mock(return_value=httpx.Response(401))
        result = asyncio.run(_retrieval(make_settings).get_conversations("5"))

    assert isinstance(result, RetrievalFailure)
    assert result.kind is ErrorKind.AUTHENTICATION
    assert result.error == "Failed to Fetch Conversations"


def test_ticket_view_combines_ticket_and_conversations(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(200, json=_TICKET))
        respx.get(f"{BASE}/tickets/12345/conversations").mock(
            return_value=httpx.Response(
                200, json=[{"id": 1, "body_text": "first", "from_email": "jane@x.com"}]
            )
        )
        result = asyncio.run(_retrieval(make_settings).get_ticket_view("12345"))

    assert isinstance(result, Retrieved)
    assert isinstance(result.value, TicketView)
    assert result.value.ticket.subject == "VPN down"
    assert [c.user.name for c in result.value.conversations] == ["jane"]


def test_ticket_view_degrades_when_conversations_fail(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(200, json=_TICKET))
        respx.get(f"{BASE}/tickets/12345/conversations").mock(
            return_value=httpx.Response(500, text="boom")
        )
        result = asyncio.run(_retrieval(make_settings).get_ticket_view("12345"))

    assert isinstance(result, Retrieved)
    assert result.value.conversations == []


def test_ticket_view_fails_when_ticket_missing(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/999").mock(return_value=httpx.Response(404))
        respx.get(f"{BASE}/tickets/999/conversations").mock(return_value=httpx.Response(404))
        result = asyncio.run(_retrieval(make_settings).get_ticket_view("999"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 404
    assert result.context == {"ticket_id": 999}


def test_get_attachment_resolves_filename(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/attachments/7").mock(
            return_value=httpx.Response(200, content=b"data", headers={"Content-Type": "text/plain"})
        )
        result = asyncio.run(_retrieval(make_settings).get_attachment("7", "notes.txt"))

    assert isinstance(result, Retrieved)
    assert result.value.content == b"data"
    assert result.value.content_type == "text/plain"
    assert result.value.filename == "notes.txt"


def test_get_attachment_not_found(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/attachments/7").mock(return_value=httpx.Response(404))
        result = asyncio.run(_retrieval(make_settings).get_attachment("7"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 404
    assert result.context == {"attachment_id": 7}


def test_get_attachment_timeout_is_500(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/attachments/7").mock(side_effect=httpx.ReadTimeout("slow"))
        result = asyncio.run(_retrieval(make_settings).get_attachment("7"))

    assert isinstance(result, RetrievalFailure)
    assert result.kind is ErrorKind.TIMEOUT
    assert result.status_code == 500
    assert result.error == "Failed to download attachment"


@pytest.mark.parametrize("query", [None, "", "   "])
def test_search_requires_query(make_settings, query) -> None:  # noqa: ANN001
    retrieval = TicketRetrieval(make_settings(), client_factory=_no_network_factory)
    result = asyncio.run(retrieval.search("number", query))
    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 400
    assert result.error == "Search query is required"


@pytest.mark.parametrize(
    ("search_type", "query"),
    [("number", "abc"), ("number", "#12"), ("url", "https://acme.freshdesk.com/a/contacts/1")],
)
def test_search_without_extractable_id(make_settings, search_type: str, query: str) -> None:
    retrieval = TicketRetrieval(make_settings(), client_factory=_no_network_factory)
    result = asyncio.run(retrieval.search(search_type, query))
    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 400
    assert result.error == "Could not extract ticket ID from input"


def test_search_by_url_returns_ticket_view(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(200, json=_TICKET))
        respx.get(f"{BASE}/tickets/12345/conversations").mock(
            return_value=httpx.Response(200, json=[])
        )
        result = asyncio.run(
            _retrieval(make_settings).search("url", "https://acme.freshdesk.com/a/tickets/12345")
        )

    assert isinstance(result, Retrieved)
    assert isinstance(result.value, TicketView)
    assert result.value.ticket.id == 12345


def test_search_by_domain_builds_requester_query(make_settings) -> None:
    with respx.mock:
        route = respx.get(f"{BASE}/search/tickets").mock(
            return_value=httpx.Response(200, json={"results": [_TICKET], "total": 1})
        )
        result = asyncio.run(
            _retrieval(make_settings).search(
                "domain", "@example.com", SearchFilters(status=("2",))
            )
        )
        params = route.calls.last.request.url.params

    assert params.get("query") == "requester_email:*@example.com"
    assert params.get_list("status") == ["2"]
    assert isinstance(result, Retrieved)
    assert isinstance(result.value, SearchPage)
    assert result.value.total == 1
    assert result.value.results[0].requester.name == "Ann"


def test_search_by_domain_failure(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/search/tickets").mock(return_value=httpx.Response(400, text="bad"))
        result = asyncio.run(_retrieval(make_settings).search("domain", "example.com"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 500
    assert result.error == "Failed to search tickets by domain"


def test_ticket_view_degrades_when_conversations_cannot_be_decoded(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/5").mock(return_value=httpx.Response(200, json=_TICKET))
        respx.get(f"{BASE}/tickets/5/conversations").mock(
            side_effect=httpx.DecodingError("bad gzip")
        )
        result = asyncio.run(_retrieval(make_settings).get_ticket_view("5"))

    assert isinstance(result, Retrieved)
    assert result.value.conversations == []


def test_get_attachment_redirect_loop_keeps_attachment_shape(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/attachments/7").mock(side_effect=httpx.TooManyRedirects("loop"))
        result = asyncio.run(_retrieval(make_settings).get_attachment("7"))

    assert isinstance(result, RetrievalFailure)
    assert result.kind is ErrorKind.NETWORK
    assert result.status_code == 500
    assert result.to_payload()["error"] == "Failed to download attachment"
    assert result.context == {"attachment_id": 7}


def test_search_by_number_upstream_failure_is_search_failure(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(503, text="down"))
        respx.get(f"{BASE}/tickets/12345/conversations").mock(
            return_value=httpx.Response(200, json=[])
        )
        result = asyncio.run(_retrieval(make_settings).search("number", "12345"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 500
    assert result.error == "Failed to search ticket"
    assert result.context == {"ticket_id": 12345}


def test_search_by_number_not_found_keeps_ticket_title(make_settings) -> None:
    with respx.mock:
        respx.get(f"{BASE}/tickets/12345").mock(return_value=httpx.Response(404))
        respx.get(f"{BASE}/tickets/12345/conversations").mock(return_value=httpx.Response(404))
        result = asyncio.run(_retrieval(make_settings).search("number", "12345"))

    assert isinstance(result, RetrievalFailure)
    assert result.status_code == 404
    assert result.error == "Ticket Not Found"
