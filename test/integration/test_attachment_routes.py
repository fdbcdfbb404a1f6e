from __future__ import annotations

import httpx
import respx
from fastapi.testclient import TestClient

from freshdesk_ticket_viewer.app.server import create_app

BASE = "https://acme.freshdesk.com/api/v2"


def test_attachment_download_sets_headers(make_settings) -> None:  # noqa: ANN001
    client = TestClient(create_app(make_settings()))

    with respx.mock:
        respx.get(f"{BASE}/attachments/77").mock(
            return_value=httpx.Response(
                200,
                content=b"%PDF-1.7 test",
                headers={
                    "Content-Type": "application/pdf",
                    "Content-Disposition": 'attachment; filename="invoice.pdf"',
                },
            )
        )
        response = client.get("/attachments/77?filename=ignored.pdf")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7 test"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="invoice.pdf"'
    assert response.headers["content-length"] == str(len(b"%PDF-1.7 test"))
    assert response.headers["cache-control"] == "private, max-age=3600"


def test_attachment_filename_falls_back_to_query_then_id(make_settings) -> None:  # noqa: ANN001
    client = TestClient(create_app(make_settings()))

    with respx.mock:
        respx.get(f"{BASE}/attachments/77").mock(
            return_value=httpx.Response(200, content=b"raw")
        )
        with_query = client.get("/attachments/77", params={"filename": "notes.txt"})
        without_query = client.get("/attachments/77")

    assert with_query.headers["content-disposition"] == 'attachment; filename="notes.txt"'
    assert with_query.headers["content-type"] == "application/octet-stream"
    assert without_query.headers["content-disposition"] == 'attachment; filename="attachment_77"'


def test_attachment_invalid_id_is_400(make_settings) -> None:  # noqa: ANN001
    client = TestClient(create_app(make_settings()))
    response = client.get("/attachments/abc")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid attachment ID"


def test_attachment_not_found_is_404(make_settings) -> None:  # noqa: ANN001
    client = TestClient(create_app(make_settings()))

    with respx.mock:
        respx.get(f"{BASE}/attachments/77").mock(return_value=httpx.Response(404))
        response = client.get("/attachments/77")

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "not_found"
    assert body["attachment_id"] == 77


def test_attachment_timeout_is_500(make_settings) -> None:  # noqa: ANN001
    client = TestClient(create_app(make_settings()))

    with respx.mock:
        respx.get(f"{BASE}/attachments/77").mock(side_effect=httpx.ReadTimeout("slow"))
        response = client.get("/attachments/77")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to download attachment"
    assert body["code"] == "timeout"
    assert "Attachment download timeout" in body["details"]
