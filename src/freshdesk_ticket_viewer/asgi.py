"""ASGI entry point: `uvicorn freshdesk_ticket_viewer.asgi:app`."""
from __future__ import annotations

from freshdesk_ticket_viewer.runtime import configured_app

app = configured_app()
