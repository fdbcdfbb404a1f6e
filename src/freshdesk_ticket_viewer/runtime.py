from __future__ import annotations

import argparse

import uvicorn
from fastapi import FastAPI

from freshdesk_ticket_viewer.app.server import create_app
from freshdesk_ticket_viewer.config.load import load_settings
from freshdesk_ticket_viewer.config.settings import Settings
from freshdesk_ticket_viewer.observability.logger import configure_logging


def configured_app(settings: Settings | None = None) -> FastAPI:
    """Load settings (unless given), configure logging and compose the app."""
    settings = settings if settings is not None else load_settings()
    observability = settings.observability
    configure_logging(
        log_level=observability.log_level,
        log_format=observability.log_format,
        json_logs=observability.json_logs,
    )
    return create_app(settings)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="freshdesk-ticket-viewer-serve",
        description="Serve the Freshdesk ticket viewer API with uvicorn",
    )
    parser.add_argument("--host", help="Bind address (default: server.host)")
    parser.add_argument("--port", type=int, help="Bind port (default: server.port)")
    args = parser.parse_args(argv)

    settings = load_settings()
    uvicorn.run(
        configured_app(settings),
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        log_config=None,
    )
    return 0
