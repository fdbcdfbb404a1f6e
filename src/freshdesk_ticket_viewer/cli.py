"""CLI commands for freshdesk-ticket-viewer.

This module provides command-line utilities for:
- Validating configuration
- Dumping configuration (with secrets redacted)
- Showing deprecated environment variables
- Fetching one ticket view as JSON
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

from freshdesk_ticket_viewer.app.retrieval import RetrievalFailure, TicketRetrieval
from freshdesk_ticket_viewer.config.env_aliases import _DEPRECATED_ALIASES
from freshdesk_ticket_viewer.config.load import load_settings
from freshdesk_ticket_viewer.config.redact import redact_settings_dict
from freshdesk_ticket_viewer.config.settings import Settings
from freshdesk_ticket_viewer.config.validate import ConfigValidationError, upstream_config_issues
from freshdesk_ticket_viewer.observability.logger import configure_logging

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 2


def _settings_or_none(failure_prefix: str) -> Settings | None:
    try:
        return load_settings()
    except ConfigValidationError as e:
        print(f"✗ {failure_prefix}: {e}", file=sys.stderr)
        return None


def cmd_validate_config(args: argparse.Namespace) -> int:
    """Exit 0 when configuration loads and names a Freshdesk account, else 1."""
    settings = _settings_or_none("Configuration is invalid")
    if settings is None:
        return EXIT_FAILURE

    issues = upstream_config_issues(settings.freshdesk)
    if issues:
        print("✗ Freshdesk account is not configured:", file=sys.stderr)
        for issue in issues:
            print(f"  - {issue.path}: {issue.message}", file=sys.stderr)
        return EXIT_FAILURE

    freshdesk = settings.freshdesk
    print("✓ Configuration is valid")
    print(f"  - Freshdesk domain: {freshdesk.domain}")
    print(f"  - Timeouts: {freshdesk.timeout_seconds}s (attachments {freshdesk.attachment_timeout_seconds}s)")
    print(f"  - Metrics enabled: {settings.observability.metrics_enabled}")
    return EXIT_OK


def cmd_dump_config(args: argparse.Namespace) -> int:
    settings = _settings_or_none("Failed to load configuration")
    if settings is None:
        return EXIT_FAILURE
    redacted = redact_settings_dict(settings.model_dump(mode="json"))
    print(json.dumps(redacted, indent=2, default=str))
    return EXIT_OK


def cmd_show_deprecated(args: argparse.Namespace) -> int:
    in_use = [
        (old_name, new_name)
        for old_name, new_name in _DEPRECATED_ALIASES.items()
        if old_name in os.environ
    ]
    if not in_use:
        print("No deprecated environment variables in use.")
        return EXIT_OK

    print("Deprecated environment variables detected:\n")
    for old_name, new_name in in_use:
        status = "has canonical override" if new_name in os.environ else "NEEDS MIGRATION"
        print(f"  {old_name} → {new_name} ({status})")
    print("\nThese variables will be removed in a future version.")
    print("Please migrate to the canonical names.")
    return EXIT_OK


def cmd_get_ticket(args: argparse.Namespace) -> int:
    """Print a ticket with its conversations, normalized, as JSON."""
    settings = _settings_or_none("Failed to load configuration")
    if settings is None:
        return EXIT_FAILURE

    # stdout carries the JSON document; logs go to stderr.
    configure_logging(
        log_level=settings.observability.log_level,
        json_logs=settings.observability.json_logs,
        log_format=settings.observability.log_format,
        stream=sys.stderr,
    )
    result = asyncio.run(TicketRetrieval(settings).get_ticket_view(args.ticket_id))
    if isinstance(result, RetrievalFailure):
        print(json.dumps(result.to_payload(), indent=2), file=sys.stderr)
        return EXIT_NOT_FOUND if result.status_code == 404 else EXIT_FAILURE

    print(json.dumps(result.value.model_dump(mode="json"), indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="freshdesk-ticket-viewer",
        description="Freshdesk ticket viewer CLI utilities",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    commands = (
        ("validate-config", "Validate configuration and exit", cmd_validate_config),
        ("dump-config", "Dump configuration as JSON (secrets redacted)", cmd_dump_config),
        ("show-deprecated", "Show deprecated environment variables in use", cmd_show_deprecated),
    )
    for name, help_text, func in commands:
        subparsers.add_parser(name, help=help_text).set_defaults(func=func)

    ticket_parser = subparsers.add_parser(
        "get-ticket",
        help="Fetch a ticket and its conversations as normalized JSON",
    )
    ticket_parser.add_argument("ticket_id", help="Freshdesk ticket number")
    ticket_parser.set_defaults(func=cmd_get_ticket)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return EXIT_OK
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
