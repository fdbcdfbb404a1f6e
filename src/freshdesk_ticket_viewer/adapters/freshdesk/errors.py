from __future__ import annotations

from freshdesk_ticket_viewer.domain.errors import ErrorKind


class FreshdeskError(Exception):
    """Base class for Freshdesk API errors; `kind` carries the failure category."""

    kind: ErrorKind = ErrorKind.UPSTREAM


class InvalidInputError(FreshdeskError):
    """Caller supplied something no request can be built from (e.g. a URL without an ID)."""

    kind = ErrorKind.INVALID_INPUT


class AuthenticationError(FreshdeskError):
    """Freshdesk rejected the credentials (HTTP 401)."""

    kind = ErrorKind.AUTHENTICATION


class NotFoundError(FreshdeskError):
    """Requested resource was not found (HTTP 404)."""

    kind = ErrorKind.NOT_FOUND


class UpstreamTimeoutError(FreshdeskError):
    """The bounded wait elapsed before Freshdesk answered."""

    kind = ErrorKind.TIMEOUT


class NetworkError(FreshdeskError):
    """Transport-level failure (DNS, connection refused, TLS, ...)."""

    kind = ErrorKind.NETWORK


class UpstreamError(FreshdeskError):
    """Any other non-success response, or a response body that could not be parsed."""

    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
