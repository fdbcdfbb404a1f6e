from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure categories shared by the upstream client and the retrieval layer."""

    INVALID_INPUT = "invalid_input"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UPSTREAM = "upstream"


_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
}


def http_status_for(kind: ErrorKind) -> int:
    """
    HTTP status a failure of `kind` is reported with.

    Only malformed input and upstream absence get their own status; configuration,
    authentication, timeout, network and other upstream failures are all server errors.
    """
    return _HTTP_STATUS.get(kind, 500)
