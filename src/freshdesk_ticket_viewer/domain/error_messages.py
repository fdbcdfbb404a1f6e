"""Error message constants for consistent error responses."""
from __future__ import annotations


class ErrorTitles:
    """Short `error` values of the JSON error shape."""

    INVALID_TICKET_ID = "Invalid ticket ID"
    INVALID_ATTACHMENT_ID = "Invalid attachment ID"
    CONFIGURATION = "Configuration Error"
    TICKET_NOT_FOUND = "Ticket Not Found"
    ATTACHMENT_NOT_FOUND = "Attachment Not Found"
    TICKET_FETCH_FAILED = "Failed to Fetch Ticket"
    CONVERSATIONS_FETCH_FAILED = "Failed to Fetch Conversations"
    ATTACHMENT_FETCH_FAILED = "Failed to download attachment"
    SEARCH_QUERY_REQUIRED = "Search query is required"
    SEARCH_NO_TICKET_ID = "Could not extract ticket ID from input"
    SEARCH_DOMAIN_FAILED = "Failed to search tickets by domain"
    SEARCH_FAILED = "Failed to search ticket"


class ErrorMessages:
    """Human readable `details` values."""

    TIMEOUT = "Request timeout - Freshdesk API took too long to respond"
    ATTACHMENT_TIMEOUT = "Attachment download timeout - file took too long to download"
    NETWORK = (
        "Network error - Unable to connect to Freshdesk API. "
        "Check your domain and network connectivity."
    )
    AUTHENTICATION = "Authentication failed - check your API key and domain"
    UPSTREAM = "Freshdesk request failed: {status} - {body}"
    INVALID_JSON = "Invalid JSON from Freshdesk (status={status})"

    DOMAIN_MISSING = (
        "FRESHDESK_DOMAIN environment variable is not set. Please add it to the service configuration."
    )
    API_KEY_MISSING = (
        "FRESHDESK_API_KEY environment variable is not set. Please add it to the service configuration."
    )

    TICKET_NOT_FOUND = (
        "Ticket #{ticket_id} does not exist or you don't have permission to access it."
    )
    ATTACHMENT_NOT_FOUND = "Attachment {attachment_id} not found"
    SEARCH_NO_TICKET_ID = "Please provide a valid ticket number or Freshdesk URL"
    SEARCH_DOMAIN_REQUIRED = "Please provide an email domain, e.g. example.com"
    INVALID_TICKET_URL = "Invalid Freshdesk URL - could not extract ticket ID"


def format_upstream_error(status: int, body: str, *, limit: int = 500) -> str:
    """Format an upstream non-success response, truncating long bodies."""
    text = (body or "").strip()
    if len(text) > limit:
        text = text[:limit] + "..."
    return ErrorMessages.UPSTREAM.format(status=status, body=text or "<empty body>")
