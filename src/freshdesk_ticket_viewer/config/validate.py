from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from freshdesk_ticket_viewer.adapters.freshdesk.client import account_name
from freshdesk_ticket_viewer.config.settings import FreshdeskSettings, Settings
from freshdesk_ticket_viewer.domain.error_messages import ErrorMessages

# Values shipped in example env files; treated exactly like an unset variable.
PLACEHOLDER_DOMAINS = frozenset({"your-domain", "yourdomain", "example"})
PLACEHOLDER_API_KEYS = frozenset({"your-api-key", "your_api_key", "changeme"})


@dataclass(frozen=True)
class ConfigValidationIssue:
    path: str
    message: str


class ConfigValidationError(ValueError):
    def __init__(self, issues: Iterable[ConfigValidationIssue]):
        self.issues = list(issues)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = ["Configuration is invalid:"]
        for issue in self.issues:
            lines.append(f"- {issue.path}: {issue.message}")
        return "\n".join(lines)


def issues_from_pydantic_error(error: ValidationError) -> list[ConfigValidationIssue]:
    issues: list[ConfigValidationIssue] = []
    for item in error.errors(include_url=False):
        loc = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        msg = item.get("msg", "Invalid value")
        issues.append(ConfigValidationIssue(path=loc, message=msg))
    return issues


def upstream_config_issues(freshdesk: FreshdeskSettings) -> list[ConfigValidationIssue]:
    """
    Check that an upstream account is actually configured.

    Both the domain and the API key must be non-empty and must not be one of the
    placeholder values from the example configuration.
    """
    issues: list[ConfigValidationIssue] = []

    domain = account_name(freshdesk.domain)
    if not domain or domain in PLACEHOLDER_DOMAINS:
        issues.append(
            ConfigValidationIssue(path="freshdesk.domain", message=ErrorMessages.DOMAIN_MISSING)
        )

    api_key = freshdesk.api_key.get_secret_value().strip()
    if not api_key or api_key.lower() in PLACEHOLDER_API_KEYS:
        issues.append(
            ConfigValidationIssue(path="freshdesk.api_key", message=ErrorMessages.API_KEY_MISSING)
        )

    return issues


def validate_settings(settings: Settings) -> None:
    """Reject settings that are unsafe or unusable; missing upstream credentials are not fatal."""
    issues: list[ConfigValidationIssue] = []

    log_level = settings.observability.log_level.upper()
    allowed_levels = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
    if log_level not in allowed_levels:
        issues.append(
            ConfigValidationIssue(
                path="observability.log_level",
                message=(
                    f"Unsupported log level {settings.observability.log_level!r} "
                    f"(allowed: {sorted(allowed_levels)})"
                ),
            )
        )

    transport = settings.hardening.transport
    if not settings.freshdesk.verify_tls and not transport.allow_insecure_tls:
        issues.append(
            ConfigValidationIssue(
                path="freshdesk.verify_tls",
                message=(
                    "Disabling TLS verification is not allowed by default. "
                    "Set hardening.transport.allow_insecure_tls=true to override (not recommended)."
                ),
            )
        )

    if issues:
        raise ConfigValidationError(issues)
