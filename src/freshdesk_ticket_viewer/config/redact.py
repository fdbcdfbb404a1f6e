from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import SecretStr

REDACTED_VALUE = "[redacted]"

_SENSITIVE_KEYS = frozenset(
    {
        "freshdesk_api_key",
        "freshdesk_token",
        "metrics_bearer_token",
        "api_key",
        "auth",
    }
)
_SENSITIVE_KEY_FRAGMENTS = ("password", "token", "secret", "authorization", "api_key", "apikey")

_Replacement = str | Callable[[re.Match[str]], str]

# Applied in order to free-form text (exception messages, warnings, URLs in log events).
_TEXT_RULES: tuple[tuple[re.Pattern[str], _Replacement], ...] = (
    # Authorization: Basic <base64 of api_key:X>, Bearer <...>, Token <...>
    (
        re.compile(r"(?i)\b(authorization)\s*[:=]\s*(bearer|token|basic)\s+([^\s,;]+)"),
        r"\1: \2 " + REDACTED_VALUE,
    ),
    # https://API_KEY:X@acme.freshdesk.com
    (
        re.compile(r"(?i)\b(https?://)([^/\s:@]+)(?::[^/\s@]*)?@"),
        r"\1" + REDACTED_VALUE + "@",
    ),
    (
        re.compile(
            r"(?i)\b(token|api[_-]?key|api[_-]?token|access[_-]?token|secret|password|passwd)"
            r"\s*[:=]\s*([^\s,;]+)"
        ),
        lambda m: f"{m.group(1)}={REDACTED_VALUE}",
    ),
    (
        re.compile(r"(?i)([?&](?:api[_-]?key|api[_-]?token|access[_-]?token|token|secret)=)([^&\s]+)"),
        lambda m: f"{m.group(1)}{REDACTED_VALUE}",
    ),
)


def scrub_secrets_in_text(text: str) -> str:
    """Best-effort redaction of credentials embedded in free-form text."""
    if not text:
        return text
    for pattern, replacement in _TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text


def _is_sensitive_key(key: str) -> bool:
    normalized = key.strip().lower()
    return normalized in _SENSITIVE_KEYS or any(
        fragment in normalized for fragment in _SENSITIVE_KEY_FRAGMENTS
    )


def _redact_value(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return REDACTED_VALUE
    if isinstance(value, str):
        return scrub_secrets_in_text(value)
    if isinstance(value, Mapping):
        return redact_settings_dict(value)
    if isinstance(value, list):
        return [_redact_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_redact_value(item) for item in value)
    return value


def redact_settings_dict(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Deep-redacted copy of `data`; the input is not mutated.

    Values under sensitive keys and any `SecretStr` become `REDACTED_VALUE`; strings
    elsewhere are passed through `scrub_secrets_in_text`.
    """
    return {
        str(key): REDACTED_VALUE if _is_sensitive_key(str(key)) else _redact_value(value)
        for key, value in data.items()
    }
