"""Flat environment variable names and deprecated aliases.

Canonical names (e.g. FRESHDESK_DOMAIN) map onto nested settings paths; legacy
names are still honoured but emit a DeprecationWarning.
"""
from __future__ import annotations

import os
import warnings
from collections.abc import Mapping
from typing import Any

SettingsPath = tuple[str, ...]

_CANONICAL: dict[str, SettingsPath] = {
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
    "FRESHDESK_DOMAIN": ("freshdesk", "domain"),
    "FRESHDESK_API_KEY": ("freshdesk", "api_key"),
    "FRESHDESK_TIMEOUT_SECONDS": ("freshdesk", "timeout_seconds"),
    "FRESHDESK_ATTACHMENT_TIMEOUT_SECONDS": ("freshdesk", "attachment_timeout_seconds"),
    "FRESHDESK_CONVERSATIONS_PER_PAGE": ("freshdesk", "conversations_per_page"),
    "FRESHDESK_VERIFY_TLS": ("freshdesk", "verify_tls"),
    "LOG_LEVEL": ("observability", "log_level"),
    "LOG_FORMAT": ("observability", "log_format"),
    "LOG_JSON": ("observability", "json_logs"),
    "METRICS_ENABLED": ("observability", "metrics_enabled"),
    "METRICS_BEARER_TOKEN": ("observability", "metrics_bearer_token"),
    "HEALTHZ_OMIT_VERSION": ("observability", "healthz_omit_version"),
    "RATE_LIMIT_ENABLED": ("hardening", "rate_limit", "enabled"),
    "RATE_LIMIT_RPS": ("hardening", "rate_limit", "rps"),
    "RATE_LIMIT_BURST": ("hardening", "rate_limit", "burst"),
    "RATE_LIMIT_INCLUDE_METRICS": ("hardening", "rate_limit", "include_metrics"),
    "HARDENING_TRANSPORT_TRUST_ENV": ("hardening", "transport", "trust_env"),
    "HARDENING_TRANSPORT_ALLOW_INSECURE_TLS": ("hardening", "transport", "allow_insecure_tls"),
}

# Deprecated name -> canonical name. The canonical name wins when both are set.
_DEPRECATED_ALIASES: dict[str, str] = {
    "FRESHDESK_URL": "FRESHDESK_DOMAIN",
    "FRESHDESK_TOKEN": "FRESHDESK_API_KEY",
}


def _set_nested(data: dict[str, Any], path: SettingsPath, value: Any) -> None:
    node = data
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[path[-1]] = value


def _deprecated_value(env: Mapping[str, str], old_name: str, new_name: str) -> str | None:
    value = env.get(old_name)
    if not value or env.get(new_name):
        return None
    warnings.warn(
        f"Environment variable '{old_name}' is deprecated. Use '{new_name}' instead. "
        f"Support for '{old_name}' will be removed in a future version.",
        DeprecationWarning,
        stacklevel=4,
    )
    return value


def flat_env_settings(env: Mapping[str, str]) -> dict[str, Any]:
    """Nested settings data from flat variables in `env`; empty values are ignored."""
    data: dict[str, Any] = {}
    for name, path in _CANONICAL.items():
        if value := env.get(name):
            _set_nested(data, path, value)
    for old_name, new_name in _DEPRECATED_ALIASES.items():
        if (value := _deprecated_value(env, old_name, new_name)) is not None:
            _set_nested(data, _CANONICAL[new_name], value)
    return data


def get_flat_env_settings_source() -> dict[str, Any]:
    return flat_env_settings(os.environ)
