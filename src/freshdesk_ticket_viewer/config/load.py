"""Settings loading: dotenv files, an optional YAML file, then the environment."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from freshdesk_ticket_viewer.config.settings import Settings
from freshdesk_ticket_viewer.config.validate import (
    ConfigValidationError,
    ConfigValidationIssue,
    issues_from_pydantic_error,
    validate_settings,
)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
# Earlier files win: load_dotenv never overrides a variable that is already set.
DOTENV_FILES = (Path(".env.local"), Path(".env"))

_HINTS: dict[str, str] = {
    "freshdesk.domain": "Set `FRESHDESK_DOMAIN` (or YAML `freshdesk.domain`).",
    "freshdesk.api_key": "Set `FRESHDESK_API_KEY` (or YAML `freshdesk.api_key`).",
    "freshdesk.timeout_seconds": "Set `FRESHDESK_TIMEOUT_SECONDS` to a positive number.",
    "freshdesk.attachment_timeout_seconds": (
        "Set `FRESHDESK_ATTACHMENT_TIMEOUT_SECONDS` to a positive number."
    ),
    "freshdesk.conversations_per_page": "Set `FRESHDESK_CONVERSATIONS_PER_PAGE` (1-100).",
    "server.port": "Set `SERVER_PORT` to a port number.",
}


def _load_dotenv_files() -> None:
    for dotenv_path in DOTENV_FILES:
        if dotenv_path.is_file():
            load_dotenv(dotenv_path=dotenv_path, override=False)


def _config_file(config_path: str | Path | None) -> Path | None:
    """
    Pick the YAML file to read.

    A path passed in or named by CONFIG_PATH must exist; the default location is
    only used when present.
    """
    explicit = config_path if config_path is not None else os.environ.get("CONFIG_PATH")
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise ConfigValidationError(
                [ConfigValidationIssue(path="CONFIG_PATH", message=f"Config file not found: {path}")]
            )
        return path
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigValidationError(
            [ConfigValidationIssue(path=str(path), message=f"Unable to read config file: {exc}")]
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigValidationError(
            [ConfigValidationIssue(path=str(path), message=f"Invalid YAML: {exc}")]
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            [ConfigValidationIssue(path=str(path), message="YAML root must be a mapping/object")]
        )
    return data


def _with_hint(issue: ConfigValidationIssue) -> ConfigValidationIssue:
    hint = _HINTS.get(issue.path)
    if not hint or hint in issue.message:
        return issue
    return ConfigValidationIssue(issue.path, f"{issue.message} {hint}")


def load_settings(*, config_path: str | Path | None = None) -> Settings:
    _load_dotenv_files()

    path = _config_file(config_path)
    file_data = _read_yaml(path) if path is not None else {}

    try:
        settings = Settings(**file_data)
    except ValidationError as exc:
        issues = [_with_hint(issue) for issue in issues_from_pydantic_error(exc)]
        raise ConfigValidationError(issues) from exc

    validate_settings(settings)
    return settings
