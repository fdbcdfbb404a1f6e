from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from freshdesk_ticket_viewer.config.env_aliases import get_flat_env_settings_source


class _BaseSection(BaseModel):
    model_config = {"extra": "forbid"}


class ServerSettings(_BaseSection):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)


class FreshdeskSettings(_BaseSection):
    # Empty means unconfigured; see config.validate.upstream_config_issues.
    domain: str = ""
    api_key: SecretStr = SecretStr("")
    timeout_seconds: float = Field(default=10.0, gt=0)
    attachment_timeout_seconds: float = Field(default=15.0, gt=0)
    conversations_per_page: int = Field(default=100, ge=1, le=100)
    verify_tls: bool = True

    @field_validator("domain")
    @classmethod
    def _strip_domain(cls, value: str) -> str:
        return value.strip()


class ObservabilitySettings(_BaseSection):
    log_level: str = "INFO"
    # Wins over LOG_FORMAT and json_logs when set.
    log_format: Literal["json", "human"] | None = None
    json_logs: bool = False
    metrics_enabled: bool = False
    # Required as `Authorization: Bearer <token>` on /metrics when set.
    metrics_bearer_token: SecretStr | None = None
    # When true, GET /healthz omits version and service name.
    healthz_omit_version: bool = False

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_log_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class RateLimitSettings(_BaseSection):
    enabled: bool = True
    rps: float = Field(default=10.0, ge=0)
    burst: int = Field(default=30, ge=1)
    include_metrics: bool = False


class TransportHardeningSettings(_BaseSection):
    # Lets httpx honour HTTP(S)_PROXY / NO_PROXY from the environment.
    trust_env: bool = False
    # Required before freshdesk.verify_tls=false is accepted.
    allow_insecure_tls: bool = False


class HardeningSettings(_BaseSection):
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    transport: TransportHardeningSettings = Field(default_factory=TransportHardeningSettings)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        # .env.local and .env reach os.environ through config.load, not a dotenv source.
        extra="forbid",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    freshdesk: FreshdeskSettings = Field(default_factory=FreshdeskSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    hardening: HardeningSettings = Field(default_factory=HardeningSettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from `data` alone; environment and dotenv files are not read."""
        return _MappingSettings(**dict(data))

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[Any, ...]:
        # Environment beats the YAML file (passed as init kwargs by load_settings).
        return (
            env_settings,
            get_flat_env_settings_source,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )


class _MappingSettings(Settings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[Any, ...]:
        return (init_settings,)
