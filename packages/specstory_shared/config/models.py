"""Typed configuration models for SpecStory SDK clients."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

import httpx
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "specstory" / "specstory.yaml"
DEFAULT_BASE_URL = "https://cloud.specstory.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_CACHE_MAX_SIZE = 100
DEFAULT_CACHE_TTL_SECONDS = 60.0


def validate_base_url(value: str) -> str:
    """Return ``value`` without trailing slashes; reject non-http(s) URLs."""
    stripped = value.strip().rstrip("/")
    if stripped == "":
        raise ValueError("base_url must not be empty")
    try:
        parsed = httpx.URL(stripped)
    except httpx.InvalidURL as exc:
        raise ValueError(f"base_url {value!r} is not a valid URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"base_url must be an absolute http(s) URL, got {value!r}")
    return stripped


class CacheSettings(BaseModel):
    """In-memory response cache sizing and expiry."""

    enabled: bool = True
    max_size: int = Field(default=DEFAULT_CACHE_MAX_SIZE, gt=0)
    default_ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)


class DebugSettings(BaseModel):
    """Debug trace toggles; categories only emit while ``enabled`` is set."""

    enabled: bool = False
    log_requests: bool = True
    log_responses: bool = True
    log_errors: bool = True
    log_caching: bool = True
    log_timing: bool = True


class LoggingSettings(BaseModel):
    """Stdout logging configuration used by the CLI."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    json_output: bool = False


class SpecStorySettings(BaseSettings):
    """Root client settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="SPECSTORY_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    debug: DebugSettings = Field(default_factory=DebugSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        return validate_base_url(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > defaults."""
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        ]
        return tuple(sources)
