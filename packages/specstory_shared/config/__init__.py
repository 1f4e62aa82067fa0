"""Public configuration API for SpecStory SDK clients."""

from .models import (
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG_PATH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    CacheSettings,
    DebugSettings,
    LoggingSettings,
    SpecStorySettings,
    validate_base_url,
)

__all__ = [
    "CacheSettings",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT_SECONDS",
    "DebugSettings",
    "LoggingSettings",
    "SpecStorySettings",
    "validate_base_url",
]
