"""Shared async request execution primitives for SpecStory facades."""

from .backoff import BackoffPolicy
from .dedupe import RequestDeduplicator
from .executor import SDK_LANGUAGE, SDK_NAME, SDK_VERSION, RequestExecutor
from .request import (
    ALLOWED_METHODS,
    IDEMPOTENT_METHODS,
    RETRY_STATUS_CODES,
    HttpMethod,
    RequestDescriptor,
    WithHeaders,
)

__all__ = [
    "ALLOWED_METHODS",
    "BackoffPolicy",
    "HttpMethod",
    "IDEMPOTENT_METHODS",
    "RETRY_STATUS_CODES",
    "RequestDeduplicator",
    "RequestDescriptor",
    "RequestExecutor",
    "SDK_LANGUAGE",
    "SDK_NAME",
    "SDK_VERSION",
    "WithHeaders",
]
