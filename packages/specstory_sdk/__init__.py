"""Public SpecStory SDK interface for application and CLI callers."""

from packages.specstory_sdk.client import SpecStoryClient
from packages.specstory_sdk.models import (
    PageInfo,
    Project,
    SearchResponse,
    SearchResult,
    SessionDetail,
    SessionHead,
    SessionMetadata,
    SessionSummary,
    WriteSessionResult,
)
from packages.specstory_sdk.resources import GraphQL, Projects, Sessions
from packages.specstory_shared.config import (
    CacheSettings,
    DebugSettings,
    SpecStorySettings,
)
from packages.specstory_shared.errors import ErrorContext, ErrorKind, SpecStoryError
from packages.specstory_shared.http import SDK_VERSION

__version__ = SDK_VERSION

__all__ = [
    "CacheSettings",
    "DebugSettings",
    "ErrorContext",
    "ErrorKind",
    "GraphQL",
    "PageInfo",
    "Project",
    "Projects",
    "SearchResponse",
    "SearchResult",
    "SessionDetail",
    "SessionHead",
    "SessionMetadata",
    "SessionSummary",
    "Sessions",
    "SpecStoryClient",
    "SpecStoryError",
    "SpecStorySettings",
    "WriteSessionResult",
    "__version__",
]
