"""Resource facades exposed on ``SpecStoryClient``."""

from packages.specstory_sdk.resources.base import BaseResource, ConditionalRead
from packages.specstory_sdk.resources.graphql import GraphQL
from packages.specstory_sdk.resources.projects import Projects
from packages.specstory_sdk.resources.sessions import Sessions, session_cache_key

__all__ = [
    "BaseResource",
    "ConditionalRead",
    "GraphQL",
    "Projects",
    "Sessions",
    "session_cache_key",
]
