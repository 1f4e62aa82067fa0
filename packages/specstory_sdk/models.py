"""Typed response models for SpecStory API payloads.

Wire payloads use camelCase keys; models expose snake_case attributes and
accept either spelling on input. Unknown keys are preserved so newer server
fields are not silently dropped.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model for camelCase API payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Return the payload with camelCase keys and unset fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Project(ApiModel):
    """One project visible to the API key."""

    id: str
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    session_count: int | None = None


class SessionMetadata(ApiModel):
    """Client-reported provenance for a session."""

    client_name: str | None = None
    client_version: str | None = None
    agent_name: str | None = None
    device_id: str | None = None
    git_branch: str | None = None
    llm_model: str | None = None
    tags: list[str] | None = None


class SessionSummary(ApiModel):
    """Listing row for one session."""

    id: str
    project_id: str
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    event_count: int | None = None
    etag: str | None = None
    metadata: SessionMetadata | None = None


class SessionDetail(ApiModel):
    """Full session content plus the validator it was read with."""

    id: str
    project_id: str
    name: str
    project_name: str | None = None
    markdown: str | None = None
    raw_data: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    events: list[dict[str, Any]] = Field(default_factory=list)
    metadata: SessionMetadata | None = None
    etag: str | None = None


class WriteSessionResult(ApiModel):
    """Server acknowledgement for one session write."""

    session_id: str
    project_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    etag: str | None = None


class SessionHead(ApiModel):
    """Header-only view of one session."""

    exists: bool
    etag: str | None = None
    content_length: int | None = None
    last_modified: str | None = None
    markdown_size: int | None = None
    raw_data_size: int | None = None


class MatchingExchange(ApiModel):
    """One exchange inside a search hit that matched the query."""

    id: str
    content: str
    order_number: int | None = None


class SearchResult(ApiModel):
    """One ranked search hit."""

    id: str
    name: str
    project_id: str
    rank: float = 0.0
    metadata: SessionMetadata | None = None
    matching_exchanges: list[MatchingExchange] = Field(default_factory=list)


class PageInfo(ApiModel):
    """Cursor state for paged search results."""

    has_next_page: bool = False
    end_cursor: str | None = None


class SearchResponse(ApiModel):
    """Result page returned by ``searchSessions``."""

    total: int = 0
    results: list[SearchResult] = Field(default_factory=list)
    query: str | None = None
    project_id: str | None = None
    page_info: PageInfo | None = None
