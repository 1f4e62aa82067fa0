"""GraphQL facade for session search.

Any non-empty top-level ``errors`` array fails the call, even when a partial
``data`` payload arrived alongside it.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Mapping

from packages.specstory_sdk.models import SearchResponse, SearchResult
from packages.specstory_sdk.resources.base import BaseResource, parse_model
from packages.specstory_shared.errors import codes, graphql_error
from packages.specstory_shared.http import RequestDescriptor

GRAPHQL_PATH = "/api/v1/graphql"

SEARCH_SESSIONS_QUERY = """
query SearchSessions($query: String!, $filters: SessionFilters, $limit: Int) {
  searchSessions(query: $query, filters: $filters, limit: $limit) {
    total
    query
    projectId
    results {
      id
      name
      projectId
      rank
      metadata {
        clientName
        clientVersion
        agentName
        deviceId
        gitBranch
        llmModel
        tags
      }
      matchingExchanges {
        id
        content
        orderNumber
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
""".strip()


class GraphQL(BaseResource):
    """Run GraphQL queries and session searches."""

    async def query(
        self, query: str, variables: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Execute ``query`` and return its ``data`` object."""
        sent = dict(variables or {})
        payload = await self._request(
            RequestDescriptor(
                method="POST",
                path=GRAPHQL_PATH,
                body={"query": query, "variables": sent},
            )
        )
        if not isinstance(payload, dict):
            payload = {}
        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            raise graphql_error(errors, query=query, variables=sent)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise graphql_error(
                [],
                query=query,
                variables=sent,
                message="GraphQL query returned no data",
                code=codes.GRAPHQL_NO_DATA,
            )
        return data

    async def search(
        self,
        text: str,
        *,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> SearchResponse:
        """Run a full-text session search."""
        variables: dict[str, Any] = {"query": text}
        if limit is not None:
            variables["limit"] = limit
        if filters:
            variables["filters"] = dict(filters)
        data = await self.query(SEARCH_SESSIONS_QUERY, variables)
        result = data.get("searchSessions")
        if result is None:
            raise graphql_error(
                [],
                query=SEARCH_SESSIONS_QUERY,
                variables=variables,
                message="GraphQL search returned no data",
                code=codes.GRAPHQL_NO_DATA,
            )
        return parse_model(SearchResponse, result)

    async def search_iterator(
        self,
        text: str,
        *,
        filters: Mapping[str, Any] | None = None,
        page_size: int | None = None,
    ) -> AsyncIterator[SearchResult]:
        """Yield every hit for ``text``, following ``pageInfo.endCursor``."""
        cursor: str | None = None
        while True:
            page_filters = dict(filters or {})
            if cursor is not None:
                page_filters["cursor"] = cursor
            page = await self.search(text, filters=page_filters, limit=page_size)
            for hit in page.results:
                yield hit
            info = page.page_info
            if info is None or not info.has_next_page or not info.end_cursor:
                return
            if info.end_cursor == cursor:
                return
            cursor = info.end_cursor
