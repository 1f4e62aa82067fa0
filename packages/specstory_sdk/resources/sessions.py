"""Sessions facade with conditional, cache-backed reads."""

from __future__ import annotations

import builtins
import uuid
from typing import Any, AsyncIterator, Mapping

from packages.specstory_sdk.models import (
    SessionDetail,
    SessionHead,
    SessionSummary,
    WriteSessionResult,
)
from packages.specstory_sdk.resources.base import (
    BaseResource,
    envelope_data,
    is_not_modified,
    parse_model,
    parse_rows,
    path_segment,
)
from packages.specstory_shared.errors import SpecStoryError
from packages.specstory_shared.http import RequestDescriptor

SESSION_READ_TTL_SECONDS = 300.0
RECENT_SESSIONS_PATH = "/api/v1/sessions/recent"


def session_cache_key(project_id: str, session_id: str) -> str:
    """Return the cache key for one session read."""
    return f"session:{project_id}:{session_id}"


def _sessions_path(project_id: str) -> str:
    return f"/api/v1/projects/{path_segment(project_id)}/sessions"


def _session_path(project_id: str, session_id: str) -> str:
    return f"{_sessions_path(project_id)}/{path_segment(session_id)}"


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class Sessions(BaseResource):
    """Write, list, read and delete sessions within a project."""

    async def write(
        self,
        project_id: str,
        session: Mapping[str, Any],
        *,
        session_id: str | None = None,
        project_name: str | None = None,
        idempotency_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> WriteSessionResult:
        """Create or replace one session and return the server acknowledgement.

        ``session`` carries ``name`` plus optional ``markdown``, ``rawData`` and
        ``metadata``. A random session id is generated when none is given and
        ``projectName`` defaults to the session name.
        """
        name = session.get("name")
        if not name:
            raise ValueError("session requires a non-empty 'name'")
        session_id = session_id or str(uuid.uuid4())
        body = {**session, "projectName": project_name or name}
        response = await self._request_with_headers(
            RequestDescriptor(
                method="PUT",
                path=_session_path(project_id, session_id),
                body=body,
                idempotency_key=idempotency_key,
                timeout_seconds=timeout_seconds,
            )
        )
        self._invalidate(session_cache_key(project_id, session_id))
        data = envelope_data(response.data)
        return parse_model(
            WriteSessionResult,
            {
                "sessionId": session_id,
                "projectId": project_id,
                **data,
                "etag": response.headers.get("etag"),
            },
        )

    async def list(
        self,
        project_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        cursor: str | None = None,
    ) -> list[SessionSummary]:
        """Return session summaries for one project."""
        payload = await self._request(
            RequestDescriptor(
                method="GET",
                path=_sessions_path(project_id),
                params={"limit": limit, "offset": offset, "cursor": cursor},
            )
        )
        return parse_rows(SessionSummary, envelope_data(payload).get("sessions"))

    async def list_paginated(
        self, project_id: str, *, page_size: int | None = None
    ) -> AsyncIterator[SessionSummary]:
        """Yield session summaries one at a time.

        With ``page_size`` the listing is fetched in offset pages until a short
        page arrives; without it one unpaged listing is fetched.
        """
        if page_size is None:
            for summary in await self.list(project_id):
                yield summary
            return
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        offset = 0
        while True:
            page = await self.list(project_id, limit=page_size, offset=offset)
            for summary in page:
                yield summary
            if len(page) < page_size:
                return
            offset += len(page)

    async def read(
        self,
        project_id: str,
        session_id: str,
        if_none_match: str | None = None,
    ) -> SessionDetail | None:
        """Return one session, or ``None`` when the given validator still matches.

        Reads of the same session that overlap in time share one GET, because
        in-flight requests are keyed by URL only. The first caller's
        ``If-None-Match`` is the one sent, and every overlapping caller gets
        its outcome. A caller without a validator can therefore receive
        ``None`` when it overlaps a conditional read that was answered 304.
        """
        result = await self._cached_conditional_get(
            session_cache_key(project_id, session_id),
            SESSION_READ_TTL_SECONDS,
            RequestDescriptor(
                method="GET",
                path=_session_path(project_id, session_id),
                headers={"Accept": "application/json"},
            ),
            _parse_detail,
            if_none_match=if_none_match,
        )
        return None if result is None else result.data

    async def head(
        self,
        project_id: str,
        session_id: str,
        if_none_match: str | None = None,
    ) -> SessionHead | None:
        """Return header-only metadata; ``None`` when not modified."""
        headers = {"If-None-Match": if_none_match} if if_none_match else {}
        try:
            response = await self._request_with_headers(
                RequestDescriptor(
                    method="HEAD",
                    path=_session_path(project_id, session_id),
                    headers=headers,
                )
            )
        except SpecStoryError as exc:
            if is_not_modified(exc):
                return None
            if exc.status == 404:
                return SessionHead(exists=False)
            raise
        found = response.headers
        return SessionHead(
            exists=True,
            etag=found.get("etag"),
            content_length=_int_header(found, "content-length"),
            last_modified=found.get("last-modified"),
            markdown_size=_int_header(found, "x-markdown-size"),
            raw_data_size=_int_header(found, "x-raw-data-size"),
        )

    async def delete(self, project_id: str, session_id: str) -> bool:
        """Delete one session and drop its cached read."""
        payload = await self._request(
            RequestDescriptor(method="DELETE", path=_session_path(project_id, session_id))
        )
        self._invalidate(session_cache_key(project_id, session_id))
        return bool(isinstance(payload, dict) and payload.get("success"))

    async def recent(self, limit: int | None = None) -> builtins.list[SessionSummary]:
        """Return the most recently updated sessions across all projects."""
        payload = await self._request(
            RequestDescriptor(method="GET", path=RECENT_SESSIONS_PATH, params={"limit": limit})
        )
        return parse_rows(SessionSummary, envelope_data(payload).get("sessions"))

    async def write_and_read(
        self,
        project_id: str,
        session: Mapping[str, Any],
        **write_options: Any,
    ) -> SessionDetail | None:
        """Write one session and read it back."""
        written = await self.write(project_id, session, **write_options)
        return await self.read(project_id, written.session_id)


def _parse_detail(payload: Any, etag: str | None) -> SessionDetail:
    session = envelope_data(payload).get("session")
    if not isinstance(session, dict):
        session = {}
    if etag is not None:
        session = {**session, "etag": etag}
    return parse_model(SessionDetail, session)
