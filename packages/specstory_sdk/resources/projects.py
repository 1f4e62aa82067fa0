"""Projects facade."""

from __future__ import annotations

from typing import Any

from packages.specstory_sdk.models import Project
from packages.specstory_sdk.resources.base import (
    BaseResource,
    envelope_data,
    parse_model,
    parse_rows,
    path_segment,
)
from packages.specstory_shared.http import RequestDescriptor

PROJECTS_PATH = "/api/v1/projects"


class Projects(BaseResource):
    """Read and manage projects visible to the API key."""

    async def list(self) -> list[Project]:
        """Return every project."""
        payload = await self._request(RequestDescriptor(method="GET", path=PROJECTS_PATH))
        return parse_rows(Project, envelope_data(payload).get("projects"))

    async def get_by_name(self, name: str) -> Project | None:
        """Return the project whose name matches exactly, or ``None``."""
        for project in await self.list():
            if project.name == name:
                return project
        return None

    async def update(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Apply a partial update and return the updated project."""
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if description is not None:
            body["description"] = description
        if not body:
            raise ValueError("update requires at least one of name or description")
        payload = await self._request(
            RequestDescriptor(
                method="PATCH",
                path=f"{PROJECTS_PATH}/{path_segment(project_id)}",
                body=body,
            )
        )
        data = envelope_data(payload)
        project = data.get("project", data)
        if not isinstance(project, dict):
            project = {}
        return parse_model(Project, {"id": project_id, **project})

    async def delete(self, project_id: str) -> bool:
        """Delete one project; return the server's success flag."""
        payload = await self._request(
            RequestDescriptor(method="DELETE", path=f"{PROJECTS_PATH}/{path_segment(project_id)}")
        )
        return bool(isinstance(payload, dict) and payload.get("success"))
