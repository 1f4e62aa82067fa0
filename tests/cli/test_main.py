"""CLI tests for SpecStory Typer commands."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterator

import httpx
import pytest
from typer.testing import CliRunner

from actors.cli import main as cli_main
from packages.specstory_sdk import SpecStoryClient
from packages.specstory_shared.http import BackoffPolicy


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _install_transport(
    monkeypatch: pytest.MonkeyPatch,
    handler: Callable[[httpx.Request], httpx.Response],
) -> list[cli_main.CliConfig]:
    """Route CLI-built clients through a mock transport; record configs."""
    configs: list[cli_main.CliConfig] = []

    def build(cfg: cli_main.CliConfig) -> SpecStoryClient:
        configs.append(cfg)
        return SpecStoryClient(
            cfg.api_key,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout,
            max_retries=0,
            backoff=BackoffPolicy(base_delay_seconds=0, jitter_seconds=0),
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli_main, "_with_client", build)
    return configs


def _projects_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "success": True,
            "data": {
                "projects": [
                    {"id": "p1", "name": "Alpha", "updatedAt": "2025-01-09T12:00:00Z"},
                    {"id": "p2", "name": "Beta"},
                ]
            },
        },
    )


def test_projects_list_renders_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    """Human output should list one project per line."""
    configs = _install_transport(monkeypatch, _projects_handler)

    result = CliRunner().invoke(cli_main.app, ["--api-key", "k", "projects", "list"])

    assert result.exit_code == 0
    assert "- Alpha (p1) updated 2025-01-09T12:00:00Z" in result.output
    assert "- Beta (p2)" in result.output
    assert configs[0].api_key == "k"
    assert configs[0].as_json is False


def test_json_output_is_compact_and_sorted(monkeypatch: pytest.MonkeyPatch) -> None:
    """--json should emit one compact JSON document."""
    _install_transport(monkeypatch, _projects_handler)

    result = CliRunner().invoke(
        cli_main.app, ["--api-key", "k", "--json", "projects", "list"]
    )

    assert result.exit_code == 0
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert [item["id"] for item in payload] == ["p1", "p2"]


def test_api_key_is_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """SPECSTORY_API_KEY should populate --api-key."""
    monkeypatch.setenv("SPECSTORY_API_KEY", "env-key")
    configs = _install_transport(monkeypatch, _projects_handler)

    result = CliRunner().invoke(cli_main.app, ["projects", "list"])

    assert result.exit_code == 0
    assert configs[0].api_key == "env-key"


def test_sessions_read_renders_markdown(monkeypatch: pytest.MonkeyPatch) -> None:
    """sessions read should print the heading, ETag and markdown body."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/projects/p1/sessions/s1"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "session": {
                        "id": "s1",
                        "projectId": "p1",
                        "name": "Debugging",
                        "markdown": "# Notes",
                    }
                },
            },
            headers={"etag": '"e1"'},
        )

    _install_transport(monkeypatch, handler)

    result = CliRunner().invoke(
        cli_main.app, ["--api-key", "k", "sessions", "read", "p1", "s1"]
    )

    assert result.exit_code == 0
    assert 'Session: Debugging ["e1"]' in result.output
    assert "# Notes" in result.output


def test_sessions_recent_and_delete(monkeypatch: pytest.MonkeyPatch) -> None:
    """recent forwards --limit; delete prints the success flag."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(f"{request.method} {request.url.path}?{request.url.query.decode()}")
        if request.method == "DELETE":
            return httpx.Response(200, json={"success": True})
        return httpx.Response(
            200,
            json={"success": True, "data": {"sessions": [{"id": "s1", "projectId": "p1", "name": "One"}]}},
        )

    _install_transport(monkeypatch, handler)
    runner = CliRunner()

    recent = runner.invoke(
        cli_main.app, ["--api-key", "k", "sessions", "recent", "--limit", "1"]
    )
    deleted = runner.invoke(
        cli_main.app, ["--api-key", "k", "sessions", "delete", "p1", "s1"]
    )

    assert recent.exit_code == 0
    assert "- One (s1)" in recent.output
    assert deleted.exit_code == 0
    assert deleted.output.strip() == "True"
    assert seen == [
        "GET /api/v1/sessions/recent?limit=1",
        "DELETE /api/v1/projects/p1/sessions/s1?",
    ]


def test_search_renders_hits(monkeypatch: pytest.MonkeyPatch) -> None:
    """search should render ranked hits and pass the project filter."""
    variables: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        variables.append(json.loads(request.content)["variables"])
        return httpx.Response(
            200,
            json={
                "data": {
                    "searchSessions": {
                        "total": 1,
                        "results": [
                            {"id": "s1", "name": "Refactor", "projectId": "p1", "rank": 0.5}
                        ],
                    }
                }
            },
        )

    _install_transport(monkeypatch, handler)

    result = CliRunner().invoke(
        cli_main.app,
        ["--api-key", "k", "search", "refactor", "--project-id", "p1", "--limit", "5"],
    )

    assert result.exit_code == 0
    assert "1 match(es)" in result.output
    assert "- Refactor (s1) (rank: 0.500)" in result.output
    assert variables[0] == {
        "query": "refactor",
        "limit": 5,
        "filters": {"projectId": "p1"},
    }


@pytest.mark.parametrize(
    ("status", "exit_code"),
    [
        (404, cli_main.CLIENT_ERROR_EXIT_CODE),
        (401, cli_main.CLIENT_ERROR_EXIT_CODE),
        (503, cli_main.TRANSPORT_ERROR_EXIT_CODE),
        (429, cli_main.TRANSPORT_ERROR_EXIT_CODE),
    ],
)
def test_errors_map_to_exit_codes(
    monkeypatch: pytest.MonkeyPatch, status: int, exit_code: int
) -> None:
    """Client-side kinds exit 3; transport and server kinds exit 4."""
    _install_transport(monkeypatch, lambda request: httpx.Response(status))

    result = CliRunner().invoke(cli_main.app, ["--api-key", "k", "projects", "list"])

    assert result.exit_code == exit_code
    assert "error:" in result.output
    assert "hint:" in result.output


def test_json_errors_carry_kind_and_code(monkeypatch: pytest.MonkeyPatch) -> None:
    """--json errors should be structured."""
    _install_transport(monkeypatch, lambda request: httpx.Response(404))

    result = CliRunner().invoke(
        cli_main.app, ["--api-key", "k", "--json", "projects", "list"]
    )

    assert result.exit_code == cli_main.CLIENT_ERROR_EXIT_CODE
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["kind"] == "not_found"
    assert payload["status"] == 404


def test_missing_api_key_exits_with_config_error() -> None:
    """Without any API key the real client builder fails with exit code 2."""
    result = CliRunner().invoke(cli_main.app, ["projects", "list"])

    assert result.exit_code == cli_main.CONFIG_ERROR_EXIT_CODE
    assert "API key is required" in result.output
