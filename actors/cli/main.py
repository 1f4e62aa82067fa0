"""SpecStory command-line interface implemented with Typer."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from packages.specstory_sdk import ErrorKind, SpecStoryClient, SpecStoryError
from packages.specstory_shared.config import LoggingSettings
from packages.specstory_shared.logging import configure_logging

SUCCESS_EXIT_CODE = 0
CONFIG_ERROR_EXIT_CODE = 2
CLIENT_ERROR_EXIT_CODE = 3
TRANSPORT_ERROR_EXIT_CODE = 4


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to SDK calls."""

    api_key: str | None
    base_url: str | None
    timeout: float | None
    as_json: bool
    debug: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="json", exclude_none=True))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    if data is None:
        typer.echo("ok")
        return
    typer.echo(str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render SDK errors to stderr."""

    if as_json:
        payload: dict[str, Any] = {"error": str(exc)}
        if isinstance(exc, SpecStoryError):
            payload.update(
                {"kind": exc.kind.value, "code": exc.code, "status": exc.status}
            )
        typer.echo(json.dumps(payload, sort_keys=True), err=True)
        return
    typer.echo(f"error: {exc}", err=True)
    if isinstance(exc, SpecStoryError) and exc.suggestion:
        typer.echo(f"hint: {exc.suggestion}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict):
        if _looks_like_session_detail(data):
            return _render_session_detail(data)
        if _looks_like_search(data):
            return _render_search(data)
    if isinstance(data, list):
        if len(data) == 0:
            return "No results found."
        if all(_looks_like_row(item) for item in data):
            return _render_rows(data)
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_session_detail(value: dict[str, Any]) -> bool:
    """Return True for session read payloads."""
    return "markdown" in value and "project_id" in value


def _looks_like_search(value: dict[str, Any]) -> bool:
    """Return True for search payloads."""
    return isinstance(value.get("results"), list) and "total" in value


def _looks_like_row(value: Any) -> bool:
    """Return True for project and session listing rows."""
    return isinstance(value, dict) and "id" in value and "name" in value


def _render_rows(items: list[dict[str, Any]]) -> str:
    """Render project or session rows as ``- name (id)`` lines."""
    lines: list[str] = []
    for item in items:
        name = str(item.get("name", "")).strip() or "<unnamed>"
        line = f"- {name} ({item['id']})"
        updated = item.get("updated_at")
        if isinstance(updated, str) and updated != "":
            line = f"{line} updated {updated}"
        lines.append(line)
    return "\n".join(lines)


def _render_session_detail(data: dict[str, Any]) -> str:
    """Render one session with its markdown body."""
    name = str(data.get("name", "")).strip()
    heading = f"Session: {name}" if name != "" else "Session"
    etag = data.get("etag")
    if isinstance(etag, str) and etag != "":
        heading = f"{heading} [{etag}]"
    markdown = str(data.get("markdown") or "")
    return f"{heading}\n\n{markdown}".rstrip()


def _render_search(data: dict[str, Any]) -> str:
    """Render search hits."""
    results = data.get("results", [])
    if len(results) == 0:
        return "No matches found."
    lines = [f"{data.get('total', len(results))} match(es)"]
    for item in results:
        if not isinstance(item, dict):
            continue
        line = f"- {item.get('name', '<unnamed>')} ({item.get('id', '?')})"
        rank = item.get("rank")
        if isinstance(rank, (int, float)):
            line = f"{line} (rank: {rank:.3f})"
        lines.append(line)
    return "\n".join(lines)


def _with_client(cfg: CliConfig) -> SpecStoryClient:
    """Return one SDK client built from global CLI settings."""
    return SpecStoryClient(
        cfg.api_key,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout,
        debug=True if cfg.debug else None,
    )


def _exit_code_for(error: SpecStoryError) -> int:
    """Map one error kind onto a process exit code."""
    match error.kind:
        case (
            ErrorKind.VALIDATION
            | ErrorKind.AUTHENTICATION
            | ErrorKind.PERMISSION
            | ErrorKind.NOT_FOUND
            | ErrorKind.GRAPHQL
        ):
            return CLIENT_ERROR_EXIT_CODE
        case (
            ErrorKind.NETWORK
            | ErrorKind.TIMEOUT
            | ErrorKind.RATE_LIMIT
            | ErrorKind.SERVER
            | ErrorKind.UNKNOWN
        ):
            return TRANSPORT_ERROR_EXIT_CODE


async def _execute(
    cfg: CliConfig, invoke: Callable[[SpecStoryClient], Awaitable[Any]]
) -> Any:
    async with _with_client(cfg) as client:
        return await invoke(client)


def _run_command(
    cfg: CliConfig, invoke: Callable[[SpecStoryClient], Awaitable[Any]]
) -> None:
    """Execute one SDK call and map outputs/errors to process semantics."""
    try:
        result = asyncio.run(_execute(cfg, invoke))
    except SpecStoryError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=_exit_code_for(exc)) from exc
    except ValueError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=CONFIG_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


app = typer.Typer(no_args_is_help=True, help="SpecStory command-line interface")
projects_app = typer.Typer(help="Project commands")
sessions_app = typer.Typer(help="Session commands")


@app.callback()
def main(
    ctx: typer.Context,
    api_key: str | None = typer.Option(
        None,
        envvar="SPECSTORY_API_KEY",
        help="SpecStory API key",
        show_default=False,
    ),
    base_url: str | None = typer.Option(None, help="API base URL override"),
    timeout: float | None = typer.Option(
        None, min=0.001, help="Request timeout in seconds"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    debug: bool = typer.Option(False, "--debug", help="Trace requests to stderr"),
) -> None:
    """Store global options for all commands."""

    configure_logging(
        LoggingSettings(level="DEBUG" if debug else "WARNING", json_output=as_json),
        stream=sys.stderr,
    )
    ctx.obj = CliConfig(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        as_json=as_json,
        debug=debug,
    )


@projects_app.command("list")
def projects_list_command(ctx: typer.Context) -> None:
    """List projects."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda client: client.projects.list())


@sessions_app.command("list")
def sessions_list_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
    limit: int | None = typer.Option(None, min=1, help="Maximum number of sessions"),
) -> None:
    """List sessions in one project."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda client: client.sessions.list(project_id, limit=limit))


@sessions_app.command("read")
def sessions_read_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
    session_id: str = typer.Argument(..., help="Session id"),
    if_none_match: str | None = typer.Option(
        None, help="Only return content when it differs from this ETag"
    ),
) -> None:
    """Read one session."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda client: client.sessions.read(
            project_id, session_id, if_none_match=if_none_match
        ),
    )


@sessions_app.command("recent")
def sessions_recent_command(
    ctx: typer.Context,
    limit: int | None = typer.Option(None, min=1, help="Maximum number of sessions"),
) -> None:
    """List recently updated sessions across projects."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda client: client.sessions.recent(limit=limit))


@sessions_app.command("delete")
def sessions_delete_command(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
    session_id: str = typer.Argument(..., help="Session id"),
) -> None:
    """Delete one session."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda client: client.sessions.delete(project_id, session_id))


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search text"),
    project_id: str | None = typer.Option(None, help="Restrict to one project"),
    limit: int = typer.Option(20, min=1, help="Maximum number of results"),
) -> None:
    """Search sessions."""
    cfg = _require_config(ctx)
    filters = {"projectId": project_id} if project_id else None
    _run_command(
        cfg,
        lambda client: client.graphql.search(query, filters=filters, limit=limit),
    )


app.add_typer(projects_app, name="projects")
app.add_typer(sessions_app, name="sessions")


if __name__ == "__main__":
    app()
