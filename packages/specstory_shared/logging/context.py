"""Per-task trace fields attached to SDK log records."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Mapping

_TRACE_FIELDS: ContextVar[Mapping[str, Any]] = ContextVar("specstory_trace_fields", default={})


def get_context() -> dict[str, Any]:
    """Return the trace fields visible to the current task."""
    return dict(_TRACE_FIELDS.get())


@contextmanager
def log_context(values: Mapping[str, Any]) -> Iterator[None]:
    """Layer ``values`` over the current trace fields for one block.

    ``None`` values are dropped; everything else is kept as-is so JSON output
    preserves numbers such as attempt counts and delays.
    """
    merged = {**_TRACE_FIELDS.get(), **{k: v for k, v in values.items() if v is not None}}
    token = _TRACE_FIELDS.set(merged)
    try:
        yield
    finally:
        _TRACE_FIELDS.reset(token)
