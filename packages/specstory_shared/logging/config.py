"""Log output for tools built on the SDK.

Library modules only log through ``logging.getLogger(__name__)``. The CLI, or
an application embedding the client, calls ``configure_logging`` once to route
those records to a stream as JSON lines or plain text, with the executor's
trace fields (event, method, url, attempt, delay) carried on every line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

from ..config.models import LoggingSettings
from . import fields
from .context import get_context

# Trace fields rendered first, in this order, by the plain formatter.
LEAD_FIELDS = (
    fields.EVENT,
    fields.METHOD,
    fields.URL,
    fields.STATUS,
    fields.ATTEMPT,
    fields.DELAY_MS,
    fields.DURATION_MS,
)


class TraceFieldsFilter(logging.Filter):
    """Attach the current task's trace fields to each record as ``record.trace``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace = get_context()
        return True


class TraceFormatter(logging.Formatter):
    """Render records as JSON lines or as ``time LEVEL logger message k=v`` text.

    JSON output keeps trace values typed and never lets them replace the core
    keys. Text output lists ``LEAD_FIELDS`` first, then the rest by key.
    """

    def __init__(self, *, json_output: bool) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        trace = getattr(record, "trace", None)
        if not isinstance(trace, dict):
            trace = {}
        if self._json_output:
            return self._as_json(record, trace)
        return self._as_text(record, trace)

    def _as_json(self, record: logging.LogRecord, trace: dict[str, Any]) -> str:
        core = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        document = {**trace, **core}
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        return json.dumps(document, default=str, separators=(",", ":"))

    def _as_text(self, record: logging.LogRecord, trace: dict[str, Any]) -> str:
        parts = [
            self.formatTime(record, self.datefmt),
            record.levelname,
            record.name,
            record.getMessage(),
        ]
        ordered = [key for key in LEAD_FIELDS if key in trace]
        ordered += sorted(key for key in trace if key not in LEAD_FIELDS)
        parts.extend(f"{key}={_text_value(trace[key])}" for key in ordered)
        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _text_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, sort_keys=True, separators=(",", ":"))
    return str(value)


def configure_logging(
    settings: LoggingSettings | None = None,
    *,
    stream: IO[str] | None = None,
) -> None:
    """Send root logging to a single stream handler built from ``settings``.

    A later call swaps out the handler installed by an earlier one. Output
    goes to ``stream``, or stderr when none is given.
    """
    settings = settings or LoggingSettings()
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.addFilter(TraceFieldsFilter())
    handler.setFormatter(TraceFormatter(json_output=settings.json_output))

    root = logging.getLogger()
    root.setLevel(settings.level)
    root.handlers[:] = [handler]
