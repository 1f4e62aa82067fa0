"""Public logging API for the SpecStory SDK.

This package wraps Python's ``logging`` module with per-task trace fields,
secret redaction and an opt-in debug trace observer.
"""

from .config import TraceFieldsFilter, TraceFormatter, configure_logging
from .context import get_context, log_context
from .debug import DebugLogger, DebugSink, logging_sink
from .redaction import REDACTED, is_sensitive_field, redact_body, redact_headers

__all__ = [
    "configure_logging",
    "DebugLogger",
    "DebugSink",
    "get_context",
    "is_sensitive_field",
    "log_context",
    "logging_sink",
    "REDACTED",
    "redact_body",
    "redact_headers",
    "TraceFieldsFilter",
    "TraceFormatter",
]
