"""Canonical logging field names for SDK trace events.

These constants define a stable key set for structured logs emitted by the
request executor, the response cache and the debug observer.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"
CATEGORY = "category"

# Request/response fields.
METHOD = "method"
URL = "url"
STATUS = "status"
ATTEMPT = "attempt"
DELAY_MS = "delay_ms"
DURATION_MS = "duration_ms"
HEADERS = "headers"
BODY = "body"

# Error fields.
ERROR_KIND = "error_kind"
ERROR_CODE = "error_code"

# Cache fields.
CACHE_KEY = "cache_key"
CACHE_ACTION = "cache_action"

# Trace event names.
REQUEST_EVENT = "request"
RESPONSE_EVENT = "response"
ERROR_EVENT = "error"
CACHE_EVENT = "cache"
RETRY_EVENT = "retry"
