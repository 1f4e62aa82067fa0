"""Stable machine-readable error codes for SpecStory SDK failures.

Every ``SpecStoryError`` carries exactly one of these codes. Callers that need
to branch on failures programmatically should prefer ``ErrorKind`` and fall
back to the code only when finer detail is required.
"""

# Transport
NETWORK_ERROR = "NETWORK_ERROR"
MAX_RETRIES_EXCEEDED = "MAX_RETRIES_EXCEEDED"
TIMEOUT = "TIMEOUT"

# Client-side request problems
VALIDATION_ERROR = "VALIDATION_ERROR"
AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
PERMISSION_DENIED = "PERMISSION_DENIED"
NOT_FOUND = "NOT_FOUND"

# Throttling / server
RATE_LIMITED = "RATE_LIMITED"
SERVER_ERROR = "SERVER_ERROR"

# Application-level
GRAPHQL_ERROR = "GRAPHQL_ERROR"
GRAPHQL_NO_DATA = "GRAPHQL_NO_DATA"

# Unclassified
UNKNOWN_ERROR = "UNKNOWN_ERROR"
INVALID_JSON = "INVALID_JSON"
INVALID_RESPONSE = "INVALID_RESPONSE"
INVALID_URL = "INVALID_URL"
