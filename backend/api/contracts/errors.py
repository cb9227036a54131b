"""
Structured API errors.

Every request-time and handler-time failure reaches the caller as an APIError
({code, message} plus optional details). Handlers raise APIError for domain
failures; the dispatcher passes those through unchanged.
"""

from typing import Any, Dict, Optional


# Error codes
ERROR_TYPE_DEFAULT = "DEFAULT_ERROR"          # Domain error raised without a specific code
NOT_FOUND = "NOT_FOUND"
CONTRACT_VIOLATION = "CONTRACT_VIOLATION"
MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
RESPONSE_SCHEMA_MISMATCH = "RESPONSE_SCHEMA_MISMATCH"
INTERNAL_ERROR = "INTERNAL_ERROR"


class RegistrationError(Exception):
    """Fatal misconfiguration found while registering APIs."""


class DuplicateAPIError(RegistrationError):
    """Two registration records share an id."""

    def __init__(self, api_id: str, first_set: str, second_set: str):
        super().__init__(
            f"Duplicate API id '{api_id}' (registered in set '{first_set}' "
            f"and again in set '{second_set}')"
        )
        self.api_id = api_id
        self.first_set = first_set
        self.second_set = second_set


class APIError(Exception):
    """
    Error returned to API callers.

    Args:
        code: Error code (e.g., "CONTRACT_VIOLATION")
        message: Human-readable error message
        status_code: HTTP status to use at the transport, None for the code's default
        field: Optional field path that caused the error
        details: Optional additional details
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.field = field
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        error = {
            "code": self.code,
            "message": self.message,
        }
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return error

    def __repr__(self):
        return f"APIError(code={self.code!r}, message={self.message!r})"
