"""
Error envelope middleware - Standardize all error responses.

Every error leaves the service in the same shape, whether it came from
routing, contract validation, or a handler:
{
    "error": {
        "code": "CONTRACT_VIOLATION",
        "message": "Field 'longitude' is 200, maximum is 180",
        "requestId": "uuid",
        "field": "longitude",          # optional
        "details": {...}               # optional
    }
}
"""

import logging
from typing import Optional

from flask import Flask, jsonify, g
from werkzeug.exceptions import HTTPException

from api.contracts.errors import APIError


logger = logging.getLogger('api.middleware.error')


# Default HTTP status per error code
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "INVALID_CONTENT_TYPE": 415,

    # Contract errors
    "MALFORMED_PAYLOAD": 400,
    "CONTRACT_VIOLATION": 400,
    "RESPONSE_SCHEMA_MISMATCH": 500,

    # Handler (domain) errors
    "DEFAULT_ERROR": 403,

    # Server errors (5xx)
    "INTERNAL_ERROR": 500,
}


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - HTTP exceptions (404, 405, etc.) keeping their status codes
    - Unhandled Python exceptions (500)
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """Handle Flask/Werkzeug HTTP exceptions."""
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        """Handle unhandled Python exceptions."""
        request_id = getattr(g, 'request_id', None)
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )
        return make_error_response(
            "INTERNAL_ERROR", "An unexpected error occurred", status_code=500
        )


def make_error_response(
    code: str,
    message: str,
    status_code: Optional[int] = None,
    field: Optional[str] = None,
    details: Optional[dict] = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "CONTRACT_VIOLATION")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        field: Optional field path that caused the error
        details: Optional additional details dict

    Returns:
        Tuple of (response, status_code)
    """
    request_id = getattr(g, 'request_id', None)

    if status_code is None:
        # Unlisted codes are domain errors raised by handlers
        status_code = ERROR_CODES.get(code, ERROR_CODES["DEFAULT_ERROR"])

    error = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }
    if field:
        error["error"]["field"] = field
    if details:
        error["error"]["details"] = details

    response = jsonify(error)
    if request_id:
        response.headers['X-Request-ID'] = request_id
    return response, status_code


def api_error_response(error: APIError):
    """Error response for an APIError returned by dispatch."""
    return make_error_response(
        error.code,
        error.message,
        status_code=error.status_code,
        field=error.field,
        details=error.details,
    )
