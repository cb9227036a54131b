"""
Request ID middleware - X-Request-ID correlation for every API call.

The id is handed to handlers through CallContext.request_id and echoed in
error envelopes and response headers.
"""

import re
import uuid
from typing import Optional

from flask import Flask, request, g


REQUEST_ID_HEADER = 'X-Request-ID'

# Client-supplied ids are echoed into headers and logs
_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._\-]{1,128}$')


def _incoming_request_id() -> Optional[str]:
    value = request.headers.get(REQUEST_ID_HEADER)
    if value and _VALID_REQUEST_ID.match(value):
        return value
    return None


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID middleware on Flask app.

    Uses the caller's X-Request-ID when it is well-formed, otherwise a new
    UUID; stores it on g.request_id and adds it to every response.
    """

    @app.before_request
    def inject_request_id():
        g.request_id = _incoming_request_id() or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers[REQUEST_ID_HEADER] = g.request_id
        return response


def get_request_id() -> str:
    """
    Get current request ID from Flask context.

    Returns:
        Request ID string, or generated UUID if not in request context
    """
    if hasattr(g, 'request_id'):
        return g.request_id
    return str(uuid.uuid4())
