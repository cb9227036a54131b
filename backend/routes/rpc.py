"""
RPC routes - one POST endpoint per registered API.

Paths are /{service}/{version}/{api_id}; the blueprint is mounted at the
service base path.
"""
from flask import Blueprint, current_app, jsonify, request

from api.contracts import CallContext
from api.contracts.errors import INVALID_CONTENT_TYPE, NOT_FOUND
from api.middleware import api_error_response, get_request_id, make_error_response

rpc_bp = Blueprint('rpc', __name__)


@rpc_bp.route("/<api_id>", methods=["POST"], provide_automatic_options=False)
def call_api(api_id):
    """
    Validate the JSON body against the API's request shape and run its handler.

    Returns:
        The encoded response, or an error envelope
    """
    if not request.is_json:
        return make_error_response(
            INVALID_CONTENT_TYPE,
            f"Content-Type must be application/json, got {request.mimetype or 'none'!r}",
        )

    context = CallContext(
        api_id=api_id,
        request_id=get_request_id(),
        remote_addr=request.remote_addr,
        headers=dict(request.headers),
    )
    response, error = current_app.dispatcher.dispatch(
        api_id, request.get_data(), context
    )
    if error is not None:
        return api_error_response(error)
    return jsonify(response)


@rpc_bp.route("/<api_id>", methods=["OPTIONS"])
def preflight(api_id):
    """CORS preflight; flask-cors adds the Access-Control-* headers."""
    if api_id not in current_app.registry:
        return make_error_response(NOT_FOUND, f"API '{api_id}' not found")
    return jsonify({})
