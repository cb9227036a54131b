"""
Dispatch tests.

dispatch() never raises: every failure comes back as (None, APIError) and
the handler only ever sees validated, materialized requests.
"""

import logging

import pytest

from api.contracts import (
    APIError,
    APISet,
    CallContext,
    Dispatcher,
    SchemaMode,
    ValidationPolicy,
    dispatch,
    new_api,
    register_api_sets,
)
from api.contracts.errors import (
    CONTRACT_VIOLATION,
    ERROR_TYPE_DEFAULT,
    INTERNAL_ERROR,
    MALFORMED_PAYLOAD,
    NOT_FOUND,
    RESPONSE_SCHEMA_MISMATCH,
)

from contract_shapes import Echo, Point, Track


seen_requests = []


def record_point(req, ctx):
    seen_requests.append((req, ctx))
    return req


def reject(req, ctx):
    raise APIError(code="OUT_OF_RANGE", message="no such place", status_code=422)


def reject_default(req, ctx):
    raise APIError(code=ERROR_TYPE_DEFAULT, message="denied")


def crash(req, ctx):
    raise RuntimeError("boom")


def tuple_ok(req, ctx):
    return {"message": "hi"}, None


def tuple_error(req, ctx):
    return None, APIError(code="BUSY", message="try later")


def bad_response(req, ctx):
    return {"latitude": 500, "longitude": 1}


def not_encodable(req, ctx):
    return "just a string"


def track_summary(req, ctx):
    return Track(points=req.points, label=f"{len(req.points)} point(s)", speeds=req.speeds)


@pytest.fixture
def registry():
    def api(api_id, handler, request=Point, response=Point):
        return new_api(api_id, api_id, request=request, response=response, handler=handler)

    return register_api_sets([
        APISet("test", [
            api("record", record_point),
            api("reject", reject),
            api("rejectDefault", reject_default),
            api("crash", crash),
            api("tupleOk", tuple_ok, request=Echo, response=Echo),
            api("tupleError", tuple_error, request=Echo, response=Echo),
            api("badResponse", bad_response),
            api("notEncodable", not_encodable),
            api("track", track_summary, request=Track, response=Track),
        ]),
    ])


@pytest.fixture(autouse=True)
def _reset_seen():
    seen_requests.clear()


class TestDispatchSuccess:
    """Valid calls reach the handler with a materialized request."""

    def test_handler_receives_dataclass(self, registry):
        response, error = dispatch(registry, "record", b'{"latitude": 45, "longitude": 100}')

        assert error is None
        assert response == {"latitude": 45, "longitude": 100}
        req, ctx = seen_requests[0]
        assert isinstance(req, Point)
        assert req.latitude == 45
        assert ctx.api_id == "record"

    def test_context_passed_through(self, registry):
        context = CallContext(api_id="record", request_id="req-1", remote_addr="127.0.0.1")
        dispatch(registry, "record", '{"latitude": 1, "longitude": 2}', context)

        assert seen_requests[0][1] is context

    def test_unknown_fields_ignored(self, registry):
        response, error = dispatch(
            registry, "record", b'{"latitude": 1, "longitude": 2, "altitude": 3}'
        )
        assert error is None
        assert "altitude" not in response

    def test_defaults_and_nested_arrays(self, registry):
        payload = b'{"points": [{"latitude": 1, "longitude": 2}], "speeds": [3]}'
        response, error = dispatch(registry, "track", payload)

        assert error is None
        assert response == {
            "points": [{"latitude": 1, "longitude": 2}],
            "label": "1 point(s)",
            "speeds": [3.0],
        }

    def test_tuple_result(self, registry):
        response, error = dispatch(registry, "tupleOk", b'{"message": "x"}')
        assert error is None
        assert response == {"message": "hi"}


class TestDispatchErrors:
    """Failures come back as APIError, never raised."""

    def test_unknown_api(self, registry):
        response, error = dispatch(registry, "nope", b"{}")

        assert response is None
        assert error.code == NOT_FOUND
        assert error.status_code == 404

    def test_contract_violation(self, registry):
        response, error = dispatch(registry, "record", b'{"latitude": 45, "longitude": 200}')

        assert response is None
        assert error.code == CONTRACT_VIOLATION
        assert error.status_code == 400
        assert error.field == "longitude"
        assert error.details["violations"][0]["reason"] == "above-max"
        assert seen_requests == []

    def test_malformed_payload(self, registry):
        _, error = dispatch(registry, "record", b"not json")
        assert error.code == MALFORMED_PAYLOAD
        assert error.status_code == 400

    def test_non_object_payload(self, registry):
        _, error = dispatch(registry, "record", b"[1, 2]")
        assert error.code == MALFORMED_PAYLOAD

    def test_too_deeply_nested_payload(self, registry):
        payload = b'{"latitude": ' + b"[" * 100000 + b"]" * 100000 + b"}"
        response, error = dispatch(registry, "record", payload)

        assert response is None
        assert error.code == MALFORMED_PAYLOAD
        assert error.status_code == 400

    def test_integer_too_large_for_float(self, registry):
        payload = b'{"points": [], "speeds": [' + b"9" * 400 + b"]}"
        response, error = dispatch(registry, "track", payload)

        assert response is None
        assert error.code == CONTRACT_VIOLATION
        assert error.status_code == 400
        assert error.field == "speeds[0]"

    def test_collect_all_policy(self, registry):
        dispatcher = Dispatcher(registry, policy=ValidationPolicy.COLLECT_ALL)
        _, error = dispatcher.dispatch("record", b'{"latitude": -1}')

        assert error.code == CONTRACT_VIOLATION
        assert len(error.details["violations"]) == 2
        assert error.field == "latitude"

    def test_domain_error_passed_through(self, registry):
        _, error = dispatch(registry, "reject", b'{"latitude": 1, "longitude": 2}')

        assert error.code == "OUT_OF_RANGE"
        assert error.message == "no such place"
        assert error.status_code == 422

    def test_default_domain_error(self, registry):
        _, error = dispatch(registry, "rejectDefault", b'{"latitude": 1, "longitude": 2}')
        assert error.code == ERROR_TYPE_DEFAULT
        assert error.status_code is None

    def test_tuple_error(self, registry):
        response, error = dispatch(registry, "tupleError", b'{"message": "x"}')
        assert response is None
        assert error.code == "BUSY"

    def test_handler_crash(self, registry, caplog):
        with caplog.at_level(logging.ERROR, logger="api.contracts.dispatch"):
            _, error = dispatch(registry, "crash", b'{"latitude": 1, "longitude": 2}')

        assert error.code == INTERNAL_ERROR
        assert error.status_code == 500
        assert "boom" not in error.message
        assert any("Handler error for crash" in r.getMessage() for r in caplog.records)

    def test_unencodable_result(self, registry):
        _, error = dispatch(registry, "notEncodable", b'{"latitude": 1, "longitude": 2}')
        assert error.code == INTERNAL_ERROR


class TestResponseChecking:
    """Responses are checked against the response shape."""

    def test_warn_mode_returns_response(self, registry, caplog):
        dispatcher = Dispatcher(registry, mode=SchemaMode.WARN)
        with caplog.at_level(logging.WARNING, logger="api.contracts.dispatch"):
            response, error = dispatcher.dispatch("badResponse", b'{"latitude": 1, "longitude": 2}')

        assert error is None
        assert response["latitude"] == 500
        records = [r for r in caplog.records if getattr(r, "event", None) == "contract_violation"]
        assert records and records[0].stage == "response"

    def test_strict_mode_rejects_response(self, registry):
        dispatcher = Dispatcher(registry, mode=SchemaMode.STRICT)
        response, error = dispatcher.dispatch("badResponse", b'{"latitude": 1, "longitude": 2}')

        assert response is None
        assert error.code == RESPONSE_SCHEMA_MISMATCH
        assert error.status_code == 500

    def test_mode_from_env(self, registry, monkeypatch):
        monkeypatch.setenv("CONTRACT_MODE", "strict")
        assert Dispatcher(registry).mode is SchemaMode.STRICT


def test_request_violation_logged(registry, caplog):
    with caplog.at_level(logging.INFO, logger="api.contracts.dispatch"):
        dispatch(registry, "record", b'{"latitude": 100, "longitude": 1}')

    records = [r for r in caplog.records if getattr(r, "event", None) == "contract_violation"]
    assert len(records) == 1
    assert records[0].api_id == "record"
    assert records[0].stage == "request"
