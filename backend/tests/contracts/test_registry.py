"""
Registration tests.

Ids must be unique across every set served by one service; a duplicate is a
fatal startup error.
"""

import pytest

from api.contracts import (
    APISet,
    ContractRegistry,
    DuplicateAPIError,
    RegistrationError,
    SchemaDefinitionError,
    new_api,
    register_api_sets,
)

from contract_shapes import Echo, Point


def _get_feature(req, ctx):
    return req


class TestNewAPI:
    """Building registration records."""

    def test_record_fields(self):
        contract = new_api("getFeature", "Get a feature", request=Point, response=Point,
                           handler=_get_feature)

        assert contract.api_id == "getFeature"
        assert contract.summary == "Get a feature"
        assert contract.request_shape is Point
        assert contract.response_schema.name == "Point"
        assert contract.handler is _get_feature

    @pytest.mark.parametrize("api_id", ["", "get feature", "a/b", None])
    def test_invalid_id(self, api_id):
        with pytest.raises(RegistrationError, match="Invalid API id"):
            new_api(api_id, "x", request=Point, response=Point, handler=_get_feature)

    def test_handler_must_be_callable(self):
        with pytest.raises(RegistrationError, match="not callable"):
            new_api("getFeature", "x", request=Point, response=Point, handler="nope")

    def test_bad_shape_fails_at_registration(self):
        with pytest.raises(SchemaDefinitionError):
            new_api("getFeature", "x", request=dict, response=Point, handler=_get_feature)


class TestAPISet:
    """Ordered groups of records."""

    def test_decorator_registers_handler(self):
        api_set = APISet("echo")

        @api_set.api("echo", "Echo a message", request=Echo, response=Echo)
        def echo(req, ctx):
            return req

        assert len(api_set) == 1
        assert echo._api_contract.api_id == "echo"
        assert list(api_set)[0].handler is echo

    def test_order_preserved(self):
        api_set = APISet("geo")
        for api_id in ("c", "a", "b"):
            api_set.add(new_api(api_id, "", request=Point, response=Point, handler=_get_feature))

        assert [c.api_id for c in api_set] == ["c", "a", "b"]


class TestContractRegistry:
    """Lookup across sets and duplicate rejection."""

    def test_lookup(self, echo_registry):
        assert "echo" in echo_registry
        assert echo_registry.get("echo").summary == "Echo a message"
        assert echo_registry.get("missing") is None
        assert echo_registry.set_name_for("echo") == "echo"
        assert echo_registry.list_contracts() == ["echo"]
        assert len(echo_registry) == 1

    def test_contracts_read_only(self, echo_registry):
        with pytest.raises(TypeError):
            echo_registry.contracts["other"] = None

    def test_duplicate_across_sets(self):
        first = APISet("routeGuide", [
            new_api("getFeature", "", request=Point, response=Point, handler=_get_feature),
        ])
        second = APISet("other", [
            new_api("getFeature", "", request=Point, response=Point, handler=_get_feature),
        ])

        with pytest.raises(DuplicateAPIError) as exc_info:
            register_api_sets([first, second])

        error = exc_info.value
        assert error.api_id == "getFeature"
        assert error.first_set == "routeGuide"
        assert error.second_set == "other"
        assert "getFeature" in str(error)

    def test_duplicate_within_set(self):
        api_set = APISet("geo", [
            new_api("getFeature", "", request=Point, response=Point, handler=_get_feature),
            new_api("getFeature", "", request=Point, response=Point, handler=_get_feature),
        ])
        with pytest.raises(DuplicateAPIError):
            ContractRegistry([api_set])

    def test_same_set_twice(self, echo_set):
        with pytest.raises(DuplicateAPIError):
            register_api_sets([echo_set, echo_set])

    def test_is_registration_error(self, echo_set):
        with pytest.raises(RegistrationError):
            register_api_sets([echo_set, echo_set])

    def test_sets_in_order(self, echo_set):
        other = APISet("geo", [
            new_api("getFeature", "", request=Point, response=Point, handler=_get_feature),
        ])
        registry = register_api_sets([echo_set, other])

        assert [s.name for s in registry.api_sets] == ["echo", "geo"]
        assert [c.api_id for c in registry] == ["echo", "getFeature"]
