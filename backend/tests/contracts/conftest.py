"""
Pytest fixtures for contract tests.
"""

import pytest

from api.contracts import APISet, describe_shape, new_api, register_api_sets

from contract_shapes import Echo, Named, Point, RequiredName, Track, echo_handler


@pytest.fixture
def point_schema():
    return describe_shape(Point)


@pytest.fixture
def named_schema():
    return describe_shape(Named)


@pytest.fixture
def required_name_schema():
    return describe_shape(RequiredName)


@pytest.fixture
def track_schema():
    return describe_shape(Track)


@pytest.fixture
def echo_set():
    return APISet(
        name="echo",
        description="Echo service",
        contracts=[new_api("echo", "Echo a message", request=Echo, response=Echo,
                           handler=echo_handler)],
    )


@pytest.fixture
def echo_registry(echo_set):
    return register_api_sets([echo_set])
