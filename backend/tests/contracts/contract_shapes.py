"""
Shapes shared by the contract tests.

A Point with bounded coordinates, a Named thing with an enum name, and a few
shapes exercising arrays, optional fields and defaults.
"""

from dataclasses import dataclass
from typing import List, Optional

from api.contracts import api_field


@dataclass
class Point:
    latitude: int = api_field(description="latitude value", min=0, max=90)
    longitude: int = api_field(description="longitude value", min=0, max=180)


@dataclass
class Location:
    lat: int = api_field(min=0, max=90)


@dataclass
class Named:
    """Something with a name."""
    name: str = api_field(enum="A,B")
    location: Location = api_field(description="where it is")


@dataclass
class RequiredName:
    name: str = api_field()


@dataclass
class Track:
    points: List[Point] = api_field(description="points along the track")
    label: Optional[str] = api_field(default=None)
    speeds: List[float] = api_field(min=0, max=300, optional=True, default_factory=list)


@dataclass
class Echo:
    message: str = api_field(description="text to echo")
    repeat: int = api_field(min=1, max=3, optional=True, default=1)


def echo_handler(req, ctx):
    return Echo(message=req.message * req.repeat)
