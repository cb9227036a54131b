"""
Shapes for the routeGuide API set.

Wire names come from api_field(name=...), otherwise the attribute name is used.
"""

from dataclasses import dataclass
from typing import List, Optional

from api.contracts import api_field


CITY_NAMES = ("GuangZhou", "Beijing", "Shenzhen", "Shanghai")


@dataclass
class Point:
    """A position given as whole degrees."""
    latitude: int = api_field(description="latitude value", min=0, max=90)
    longitude: int = api_field(description="longitude value", min=0, max=180)


@dataclass
class Feature:
    """A named city at a point."""
    location: Point = api_field(description="where the feature is")
    name: Optional[str] = api_field(
        name="Name",
        description="city name",
        enum=",".join(CITY_NAMES),
        default=None,
    )


@dataclass
class Rectangle:
    """Two opposite corners of a latitude/longitude box."""
    lo: Point = api_field(description="one corner")
    hi: Point = api_field(description="the opposite corner")


@dataclass
class FeatureList:
    features: List[Feature] = api_field(description="features inside the box")
