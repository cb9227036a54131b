# Request/response shapes for the bundled APIs
from .route_guide import (
    CITY_NAMES,
    Point,
    Feature,
    Rectangle,
    FeatureList,
)

__all__ = [
    'CITY_NAMES',
    'Point',
    'Feature',
    'Rectangle',
    'FeatureList',
]
