"""
Route Guide Service

Looks up cities in a small in-memory table by position.

Used by the routeGuide API set (getFeature, listFeatures).
"""

import logging
from typing import Dict, List

from api.contracts import APIError, CallContext
from api.contracts.errors import ERROR_TYPE_DEFAULT
from schemas.route_guide import Feature, FeatureList, Point, Rectangle

logger = logging.getLogger('route_guide')


# City name -> (latitude, longitude), whole degrees
CITY_LOCATIONS: Dict[str, tuple] = {
    "GuangZhou": (23, 113),
    "Beijing": (39, 116),
    "Shenzhen": (22, 114),
    "Shanghai": (31, 121),
}


def find_city(latitude: int, longitude: int):
    """Return the city at exactly this position, or None."""
    for name, position in CITY_LOCATIONS.items():
        if position == (latitude, longitude):
            return name
    return None


def get_feature(req: Point, ctx: CallContext) -> Feature:
    """
    Get the feature at a point.

    A point with no known city yields a feature without a name.
    """
    name = find_city(req.latitude, req.longitude)
    logger.debug(
        "getFeature lat=%s lon=%s city=%s request_id=%s",
        req.latitude, req.longitude, name, ctx.request_id,
    )
    return Feature(location=req, name=name)


def list_features(req: Rectangle, ctx: CallContext) -> FeatureList:
    """
    List the cities inside a rectangle (edges included).

    Corners may be given in either order. A rectangle whose corners are the
    same point is rejected as a domain error.
    """
    if (req.lo.latitude, req.lo.longitude) == (req.hi.latitude, req.hi.longitude):
        raise APIError(
            code=ERROR_TYPE_DEFAULT,
            message="Rectangle corners must differ",
        )

    lat_lo, lat_hi = sorted((req.lo.latitude, req.hi.latitude))
    lon_lo, lon_hi = sorted((req.lo.longitude, req.hi.longitude))

    features: List[Feature] = []
    for name, (lat, lon) in CITY_LOCATIONS.items():
        if lat_lo <= lat <= lat_hi and lon_lo <= lon <= lon_hi:
            features.append(Feature(location=Point(latitude=lat, longitude=lon), name=name))

    return FeatureList(features=features)
