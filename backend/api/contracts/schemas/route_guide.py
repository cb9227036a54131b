"""
API set for the route guide.

APIs:
- POST /{service}/{version}/getFeature
- POST /{service}/{version}/listFeatures
"""

from ..registry import APISet, new_api

from schemas.route_guide import Feature, FeatureList, Point, Rectangle
from services.route_guide_service import get_feature, list_features


# =============================================================================
# routeGuide
# =============================================================================

ROUTE_GUIDE_APIS = APISet(
    name="routeGuide",
    description="Look up cities by position",
    contracts=[
        new_api(
            "getFeature",
            "Get the feature at a point",
            request=Point,
            response=Feature,
            handler=get_feature,
        ),
        new_api(
            "listFeatures",
            "List the features inside a rectangle",
            request=Rectangle,
            response=FeatureList,
            handler=list_features,
        ),
    ],
)
