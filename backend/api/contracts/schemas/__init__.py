"""
API sets served by the application.

Each module defines one APISet; API_SETS lists them in registration order.
"""

from .route_guide import ROUTE_GUIDE_APIS

API_SETS = [
    ROUTE_GUIDE_APIS,
]

__all__ = ['API_SETS', 'ROUTE_GUIDE_APIS']
