"""
API documentation generated from the contract registry.
"""

from .swagger import DocumentationError, SwaggerDocument, build_swagger
from .render import SwaggerDocs, generate_docs, to_json, to_yaml

__all__ = [
    'DocumentationError',
    'SwaggerDocument',
    'build_swagger',
    'SwaggerDocs',
    'generate_docs',
    'to_json',
    'to_yaml',
]
