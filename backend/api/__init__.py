"""
API package - declarative RPC layer.

This package provides:
- Shape descriptors and the API registry (contracts)
- Payload validation and dispatch (contracts)
- Swagger document generation (docs)
- Global middleware (request_id, error_envelope, request_logging)
"""

from .contracts import APISet, api_field, new_api, register_api_sets

__all__ = ['APISet', 'api_field', 'new_api', 'register_api_sets']
