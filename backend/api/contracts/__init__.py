"""
Contract enforcement package.

Provides shape descriptors, payload validation, the API registry and dispatch.
"""

from .descriptor import (
    Kind,
    Constraints,
    TypeSpec,
    FieldSpec,
    ObjectSchema,
    SchemaDefinitionError,
    api_field,
)
from .extract import describe_shape
from .errors import APIError, RegistrationError, DuplicateAPIError
from .registry import (
    APIContract,
    APISet,
    ContractRegistry,
    new_api,
    register_api_sets,
)
from .validate import (
    ConstraintViolation,
    ContractViolation,
    ValidationPolicy,
    ViolationReason,
    validate_payload,
    collect_violations,
)
from .dispatch import CallContext, Dispatcher, SchemaMode, dispatch

__all__ = [
    'Kind',
    'Constraints',
    'TypeSpec',
    'FieldSpec',
    'ObjectSchema',
    'SchemaDefinitionError',
    'api_field',
    'describe_shape',
    'APIError',
    'RegistrationError',
    'DuplicateAPIError',
    'APIContract',
    'APISet',
    'ContractRegistry',
    'new_api',
    'register_api_sets',
    'ConstraintViolation',
    'ContractViolation',
    'ValidationPolicy',
    'ViolationReason',
    'validate_payload',
    'collect_violations',
    'CallContext',
    'Dispatcher',
    'SchemaMode',
    'dispatch',
]
