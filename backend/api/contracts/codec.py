"""
Conversion between wire payloads and shape instances.

materialize() builds the request dataclass from a payload that already passed
validation. encode_response() turns whatever a handler returned (shape
instance or dict) into JSON-ready data using the schema's wire names.
"""

import dataclasses
from enum import Enum
from typing import Any, Dict

from .descriptor import Kind, ObjectSchema, TypeSpec


def materialize(schema: ObjectSchema, payload: Dict[str, Any]) -> Any:
    """
    Build an instance of schema.shape from a validated payload.

    Absent optional fields fall back to the dataclass default, or None when the
    field declares no default.
    """
    init_fields = {f.name: f for f in dataclasses.fields(schema.shape) if f.init}
    kwargs = {}

    for spec in schema.fields:
        dc_field = init_fields.get(spec.attr)
        if dc_field is None:
            continue

        value = payload.get(spec.name)
        if value is None:
            has_default = (
                dc_field.default is not dataclasses.MISSING
                or dc_field.default_factory is not dataclasses.MISSING
            )
            if not has_default:
                kwargs[spec.attr] = None
            continue

        kwargs[spec.attr] = _materialize_value(spec.type, value)

    return schema.shape(**kwargs)


def _materialize_value(type_spec: TypeSpec, value: Any) -> Any:
    if value is None:
        return None
    if type_spec.kind is Kind.OBJECT:
        return materialize(type_spec.nested, value)
    if type_spec.kind is Kind.ARRAY:
        return [_materialize_value(type_spec.items, item) for item in value]
    if type_spec.kind is Kind.FLOAT:
        return float(value)
    return value


def encode_response(schema: ObjectSchema, value: Any) -> Any:
    """
    Encode a handler result (shape instance or dict) for the wire.

    Optional fields whose value is None are omitted.

    Raises:
        TypeError: If the value cannot be read as the schema's shape
    """
    return encode_object(schema, value)


def encode_object(schema: ObjectSchema, obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        def read(spec):
            if spec.name in obj:
                return obj[spec.name]
            return obj.get(spec.attr)
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        def read(spec):
            return getattr(obj, spec.attr, None)
    else:
        raise TypeError(f"Cannot encode {type(obj).__name__} as {schema.name}")

    out = {}
    for spec in schema.fields:
        value = read(spec)
        if value is None and not spec.required:
            continue
        out[spec.name] = _encode_value(spec.type, value)
    return out


def _encode_value(type_spec: TypeSpec, value: Any) -> Any:
    if value is None:
        return None
    if type_spec.kind is Kind.OBJECT:
        return encode_object(type_spec.nested, value)
    if type_spec.kind is Kind.ARRAY:
        return [_encode_value(type_spec.items, item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value
