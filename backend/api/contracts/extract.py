"""
Schema extraction - derives an ObjectSchema from a dataclass shape.

Runs once per shape at registration time; results are cached for the process
lifetime. Every problem with a shape (unsupported annotation, constraint on the
wrong kind, malformed bounds, self-reference) raises SchemaDefinitionError so
that startup fails instead of a request.
"""

import collections.abc
import dataclasses
import inspect
import logging
import threading
import types
import typing
from typing import Any, Dict, Optional, Tuple

from .descriptor import (
    METADATA_KEY,
    NUMERIC_KINDS,
    Constraints,
    FieldSpec,
    Kind,
    ObjectSchema,
    SchemaDefinitionError,
    TypeSpec,
)


logger = logging.getLogger('api.contracts')

_SCALAR_KINDS = {
    bool: Kind.BOOLEAN,
    int: Kind.INTEGER,
    float: Kind.FLOAT,
    str: Kind.STRING,
}

_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence)

# `int | None` style unions (Python 3.10+)
_UNION_ORIGINS = tuple(
    origin for origin in (typing.Union, getattr(types, "UnionType", None)) if origin is not None
)

_SCHEMA_CACHE: Dict[type, ObjectSchema] = {}
_CACHE_LOCK = threading.RLock()


def describe_shape(shape: type) -> ObjectSchema:
    """
    Get the ObjectSchema for a shape, building it on first use.

    Args:
        shape: A @dataclass class

    Returns:
        The cached, immutable ObjectSchema

    Raises:
        SchemaDefinitionError: If the shape cannot be described
    """
    cached = _SCHEMA_CACHE.get(shape)
    if cached is not None:
        return cached
    with _CACHE_LOCK:
        return _describe(shape, ())


def clear_schema_cache() -> None:
    """Clear cached descriptors (for testing)."""
    with _CACHE_LOCK:
        _SCHEMA_CACHE.clear()


def _describe(shape: Any, in_progress: Tuple[type, ...]) -> ObjectSchema:
    if shape in in_progress:
        chain = " -> ".join(s.__name__ for s in in_progress + (shape,))
        raise SchemaDefinitionError(f"Self-referential shape: {chain}", shape=shape)

    cached = _SCHEMA_CACHE.get(shape)
    if cached is not None:
        return cached

    if not (inspect.isclass(shape) and dataclasses.is_dataclass(shape)):
        raise SchemaDefinitionError(
            f"Shape definition must be a dataclass class, got {shape!r}",
            shape=shape,
        )

    try:
        hints = typing.get_type_hints(shape)
    except NameError as e:
        raise SchemaDefinitionError(
            f"Cannot resolve annotations of {shape.__name__}: {e}",
            shape=shape,
        ) from e

    stack = in_progress + (shape,)
    fields = []
    seen_names = set()
    for dc_field in dataclasses.fields(shape):
        spec = _build_field(shape, dc_field, hints[dc_field.name], stack)
        if spec.name in seen_names:
            raise SchemaDefinitionError(
                f"{shape.__name__}: duplicate field name '{spec.name}'",
                shape=shape,
                field=dc_field.name,
            )
        seen_names.add(spec.name)
        fields.append(spec)

    schema = ObjectSchema(
        name=shape.__name__,
        shape=shape,
        fields=tuple(fields),
        description=_shape_description(shape),
    )
    _SCHEMA_CACHE[shape] = schema
    logger.debug("Described shape %s (%d fields)", schema.name, len(fields))
    return schema


def _build_field(shape: type, dc_field: dataclasses.Field, hint: Any,
                 stack: Tuple[type, ...]) -> FieldSpec:
    annotations = dc_field.metadata.get(METADATA_KEY, {})
    type_spec, nullable = _resolve_type(shape, dc_field.name, hint, stack)

    wire_name = annotations.get("name") or dc_field.name
    if not isinstance(wire_name, str) or not wire_name.strip():
        raise SchemaDefinitionError(
            f"{shape.__name__}.{dc_field.name}: field name must be a non-empty string",
            shape=shape,
            field=dc_field.name,
        )

    if annotations.get("optional"):
        required = False
    elif annotations.get("required") is not None:
        required = bool(annotations["required"])
    else:
        required = not nullable

    constraints = _build_constraints(shape, dc_field.name, type_spec, annotations)
    return FieldSpec(
        name=wire_name.strip(),
        attr=dc_field.name,
        type=type_spec,
        required=required,
        constraints=constraints,
    )


def _resolve_type(shape: type, attr: str, hint: Any,
                  stack: Tuple[type, ...]) -> Tuple[TypeSpec, bool]:
    """Map an annotation to a TypeSpec. Returns (spec, nullable)."""
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin in _UNION_ORIGINS:
        non_null = [a for a in args if a is not type(None)]
        if len(non_null) != 1:
            raise SchemaDefinitionError(
                f"{shape.__name__}.{attr}: union types are not supported ({hint!r})",
                shape=shape,
                field=attr,
            )
        spec, _ = _resolve_type(shape, attr, non_null[0], stack)
        return spec, True

    return _resolve_value_type(shape, attr, hint, stack), False


def _resolve_value_type(shape: type, attr: str, hint: Any,
                        stack: Tuple[type, ...]) -> TypeSpec:
    if hint in _SCALAR_KINDS:
        return TypeSpec(kind=_SCALAR_KINDS[hint])

    origin = typing.get_origin(hint)
    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(hint)
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            args = args[:1]
        if len(args) != 1:
            raise SchemaDefinitionError(
                f"{shape.__name__}.{attr}: sequences need exactly one element type ({hint!r})",
                shape=shape,
                field=attr,
            )
        items = _resolve_value_type(shape, attr, args[0], stack)
        return TypeSpec(kind=Kind.ARRAY, items=items)

    if inspect.isclass(hint) and dataclasses.is_dataclass(hint):
        return TypeSpec(kind=Kind.OBJECT, nested=_describe(hint, stack))

    raise SchemaDefinitionError(
        f"{shape.__name__}.{attr}: unsupported field type {hint!r}",
        shape=shape,
        field=attr,
    )


def _build_constraints(shape: type, attr: str, type_spec: TypeSpec,
                       annotations: Dict[str, Any]) -> Constraints:
    leaf_kind = type_spec.leaf().kind
    raw_min = annotations.get("min")
    raw_max = annotations.get("max")
    raw_enum = annotations.get("enum")

    if (raw_min is not None or raw_max is not None) and leaf_kind not in NUMERIC_KINDS:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: min/max only apply to numeric fields, "
            f"field is {type_spec.describe()}",
            shape=shape,
            field=attr,
        )
    if raw_enum is not None and leaf_kind is not Kind.STRING:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: enum only applies to string fields, "
            f"field is {type_spec.describe()}",
            shape=shape,
            field=attr,
        )

    minimum = _parse_bound(shape, attr, "min", raw_min, leaf_kind)
    maximum = _parse_bound(shape, attr, "max", raw_max, leaf_kind)
    if minimum is not None and maximum is not None and minimum > maximum:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: min ({minimum}) is greater than max ({maximum})",
            shape=shape,
            field=attr,
        )

    return Constraints(
        minimum=minimum,
        maximum=maximum,
        allowed_values=_parse_enum(shape, attr, raw_enum),
        description=(annotations.get("description") or "").strip(),
    )


def _parse_bound(shape: type, attr: str, label: str, value: Any, kind: Kind):
    if value is None:
        return None
    if isinstance(value, bool):
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: {label} must be a number, got {value!r}",
            shape=shape,
            field=attr,
        )
    try:
        if isinstance(value, str):
            number = float(value.strip()) if kind is Kind.FLOAT else int(value.strip())
        elif isinstance(value, (int, float)):
            number = value
        else:
            raise TypeError(type(value).__name__)
    except (TypeError, ValueError) as e:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: malformed {label} bound {value!r}",
            shape=shape,
            field=attr,
        ) from e

    if kind is Kind.INTEGER and isinstance(number, float):
        if not number.is_integer():
            raise SchemaDefinitionError(
                f"{shape.__name__}.{attr}: {label} bound {value!r} is not an integer",
                shape=shape,
                field=attr,
            )
        number = int(number)
    return number


def _parse_enum(shape: type, attr: str, value: Any) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, (set, frozenset)):
        items = sorted(value, key=str)
    else:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: enum must be a comma-separated string or a sequence",
            shape=shape,
            field=attr,
        )

    allowed = []
    for item in items:
        if not isinstance(item, str):
            raise SchemaDefinitionError(
                f"{shape.__name__}.{attr}: enum values must be strings, got {item!r}",
                shape=shape,
                field=attr,
            )
        if item and item not in allowed:
            allowed.append(item)
    if not allowed:
        raise SchemaDefinitionError(
            f"{shape.__name__}.{attr}: enum declares no values",
            shape=shape,
            field=attr,
        )
    return tuple(allowed)


def _shape_description(shape: type) -> str:
    doc = shape.__doc__ or ""
    # dataclass generates "Name(field: type, ...)" when the class has no docstring
    if not doc or doc.startswith(f"{shape.__name__}("):
        return ""
    return inspect.cleandoc(doc)
