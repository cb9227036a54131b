"""
Payload validation against schema descriptors.

Walks a decoded payload depth-first, fields in declared order, and reports:
- Missing required fields
- Kind mismatches (integer, float, string, boolean, object, array)
- Numeric values outside inclusive [min, max]
- Strings outside the allowed enum values

Fields present in the payload but not declared in the schema are accepted
(additive changes from clients must not break older servers).

Nothing here keeps state between calls; the same ObjectSchema can be checked
from any number of request threads.
"""

import json
import math
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .descriptor import Constraints, Kind, ObjectSchema, TypeSpec


class ViolationReason(Enum):
    MISSING_REQUIRED = "missing-required"
    TYPE_MISMATCH = "type-mismatch"
    BELOW_MIN = "below-min"
    ABOVE_MAX = "above-max"
    NOT_IN_ENUM = "not-in-enum"
    MALFORMED_PAYLOAD = "malformed-payload"


class ValidationPolicy(Enum):
    """How many violations a check reports."""
    FAIL_FAST = "fail_fast"      # Stop at the first violation (default)
    COLLECT_ALL = "collect_all"  # Report every violation


def get_default_policy() -> ValidationPolicy:
    """Get validation policy from environment."""
    raw = os.environ.get('CONTRACT_VALIDATION_POLICY', 'fail_fast').lower()
    return ValidationPolicy.COLLECT_ALL if raw == 'collect_all' else ValidationPolicy.FAIL_FAST


PathElement = Union[str, int]


def format_path(path: Tuple[PathElement, ...]) -> str:
    """Dotted path, array indexes in brackets: points[2].latitude"""
    out = ""
    for element in path:
        if isinstance(element, int):
            out += f"[{element}]"
        else:
            out += f".{element}" if out else element
    return out


@dataclass(frozen=True)
class ConstraintViolation:
    """A single rule broken by a payload."""
    field_path: Tuple[PathElement, ...]
    reason: ViolationReason
    message: str

    @property
    def path(self) -> str:
        return format_path(self.field_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldPath": list(self.field_path),
            "field": self.path,
            "reason": self.reason.value,
            "message": self.message,
        }


@dataclass
class ContractViolation(Exception):
    """Raised when a payload breaks its contract."""
    message: str
    violations: List[ConstraintViolation] = field(default_factory=list)

    def __str__(self):
        return self.message

    @property
    def first(self) -> Optional[ConstraintViolation]:
        return self.violations[0] if self.violations else None

    @property
    def details(self) -> Dict[str, Any]:
        return {"violations": [v.to_dict() for v in self.violations]}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "message": self.message,
            "details": self.details,
        }


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not valid JSON")


def decode_payload(raw: Union[bytes, str]) -> Any:
    """
    Decode a raw JSON payload into a value tree.

    Raises:
        ContractViolation: With reason malformed-payload if the bytes are not
            JSON or nest too deeply to decode
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        violation = ConstraintViolation(
            field_path=(),
            reason=ViolationReason.MALFORMED_PAYLOAD,
            message=f"Payload is not valid JSON: {e}",
        )
        raise ContractViolation(message=violation.message, violations=[violation]) from e


def iter_violations(schema: ObjectSchema, value: Any) -> Iterator[ConstraintViolation]:
    """
    Yield violations of `value` against `schema` in walk order.

    Consumers decide how many to take; the walk is lazy, so taking the first
    one does no further work.
    """
    if not isinstance(value, dict):
        yield ConstraintViolation(
            field_path=(),
            reason=ViolationReason.MALFORMED_PAYLOAD,
            message=f"Expected a JSON object for {schema.name}, got {_json_kind(value)}",
        )
        return
    yield from _iter_object(schema, value, ())


def validate_payload(schema: ObjectSchema, value: Any) -> Optional[ConstraintViolation]:
    """
    Check a decoded payload, stopping at the first problem.

    Returns:
        The first ConstraintViolation, or None if the payload is valid
    """
    return next(iter_violations(schema, value), None)


def collect_violations(schema: ObjectSchema, value: Any) -> List[ConstraintViolation]:
    """Check a decoded payload and return every violation."""
    return list(iter_violations(schema, value))


def check_payload(
    schema: ObjectSchema,
    value: Any,
    policy: Optional[ValidationPolicy] = None,
) -> None:
    """
    Validate a payload under the given policy.

    Raises:
        ContractViolation: If the payload breaks the schema
    """
    if policy is None:
        policy = get_default_policy()

    if policy is ValidationPolicy.COLLECT_ALL:
        violations = collect_violations(schema, value)
    else:
        first = validate_payload(schema, value)
        violations = [first] if first is not None else []

    if violations:
        if len(violations) == 1:
            message = violations[0].message
        else:
            message = f"{len(violations)} contract violation(s)"
        raise ContractViolation(message=message, violations=violations)


def _iter_object(schema: ObjectSchema, item: Dict[str, Any],
                 path: Tuple[PathElement, ...]) -> Iterator[ConstraintViolation]:
    for spec in schema.fields:
        field_path = path + (spec.name,)
        value = item.get(spec.name)

        if value is None:
            if spec.required:
                yield ConstraintViolation(
                    field_path=field_path,
                    reason=ViolationReason.MISSING_REQUIRED,
                    message=f"Field '{format_path(field_path)}' is required",
                )
            continue

        yield from _iter_value(spec.type, spec.constraints, value, field_path)


def _iter_value(type_spec: TypeSpec, constraints: Constraints, value: Any,
                path: Tuple[PathElement, ...]) -> Iterator[ConstraintViolation]:
    if not _kind_matches(type_spec.kind, value):
        yield ConstraintViolation(
            field_path=path,
            reason=ViolationReason.TYPE_MISMATCH,
            message=(
                f"Field '{format_path(path)}' expected {type_spec.describe()}, "
                f"got {_json_kind(value)}"
            ),
        )
        return

    if type_spec.kind is Kind.OBJECT:
        yield from _iter_object(type_spec.nested, value, path)
    elif type_spec.kind is Kind.ARRAY:
        for index, element in enumerate(value):
            yield from _iter_value(type_spec.items, constraints, element, path + (index,))
    elif type_spec.kind in (Kind.INTEGER, Kind.FLOAT):
        yield from _iter_bounds(constraints, value, path)
    elif type_spec.kind is Kind.STRING and constraints.allowed_values is not None:
        if value not in constraints.allowed_values:
            yield ConstraintViolation(
                field_path=path,
                reason=ViolationReason.NOT_IN_ENUM,
                message=(
                    f"'{value}' not in allowed values for '{format_path(path)}': "
                    f"{list(constraints.allowed_values)}"
                ),
            )


def _iter_bounds(constraints: Constraints, value: Union[int, float],
                 path: Tuple[PathElement, ...]) -> Iterator[ConstraintViolation]:
    if constraints.minimum is not None and value < constraints.minimum:
        yield ConstraintViolation(
            field_path=path,
            reason=ViolationReason.BELOW_MIN,
            message=f"Field '{format_path(path)}' is {value}, minimum is {constraints.minimum}",
        )
    elif constraints.maximum is not None and value > constraints.maximum:
        yield ConstraintViolation(
            field_path=path,
            reason=ViolationReason.ABOVE_MAX,
            message=f"Field '{format_path(path)}' is {value}, maximum is {constraints.maximum}",
        )


def _kind_matches(kind: Kind, value: Any) -> bool:
    """
    Check a decoded JSON value against a declared kind.

    bool is excluded from the numeric kinds (it subclasses int in Python).
    Integers are accepted where a float is declared, as long as they fit in one.
    """
    if kind is Kind.BOOLEAN:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if kind is Kind.INTEGER:
        return isinstance(value, int)
    if kind is Kind.FLOAT:
        if isinstance(value, int):
            return _fits_float(value)
        return isinstance(value, float) and math.isfinite(value)
    if kind is Kind.STRING:
        return isinstance(value, str)
    if kind is Kind.OBJECT:
        return isinstance(value, dict)
    if kind is Kind.ARRAY:
        return isinstance(value, list)
    return False


def _fits_float(value: int) -> bool:
    try:
        float(value)
    except OverflowError:
        return False
    return True


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


