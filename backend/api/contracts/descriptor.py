"""
Schema descriptors - immutable, runtime-usable view of a shape definition.

A shape is a @dataclass whose fields may carry constraint metadata created by
api_field(). extract.describe_shape() turns a shape into an ObjectSchema once;
the validator and the documentation generator both read that ObjectSchema.

Vocabulary recognized in api_field():
- name:        wire name override (defaults to the attribute name)
- description: free text
- min / max:   numeric bounds, inclusive
- enum:        allowed string values ("A,B,C" or a sequence)
- required / optional: required-ness marker (fields are required by default)
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union


class Kind(Enum):
    """Value kinds a field can declare."""
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


NUMERIC_KINDS = frozenset({Kind.INTEGER, Kind.FLOAT})

Number = Union[int, float]

# Key under which api_field() stores its annotations in dataclass metadata
METADATA_KEY = "api_field"


class SchemaDefinitionError(Exception):
    """Raised at registration time for a shape that cannot be described."""

    def __init__(self, message: str, shape: Any = None, field: Optional[str] = None):
        super().__init__(message)
        self.shape = shape
        self.field = field


@dataclass(frozen=True)
class Constraints:
    """Per-field constraint set, parsed once when the descriptor is built."""
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None
    allowed_values: Optional[Tuple[str, ...]] = None
    description: str = ""


@dataclass(frozen=True)
class TypeSpec:
    """
    Declared kind of a value.

    OBJECT carries the nested ObjectSchema, ARRAY carries the element TypeSpec.
    """
    kind: Kind
    nested: Optional["ObjectSchema"] = None
    items: Optional["TypeSpec"] = None

    def leaf(self) -> "TypeSpec":
        """Innermost element type (self for non-arrays)."""
        spec = self
        while spec.kind is Kind.ARRAY:
            spec = spec.items
        return spec

    def describe(self) -> str:
        if self.kind is Kind.ARRAY:
            return f"array of {self.items.describe()}"
        if self.kind is Kind.OBJECT:
            return self.nested.name
        return self.kind.value


@dataclass(frozen=True)
class FieldSpec:
    """Specification for a single field of a shape."""
    name: str               # wire name
    attr: str               # attribute name on the shape
    type: TypeSpec
    required: bool = True
    constraints: Constraints = dataclasses.field(default_factory=Constraints)

    @property
    def kind(self) -> Kind:
        return self.type.kind

    @property
    def nested(self) -> Optional["ObjectSchema"]:
        """Child schema for object and array-of-object fields."""
        return self.type.leaf().nested

    @property
    def description(self) -> str:
        return self.constraints.description


@dataclass(frozen=True)
class ObjectSchema:
    """Descriptor for one shape: its type name and fields in declared order."""
    name: str
    shape: type
    fields: Tuple[FieldSpec, ...]
    description: str = ""

    def get_field(self, name: str) -> Optional[FieldSpec]:
        """Get field spec by wire name."""
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def get_required_fields(self):
        """Get list of required wire names."""
        return [spec.name for spec in self.fields if spec.required]

    def iter_schemas(self):
        """Yield this schema and every nested schema reachable from it, once each."""
        seen = set()
        stack = [self]
        while stack:
            schema = stack.pop(0)
            if schema.shape in seen:
                continue
            seen.add(schema.shape)
            yield schema
            for spec in schema.fields:
                if spec.nested is not None:
                    stack.append(spec.nested)


def api_field(
    *,
    name: Optional[str] = None,
    description: str = "",
    min: Any = None,
    max: Any = None,
    enum: Any = None,
    required: Optional[bool] = None,
    optional: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
):
    """
    Declare a shape field together with its constraint annotations.

    Usage:
        @dataclass
        class Point:
            latitude: int = api_field(description="latitude value", min=0, max=90)
            label: Optional[str] = api_field(name="Label", optional=True, default=None)

    Bounds and enum values are checked when the shape is described, not here,
    so string forms such as min="0" or enum="A,B" are accepted.
    """
    metadata = {
        METADATA_KEY: {
            "name": name,
            "description": description,
            "min": min,
            "max": max,
            "enum": enum,
            "required": required,
            "optional": optional,
        }
    }
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
    )
