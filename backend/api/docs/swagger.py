"""
Swagger 2.0 document generation from registered APIs.

Every operation and every definition is derived from the same ObjectSchemas
the validator enforces, so the published constraints match behavior:
- required          -> definition "required" list
- min / max         -> "minimum" / "maximum"
- enum              -> "enum"
- description       -> "description"

Each shape becomes one entry in "definitions" and is referenced by $ref from
operations and from other definitions. Shapes that share a class name but come
from different modules get module-qualified definition names.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from api.contracts.descriptor import Constraints, Kind, ObjectSchema, TypeSpec
from api.contracts.registry import APIContract, ContractRegistry
from config import ServiceConf


logger = logging.getLogger('api.docs')

SWAGGER_VERSION = "2.0"
JSON_MIME = "application/json"
ERROR_DEFINITION = "APIError"
REF_PREFIX = "#/definitions/"

_SCALAR_TYPES = {
    Kind.INTEGER: {"type": "integer", "format": "int64"},
    Kind.FLOAT: {"type": "number", "format": "double"},
    Kind.STRING: {"type": "string"},
    Kind.BOOLEAN: {"type": "boolean"},
}


class DocumentationError(Exception):
    """Raised when a document cannot be produced."""


@dataclass
class SwaggerDocument:
    """A generated document plus the operations that had to be left out."""
    document: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


def error_definition() -> Dict[str, Any]:
    """Definition of the structured error every operation can return."""
    return {
        "type": "object",
        "required": ["code", "message"],
        "properties": {
            "code": {"type": "string", "description": "error code"},
            "message": {"type": "string", "description": "error message"},
            "requestId": {"type": "string", "description": "request correlation id"},
            "field": {"type": "string", "description": "offending field path"},
            "details": {"type": "object", "description": "additional details"},
        },
    }


class DefinitionNames:
    """Assigns one definition name per shape, stable across the document."""

    def __init__(self, reserved: Iterable[str] = ()):
        self._by_shape: Dict[type, str] = {}
        self._taken = set(reserved)

    def assign(self, schema: ObjectSchema) -> str:
        name = self._by_shape.get(schema.shape)
        if name is not None:
            return name

        name = schema.name
        if name in self._taken:
            module = schema.shape.__module__.rsplit(".", 1)[-1]
            name = f"{module}.{schema.name}"
        base, counter = name, 2
        while name in self._taken:
            name = f"{base}{counter}"
            counter += 1

        self._by_shape[schema.shape] = name
        self._taken.add(name)
        return name

    def get(self, schema: ObjectSchema) -> str:
        try:
            return self._by_shape[schema.shape]
        except KeyError:
            raise DocumentationError(
                f"No definition registered for shape {schema.name}"
            ) from None


def ref(name: str) -> Dict[str, str]:
    return {"$ref": REF_PREFIX + name}


def build_swagger(registry: ContractRegistry, conf: ServiceConf) -> SwaggerDocument:
    """
    Project every registered API into a Swagger 2.0 document.

    Operations that fail to project are skipped and reported in
    SwaggerDocument.warnings. Problems with the document as a whole raise.

    Raises:
        DocumentationError: If the document cannot be produced at all
    """
    names = DefinitionNames(reserved=[ERROR_DEFINITION])
    definitions: Dict[str, Any] = {ERROR_DEFINITION: error_definition()}
    paths: Dict[str, Any] = {}
    tags: List[Dict[str, str]] = []
    warnings: List[str] = []

    for api_set in registry.api_sets:
        tag = {"name": api_set.name}
        if api_set.description:
            tag["description"] = api_set.description
        tags.append(tag)

        for contract in api_set:
            try:
                schemas = _contract_schemas(contract)
                for schema in schemas:
                    names.assign(schema)
                new_definitions = {}
                for schema in schemas:
                    name = names.get(schema)
                    if name not in definitions:
                        new_definitions[name] = build_definition(schema, names)
                operation = build_operation(contract, api_set.name, names)
            except DocumentationError as e:
                message = f"Skipped API '{contract.api_id}': {e}"
                logger.warning(message)
                warnings.append(message)
                continue

            definitions.update(new_definitions)
            paths[conf.api_path(contract.api_id)] = {"post": operation}

    document = {
        "swagger": SWAGGER_VERSION,
        "info": build_info(conf),
        "host": conf.host,
        "basePath": "/",
        "schemes": [conf.scheme],
        "tags": tags,
        "paths": paths,
        "definitions": definitions,
    }
    check_refs(document)
    return SwaggerDocument(document=document, warnings=warnings)


def build_info(conf: ServiceConf) -> Dict[str, Any]:
    description = conf.description
    if conf.build_time:
        build_line = f"Build time: {conf.build_time}"
        description = f"{description}\n\n{build_line}" if description else build_line

    info = {
        "title": conf.service_name,
        "version": conf.version,
    }
    if description:
        info["description"] = description
    return info


def build_operation(contract: APIContract, tag: str, names: DefinitionNames) -> Dict[str, Any]:
    """One POST operation: body = request definition, 200 = response definition."""
    body = {
        "in": "body",
        "name": "body",
        "required": True,
        "schema": ref(names.get(contract.request_schema)),
    }
    if contract.request_schema.description:
        body["description"] = contract.request_schema.description

    return {
        "tags": [tag],
        "summary": contract.summary,
        "operationId": contract.api_id,
        "consumes": [JSON_MIME],
        "produces": [JSON_MIME],
        "parameters": [body],
        "responses": {
            "200": {
                "description": contract.response_schema.description or "successful operation",
                "schema": ref(names.get(contract.response_schema)),
            },
            "default": {
                "description": "error",
                "schema": ref(ERROR_DEFINITION),
            },
        },
    }


def build_definition(schema: ObjectSchema, names: DefinitionNames) -> Dict[str, Any]:
    """Object definition for one shape; nested shapes are referenced, not inlined."""
    properties = {}
    for spec in schema.fields:
        prop = build_type(spec.type, spec.constraints, names)
        if spec.description:
            if "$ref" in prop:
                # siblings of $ref are ignored by Swagger 2.0 tooling
                prop = {"allOf": [prop]}
            prop["description"] = spec.description
        properties[spec.name] = prop

    definition: Dict[str, Any] = {"type": "object"}
    if schema.description:
        definition["description"] = schema.description
    required = schema.get_required_fields()
    if required:
        definition["required"] = required
    definition["properties"] = properties
    return definition


def build_type(type_spec: TypeSpec, constraints: Constraints,
               names: DefinitionNames) -> Dict[str, Any]:
    """Property schema for a TypeSpec. Constraints land on the innermost element."""
    if type_spec.kind is Kind.ARRAY:
        return {
            "type": "array",
            "items": build_type(type_spec.items, constraints, names),
        }
    if type_spec.kind is Kind.OBJECT:
        return ref(names.get(type_spec.nested))

    prop = dict(_SCALAR_TYPES[type_spec.kind])
    if constraints.minimum is not None:
        prop["minimum"] = constraints.minimum
    if constraints.maximum is not None:
        prop["maximum"] = constraints.maximum
    if constraints.allowed_values is not None:
        prop["enum"] = list(constraints.allowed_values)
    return prop


def check_refs(document: Dict[str, Any]) -> None:
    """
    Verify every $ref points at a definition in the document.

    Raises:
        DocumentationError: Listing unresolved references
    """
    definitions = document.get("definitions", {})
    missing = sorted({
        target for target in _iter_refs(document)
        if not target.startswith(REF_PREFIX) or target[len(REF_PREFIX):] not in definitions
    })
    if missing:
        raise DocumentationError(f"Unresolved references: {', '.join(missing)}")


def _iter_refs(node: Any):
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                yield value
            else:
                yield from _iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from _iter_refs(item)


def _contract_schemas(contract: APIContract) -> List[ObjectSchema]:
    schemas: List[ObjectSchema] = []
    seen = set()
    for root in (contract.request_schema, contract.response_schema):
        for schema in root.iter_schemas():
            if schema.shape not in seen:
                seen.add(schema.shape)
                schemas.append(schema)
    return schemas


def find_definition(document: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    """Look up a definition by name (helper for clients and tests)."""
    return document.get("definitions", {}).get(name)
