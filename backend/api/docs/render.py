"""
Serialized API documentation.

generate_docs() produces the JSON and YAML texts once at startup. Generation is
best-effort: any failure is logged as a warning and yields an empty document,
never an exception, so a docs problem cannot take the service down.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

from api.contracts.registry import ContractRegistry
from config import ServiceConf

from .swagger import DocumentationError, build_swagger


logger = logging.getLogger('api.docs')


def to_json(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def to_yaml(document: Dict[str, Any]) -> str:
    return yaml.safe_dump(
        document,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


@dataclass(frozen=True)
class SwaggerDocs:
    """Immutable snapshot of the generated document in both encodings."""
    document: Dict[str, Any]
    json_text: str
    yaml_text: str
    warnings: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.document

    def get_document_json(self) -> str:
        return self.json_text

    def get_document_yaml(self) -> str:
        return self.yaml_text


def empty_docs(reason: str) -> SwaggerDocs:
    return SwaggerDocs(
        document={},
        json_text=to_json({}),
        yaml_text=to_yaml({}),
        warnings=[reason],
    )


def generate_docs(registry: ContractRegistry, conf: ServiceConf) -> SwaggerDocs:
    """
    Build and serialize the Swagger document.

    Returns:
        SwaggerDocs; empty (with a warning) if generation failed
    """
    try:
        result = build_swagger(registry, conf)
        docs = SwaggerDocs(
            document=result.document,
            json_text=to_json(result.document),
            yaml_text=to_yaml(result.document),
            warnings=list(result.warnings),
        )
    except DocumentationError as e:
        logger.warning(f"Swagger generation failed, serving empty document: {e}")
        return empty_docs(str(e))
    except Exception as e:
        logger.warning(
            f"Swagger generation failed, serving empty document: {e}",
            exc_info=True,
        )
        return empty_docs(f"internal error: {e}")

    if result.is_partial:
        logger.warning(
            "Swagger document is partial (%d API(s) skipped)", len(docs.warnings)
        )
    else:
        logger.info(
            "Swagger document generated: %d path(s), %d definition(s)",
            len(docs.document["paths"]),
            len(docs.document["definitions"]),
        )
    return docs
