"""
Contract Registry - Single source of truth for registered APIs.

Each API has:
- id: unique name, also the last path segment (/{service}/{version}/{id})
- summary: free text carried into the generated docs verbatim
- request schema: what callers send (validated before the handler runs)
- response schema: what the handler returns
- handler: fn(request, context) -> response

APIs are grouped into named APISets (one per feature area). At startup the sets
are flattened into a ContractRegistry; a repeated id anywhere is fatal.
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .descriptor import ObjectSchema
from .errors import DuplicateAPIError, RegistrationError
from .extract import describe_shape


logger = logging.getLogger('api.contracts')

# ids become URL path segments
_API_ID_PATTERN = re.compile(r'^[A-Za-z0-9_.\-]+$')

Handler = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class APIContract:
    """Registration record for one callable API."""
    api_id: str
    summary: str
    request_schema: ObjectSchema
    response_schema: ObjectSchema
    handler: Handler

    @property
    def request_shape(self) -> type:
        return self.request_schema.shape

    @property
    def response_shape(self) -> type:
        return self.response_schema.shape


def new_api(
    api_id: str,
    summary: str,
    request: type,
    response: type,
    handler: Handler,
) -> APIContract:
    """
    Build a registration record.

    Shapes are described here, so a malformed shape fails at import/startup.

    Args:
        api_id: Unique API id (letters, digits, '_', '-', '.')
        summary: Human-readable summary
        request: Request shape (dataclass)
        response: Response shape (dataclass)
        handler: Callable taking (request instance, CallContext)

    Raises:
        RegistrationError: For a bad id or handler
        SchemaDefinitionError: For a shape that cannot be described
    """
    if not isinstance(api_id, str) or not _API_ID_PATTERN.match(api_id):
        raise RegistrationError(f"Invalid API id {api_id!r}")
    if not callable(handler):
        raise RegistrationError(f"Handler for '{api_id}' is not callable")

    return APIContract(
        api_id=api_id,
        summary=summary or "",
        request_schema=describe_shape(request),
        response_schema=describe_shape(response),
        handler=handler,
    )


@dataclass
class APISet:
    """Ordered, named group of APIs."""
    name: str
    contracts: List[APIContract] = field(default_factory=list)
    description: str = ""

    def add(self, contract: APIContract) -> APIContract:
        self.contracts.append(contract)
        return contract

    def api(self, api_id: str, summary: str, *, request: type, response: type):
        """
        Decorator that registers a handler in this set.

        Usage:
            route_guide = APISet("routeGuide")

            @route_guide.api("getFeature", "Get the feature at a point",
                             request=Point, response=Feature)
            def get_feature(req: Point, ctx: CallContext) -> Feature:
                ...
        """
        def decorator(func: Callable) -> Callable:
            func._api_contract = self.add(new_api(api_id, summary, request, response, func))
            return func
        return decorator

    def __iter__(self) -> Iterator[APIContract]:
        return iter(self.contracts)

    def __len__(self) -> int:
        return len(self.contracts)


class ContractRegistry:
    """
    Read-only id -> APIContract mapping built once at startup.

    Raises:
        DuplicateAPIError: If an id appears twice across all sets
    """

    def __init__(self, api_sets: Iterable[APISet]):
        contracts: Dict[str, APIContract] = {}
        set_names: Dict[str, str] = {}
        sets = []

        for api_set in api_sets:
            sets.append(api_set)
            for contract in api_set:
                if contract.api_id in contracts:
                    raise DuplicateAPIError(
                        contract.api_id, set_names[contract.api_id], api_set.name
                    )
                contracts[contract.api_id] = contract
                set_names[contract.api_id] = api_set.name

        self._contracts = MappingProxyType(contracts)
        self._set_names = MappingProxyType(set_names)
        self._sets = tuple(sets)

    @property
    def api_sets(self):
        return self._sets

    @property
    def contracts(self):
        return self._contracts

    def get(self, api_id: str) -> Optional[APIContract]:
        """Get contract for an id, None if not registered."""
        return self._contracts.get(api_id)

    def set_name_for(self, api_id: str) -> Optional[str]:
        return self._set_names.get(api_id)

    def list_contracts(self) -> List[str]:
        """Get list of registered ids in registration order."""
        return list(self._contracts.keys())

    def __contains__(self, api_id: object) -> bool:
        return api_id in self._contracts

    def __iter__(self) -> Iterator[APIContract]:
        return iter(self._contracts.values())

    def __len__(self) -> int:
        return len(self._contracts)


def register_api_sets(api_sets: Iterable[APISet]) -> ContractRegistry:
    """
    Flatten API sets into the registry used for dispatch and docs.

    Args:
        api_sets: The APISets to serve

    Returns:
        ContractRegistry keyed by API id

    Raises:
        DuplicateAPIError: If the same id is registered twice
    """
    registry = ContractRegistry(api_sets)
    logger.info(
        "Registered %d API(s) in %d set(s)", len(registry), len(registry.api_sets)
    )
    return registry
