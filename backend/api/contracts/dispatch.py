"""
Dispatch - runs one API call against the registry.

dispatch(api_id, raw_payload, context) does:
1. Look up the contract (unknown id -> NOT_FOUND)
2. Decode the JSON payload (malformed -> MALFORMED_PAYLOAD)
3. Validate against the request schema (violation -> CONTRACT_VIOLATION)
4. Build the request dataclass and call the handler
5. Encode the result with the response schema's wire names
6. Check the encoded response (WARN: log, STRICT: RESPONSE_SCHEMA_MISMATCH)

Errors come back as (None, APIError); nothing raised by a handler escapes.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .codec import encode_response, materialize
from .errors import (
    CONTRACT_VIOLATION,
    INTERNAL_ERROR,
    MALFORMED_PAYLOAD,
    NOT_FOUND,
    RESPONSE_SCHEMA_MISMATCH,
    APIError,
)
from .registry import APIContract, ContractRegistry
from .validate import (
    ContractViolation,
    ValidationPolicy,
    ViolationReason,
    check_payload,
    collect_violations,
    decode_payload,
    get_default_policy,
)


logger = logging.getLogger('api.contracts.dispatch')


class SchemaMode(Enum):
    """Response contract enforcement mode."""
    WARN = "warn"      # Log violations, don't fail (production default)
    STRICT = "strict"  # Fail on violations (dev/staging)


def _get_default_mode() -> SchemaMode:
    """Get schema mode from environment."""
    mode = os.environ.get('CONTRACT_MODE', 'warn').lower()
    return SchemaMode.STRICT if mode == 'strict' else SchemaMode.WARN


@dataclass
class CallContext:
    """Per-call information handed to handlers alongside the request."""
    api_id: str
    request_id: Optional[str] = None
    remote_addr: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


DispatchResult = Tuple[Any, Optional[APIError]]


class Dispatcher:
    """
    Validate-and-call front for a ContractRegistry.

    Holds no per-call state; one instance serves all request threads.
    """

    def __init__(
        self,
        registry: ContractRegistry,
        policy: Optional[ValidationPolicy] = None,
        mode: Optional[SchemaMode] = None,
    ):
        self.registry = registry
        self.policy = policy if policy is not None else get_default_policy()
        self.mode = mode if mode is not None else _get_default_mode()

    def dispatch(
        self,
        api_id: str,
        raw_payload: Union[bytes, str],
        context: Optional[CallContext] = None,
    ) -> DispatchResult:
        """
        Run one API call.

        Args:
            api_id: Registered API id
            raw_payload: JSON request body
            context: Call context, created if not given

        Returns:
            (response, None) on success, (None, APIError) on failure
        """
        contract = self.registry.get(api_id)
        if contract is None:
            return None, APIError(
                code=NOT_FOUND,
                message=f"API '{api_id}' not found",
                status_code=404,
            )

        if context is None:
            context = CallContext(api_id=api_id)

        try:
            payload = decode_payload(raw_payload)
            check_payload(contract.request_schema, payload, self.policy)
        except ContractViolation as e:
            _log_violation(api_id, e, context.request_id, stage="request")
            return None, _violation_error(e)

        return self._invoke(contract, payload, context)

    def _invoke(self, contract: APIContract, payload: Dict[str, Any],
                context: CallContext) -> DispatchResult:
        api_id = contract.api_id
        try:
            request_obj = materialize(contract.request_schema, payload)
            result = contract.handler(request_obj, context)
        except APIError as e:
            logger.info(
                "Handler error: api=%s code=%s request_id=%s",
                api_id, e.code, context.request_id,
            )
            return None, e
        except Exception:
            logger.exception(f"Handler error for {api_id}")
            return None, _internal_error()

        # Handlers may also return (response, APIError | None)
        if isinstance(result, tuple) and len(result) == 2 and (
            result[1] is None or isinstance(result[1], APIError)
        ):
            result, error = result
            if error is not None:
                return None, error

        try:
            response = encode_response(contract.response_schema, result)
        except (TypeError, ValueError):
            logger.exception(f"Cannot encode response for {api_id}")
            return None, _internal_error()

        violations = collect_violations(contract.response_schema, response)
        if violations:
            violation = ContractViolation(
                message=f"{len(violations)} response schema violation(s)",
                violations=violations,
            )
            _log_violation(api_id, violation, context.request_id, stage="response")
            if self.mode == SchemaMode.STRICT:
                return None, APIError(
                    code=RESPONSE_SCHEMA_MISMATCH,
                    message="Response does not match contract",
                    status_code=500,
                    details=violation.details,
                )

        return response, None


def dispatch(
    registry: ContractRegistry,
    api_id: str,
    raw_payload: Union[bytes, str],
    context: Optional[CallContext] = None,
    policy: Optional[ValidationPolicy] = None,
) -> DispatchResult:
    """One-off dispatch without keeping a Dispatcher around."""
    return Dispatcher(registry, policy=policy).dispatch(api_id, raw_payload, context)


def _violation_error(violation: ContractViolation) -> APIError:
    first = violation.first
    if first is not None and first.reason is ViolationReason.MALFORMED_PAYLOAD:
        code = MALFORMED_PAYLOAD
    else:
        code = CONTRACT_VIOLATION

    return APIError(
        code=code,
        message=str(violation),
        status_code=400,
        field=first.path if first is not None else None,
        details=violation.details,
    )


def _internal_error() -> APIError:
    return APIError(
        code=INTERNAL_ERROR,
        message="An unexpected error occurred",
        status_code=500,
    )


def _log_violation(
    api_id: str,
    violation: ContractViolation,
    request_id: Optional[str],
    stage: str = "request",
) -> None:
    """Log contract violation for observability."""
    level = logging.WARNING if stage == "response" else logging.INFO
    logger.log(
        level,
        f"Contract violation: api={api_id} stage={stage} "
        f"request_id={request_id} message={violation.message}",
        extra={
            "event": "contract_violation",
            "api_id": api_id,
            "stage": stage,
            "request_id": request_id,
            "details": violation.details,
        }
    )
