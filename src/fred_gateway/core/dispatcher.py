"""Dispatcher — resolve an operation, validate its input, run its handler.

Never raises for a handler failure: every outcome comes back as ``Ok`` or
``Fail`` for the response mapper to render.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from .models import DispatchOutcome, Fail, FailureKind, Ok, OperationName, OperationSpec
from .normalizer import is_absent, normalize
from .registry import OperationNotFound, Registry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _check_selector(spec: OperationSpec, raw: Any) -> Optional[Fail]:
    """Resolve the sub-operation and check the fields only that variant requires."""
    selector = spec.selector
    if selector is None or not hasattr(raw, "get"):
        return None

    valid = {"valid_types": selector.values}
    choice = raw.get(selector.field)
    if is_absent(choice):
        return Fail(
            kind=FailureKind.MISSING_PARAMETER,
            message=f"{selector.field} is required",
            field=selector.field,
            context=valid,
        )
    if not isinstance(choice, str) or choice not in selector.variants:
        return Fail(
            kind=FailureKind.UNKNOWN_OPERATION,
            message=f"Invalid {selector.field}: {choice}",
            field=selector.field,
            context=valid,
        )
    for name in selector.variants[choice]:
        if is_absent(raw.get(name)):
            return Fail(
                kind=FailureKind.MISSING_PARAMETER,
                message=f"{name} is required for {choice}",
                field=name,
            )
    return None


class Dispatcher:
    """Routes raw requests to registered handlers.

    Args:
        registry: Frozen operation registry.
        timeout: Seconds allowed for a single handler call.
        strict_enums: Reject unknown enum values instead of dropping them.
    """

    def __init__(
        self,
        registry: Registry,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        strict_enums: bool = False,
    ):
        self.registry = registry
        self.timeout = timeout
        self.strict_enums = strict_enums

    async def dispatch(self, name: Union[str, OperationName], raw: Any) -> DispatchOutcome:
        key = name.value if isinstance(name, OperationName) else name
        outcome = await self._dispatch(key, raw)
        if isinstance(outcome, Ok):
            logger.info("operation=%s outcome=ok", key)
        else:
            logger.info("operation=%s outcome=%s error=%s", key, outcome.kind.value, outcome.message)
        return outcome

    async def _dispatch(self, name: str, raw: Any) -> DispatchOutcome:
        try:
            operation = self.registry.lookup(name)
        except OperationNotFound as exc:
            return Fail(
                kind=FailureKind.UNKNOWN_OPERATION,
                message=str(exc),
                context={"valid_operations": exc.valid},
            )

        failure = _check_selector(operation.spec, raw)
        if failure is not None:
            return failure

        args = normalize(raw, operation.spec, strict_enums=self.strict_enums)
        if isinstance(args, Fail):
            return args

        try:
            result = await asyncio.wait_for(operation.handler(args), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Operation %s timed out after %ss", name, self.timeout)
            return Fail(
                kind=FailureKind.UPSTREAM_ERROR,
                message=f"Upstream request timed out after {self.timeout:g}s",
            )
        except Exception as exc:
            logger.error("Operation %s failed: %s", name, exc, exc_info=True)
            return Fail(
                kind=FailureKind.UPSTREAM_ERROR,
                message=str(exc) or type(exc).__name__,
            )
        return Ok(value=result)
