"""Operation registry.

Populated once at startup, then frozen. Adapters receive the registry (via the
dispatcher) explicitly; there is no module-level instance.
"""

from __future__ import annotations

import logging
from typing import Union

from .models import Handler, Operation, OperationName, OperationSpec

logger = logging.getLogger(__name__)


class OperationNotFound(LookupError):
    """Raised by ``Registry.lookup`` for a name that was never registered."""

    def __init__(self, name: str, valid: list[str]):
        super().__init__(f"Unknown operation: {name}")
        self.name = name
        self.valid = valid


class Registry:
    """Maps operation names to their spec and handler."""

    def __init__(self):
        self._operations: dict[str, Operation] = {}
        self._frozen = False

    def register(self, name: Union[OperationName, str], spec: OperationSpec, handler: Handler) -> None:
        if self._frozen:
            raise RuntimeError("Registry is frozen; operations must be registered at startup")
        op_name = OperationName(name)
        if op_name.value in self._operations:
            raise ValueError(f"Operation already registered: {op_name.value}")
        if spec.name is not op_name:
            raise ValueError(f"Spec for '{spec.name.value}' cannot be registered as '{op_name.value}'")
        self._operations[op_name.value] = Operation(name=op_name, spec=spec, handler=handler)
        logger.debug("Registered operation %s", op_name.value)

    def freeze(self) -> "Registry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> Operation:
        key = name.value if isinstance(name, OperationName) else name
        operation = self._operations.get(key)
        if operation is None:
            raise OperationNotFound(str(key), self.names())
        return operation

    def names(self) -> list[str]:
        return list(self._operations)

    def operations(self) -> list[Operation]:
        return list(self._operations.values())

    def __contains__(self, name: object) -> bool:
        key = name.value if isinstance(name, OperationName) else name
        return key in self._operations

    def __len__(self) -> int:
        return len(self._operations)
