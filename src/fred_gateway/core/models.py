"""Pydantic data models — the shared dispatch objects.

Both transports (REST and MCP) speak in these types: parameter specs describe
what an operation accepts, and dispatch outcomes describe what happened.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OperationName(str, Enum):
    """Externally invocable operations."""

    BROWSE = "browse"
    SEARCH = "search"
    GET_SERIES = "get_series"


class ParamKind(str, Enum):
    """How a raw parameter value is coerced."""

    STRING = "string"
    INTEGER = "integer"
    ENUM = "enum"
    DATE = "date"
    LIST = "list"


class FailureKind(str, Enum):
    """Classification of a failed dispatch."""

    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_OPERATION = "unknown_operation"
    UPSTREAM_ERROR = "upstream_error"

    @property
    def is_client_error(self) -> bool:
        return self is not FailureKind.UPSTREAM_ERROR


class ParamField(BaseModel):
    """Descriptor for a single operation parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ParamKind = ParamKind.STRING
    required: bool = False
    default: Any = None
    choices: tuple[Any, ...] = Field(default=(), description="Legal values for enum fields")
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    description: str = ""


class Selector(BaseModel):
    """A field that picks one variant of an operation.

    ``variants`` maps each legal selector value to the extra fields that
    variant requires on top of the operation's own required fields.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    variants: dict[str, tuple[str, ...]]

    @property
    def values(self) -> list[str]:
        return list(self.variants)


class OperationSpec(BaseModel):
    """Parameter schema for one operation."""

    model_config = ConfigDict(frozen=True)

    name: OperationName
    description: str
    fields: tuple[ParamField, ...]
    selector: Optional[Selector] = None

    def get(self, name: str) -> Optional[ParamField]:
        return next((f for f in self.fields if f.name == name), None)


Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class Operation(BaseModel):
    """A registered operation: its spec and the handler that executes it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: OperationName
    spec: OperationSpec
    handler: Handler


class Ok(BaseModel):
    """Successful dispatch carrying the handler's JSON-serializable result."""

    model_config = ConfigDict(frozen=True)

    value: Any


class Fail(BaseModel):
    """Failed dispatch."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    field: Optional[str] = Field(None, description="Offending parameter, when there is one")
    context: dict[str, Any] = Field(default_factory=dict, description="Extra keys rendered alongside the error")


DispatchOutcome = Union[Ok, Fail]
