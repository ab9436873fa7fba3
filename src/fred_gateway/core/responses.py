"""Response mapping — dispatch outcomes to REST and JSON-RPC envelopes."""

from __future__ import annotations

import json
from typing import Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CallToolResult,
    ErrorData,
    TextContent,
)

from .models import DispatchOutcome, Fail, FailureKind, Ok

INTERNAL_SERVER_ERROR = "Internal server error"

JSONRPC_CODES: dict[FailureKind, int] = {
    FailureKind.MISSING_PARAMETER: INVALID_PARAMS,
    FailureKind.INVALID_PARAMETER: INVALID_PARAMS,
    FailureKind.VALIDATION_ERROR: INVALID_PARAMS,
    FailureKind.UNKNOWN_OPERATION: METHOD_NOT_FOUND,
    FailureKind.UPSTREAM_ERROR: INTERNAL_ERROR,
}


# ─── REST ─────────────────────────────────────────────────────────────────────


def to_rest(outcome: DispatchOutcome) -> tuple[int, Any]:
    """Return ``(status_code, body)`` for a dispatch outcome."""
    if isinstance(outcome, Ok):
        return 200, outcome.value
    if outcome.kind.is_client_error:
        return 400, {"error": outcome.message, **outcome.context}
    return 500, {"error": INTERNAL_SERVER_ERROR, "message": outcome.message}


def rest_internal_error(exc: BaseException) -> tuple[int, dict]:
    """Body for an exception nothing upstream classified."""
    return 500, {"error": INTERNAL_SERVER_ERROR, "message": str(exc) or type(exc).__name__}


# ─── JSON-RPC / MCP ───────────────────────────────────────────────────────────


def jsonrpc_code(kind: FailureKind) -> int:
    return JSONRPC_CODES[kind]


def to_jsonrpc_error(failure: Fail) -> ErrorData:
    """JSON-RPC error object for a failed dispatch."""
    data: dict[str, Any] = dict(failure.context)
    if failure.field:
        data["field"] = failure.field
    return ErrorData(
        code=jsonrpc_code(failure.kind),
        message=failure.message,
        data=data or None,
    )


def jsonrpc_internal_error(exc: BaseException) -> ErrorData:
    """-32603 for an exception nothing upstream classified."""
    return ErrorData(code=INTERNAL_ERROR, message=str(exc) or type(exc).__name__)


def to_tool_result(success: Ok) -> CallToolResult:
    """MCP tool result: JSON text for every client, structured content where possible."""
    value = success.value
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(value, indent=2, default=str))],
        structuredContent=value if isinstance(value, dict) else None,
        isError=False,
    )
