from __future__ import annotations

import json

import pytest
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

from fred_gateway.core.models import Fail, FailureKind, Ok
from fred_gateway.core.responses import (
    JSONRPC_CODES,
    jsonrpc_code,
    jsonrpc_internal_error,
    rest_internal_error,
    to_jsonrpc_error,
    to_rest,
    to_tool_result,
)


def test_ok_is_returned_verbatim() -> None:
    payload = [{"id": 1}, {"id": 2}]
    assert to_rest(Ok(value=payload)) == (200, payload)


@pytest.mark.parametrize(
    "kind",
    [
        FailureKind.MISSING_PARAMETER,
        FailureKind.INVALID_PARAMETER,
        FailureKind.VALIDATION_ERROR,
        FailureKind.UNKNOWN_OPERATION,
    ],
)
def test_client_failures_are_400(kind) -> None:
    status, body = to_rest(Fail(kind=kind, message="bad input", context={"valid_types": ["a", "b"]}))
    assert status == 400
    assert body == {"error": "bad input", "valid_types": ["a", "b"]}


def test_upstream_failure_is_500() -> None:
    status, body = to_rest(Fail(kind=FailureKind.UPSTREAM_ERROR, message="FRED API error (500): Internal Server Error"))
    assert status == 500
    assert body == {"error": "Internal server error", "message": "FRED API error (500): Internal Server Error"}


def test_unclassified_exception_body() -> None:
    assert rest_internal_error(RuntimeError("boom")) == (
        500,
        {"error": "Internal server error", "message": "boom"},
    )


def test_unclassified_exception_jsonrpc_error() -> None:
    error = jsonrpc_internal_error(RuntimeError("boom"))
    assert error.code == INTERNAL_ERROR
    assert error.message == "boom"
    assert jsonrpc_internal_error(KeyError()).message == "KeyError"


def test_jsonrpc_mapping_is_total() -> None:
    assert set(JSONRPC_CODES) == set(FailureKind)
    for kind in FailureKind:
        assert jsonrpc_code(kind) in {METHOD_NOT_FOUND, INVALID_PARAMS, INTERNAL_ERROR}


def test_jsonrpc_codes() -> None:
    assert jsonrpc_code(FailureKind.UNKNOWN_OPERATION) == -32601
    assert jsonrpc_code(FailureKind.MISSING_PARAMETER) == -32602
    assert jsonrpc_code(FailureKind.INVALID_PARAMETER) == -32602
    assert jsonrpc_code(FailureKind.VALIDATION_ERROR) == -32602
    assert jsonrpc_code(FailureKind.UPSTREAM_ERROR) == -32603


def test_jsonrpc_error_carries_context_and_field() -> None:
    error = to_jsonrpc_error(
        Fail(
            kind=FailureKind.INVALID_PARAMETER,
            message="Invalid units: xyz",
            field="units",
            context={"valid_values": ["lin", "chg"]},
        )
    )
    assert error.code == INVALID_PARAMS
    assert error.message == "Invalid units: xyz"
    assert error.data == {"valid_values": ["lin", "chg"], "field": "units"}


def test_jsonrpc_error_without_context_has_no_data() -> None:
    error = to_jsonrpc_error(Fail(kind=FailureKind.UPSTREAM_ERROR, message="timeout"))
    assert error.data is None


def test_tool_result_for_dict() -> None:
    value = {"series_id": "GDP", "observations": [{"date": "2024-01-01", "value": 1.5}]}
    result = to_tool_result(Ok(value=value))
    assert result.isError is False
    assert result.structuredContent == value
    assert json.loads(result.content[0].text) == value


def test_tool_result_for_list_has_no_structured_content() -> None:
    result = to_tool_result(Ok(value=[1, 2, 3]))
    assert result.structuredContent is None
    assert json.loads(result.content[0].text) == [1, 2, 3]
