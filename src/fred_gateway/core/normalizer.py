"""Parameter normalization.

Turns loosely-typed transport input (query-string values, JSON or form bodies,
RPC arguments) into the typed arguments a handler receives. One generic
function driven by ``OperationSpec`` data; no per-route parsing.

Rules per field, in spec order:
    - absent means missing key, ``None``, or a blank string
    - required and absent -> ``missing_parameter``
    - integer: ints, integral floats, or decimal strings; else ``invalid_parameter``
    - enum: exact match against ``choices``; an unknown value is dropped unless
      ``strict_enums`` is set, in which case it is ``invalid_parameter``
    - date: opaque string, validated upstream
    - list: list of scalars, or a ``;``/``,`` separated string
    - absent and optional -> default if the field has one, else omitted

Stops at the first failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional, Union

from .models import Fail, FailureKind, OperationSpec, ParamField, ParamKind

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_LIST_SPLIT_RE = re.compile(r"[;,]")

_DROP = object()


class _Invalid(Exception):
    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


def is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def parse_int(value: Any) -> int:
    """Parse an integer from a JSON number or a decimal string.

    Raises:
        ValueError: the value is not an integer.
    """
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    raise ValueError(f"expected an integer, got {value!r}")


def _coerce_integer(field: ParamField, value: Any) -> int:
    try:
        number = parse_int(value)
    except ValueError:
        raise _Invalid(f"{field.name} must be an integer") from None
    if field.minimum is not None and number < field.minimum:
        raise _Invalid(f"{field.name} must be >= {field.minimum}")
    if field.maximum is not None and number > field.maximum:
        raise _Invalid(f"{field.name} must be <= {field.maximum}")
    return number


def _coerce_enum(field: ParamField, value: Any, strict: bool) -> Any:
    candidate = value
    if field.choices and all(isinstance(c, int) for c in field.choices):
        try:
            candidate = parse_int(value)
        except ValueError:
            candidate = _DROP
    if candidate is not _DROP and not isinstance(candidate, bool) and candidate in field.choices:
        return candidate
    if strict:
        raise _Invalid(
            f"Invalid {field.name}: {value}",
            {"valid_values": list(field.choices)},
        )
    logger.debug("Dropping %s=%r (not one of %s)", field.name, value, list(field.choices))
    return _DROP


def _coerce_string(field: ParamField, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise _Invalid(f"{field.name} must be a string")


def _coerce_date(field: ParamField, value: Any) -> str:
    if not isinstance(value, str):
        raise _Invalid(f"{field.name} must be a date string (YYYY-MM-DD)")
    return value.strip()


def _coerce_list(field: ParamField, value: Any) -> list[str]:
    if isinstance(value, str):
        items = _LIST_SPLIT_RE.split(value)
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if isinstance(item, (dict, list, tuple)) or isinstance(item, bool):
                raise _Invalid(f"{field.name} must be a list of strings")
            items.extend(_LIST_SPLIT_RE.split(str(item)))
    else:
        raise _Invalid(f"{field.name} must be a list of strings")
    return [item.strip() for item in items if item and item.strip()]


def coerce(field: ParamField, value: Any, strict_enums: bool = False) -> Any:
    """Coerce a present value; returns ``_DROP`` for a leniently dropped enum."""
    if field.kind is ParamKind.INTEGER:
        return _coerce_integer(field, value)
    if field.kind is ParamKind.ENUM:
        return _coerce_enum(field, value, strict_enums)
    if field.kind is ParamKind.DATE:
        return _coerce_date(field, value)
    if field.kind is ParamKind.LIST:
        return _coerce_list(field, value)
    return _coerce_string(field, value)


def normalize(
    raw: Any,
    spec: OperationSpec,
    *,
    strict_enums: bool = False,
) -> Union[dict[str, Any], Fail]:
    """Validate ``raw`` against ``spec`` and return the handler arguments, or a Fail."""
    if not isinstance(raw, Mapping):
        return Fail(
            kind=FailureKind.VALIDATION_ERROR,
            message="Request parameters must be an object",
        )

    args: dict[str, Any] = {}
    for field in spec.fields:
        value = raw.get(field.name)
        if is_absent(value):
            if field.required:
                return Fail(
                    kind=FailureKind.MISSING_PARAMETER,
                    message=f"{field.name} is required",
                    field=field.name,
                )
            if field.default is not None:
                args[field.name] = field.default
            continue

        try:
            coerced = coerce(field, value, strict_enums)
        except _Invalid as exc:
            return Fail(
                kind=FailureKind.INVALID_PARAMETER,
                message=exc.message,
                field=field.name,
                context=exc.context,
            )
        if coerced is _DROP:
            continue
        if field.kind is ParamKind.LIST and not coerced:
            continue
        args[field.name] = coerced

    return args
