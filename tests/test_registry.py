from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from fred_gateway.core.models import OperationName
from fred_gateway.core.operations import BROWSE_SPEC, SEARCH_SPEC, build_registry
from fred_gateway.core.registry import OperationNotFound, Registry


def test_build_registry_registers_all_operations(registry) -> None:
    assert registry.frozen
    assert registry.names() == ["browse", "search", "get_series"]
    assert len(registry) == 3
    assert OperationName.SEARCH in registry
    assert "search" in registry


def test_lookup_returns_spec_and_handler(registry, handlers) -> None:
    operation = registry.lookup("browse")
    assert operation.spec is BROWSE_SPEC
    assert operation.handler is handlers["browse"]
    assert registry.lookup(OperationName.BROWSE) is operation


def test_lookup_unknown_name() -> None:
    registry = build_registry(browse=AsyncMock(), search=AsyncMock(), get_series=AsyncMock())
    with pytest.raises(OperationNotFound) as exc_info:
        registry.lookup("delete_everything")
    assert exc_info.value.valid == ["browse", "search", "get_series"]
    assert str(exc_info.value) == "Unknown operation: delete_everything"


def test_frozen_registry_rejects_registration(registry) -> None:
    with pytest.raises(RuntimeError):
        registry.register(OperationName.SEARCH, SEARCH_SPEC, AsyncMock())


def test_duplicate_registration_rejected() -> None:
    registry = Registry()
    registry.register(OperationName.SEARCH, SEARCH_SPEC, AsyncMock())
    with pytest.raises(ValueError, match="already registered"):
        registry.register("search", SEARCH_SPEC, AsyncMock())


def test_spec_must_match_name() -> None:
    registry = Registry()
    with pytest.raises(ValueError):
        registry.register(OperationName.BROWSE, SEARCH_SPEC, AsyncMock())


def test_unknown_name_cannot_be_registered() -> None:
    with pytest.raises(ValueError):
        Registry().register("delete_everything", SEARCH_SPEC, AsyncMock())
