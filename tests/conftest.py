from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from fred_gateway.core.dispatcher import Dispatcher
from fred_gateway.core.operations import build_registry


@pytest.fixture
def handlers() -> dict[str, AsyncMock]:
    """Stand-ins for the upstream FRED handlers, keyed by operation name."""
    return {
        "browse": AsyncMock(return_value={"categories": [{"id": 1, "name": "Production & Business Activity"}]}),
        "search": AsyncMock(return_value={"count": 1, "series": [{"series_id": "GDP"}]}),
        "get_series": AsyncMock(return_value={"series_id": "GDP", "observations": []}),
    }


@pytest.fixture
def registry(handlers):
    return build_registry(**handlers)


@pytest.fixture
def dispatcher(registry) -> Dispatcher:
    return Dispatcher(registry, timeout=1.0)
