"""Unit tests for the FRED client and handlers, using httpx.MockTransport.

No network calls are made: every request is answered by a routing function
keyed on the FRED endpoint path.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from fred_gateway.core.clients import fred
from fred_gateway.core.handlers import FredHandlers

pytestmark = pytest.mark.asyncio

API_KEY = "test-key"


def _json_response(data: dict[str, Any], status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


@pytest.fixture
def fred_api(monkeypatch):
    """Install a MockTransport; returns (set_routes, seen_requests)."""
    routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        endpoint = request.url.path.removeprefix("/fred/")
        return routes[endpoint](request)

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(fred, "_new_client", lambda: httpx.AsyncClient(transport=transport))
    return routes, seen


async def test_search_by_text(fred_api) -> None:
    routes, seen = fred_api
    routes["series/search"] = lambda r: _json_response({
        "count": 1,
        "offset": 0,
        "limit": 25,
        "seriess": [{"id": "GDP", "title": "Gross Domestic Product", "frequency": "Quarterly", "popularity": 93}],
    })

    result = await fred.search_series(API_KEY, {"search_text": "gdp", "tag_names": ["usa", "nsa"], "limit": 25, "offset": 0})

    params = seen[0].url.params
    assert params["search_text"] == "gdp"
    assert params["tag_names"] == "usa;nsa"
    assert params["api_key"] == API_KEY
    assert params["file_type"] == "json"
    assert result["count"] == 1
    assert result["series"][0]["series_id"] == "GDP"
    assert result["series"][0]["popularity"] == 93
    assert result["search_text"] == "gdp"


async def test_search_by_tags_only(fred_api) -> None:
    routes, seen = fred_api
    routes["tags/series"] = lambda r: _json_response({"count": 0, "seriess": []})

    result = await fred.search_series(API_KEY, {"tag_names": ["slovenia", "food"], "limit": 25})

    assert seen[0].url.path == "/fred/tags/series"
    assert seen[0].url.params["tag_names"] == "slovenia;food"
    assert result["series"] == []
    assert result["tag_names"] == ["slovenia", "food"]


async def test_fred_error_payload_raises(fred_api) -> None:
    routes, _ = fred_api
    routes["series/search"] = lambda r: _json_response(
        {"error_code": 400, "error_message": "Bad Request.  The value for variable api_key is not registered."},
        status_code=400,
    )

    with pytest.raises(fred.FredAPIError) as exc_info:
        await fred.search_series(API_KEY, {"search_text": "gdp"})

    assert exc_info.value.status_code == 400
    assert "api_key is not registered" in str(exc_info.value)


async def test_series_observations_parse_missing_values(fred_api) -> None:
    routes, seen = fred_api
    routes["series"] = lambda r: _json_response({"seriess": [{"id": "UNRATE", "title": "Unemployment Rate", "frequency": "Monthly"}]})
    routes["series/observations"] = lambda r: _json_response({
        "units": "lin",
        "count": 2,
        "offset": 0,
        "limit": 100000,
        "observations": [
            {"date": "2024-01-01", "value": "3.7"},
            {"date": "2024-02-01", "value": "."},
        ],
    })

    result = await fred.get_series_data(API_KEY, {"series_id": "UNRATE", "output_type": 1, "units": "lin"})

    observation_request = next(r for r in seen if r.url.path.endswith("observations"))
    assert observation_request.url.params["output_type"] == "1"
    assert result["title"] == "Unemployment Rate"
    assert [o["value"] for o in result["observations"]] == [3.7, None]
    assert result["count"] == 2


async def test_browse_categories_defaults_to_root(fred_api) -> None:
    routes, seen = fred_api
    routes["category"] = lambda r: _json_response({"categories": [{"id": 0, "name": "Categories", "parent_id": 0}]})
    routes["category/children"] = lambda r: _json_response({"categories": [{"id": 32991, "name": "Money, Banking, & Finance", "parent_id": 0}]})

    result = await fred.browse_categories(API_KEY)

    assert {r.url.params["category_id"] for r in seen} == {"0"}
    assert result["category"]["name"] == "Categories"
    assert result["categories"][0]["id"] == 32991


async def test_handler_requires_api_key() -> None:
    with pytest.raises(ValueError, match="FRED_API_KEY"):
        await FredHandlers(None).search({"search_text": "gdp"})


async def test_browse_handler_routes_release_series(fred_api) -> None:
    routes, seen = fred_api
    routes["release/series"] = lambda r: _json_response({"count": 1, "seriess": [{"id": "PAYEMS"}]})

    result = await FredHandlers(API_KEY).browse(
        {"browse_type": "release_series", "release_id": 50, "limit": 50, "offset": 0, "sort_order": "desc"}
    )

    params = seen[0].url.params
    assert params["release_id"] == "50"
    assert params["limit"] == "50"
    assert params["sort_order"] == "desc"
    assert result["release_id"] == 50
    assert result["series"][0]["series_id"] == "PAYEMS"


async def test_browse_handler_sources(fred_api) -> None:
    routes, _ = fred_api
    routes["sources"] = lambda r: _json_response({"count": 1, "sources": [{"id": 1, "name": "Board of Governors"}]})

    result = await FredHandlers(API_KEY).browse({"browse_type": "sources", "limit": 50, "offset": 0})

    assert result["sources"] == [{"source_id": 1, "name": "Board of Governors", "link": ""}]
