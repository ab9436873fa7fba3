"""FRED (Federal Reserve Economic Data) API client.

API docs: https://fred.stlouisfed.org/docs/api/fred/
Rate limit: 120 requests/minute with API key.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

API_BASE = "https://api.stlouisfed.org/fred"

ROOT_CATEGORY_ID = 0

PAGING_KEYS = ("limit", "offset", "order_by", "sort_order")

SEARCH_KEYS = (
    "search_type",
    "tag_names",
    "exclude_tag_names",
    "limit",
    "offset",
    "order_by",
    "sort_order",
    "filter_variable",
    "filter_value",
)

OBSERVATION_KEYS = (
    "observation_start",
    "observation_end",
    "limit",
    "offset",
    "sort_order",
    "units",
    "frequency",
    "aggregation_method",
    "output_type",
    "vintage_dates",
)


class FredAPIError(Exception):
    """FRED answered with an error payload or a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(20.0, connect=10.0))


def _pick(options: dict, keys: tuple[str, ...]) -> dict:
    return {k: options[k] for k in keys if options.get(k) is not None}


def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values and join tag lists the way FRED expects (``a;b``)."""
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            cleaned[key] = ";".join(str(v) for v in value)
        else:
            cleaned[key] = value
    return cleaned


async def _fred_get(endpoint: str, api_key: str, params: dict[str, Any]) -> dict:
    query = _clean_params(params)
    query["api_key"] = api_key
    query["file_type"] = "json"

    async with _new_client() as client:
        response = await client.get(f"{API_BASE}/{endpoint}", params=query)
        if response.status_code >= 400:
            raise FredAPIError(response.status_code, _error_message(response))
        return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error_message"):
        return f"FRED API error ({response.status_code}): {payload['error_message']}"
    return f"FRED API error ({response.status_code}): {response.reason_phrase}"


def _parse_value(value: Any) -> Optional[float]:
    """FRED encodes missing observations as '.'."""
    if value in (None, "", "."):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _compact_series(row: dict) -> dict:
    return {
        "series_id": row.get("id", ""),
        "title": row.get("title", ""),
        "frequency": row.get("frequency", ""),
        "units": row.get("units", ""),
        "seasonal_adjustment": row.get("seasonal_adjustment", ""),
        "observation_start": row.get("observation_start", ""),
        "observation_end": row.get("observation_end", ""),
        "popularity": row.get("popularity", 0),
        "last_updated": row.get("last_updated", ""),
    }


def _page(data: dict, items_key: str, items: list) -> dict:
    return {
        "count": data.get("count", len(items)),
        "offset": data.get("offset", 0),
        "limit": data.get("limit", len(items)),
        items_key: items,
    }


# ─── Search ──────────────────────────────────────────────────────────────────


async def search_series(api_key: str, options: dict) -> dict:
    """Search FRED series by text, or by tags when no text is given.

    Args:
        api_key: FRED API key.
        options: Validated search arguments (search_text, tag_names, limit, ...).

    Returns:
        Paging info plus a compact dict per matching series.
    """
    search_text = options.get("search_text")
    if search_text:
        params = {"search_text": search_text, **_pick(options, SEARCH_KEYS)}
        data = await _fred_get("series/search", api_key, params)
    else:
        params = _pick(options, ("tag_names", "exclude_tag_names") + PAGING_KEYS)
        data = await _fred_get("tags/series", api_key, params)

    series = [_compact_series(s) for s in data.get("seriess", [])]
    result = _page(data, "series", series)
    if search_text:
        result["search_text"] = search_text
    if options.get("tag_names"):
        result["tag_names"] = list(options["tag_names"])
    return result


# ─── Series observations ────────────────────────────────────────────────────


async def _fetch_series_info(series_id: str, api_key: str) -> dict:
    """Fetch series metadata from FRED."""
    data = await _fred_get("series", api_key, {"series_id": series_id})
    series_list = data.get("seriess", [])
    if series_list:
        return series_list[0]
    return {}


async def get_series_data(api_key: str, options: dict) -> dict:
    """Fetch observations for one series together with its metadata.

    Args:
        api_key: FRED API key.
        options: Validated series arguments; ``series_id`` is required.
    """
    series_id = options["series_id"]
    params = {"series_id": series_id, **_pick(options, OBSERVATION_KEYS)}

    info, data = await asyncio.gather(
        _fetch_series_info(series_id, api_key),
        _fred_get("series/observations", api_key, params),
    )

    observations = []
    for obs in data.get("observations", []):
        point = dict(obs)
        if "value" in point:
            point["value"] = _parse_value(point["value"])
        observations.append(point)

    result = _page(data, "observations", observations)
    result.update({
        "series_id": series_id,
        "title": info.get("title", series_id),
        "units": data.get("units") or info.get("units", ""),
        "frequency": info.get("frequency", ""),
        "seasonal_adjustment": info.get("seasonal_adjustment", ""),
        "observation_start": data.get("observation_start", ""),
        "observation_end": data.get("observation_end", ""),
    })
    return result


# ─── Browse ──────────────────────────────────────────────────────────────────


async def browse_categories(api_key: str, category_id: Optional[int] = None) -> dict:
    """A category and its child categories; the root category when no ID is given."""
    cid = ROOT_CATEGORY_ID if category_id is None else category_id
    info, children = await asyncio.gather(
        _fred_get("category", api_key, {"category_id": cid}),
        _fred_get("category/children", api_key, {"category_id": cid}),
    )
    current = info.get("categories", [])
    return {
        "category": current[0] if current else {"id": cid},
        "categories": [
            {"id": c.get("id"), "name": c.get("name", ""), "parent_id": c.get("parent_id")}
            for c in children.get("categories", [])
        ],
    }


async def get_category_series(api_key: str, category_id: int, options: dict) -> dict:
    """Series filed under a category."""
    params = {"category_id": category_id, **_pick(options, PAGING_KEYS)}
    data = await _fred_get("category/series", api_key, params)
    result = _page(data, "series", [_compact_series(s) for s in data.get("seriess", [])])
    result["category_id"] = category_id
    return result


async def browse_releases(api_key: str, options: dict) -> dict:
    """All releases of economic data."""
    data = await _fred_get("releases", api_key, _pick(options, PAGING_KEYS))
    releases = [
        {
            "release_id": r.get("id"),
            "name": r.get("name", ""),
            "press_release": r.get("press_release", False),
            "link": r.get("link", ""),
            "realtime_start": r.get("realtime_start", ""),
        }
        for r in data.get("releases", [])
    ]
    return _page(data, "releases", releases)


async def get_release_series(api_key: str, release_id: int, options: dict) -> dict:
    """Series published in a release."""
    params = {"release_id": release_id, **_pick(options, PAGING_KEYS)}
    data = await _fred_get("release/series", api_key, params)
    result = _page(data, "series", [_compact_series(s) for s in data.get("seriess", [])])
    result["release_id"] = release_id
    return result


async def browse_sources(api_key: str, options: dict) -> dict:
    """All sources of economic data."""
    data = await _fred_get("sources", api_key, _pick(options, PAGING_KEYS))
    sources = [
        {"source_id": s.get("id"), "name": s.get("name", ""), "link": s.get("link", "")}
        for s in data.get("sources", [])
    ]
    return _page(data, "sources", sources)
