"""Operation handlers backed by the live FRED API.

Each handler receives validated arguments and calls the matching FRED client
function. The browse handler fans out on ``browse_type``; the dispatcher has
already guaranteed the variant's required ID is present.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .clients import fred

logger = logging.getLogger(__name__)

API_KEY_HELP = "https://fred.stlouisfed.org/docs/api/api_key.html"


class FredHandlers:
    """Handlers for browse, search and get_series."""

    def __init__(self, api_key: Optional[str]):
        self._api_key = api_key or ""

    def _key(self) -> str:
        if not self._api_key:
            raise ValueError(f"FRED_API_KEY environment variable is required. Get a free key at {API_KEY_HELP}")
        return self._api_key

    async def browse(self, args: dict[str, Any]) -> dict:
        api_key = self._key()
        browse_type = args["browse_type"]
        paging = {k: args[k] for k in fred.PAGING_KEYS if k in args}

        if browse_type == "categories":
            return await fred.browse_categories(api_key, args.get("category_id"))
        if browse_type == "category_series":
            return await fred.get_category_series(api_key, args["category_id"], paging)
        if browse_type == "releases":
            return await fred.browse_releases(api_key, paging)
        if browse_type == "release_series":
            return await fred.get_release_series(api_key, args["release_id"], paging)
        if browse_type == "sources":
            return await fred.browse_sources(api_key, paging)
        raise ValueError(f"Invalid browse_type: {browse_type}")

    async def search(self, args: dict[str, Any]) -> dict:
        return await fred.search_series(self._key(), args)

    async def get_series(self, args: dict[str, Any]) -> dict:
        return await fred.get_series_data(self._key(), args)
