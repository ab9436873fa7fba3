"""Operation catalog — parameter specs for every operation and the registry factory.

Legal enum values follow the FRED API docs:
https://fred.stlouisfed.org/docs/api/fred/
"""

from __future__ import annotations

from typing import Optional

from .handlers import FredHandlers
from .models import (
    Handler,
    OperationName,
    OperationSpec,
    ParamField,
    ParamKind,
    Selector,
)
from .registry import Registry

SORT_ORDERS = ("asc", "desc")
UNITS = ("lin", "chg", "ch1", "pch", "pc1", "pca", "cch", "cca", "log")
FREQUENCIES = (
    "d", "w", "bw", "m", "q", "sa", "a",
    "wef", "weth", "wew", "wetu", "wem", "wesu", "wesa", "bwew", "bwem",
)
AGGREGATION_METHODS = ("avg", "sum", "eop")
OUTPUT_TYPES = (1, 2, 3, 4)
SEARCH_TYPES = ("full_text", "series_id")
SEARCH_ORDER_BY = (
    "search_rank", "series_id", "title", "units", "frequency", "seasonal_adjustment",
    "realtime_start", "realtime_end", "last_updated", "observation_start",
    "observation_end", "popularity", "group_popularity",
)
FILTER_VARIABLES = ("frequency", "units", "seasonal_adjustment")

BROWSE_TYPES = ("categories", "releases", "sources", "category_series", "release_series")

BROWSE_DEFAULT_LIMIT = 50
SEARCH_DEFAULT_LIMIT = 25
MAX_PAGE_LIMIT = 1000
MAX_OBSERVATION_LIMIT = 100000


def _limit(default: Optional[int], maximum: int) -> ParamField:
    return ParamField(
        name="limit",
        kind=ParamKind.INTEGER,
        default=default,
        minimum=1,
        maximum=maximum,
        description="Maximum number of results to return",
    )


OFFSET = ParamField(name="offset", kind=ParamKind.INTEGER, default=0, minimum=0, description="Result offset")
SORT_ORDER = ParamField(name="sort_order", kind=ParamKind.ENUM, choices=SORT_ORDERS, description="asc or desc")


BROWSE_SPEC = OperationSpec(
    name=OperationName.BROWSE,
    description="Browse FRED categories, releases, and sources, or list the series inside a category or release.",
    fields=(
        ParamField(
            name="browse_type",
            kind=ParamKind.ENUM,
            required=True,
            choices=BROWSE_TYPES,
            description="What to browse",
        ),
        ParamField(
            name="category_id",
            kind=ParamKind.INTEGER,
            minimum=0,
            description="Category ID (required for category_series; parent for categories)",
        ),
        ParamField(
            name="release_id",
            kind=ParamKind.INTEGER,
            minimum=0,
            description="Release ID (required for release_series)",
        ),
        _limit(BROWSE_DEFAULT_LIMIT, MAX_PAGE_LIMIT),
        OFFSET,
        ParamField(name="order_by", kind=ParamKind.STRING, description="Field to order results by"),
        SORT_ORDER,
    ),
    selector=Selector(
        field="browse_type",
        variants={
            "categories": (),
            "releases": (),
            "sources": (),
            "category_series": ("category_id",),
            "release_series": ("release_id",),
        },
    ),
)

SEARCH_SPEC = OperationSpec(
    name=OperationName.SEARCH,
    description="Search FRED series by text or by tags.",
    fields=(
        ParamField(name="search_text", kind=ParamKind.STRING, description="Words to match against series"),
        ParamField(name="search_type", kind=ParamKind.ENUM, choices=SEARCH_TYPES, description="full_text or series_id"),
        ParamField(name="tag_names", kind=ParamKind.LIST, description="Tags every result must carry"),
        ParamField(name="exclude_tag_names", kind=ParamKind.LIST, description="Tags no result may carry"),
        _limit(SEARCH_DEFAULT_LIMIT, MAX_PAGE_LIMIT),
        OFFSET,
        ParamField(name="order_by", kind=ParamKind.ENUM, choices=SEARCH_ORDER_BY, description="Field to order results by"),
        SORT_ORDER,
        ParamField(name="filter_variable", kind=ParamKind.ENUM, choices=FILTER_VARIABLES, description="Attribute to filter on"),
        ParamField(name="filter_value", kind=ParamKind.STRING, description="Value of filter_variable to keep"),
    ),
)

SERIES_SPEC = OperationSpec(
    name=OperationName.GET_SERIES,
    description="Fetch observations for a FRED series, with optional transformations.",
    fields=(
        ParamField(name="series_id", kind=ParamKind.STRING, required=True, description="FRED series ID, e.g. GDP or UNRATE"),
        ParamField(name="observation_start", kind=ParamKind.DATE, description="First observation date (YYYY-MM-DD)"),
        ParamField(name="observation_end", kind=ParamKind.DATE, description="Last observation date (YYYY-MM-DD)"),
        _limit(None, MAX_OBSERVATION_LIMIT),
        ParamField(name="offset", kind=ParamKind.INTEGER, minimum=0, description="Result offset"),
        SORT_ORDER,
        ParamField(name="units", kind=ParamKind.ENUM, choices=UNITS, description="Data transformation"),
        ParamField(name="frequency", kind=ParamKind.ENUM, choices=FREQUENCIES, description="Aggregate to a lower frequency"),
        ParamField(name="aggregation_method", kind=ParamKind.ENUM, choices=AGGREGATION_METHODS, description="avg, sum or eop"),
        ParamField(name="output_type", kind=ParamKind.ENUM, choices=OUTPUT_TYPES, description="1-4, FRED observation output layout"),
        ParamField(name="vintage_dates", kind=ParamKind.STRING, description="Comma separated vintage dates"),
    ),
)

def build_registry(*, browse: Handler, search: Handler, get_series: Handler) -> Registry:
    """Register the three operations with the given handlers and freeze the registry."""
    registry = Registry()
    registry.register(OperationName.BROWSE, BROWSE_SPEC, browse)
    registry.register(OperationName.SEARCH, SEARCH_SPEC, search)
    registry.register(OperationName.GET_SERIES, SERIES_SPEC, get_series)
    return registry.freeze()


def default_registry(api_key: Optional[str]) -> Registry:
    """Registry wired to the live FRED API."""
    handlers = FredHandlers(api_key)
    return build_registry(
        browse=handlers.browse,
        search=handlers.search,
        get_series=handlers.get_series,
    )
