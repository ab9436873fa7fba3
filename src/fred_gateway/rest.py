"""REST gateway — FRED operations as JSON endpoints.

Each route turns its query string, path, or body into a raw parameter mapping,
hands it to the shared dispatcher, and renders the outcome.
Run: fred-gateway-http
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Container, Iterable, Union

import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from . import __version__
from .config import REST_DEFAULT_PORT, GatewayConfig, build_dispatcher
from .core.dispatcher import Dispatcher
from .core.models import DispatchOutcome, Fail, FailureKind, OperationName, ParamKind
from .core.responses import rest_internal_error, to_rest

logger = logging.getLogger(__name__)

SERVICE_NAME = "FRED MCP Server"

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "POST /api/browse",
    "POST /api/search",
    "GET /api/series/:seriesId",
    "POST /api/series",
]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _respond(outcome: DispatchOutcome) -> JSONResponse:
    status, body = to_rest(outcome)
    return JSONResponse(body, status_code=status)


def _dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def _list_fields(request: Request, operation: OperationName) -> frozenset[str]:
    spec = _dispatcher(request).registry.lookup(operation).spec
    return frozenset(f.name for f in spec.fields if f.kind is ParamKind.LIST)


def collect_params(items: Iterable[tuple[str, Any]], list_fields: Container[str] = ()) -> dict[str, Any]:
    """Flatten query or form pairs. Repeated list-field keys accumulate; any other key keeps its last value."""
    raw: dict[str, Any] = {}
    for key, value in items:
        if key in list_fields:
            raw.setdefault(key, []).append(value)
        else:
            raw[key] = value
    return raw


async def read_body(request: Request, list_fields: Container[str] = ()) -> Union[Any, Fail]:
    """Parse a JSON or form-encoded body; an empty body is an empty mapping."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return collect_params(form.multi_items(), list_fields)

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return Fail(kind=FailureKind.VALIDATION_ERROR, message="Request body must be valid JSON")


# ─── Service endpoints ───────────────────────────────────────────────────────


async def health(request: Request) -> JSONResponse:
    return JSONResponse({
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": utc_timestamp(),
    })


async def info(request: Request) -> JSONResponse:
    return JSONResponse({
        "name": "FRED MCP Server HTTP API",
        "description": "Access to Federal Reserve Economic Data through REST API",
        "version": __version__,
        "endpoints": {
            "browse": "/api/browse",
            "search": "/api/search",
            "series": "/api/series/:seriesId",
        },
        "documentation": "https://github.com/stefanoamorelli/fred-mcp-server",
    })


# ─── Operation endpoints ─────────────────────────────────────────────────────


async def _dispatch_body(request: Request, operation: OperationName) -> JSONResponse:
    body = await read_body(request, _list_fields(request, operation))
    if isinstance(body, Fail):
        return _respond(body)
    return _respond(await _dispatcher(request).dispatch(operation, body))


async def browse(request: Request) -> JSONResponse:
    return await _dispatch_body(request, OperationName.BROWSE)


async def search(request: Request) -> JSONResponse:
    return await _dispatch_body(request, OperationName.SEARCH)


async def series_by_id(request: Request) -> JSONResponse:
    raw = collect_params(request.query_params.multi_items(), _list_fields(request, OperationName.GET_SERIES))
    raw["series_id"] = request.path_params["series_id"]
    return _respond(await _dispatcher(request).dispatch(OperationName.GET_SERIES, raw))


async def series(request: Request) -> JSONResponse:
    return await _dispatch_body(request, OperationName.GET_SERIES)


# ─── Error handlers ──────────────────────────────────────────────────────────


async def not_found(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        {
            "error": "Not found",
            "path": request.url.path,
            "available_endpoints": AVAILABLE_ENDPOINTS,
        },
        status_code=404,
    )


async def internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    status, body = rest_internal_error(exc)
    return JSONResponse(body, status_code=status)


routes = [
    Route("/", info, methods=["GET"]),
    Route("/health", health, methods=["GET"]),
    Route("/api/browse", browse, methods=["POST"]),
    Route("/api/search", search, methods=["POST"]),
    Route("/api/series/{series_id}", series_by_id, methods=["GET"]),
    Route("/api/series", series, methods=["POST"]),
]


def create_rest_app(dispatcher: Dispatcher) -> Starlette:
    """Build the REST application around a ready dispatcher."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("REST gateway serving operations: %s", ", ".join(dispatcher.registry.names()))
        yield

    app = Starlette(
        routes=routes,
        exception_handlers={
            404: not_found,
            405: not_found,
            Exception: internal_error,
        },
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    return app


def main():
    """Entry point for the CLI command."""
    config = GatewayConfig.from_env(default_port=REST_DEFAULT_PORT)
    config.configure_logging()
    config.warn_if_unconfigured()
    app = create_rest_app(build_dispatcher(config))
    logger.info("FRED HTTP Server running on port %d", config.port)
    logger.info("API Documentation available at http://localhost:%d", config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
