"""FRED MCP Server.

MCP (JSON-RPC 2.0) front end over the shared dispatcher. Tools are generated
from the operation registry, so ``tools/list`` always matches what
``tools/call`` validates. Served statelessly over streamable HTTP at ``/mcp``
(no session id is issued), or over stdio with ``MCP_TRANSPORT=stdio``.
Run: fred-gateway-mcp
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from mcp.shared.exceptions import McpError
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from . import __version__
from .config import MCP_DEFAULT_PORT, GatewayConfig, build_dispatcher
from .core.dispatcher import Dispatcher
from .core.models import Fail, Operation, OperationSpec, ParamField, ParamKind
from .core.responses import jsonrpc_internal_error, to_jsonrpc_error, to_tool_result
from .rest import SERVICE_NAME, health

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"

READ_ONLY = types.ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

INSTRUCTIONS = (
    "Federal Reserve Economic Data (FRED). Use 'search' to find series IDs, 'get_series' "
    "to fetch observations, and 'browse' to walk categories, releases and sources."
)


# ─── Tool schemas ────────────────────────────────────────────────────────────


def field_schema(field: ParamField) -> dict[str, Any]:
    """JSON Schema for one parameter."""
    if field.kind is ParamKind.INTEGER:
        schema: dict[str, Any] = {"type": "integer"}
        if field.minimum is not None:
            schema["minimum"] = field.minimum
        if field.maximum is not None:
            schema["maximum"] = field.maximum
    elif field.kind is ParamKind.ENUM:
        is_int = all(isinstance(c, int) for c in field.choices)
        schema = {"type": "integer" if is_int else "string", "enum": list(field.choices)}
    elif field.kind is ParamKind.DATE:
        schema = {"type": "string", "format": "date"}
    elif field.kind is ParamKind.LIST:
        schema = {"type": "array", "items": {"type": "string"}}
    else:
        schema = {"type": "string"}

    if field.description:
        schema["description"] = field.description
    if field.default is not None:
        schema["default"] = field.default
    return schema


def input_schema(spec: OperationSpec) -> dict[str, Any]:
    """JSON Schema for a tool's arguments, built from its parameter spec."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {f.name: field_schema(f) for f in spec.fields},
    }
    required = [f.name for f in spec.fields if f.required]
    if required:
        schema["required"] = required
    return schema


def tool_for(operation: Operation) -> types.Tool:
    spec = operation.spec
    description = spec.description
    if spec.selector is not None:
        needs = [
            f"{', '.join(fields)} for {variant}"
            for variant, fields in spec.selector.variants.items()
            if fields
        ]
        if needs:
            description += f" Requires {'; '.join(needs)}."
    return types.Tool(
        name=operation.name.value,
        description=description,
        inputSchema=input_schema(spec),
        annotations=READ_ONLY,
    )


# ─── Server ──────────────────────────────────────────────────────────────────


def create_mcp_server(dispatcher: Dispatcher) -> Server:
    """Low-level MCP server whose tools are the registry's operations.

    Failed calls are answered with JSON-RPC error objects (-32601 unknown
    operation, -32602 invalid params, -32603 upstream failure), not with
    ``isError`` tool results.
    """
    server = Server(SERVICE_NAME, version=__version__, instructions=INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [tool_for(op) for op in dispatcher.registry.operations()]

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            outcome = await dispatcher.dispatch(req.params.name, req.params.arguments or {})
            if isinstance(outcome, Fail):
                raise McpError(to_jsonrpc_error(outcome))
            return types.ServerResult(to_tool_result(outcome))
        except McpError:
            raise
        except Exception as exc:
            logger.error("Unhandled error in tools/call %s: %s", req.params.name, exc, exc_info=exc)
            raise McpError(jsonrpc_internal_error(exc)) from exc

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


class StreamableHTTPEndpoint:
    """ASGI endpoint handing each request to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


def create_mcp_app(dispatcher: Dispatcher) -> Starlette:
    """Starlette app serving ``POST /mcp`` (stateless, JSON responses) and ``GET /health``."""
    server = create_mcp_server(dispatcher)
    session_manager = StreamableHTTPSessionManager(
        app=server,
        event_store=None,
        json_response=True,
        stateless=True,
    )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info("MCP server ready at %s (stateless)", MCP_PATH)
            yield

    app = Starlette(
        routes=[
            Route(MCP_PATH, endpoint=StreamableHTTPEndpoint(session_manager), methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    return app


async def run_stdio(dispatcher: Dispatcher) -> None:
    server = create_mcp_server(dispatcher)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main():
    """Entry point for the CLI command."""
    config = GatewayConfig.from_env(default_port=MCP_DEFAULT_PORT)
    config.configure_logging()
    config.warn_if_unconfigured()
    dispatcher = build_dispatcher(config)

    if config.mcp_transport == "stdio":
        asyncio.run(run_stdio(dispatcher))
    elif config.mcp_transport == "http":
        logger.info("FRED MCP Server running on port %d", config.port)
        uvicorn.run(create_mcp_app(dispatcher), host=config.host, port=config.port, log_level=config.log_level.lower())
    else:
        raise ValueError(f"Unknown MCP_TRANSPORT: {config.mcp_transport}. Use 'http' or 'stdio'.")


if __name__ == "__main__":
    main()
