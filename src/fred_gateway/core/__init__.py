"""Core dispatch logic — registry, normalizer, dispatcher, response mapping, FRED client.

This module is transport-agnostic. It has no dependency on Starlette or any
server framework; only the JSON-RPC error and tool-result types come from the
MCP SDK. Both the REST gateway and the MCP server import from here, so
validation behaves identically on either path.
"""
