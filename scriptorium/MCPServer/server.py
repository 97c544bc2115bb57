"""
MCP stdio server.

Wires RequestFacade into the MCP SDK's low-level Server and runs it over
stdin/stdout. Logging goes to stderr.

Usage:
    scriptorium-mcp
"""

from __future__ import annotations

import asyncio
from typing import List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl

from scriptorium import Config
from scriptorium.shared.gate import GateLogger
from scriptorium.FolderGate import FolderGate
from scriptorium.MCPServer.handlers import RequestFacade
from scriptorium.MCPServer.protocol import RequestRejected

_log = GateLogger.get("MCPServer")

SERVER_NAME = "file-server-mcp"
SERVER_VERSION = "1.0.0"


def _to_mcp_error(rejection: RequestRejected) -> McpError:
    return McpError(types.ErrorData(code=int(rejection.code), message=rejection.message))


def build_server(facade: RequestFacade) -> Server:
    """Register resource and tool handlers backed by the facade."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return [
            types.Resource(
                uri=r.uri,
                name=r.name,
                mimeType=r.mime_type,
                description=r.description,
            )
            for r in facade.list_resources()
        ]

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=t.uri_template,
                name=t.name,
                mimeType=t.mime_type,
                description=t.description,
            )
            for t in facade.list_resource_templates()
        ]

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> List[ReadResourceContents]:
        try:
            content = facade.read_resource(str(uri))
        except RequestRejected as e:
            raise _to_mcp_error(e)
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=d.name,
                description=d.description,
                inputSchema=d.input_schema,
            )
            for d in facade.tool_definitions()
        ]

    # Not the call_tool decorator: it folds every exception into an isError
    # result, and rejections must reach the client as JSON-RPC errors.
    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        try:
            result = facade.call_tool(request.params.name, request.params.arguments)
        except RequestRejected as e:
            raise _to_mcp_error(e)
        return types.ServerResult(types.CallToolResult(
            content=[types.TextContent(type="text", text=result.text)],
            isError=result.is_error,
        ))

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    return server


async def serve(facade: RequestFacade) -> None:
    """Run the server until stdin closes."""
    server = build_server(facade)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    """Console entry point."""
    config = Config.load()
    GateLogger.set_level(config.log_level)

    gate = FolderGate.from_config(config)
    _log.info("File Server MCP running on stdio")
    _log.info(f"Configured folders: {', '.join(gate.folder_keys())}")

    try:
        asyncio.run(serve(RequestFacade(gate)))
    except KeyboardInterrupt:
        _log.info("Shutting down")


if __name__ == "__main__":
    main()
