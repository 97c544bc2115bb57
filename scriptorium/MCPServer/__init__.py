"""
MCPServer - Protocol edge for Scriptorium.

RequestFacade parses tool arguments and resource URIs into typed requests,
calls FolderGate, and formats results. The stdio transport lives in
scriptorium.MCPServer.server.
"""

from scriptorium.MCPServer.handlers import RequestFacade
from scriptorium.MCPServer.protocol import (
    ListRequest,
    ReadRequest,
    SearchRequest,
    ToolRequest,
    RejectionCode,
    RequestRejected,
    ResourceTarget,
    ResourceContent,
    ResourceInfo,
    ToolDefinition,
    ToolResult,
    parse_resource_uri,
    parse_tool_request,
    get_mime_type,
)

__all__ = [
    "RequestFacade",
    "ListRequest",
    "ReadRequest",
    "SearchRequest",
    "ToolRequest",
    "RejectionCode",
    "RequestRejected",
    "ResourceTarget",
    "ResourceContent",
    "ResourceInfo",
    "ToolDefinition",
    "ToolResult",
    "parse_resource_uri",
    "parse_tool_request",
    "get_mime_type",
]
