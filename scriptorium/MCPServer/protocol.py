"""
MCPServer Protocol.

Typed request variants for the file tools, resource URI parsing, tool and
resource declarations, and MIME type lookup. Nothing here touches the
filesystem.
"""

from __future__ import annotations

import os
import re
from enum import IntEnum
from typing import Any, Dict, List, Optional, Type, Union
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError


RESOURCE_SCHEME = "file"

RESOURCE_URI_PATTERN = re.compile(r"^file://([^/]+)(?:/(.*))?$")

MIME_TYPES: Dict[str, str] = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".json": "application/json",
    ".xml": "application/xml",
    ".csv": "text/csv",
    ".log": "text/plain",
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class RejectionCode(IntEnum):
    """JSON-RPC error codes used for request-level rejections."""
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class RequestRejected(Exception):
    """The request itself is wrong (unknown folder, bad URI, bad arguments)."""

    def __init__(self, code: RejectionCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# =============================================================================
# Typed requests
# =============================================================================


class _ToolRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    folder: str = Field(min_length=1)


class ListRequest(_ToolRequest):
    """Arguments of the list_files tool."""
    pattern: Optional[str] = None


class ReadRequest(_ToolRequest):
    """Arguments of the read_file tool."""
    filename: str = Field(min_length=1)


class SearchRequest(_ToolRequest):
    """Arguments of the search_files tool."""
    search_text: str = Field(min_length=1, alias="searchText")
    case_sensitive: bool = Field(default=False, alias="caseSensitive")


ToolRequest = Union[ListRequest, ReadRequest, SearchRequest]

TOOL_REQUESTS: Dict[str, Type[_ToolRequest]] = {
    "list_files": ListRequest,
    "read_file": ReadRequest,
    "search_files": SearchRequest,
}


def parse_tool_request(name: str, arguments: Optional[Dict[str, Any]]) -> ToolRequest:
    """
    Validate raw tool arguments into a typed request.

    Raises:
        RequestRejected: METHOD_NOT_FOUND for unknown tools,
            INVALID_PARAMS for bad arguments
    """
    request_class = TOOL_REQUESTS.get(name)
    if request_class is None:
        raise RequestRejected(RejectionCode.METHOD_NOT_FOUND, f"Unknown tool: {name}")

    try:
        return request_class.model_validate(arguments or {})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in e.errors()
        )
        raise RequestRejected(
            RejectionCode.INVALID_PARAMS,
            f"Invalid arguments for {name}: {problems}",
        )


# =============================================================================
# Resources
# =============================================================================


class ResourceTarget(BaseModel):
    """Parsed resource URI: a folder, optionally a file inside it."""
    model_config = ConfigDict(frozen=True)

    folder: str
    filename: Optional[str] = None


def parse_resource_uri(uri: str) -> ResourceTarget:
    """
    Parse "file://folder" or "file://folder/filename".

    Raises:
        RequestRejected: INVALID_REQUEST when the URI does not match
    """
    match = RESOURCE_URI_PATTERN.match(str(uri))
    if not match:
        raise RequestRejected(RejectionCode.INVALID_REQUEST, f"Invalid URI format: {uri}")

    folder, filename = match.groups()
    return ResourceTarget(
        folder=unquote(folder),
        filename=unquote(filename) if filename else None,
    )


def folder_uri(folder: str) -> str:
    return f"{RESOURCE_SCHEME}://{folder}"


def file_uri(folder: str, filename: str) -> str:
    return f"{RESOURCE_SCHEME}://{folder}/{filename}"


def get_mime_type(filename: str) -> str:
    """MIME type by extension, text/plain when unknown."""
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "text/plain")


class ResourceInfo(BaseModel):
    """A concrete resource offered to clients."""
    uri: str
    name: str
    mime_type: str
    description: str


class ResourceTemplateInfo(BaseModel):
    """A parameterized resource URI."""
    uri_template: str
    name: str
    mime_type: str
    description: str


class ResourceContent(BaseModel):
    """Body returned for a resource read."""
    uri: str
    mime_type: str
    text: str


RESOURCE_TEMPLATES: List[ResourceTemplateInfo] = [
    ResourceTemplateInfo(
        uri_template=f"{RESOURCE_SCHEME}://{{folder}}",
        name="Folder contents",
        mime_type="application/json",
        description="List files in a configured folder",
    ),
    ResourceTemplateInfo(
        uri_template=f"{RESOURCE_SCHEME}://{{folder}}/{{filename}}",
        name="File content",
        mime_type="text/plain",
        description="Read content of a specific file",
    ),
]


# =============================================================================
# Tools
# =============================================================================


class ToolDefinition(BaseModel):
    """Tool declaration with its JSON input schema."""
    name: str
    description: str
    input_schema: Dict[str, Any]


class ToolResult(BaseModel):
    """Text result of a tool call. is_error marks data-level failures."""
    text: str
    is_error: bool = False


def build_tool_definitions(folder_keys: List[str]) -> List[ToolDefinition]:
    """Declare the three file tools; folder arguments are limited to folder_keys."""
    available = ", ".join(folder_keys)

    def folder_property(purpose: str) -> Dict[str, Any]:
        return {
            "type": "string",
            "description": f"{purpose}. Available: {available}",
            "enum": list(folder_keys),
        }

    return [
        ToolDefinition(
            name="list_files",
            description="List files in a configured folder",
            input_schema={
                "type": "object",
                "properties": {
                    "folder": folder_property("Folder name to list files from"),
                    "pattern": {
                        "type": "string",
                        "description": 'Optional file pattern to match (e.g., "*.txt")',
                    },
                },
                "required": ["folder"],
            },
        ),
        ToolDefinition(
            name="read_file",
            description="Read the content of a specific file",
            input_schema={
                "type": "object",
                "properties": {
                    "folder": folder_property("Folder name containing the file"),
                    "filename": {
                        "type": "string",
                        "description": "Name of the file to read",
                    },
                },
                "required": ["folder", "filename"],
            },
        ),
        ToolDefinition(
            name="search_files",
            description="Search for files containing specific text",
            input_schema={
                "type": "object",
                "properties": {
                    "folder": folder_property("Folder name to search in"),
                    "searchText": {
                        "type": "string",
                        "description": "Text to search for in file contents",
                    },
                    "caseSensitive": {
                        "type": "boolean",
                        "description": "Whether search should be case sensitive",
                        "default": False,
                    },
                },
                "required": ["folder", "searchText"],
            },
        ),
    ]
