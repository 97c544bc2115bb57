"""
MCPServer request handlers.

RequestFacade turns protocol requests into FolderGate calls and formats the
structured results as text. Data-level failures become error results;
request-level problems raise RequestRejected.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from scriptorium.shared.gate import GateLogger
from scriptorium.FolderGate import (
    AccessError,
    AccessErrorKind,
    FolderAccessError,
    FolderGate,
)
from scriptorium.MCPServer.protocol import (
    RESOURCE_TEMPLATES,
    ListRequest,
    ReadRequest,
    RejectionCode,
    RequestRejected,
    ResourceContent,
    ResourceInfo,
    ResourceTemplateInfo,
    SearchRequest,
    ToolDefinition,
    ToolResult,
    build_tool_definitions,
    file_uri,
    folder_uri,
    get_mime_type,
    parse_resource_uri,
    parse_tool_request,
)

_log = GateLogger.get("MCPServer")

# Policy denials; every other kind maps to INTERNAL_ERROR
_RESOURCE_REJECTION_CODES = {
    AccessErrorKind.PATH_ESCAPES_ROOT: RejectionCode.INVALID_REQUEST,
    AccessErrorKind.EXTENSION_NOT_ALLOWED: RejectionCode.INVALID_REQUEST,
    AccessErrorKind.FILE_TOO_LARGE: RejectionCode.INVALID_REQUEST,
    AccessErrorKind.INVALID_ARGUMENT: RejectionCode.INVALID_REQUEST,
}


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _unknown_folder(folder: str) -> RequestRejected:
    return RequestRejected(RejectionCode.INVALID_REQUEST, f"Unknown folder: {folder}")


def _describe_read_error(filename: str, error: AccessError) -> str:
    if error.kind is AccessErrorKind.EXTENSION_NOT_ALLOWED:
        return f"Error: File type not allowed: {filename}"
    if error.kind is AccessErrorKind.FILE_TOO_LARGE:
        return f"Error: File too large: {error.size} bytes"
    return f"Error reading file: {error.message}"


class RequestFacade:
    """
    Protocol-facing edge of the engine.

    Stateless apart from the gate it wraps.
    """

    def __init__(self, gate: FolderGate):
        self.gate = gate

    # ==================== Tools ====================

    def tool_definitions(self) -> List[ToolDefinition]:
        return build_tool_definitions(self.gate.folder_keys())

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolResult:
        """
        Run a tool call.

        Args:
            name: Tool name (list_files, read_file, search_files)
            arguments: Raw JSON arguments

        Returns:
            ToolResult; is_error is set for data-level failures

        Raises:
            RequestRejected: unknown tool, invalid arguments or unknown folder
        """
        request = parse_tool_request(name, arguments)

        try:
            if isinstance(request, ListRequest):
                return self._list_files(request)
            if isinstance(request, ReadRequest):
                return self._read_file(request)
            return self._search_files(request)
        except FolderAccessError:
            raise _unknown_folder(request.folder)

    def _list_files(self, request: ListRequest) -> ToolResult:
        result = self.gate.list_files(request.folder, request.pattern)
        if result.error is not None:
            return ToolResult(text=f"Error listing files: {result.error.message}", is_error=True)

        return ToolResult(text=_to_json({
            "folder": result.folder,
            "path": result.path,
            "fileCount": len(result.files),
            "files": [f.to_dict() for f in result.files],
            "skipped": result.skipped,
        }))

    def _read_file(self, request: ReadRequest) -> ToolResult:
        result = self.gate.read_file(request.folder, request.filename)
        if result.error is not None:
            return ToolResult(text=_describe_read_error(request.filename, result.error), is_error=True)

        content = result.file
        return ToolResult(text=(
            f"File: {request.filename}\n"
            f"Path: {content.path}\n"
            f"Size: {content.size} bytes\n\n"
            f"--- Content ---\n{content.content}"
        ))

    def _search_files(self, request: SearchRequest) -> ToolResult:
        result = self.gate.search_files(request.folder, request.search_text, request.case_sensitive)
        if result.error is not None:
            return ToolResult(text=f"Error searching files: {result.error.message}", is_error=True)

        return ToolResult(text=_to_json({
            "searchText": result.search_text,
            "caseSensitive": result.case_sensitive,
            "folder": result.folder,
            "totalFiles": len(result.matches),
            "results": [m.to_dict() for m in result.matches],
            "skipped": result.skipped,
        }))

    # ==================== Resources ====================

    def list_resource_templates(self) -> List[ResourceTemplateInfo]:
        return list(RESOURCE_TEMPLATES)

    def list_resources(self) -> List[ResourceInfo]:
        """
        One resource per reachable folder plus one per allowed file in it.

        Folders that cannot be listed are logged and left out.
        """
        resources: List[ResourceInfo] = []

        for key in self.gate.folder_keys():
            result = self.gate.list_files(key)
            if result.error is not None:
                _log.error(f"Error accessing folder {key}: {result.error.message}")
                continue

            resources.append(ResourceInfo(
                uri=folder_uri(key),
                name=f"Files in {key} folder",
                mime_type="application/json",
                description=f"List of files in {result.path}",
            ))
            for f in result.files:
                resources.append(ResourceInfo(
                    uri=file_uri(key, f.name),
                    name=f"{f.name} ({key})",
                    mime_type=get_mime_type(f.name),
                    description=f"File: {f.name} in {key} folder ({f.size} bytes)",
                ))

        return resources

    def read_resource(self, uri: str) -> ResourceContent:
        """
        Route a resource URI to a folder listing or a file read.

        Raises:
            RequestRejected: malformed URI, unknown folder, or any failure
                (resources have no error result channel)
        """
        target = parse_resource_uri(uri)

        try:
            if target.filename is None:
                return self._read_folder_resource(str(uri), target.folder)
            return self._read_file_resource(str(uri), target.folder, target.filename)
        except FolderAccessError:
            raise _unknown_folder(target.folder)

    def _read_folder_resource(self, uri: str, folder: str) -> ResourceContent:
        result = self.gate.list_files(folder)
        if result.error is not None:
            raise self._resource_failure("Error reading folder", result.error)

        listing = [
            {
                "name": f.name,
                "path": os.path.join(result.path, f.name),
                "size": f.size,
                "modified": f.modified_at.isoformat(),
            }
            for f in result.files
        ]
        return ResourceContent(uri=uri, mime_type="application/json", text=_to_json(listing))

    def _read_file_resource(self, uri: str, folder: str, filename: str) -> ResourceContent:
        result = self.gate.read_file(folder, filename)
        if result.error is not None:
            raise self._resource_failure("Error reading file", result.error)

        return ResourceContent(
            uri=uri,
            mime_type=get_mime_type(filename),
            text=result.file.content,
        )

    @staticmethod
    def _resource_failure(prefix: str, error: AccessError) -> RequestRejected:
        code = _RESOURCE_REJECTION_CODES.get(error.kind, RejectionCode.INTERNAL_ERROR)
        return RequestRejected(code, f"{prefix}: {error.message}")
