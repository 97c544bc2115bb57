from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query

from scriptorium.FolderGate import (
    AccessError,
    AccessErrorKind,
    FolderAccessError,
    FolderGate,
)


ERROR_STATUS = {
    AccessErrorKind.UNKNOWN_FOLDER: 404,
    AccessErrorKind.PATH_ESCAPES_ROOT: 403,
    AccessErrorKind.EXTENSION_NOT_ALLOWED: 403,
    AccessErrorKind.FILE_TOO_LARGE: 413,
    AccessErrorKind.NOT_FOUND: 404,
    AccessErrorKind.INVALID_ARGUMENT: 400,
    AccessErrorKind.READ_FAILED: 500,
}


def _raise_for(error: AccessError) -> None:
    raise HTTPException(
        status_code=ERROR_STATUS.get(error.kind, 400),
        detail=error.model_dump(mode="json", exclude_none=True),
    )


def create_router(gate: FolderGate) -> APIRouter:
    router = APIRouter()

    @router.get("/api/folders")
    def api_list_folders() -> Dict[str, Any]:
        """List configured folder keys."""
        return {"folders": gate.folder_keys()}

    @router.get("/api/files/{folder}")
    def api_list_files(folder: str, pattern: Optional[str] = None) -> Dict[str, Any]:
        """List allowed files in a folder."""
        try:
            result = gate.list_files(folder, pattern)
        except FolderAccessError as e:
            _raise_for(e.to_model())
        if result.error is not None:
            _raise_for(result.error)

        return {
            "folder": result.folder,
            "path": result.path,
            "fileCount": len(result.files),
            "files": [f.to_dict() for f in result.files],
            "skipped": result.skipped,
        }

    @router.get("/api/files/{folder}/read")
    def api_read_file(folder: str, filename: str) -> Dict[str, Any]:
        """Read a file's contents."""
        try:
            result = gate.read_file(folder, filename)
        except FolderAccessError as e:
            _raise_for(e.to_model())
        if result.error is not None:
            _raise_for(result.error)

        return result.file.model_dump()

    @router.get("/api/files/{folder}/search")
    def api_search_files(
        folder: str,
        q: str = Query(min_length=1),
        case_sensitive: bool = False,
    ) -> Dict[str, Any]:
        """Search folder files for text."""
        try:
            result = gate.search_files(folder, q, case_sensitive)
        except FolderAccessError as e:
            _raise_for(e.to_model())
        if result.error is not None:
            _raise_for(result.error)

        return {
            "searchText": result.search_text,
            "caseSensitive": result.case_sensitive,
            "folder": result.folder,
            "totalFiles": len(result.matches),
            "results": [m.to_dict() for m in result.matches],
            "skipped": result.skipped,
        }

    return router


__all__ = ["create_router"]
