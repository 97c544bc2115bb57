"""
FolderGate - Scoped, read-only file access for Scriptorium.

Provides:
- Named folders confined to their canonical roots
- Path traversal and symlink escape prevention
- Extension allowlist and read size ceiling
- Single-level listing, UTF-8 reads and plain-text search

Usage:
    from scriptorium import Config
    from scriptorium.FolderGate import FolderGate

    gate = FolderGate.from_config(Config.load())

    result = gate.list_files("documents", pattern="*.md")
    result = gate.read_file("documents", "README.md")
    result = gate.search_files("documents", "backup")

Data-level failures come back as results with `error` set. An unknown
folder key is a caller mistake and is raised as FolderAccessError.
"""

import os
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from scriptorium.shared.gate import GateLogger, build_health_status

from .models import (
    AccessErrorKind,
    AccessError,
    AccessPolicy,
    FileContent,
    FileDescriptor,
    FolderEntry,
    ListResult,
    MatchedLine,
    ReadResult,
    ResolvedPath,
    SearchMatch,
    SearchResult,
    MAX_MATCHING_LINES,
)
from .registry import FolderRegistry
from .security import (
    FolderAccessError,
    PathResolver,
    PolicyGate,
    compile_name_pattern,
    get_extension,
)
from .operations import (
    list_files as op_list_files,
    read_file as op_read_file,
    search_files as op_search_files,
)

if TYPE_CHECKING:
    from scriptorium.Config import ServerConfig

_log = GateLogger.get("FolderGate")


class FolderGate:
    """
    Operation boundary of the file access engine.

    Holds only immutable state (registry and policy), so one instance can be
    shared by any number of concurrent callers.
    """

    def __init__(self, registry: FolderRegistry, policy: AccessPolicy):
        self.registry = registry
        self.policy = policy
        self.resolver = PathResolver(registry)
        self.policy_gate = PolicyGate(policy)

    @classmethod
    def from_config(cls, config: "ServerConfig") -> "FolderGate":
        """Build a gate from a loaded ServerConfig."""
        return cls(FolderRegistry(config.folders), config.to_policy())

    def folder_keys(self) -> List[str]:
        """Configured folder keys, in configuration order."""
        return self.registry.keys()

    def _failure(self, operation: str, folder_key: str, error: FolderAccessError) -> AccessError:
        """Log a data-level failure; let request-level ones propagate."""
        if error.kind is AccessErrorKind.UNKNOWN_FOLDER:
            raise error
        _log.warning(f"{operation} on '{folder_key}' failed: {error.message}")
        return error.to_model()

    # ==================== File Operations ====================

    def list_files(self, folder_key: str, pattern: Optional[str] = None) -> ListResult:
        """
        List allowed files in a folder root.

        Args:
            folder_key: Configured folder key
            pattern: Optional "*" glob matched case-insensitively

        Returns:
            ListResult with files, or with error set
        """
        try:
            resolved = self.resolver.resolve(folder_key)
            return op_list_files(resolved, self.policy_gate, pattern)
        except FolderAccessError as e:
            return ListResult(folder=folder_key, error=self._failure("list_files", folder_key, e))

    def read_file(self, folder_key: str, filename: str) -> ReadResult:
        """
        Read a file from a folder as UTF-8 text.

        Args:
            folder_key: Configured folder key
            filename: File name relative to the folder root

        Returns:
            ReadResult with file content, or with error set
        """
        try:
            resolved = self.resolver.resolve(folder_key)
            content = op_read_file(self.resolver, self.policy_gate, resolved, filename)
            return ReadResult(folder=folder_key, filename=filename, file=content)
        except FolderAccessError as e:
            return ReadResult(
                folder=folder_key,
                filename=filename,
                error=self._failure("read_file", folder_key, e),
            )

    def search_files(
        self,
        folder_key: str,
        search_text: str,
        case_sensitive: bool = False
    ) -> SearchResult:
        """
        Search the files of a folder root for text.

        Args:
            folder_key: Configured folder key
            search_text: Substring to look for
            case_sensitive: Match case exactly (default False)

        Returns:
            SearchResult with matches, or with error set
        """
        try:
            resolved = self.resolver.resolve(folder_key)
            return op_search_files(resolved, self.policy_gate, search_text, case_sensitive)
        except FolderAccessError as e:
            return SearchResult(
                folder=folder_key,
                search_text=search_text,
                case_sensitive=case_sensitive,
                error=self._failure("search_files", folder_key, e),
            )

    # ==================== Health Checks ====================

    def is_healthy(self) -> bool:
        """Healthy when every configured root is a readable directory."""
        return self.get_health_status()["healthy"]

    def get_health_status(self) -> Dict[str, Any]:
        """Get detailed health information."""
        checks = {}
        for entry in self.registry:
            checks[f"folder_{entry.key}"] = (
                os.path.isdir(entry.root) and os.access(entry.root, os.R_OK)
            )

        details = {
            "folder_count": len(self.registry),
            "accessible_folders": sum(1 for ok in checks.values() if ok),
            "allowed_extensions": sorted(self.policy.allowed_extensions),
            "max_file_size": self.policy.max_file_size,
        }

        return build_health_status(
            gate_name="FolderGate",
            initialized=True,
            dependencies=["filesystem"],
            checks=checks,
            details=details,
        )


__all__ = [
    # Gate
    "FolderGate",
    "FolderRegistry",
    "PathResolver",
    "PolicyGate",
    "compile_name_pattern",
    "get_extension",
    # Models
    "AccessErrorKind",
    "AccessError",
    "AccessPolicy",
    "FileContent",
    "FileDescriptor",
    "FolderEntry",
    "ListResult",
    "MatchedLine",
    "ReadResult",
    "ResolvedPath",
    "SearchMatch",
    "SearchResult",
    "MAX_MATCHING_LINES",
    # Errors
    "FolderAccessError",
]
