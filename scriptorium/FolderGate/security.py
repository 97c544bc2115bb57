"""
FolderGate security module.

Provides path resolution with traversal prevention, extension and size
policy checks, and listing pattern compilation.
"""

import os
import re
from pathlib import PurePath
from typing import TYPE_CHECKING, Optional, Pattern

from .models import AccessErrorKind, AccessError, AccessPolicy, ResolvedPath

if TYPE_CHECKING:
    from .registry import FolderRegistry


_SEPARATORS = re.compile(r"[\\/]+")


class FolderAccessError(Exception):
    """Raised when a request fails validation, policy or I/O."""

    def __init__(
        self,
        kind: AccessErrorKind,
        message: str,
        path: Optional[str] = None,
        size: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.path = path
        self.size = size
        self.cause = cause

    def to_model(self) -> AccessError:
        return AccessError(
            kind=self.kind,
            message=self.message,
            path=self.path,
            size=self.size,
        )


def canonicalize(path: str) -> str:
    """
    Canonicalize a path: expand ~, make absolute, resolve symlinks and ..

    Args:
        path: Raw path string

    Returns:
        Canonical absolute path
    """
    return os.path.realpath(os.path.expanduser(path))


def is_within_root(path: str, root: str) -> bool:
    """
    Check that a canonical path lies inside a canonical root.

    Compares path components, never string prefixes, so "/docsX" is not
    inside "/docs".
    """
    path_parts = PurePath(os.path.normcase(path)).parts
    root_parts = PurePath(os.path.normcase(root)).parts
    return path_parts[:len(root_parts)] == root_parts


def get_extension(name: str) -> str:
    """Lowercase extension including the dot, or "" if there is none."""
    return os.path.splitext(name)[1].lower()


def check_relative_path(relative: str) -> None:
    """
    Lexically validate an untrusted relative path.

    Touches no filesystem state, so an escaping path is rejected the same
    way whether or not its target exists.

    Raises:
        FolderAccessError: INVALID_ARGUMENT or PATH_ESCAPES_ROOT
    """
    if relative == "":
        raise FolderAccessError(
            AccessErrorKind.INVALID_ARGUMENT, "Path must not be empty"
        )
    if "\x00" in relative:
        raise FolderAccessError(
            AccessErrorKind.INVALID_ARGUMENT, "Path contains a null byte"
        )

    # absolute, backslash/UNC rooted, or drive-qualified (Windows only)
    if os.path.isabs(relative) or relative[0] in "/\\" or os.path.splitdrive(relative)[0]:
        raise FolderAccessError(
            AccessErrorKind.PATH_ESCAPES_ROOT,
            f"Absolute paths are not allowed: {relative}",
            path=relative,
        )

    depth = 0
    for segment in _SEPARATORS.split(relative):
        if segment in ("", "."):
            continue
        if segment == "..":
            depth -= 1
            if depth < 0:
                raise FolderAccessError(
                    AccessErrorKind.PATH_ESCAPES_ROOT,
                    f"Path escapes folder boundary: {relative}",
                    path=relative,
                )
        else:
            depth += 1


class PathResolver:
    """
    Resolves (folder key, relative path) into a ResolvedPath.

    Every ResolvedPath it returns has been canonicalized and verified to sit
    inside the canonical folder root.
    """

    def __init__(self, registry: "FolderRegistry"):
        self.registry = registry

    def resolve(self, folder_key: str, relative: Optional[str] = None) -> ResolvedPath:
        """
        Resolve a path relative to a folder root.

        Args:
            folder_key: Configured folder key
            relative: Path relative to the root, or None for the root itself

        Returns:
            ResolvedPath inside the folder root

        Raises:
            FolderAccessError: UNKNOWN_FOLDER, INVALID_ARGUMENT,
                PATH_ESCAPES_ROOT or NOT_FOUND (root missing)
        """
        entry = self.registry.lookup(folder_key)

        if relative is not None:
            check_relative_path(relative)

        root = self._live_root(entry.root)
        if relative is None:
            return ResolvedPath(absolute=root, folder_key=entry.key, root=root)

        return self._contain(os.path.join(root, relative), root, entry.key, relative)

    def resolve_child(self, parent: ResolvedPath, name: str) -> ResolvedPath:
        """
        Resolve a name beneath an already resolved directory.

        The result goes through the same lexical and canonical checks as
        resolve(), against the owning folder's root.
        """
        check_relative_path(name)

        root = self._live_root(parent.root)
        return self._contain(os.path.join(parent.absolute, name), root, parent.folder_key, name)

    @staticmethod
    def _live_root(root: str) -> str:
        """Re-check that a folder root exists and return its canonical form."""
        canonical = canonicalize(root)
        if not os.path.isdir(canonical):
            raise FolderAccessError(
                AccessErrorKind.NOT_FOUND,
                f"Folder path not found: {root}",
                path=root,
            )
        return canonical

    @staticmethod
    def _contain(candidate: str, root: str, folder_key: str, requested: str) -> ResolvedPath:
        canonical = canonicalize(candidate)
        if not is_within_root(canonical, root):
            raise FolderAccessError(
                AccessErrorKind.PATH_ESCAPES_ROOT,
                f"Path escapes folder boundary: {requested}",
                path=requested,
            )
        return ResolvedPath(absolute=canonical, folder_key=folder_key, root=root)


class PolicyGate:
    """Pure predicates over already-fetched metadata."""

    def __init__(self, policy: AccessPolicy):
        self.policy = policy

    def check_extension(self, name: str) -> bool:
        """
        Check a filename against the extension allowlist.

        No extension never passes; an empty allowlist denies everything.
        """
        ext = get_extension(name)
        if not ext:
            return False
        return ext in self.policy.allowed_extensions

    def check_size(self, actual_bytes: int) -> bool:
        """Check a size against the ceiling. None means unlimited."""
        if self.policy.max_file_size is None:
            return True
        return actual_bytes <= self.policy.max_file_size


def compile_name_pattern(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """
    Compile a listing glob into a regex.

    "*" matches any run of characters; everything else is literal. Matching
    is case-insensitive and unanchored, so callers use search() and the
    pattern may match anywhere in the filename.

    Returns:
        Compiled pattern, or None when no filtering is requested
    """
    if not pattern:
        return None

    if "\x00" in pattern:
        raise FolderAccessError(
            AccessErrorKind.INVALID_ARGUMENT, "Pattern contains a null byte"
        )

    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(regex, re.IGNORECASE | re.DOTALL)
