"""
FolderGate file operations.

Provides list, read and search over paths already validated by
PathResolver. Operations raise FolderAccessError; converting failures into
results is left to the caller.
"""

import os
import stat as stat_module
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from scriptorium.shared.gate import GateLogger

from .models import (
    AccessErrorKind,
    FileContent,
    FileDescriptor,
    ListResult,
    MatchedLine,
    ResolvedPath,
    SearchMatch,
    SearchResult,
    MAX_MATCHING_LINES,
)
from .security import (
    FolderAccessError,
    PathResolver,
    PolicyGate,
    canonicalize,
    compile_name_pattern,
    is_within_root,
)

_log = GateLogger.get("FolderGate")


def _scan_allowed_files(
    resolved: ResolvedPath,
    policy: PolicyGate
) -> Tuple[List[Tuple[os.DirEntry, os.stat_result]], int]:
    """
    Collect the direct children that are regular, extension-allowed files.

    Entries whose metadata cannot be read, and symlinks pointing outside the
    folder root or at a disallowed file type, are skipped and counted rather
    than failing the scan.

    Returns:
        Tuple of ([(entry, stat)], skipped_count), sorted by name
    """
    try:
        with os.scandir(resolved.absolute) as it:
            children = list(it)
    except FileNotFoundError as e:
        raise FolderAccessError(
            AccessErrorKind.NOT_FOUND,
            f"Folder path not found: {resolved.absolute}",
            path=resolved.absolute,
            cause=e,
        )
    except OSError as e:
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"Failed to list directory: {e}",
            path=resolved.absolute,
            cause=e,
        )

    files = []
    skipped = 0

    for entry in children:
        if not policy.check_extension(entry.name):
            continue

        try:
            if not entry.is_file():
                continue
            if entry.is_symlink():
                target = canonicalize(entry.path)
                if not is_within_root(target, resolved.root):
                    _log.debug(f"Skipping symlink leaving folder root: {entry.path}")
                    skipped += 1
                    continue
                if not policy.check_extension(target):
                    _log.debug(f"Skipping symlink to disallowed file type: {entry.path}")
                    skipped += 1
                    continue
            entry_stat = entry.stat()
        except OSError as e:
            _log.debug(f"Skipping {entry.path}: {e}")
            skipped += 1
            continue

        files.append((entry, entry_stat))

    # Deterministic order; scandir order is filesystem dependent
    files.sort(key=lambda item: (item[0].name.lower(), item[0].name))
    return files, skipped


def list_files(
    resolved: ResolvedPath,
    policy: PolicyGate,
    pattern: Optional[str] = None
) -> ListResult:
    """
    List allowed files directly inside a resolved directory.

    Args:
        resolved: Directory to list
        policy: Extension policy
        pattern: Optional glob ("*" wildcard, case-insensitive)

    Returns:
        ListResult with one FileDescriptor per surviving file
    """
    matcher = compile_name_pattern(pattern)
    entries, skipped = _scan_allowed_files(resolved, policy)

    files: List[FileDescriptor] = []
    for entry, entry_stat in entries:
        if matcher is not None and not matcher.search(entry.name):
            continue

        files.append(FileDescriptor(
            name=entry.name,
            size=entry_stat.st_size,
            modified_at=datetime.fromtimestamp(entry_stat.st_mtime, tz=timezone.utc),
            extension=os.path.splitext(entry.name)[1],
        ))

    return ListResult(
        folder=resolved.folder_key,
        path=resolved.absolute,
        files=files,
        skipped=skipped,
    )


def read_file(
    resolver: PathResolver,
    policy: PolicyGate,
    resolved: ResolvedPath,
    filename: str
) -> FileContent:
    """
    Read a file beneath a resolved directory as UTF-8 text.

    Args:
        resolver: Resolver used to validate the file path a second time
        policy: Extension and size policy
        resolved: Directory containing the file
        filename: Name (or relative path) of the file

    Returns:
        FileContent with the decoded text

    Raises:
        FolderAccessError: PATH_ESCAPES_ROOT, EXTENSION_NOT_ALLOWED,
            NOT_FOUND, FILE_TOO_LARGE or READ_FAILED
    """
    target = resolver.resolve_child(resolved, filename)

    # Both the requested name and what it resolves to must be allowed
    if not policy.check_extension(filename) or not policy.check_extension(target.absolute):
        raise FolderAccessError(
            AccessErrorKind.EXTENSION_NOT_ALLOWED,
            f"File type not allowed: {filename}",
            path=filename,
        )

    try:
        target_stat = os.stat(target.absolute)
    except FileNotFoundError as e:
        raise FolderAccessError(
            AccessErrorKind.NOT_FOUND,
            f"File not found: {filename}",
            path=target.absolute,
            cause=e,
        )
    except OSError as e:
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"Cannot stat file: {e}",
            path=target.absolute,
            cause=e,
        )

    if not stat_module.S_ISREG(target_stat.st_mode):
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"Not a regular file: {filename}",
            path=target.absolute,
        )

    if not policy.check_size(target_stat.st_size):
        raise FolderAccessError(
            AccessErrorKind.FILE_TOO_LARGE,
            f"File too large: {target_stat.st_size} bytes",
            path=target.absolute,
            size=target_stat.st_size,
        )

    limit = policy.policy.max_file_size
    try:
        with open(target.absolute, "rb") as f:
            data = f.read() if limit is None else f.read(limit + 1)
    except FileNotFoundError as e:
        raise FolderAccessError(
            AccessErrorKind.NOT_FOUND,
            f"File not found: {filename}",
            path=target.absolute,
            cause=e,
        )
    except OSError as e:
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"Failed to read file: {e}",
            path=target.absolute,
            cause=e,
        )

    if not policy.check_size(len(data)):
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"File grew past the size limit while reading: {filename}",
            path=target.absolute,
        )

    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FolderAccessError(
            AccessErrorKind.READ_FAILED,
            f"Cannot decode {filename} as UTF-8: {e}",
            path=target.absolute,
            cause=e,
        )

    return FileContent(content=content, size=len(data), path=target.absolute)


def _match_lines(content: str, folded: str, needle: str) -> Tuple[int, List[MatchedLine]]:
    """Count matching lines and keep the first MAX_MATCHING_LINES of them."""
    count = 0
    lines: List[MatchedLine] = []

    # Case folding never adds or removes "\n", so the two splits line up
    for number, (line, folded_line) in enumerate(
        zip(content.split("\n"), folded.split("\n")), start=1
    ):
        if needle in folded_line:
            count += 1
            if len(lines) < MAX_MATCHING_LINES:
                lines.append(MatchedLine(line=number, text=line.strip()))

    return count, lines


def search_files(
    resolved: ResolvedPath,
    policy: PolicyGate,
    search_text: str,
    case_sensitive: bool = False
) -> SearchResult:
    """
    Search allowed files directly inside a resolved directory for text.

    Plain substring matching. Files that cannot be read or decoded are
    skipped and counted. The size ceiling is not applied here.

    Args:
        resolved: Directory to search
        policy: Extension policy
        search_text: Text to look for
        case_sensitive: Match case exactly

    Returns:
        SearchResult with one SearchMatch per matching file
    """
    if not search_text:
        raise FolderAccessError(
            AccessErrorKind.INVALID_ARGUMENT, "Search text must not be empty"
        )

    entries, skipped = _scan_allowed_files(resolved, policy)
    needle = search_text if case_sensitive else search_text.lower()

    matches: List[SearchMatch] = []
    for entry, _ in entries:
        try:
            with open(entry.path, "rb") as f:
                content = f.read().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _log.debug(f"Skipping unreadable file {entry.path}: {e}")
            skipped += 1
            continue

        # Fold the whole document once, not line by line
        folded = content if case_sensitive else content.lower()
        if needle not in folded:
            continue

        count, lines = _match_lines(content, folded, needle)
        matches.append(SearchMatch(
            file=entry.name,
            path=entry.path,
            match_count=count,
            lines=lines,
            truncated=count > MAX_MATCHING_LINES,
        ))

    return SearchResult(
        folder=resolved.folder_key,
        search_text=search_text,
        case_sensitive=case_sensitive,
        path=resolved.absolute,
        matches=matches,
        skipped=skipped,
    )
