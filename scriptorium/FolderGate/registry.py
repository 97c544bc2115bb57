"""
FolderGate folder registry.

Maps folder keys to canonical root paths. Built once from configuration
and never mutated afterwards.
"""

import os
from typing import Dict, Iterator, List, Mapping

from scriptorium.shared.gate import GateLogger

from .models import AccessErrorKind, FolderEntry
from .security import FolderAccessError, canonicalize

_log = GateLogger.get("FolderGate")


class FolderRegistry:
    """
    Immutable mapping of folder key -> FolderEntry.

    Roots that do not exist at construction are kept (with a warning) so a
    misconfigured folder does not prevent startup. Existence is checked
    again on every access by the resolver.
    """

    def __init__(self, folders: Mapping[str, str]):
        entries: Dict[str, FolderEntry] = {}
        for key, path in folders.items():
            if not key:
                _log.warning(f"Ignoring folder with empty key (path: {path})")
                continue

            root = canonicalize(path)
            if not os.path.isdir(root):
                _log.warning(f"Folder '{key}' root not found: {root}")

            entries[key] = FolderEntry(key=key, root=root)

        self._entries = entries

    def lookup(self, key: str) -> FolderEntry:
        """
        Get the entry for a folder key.

        Raises:
            FolderAccessError: UNKNOWN_FOLDER if the key is not configured
        """
        entry = self._entries.get(key)
        if entry is None:
            raise FolderAccessError(
                AccessErrorKind.UNKNOWN_FOLDER,
                f"Unknown folder '{key}'",
            )
        return entry

    def keys(self) -> List[str]:
        """Folder keys in configuration order."""
        return list(self._entries)

    def entries(self) -> List[FolderEntry]:
        return list(self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[FolderEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
