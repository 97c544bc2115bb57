"""
FolderGate Pydantic models.

Defines folder entries, access policy, resolved paths, file metadata and
operation results. All models are immutable; every operation builds fresh
values from live filesystem state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, FrozenSet

from pydantic import BaseModel, ConfigDict, Field


MAX_MATCHING_LINES = 10


class AccessErrorKind(str, Enum):
    """Closed set of failure kinds raised by the engine."""
    UNKNOWN_FOLDER = "unknown_folder"
    PATH_ESCAPES_ROOT = "path_escapes_root"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"
    FILE_TOO_LARGE = "file_too_large"
    NOT_FOUND = "not_found"
    READ_FAILED = "read_failed"
    INVALID_ARGUMENT = "invalid_argument"


class FolderEntry(BaseModel):
    """A configured folder: key plus canonical root path."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Folder key used by callers (e.g., 'documents')")
    root: str = Field(description="Absolute, canonicalized root path")


class AccessPolicy(BaseModel):
    """Global extension and size policy."""
    model_config = ConfigDict(frozen=True)

    allowed_extensions: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Lowercase, dot-prefixed extensions. Empty = deny all."
    )
    max_file_size: Optional[int] = Field(
        default=None,
        ge=0,
        description="Read ceiling in bytes. None = no limit."
    )


class ResolvedPath(BaseModel):
    """
    A path proven to live inside its folder root.

    Only PathResolver builds these.
    """
    model_config = ConfigDict(frozen=True)

    absolute: str
    folder_key: str
    root: str

    @property
    def is_root(self) -> bool:
        return self.absolute == self.root


class FileDescriptor(BaseModel):
    """Metadata snapshot of a listed file."""
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = 0
    modified_at: datetime
    extension: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict in the listing wire format."""
        return {
            "name": self.name,
            "size": self.size,
            "modified": self.modified_at.isoformat(),
            "extension": self.extension,
        }


class MatchedLine(BaseModel):
    """A single matching line (1-based line number, trimmed text)."""
    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1)
    text: str


class SearchMatch(BaseModel):
    """Search hits for one file."""
    model_config = ConfigDict(frozen=True)

    file: str
    path: str
    match_count: int = Field(ge=0)
    lines: List[MatchedLine] = Field(default_factory=list)
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "path": self.path,
            "matches": self.match_count,
            "matchingLines": [m.model_dump() for m in self.lines],
            "truncated": self.truncated,
        }


class FileContent(BaseModel):
    """Decoded content of a file that passed policy."""
    model_config = ConfigDict(frozen=True)

    content: str
    size: int
    path: str


class AccessError(BaseModel):
    """Structured failure carried by operation results."""
    model_config = ConfigDict(frozen=True)

    kind: AccessErrorKind
    message: str
    path: Optional[str] = None
    size: Optional[int] = None


class ListResult(BaseModel):
    """Result of listing a folder."""
    model_config = ConfigDict(frozen=True)

    folder: str
    path: str = ""
    files: List[FileDescriptor] = Field(default_factory=list)
    skipped: int = 0
    error: Optional[AccessError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class ReadResult(BaseModel):
    """Result of reading one file."""
    model_config = ConfigDict(frozen=True)

    folder: str
    filename: str
    file: Optional[FileContent] = None
    error: Optional[AccessError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class SearchResult(BaseModel):
    """Result of a text search across a folder."""
    model_config = ConfigDict(frozen=True)

    folder: str
    search_text: str
    case_sensitive: bool = False
    path: str = ""
    matches: List[SearchMatch] = Field(default_factory=list)
    skipped: int = 0
    error: Optional[AccessError] = None

    @property
    def success(self) -> bool:
        return self.error is None
