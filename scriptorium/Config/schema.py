"""
Configuration schema for Scriptorium.

Defines all configurable options with metadata for loading, validation
and documentation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ConfigType(Enum):
    """How a raw env value is interpreted."""
    STRING = "string"
    JSON = "json"          # Inline JSON object
    INTEGER = "integer"
    PATH = "path"          # expanded later by the registry


class ConfigCategory(Enum):
    """Which part of the server a key configures."""
    FOLDERS = "folders"
    POLICY = "policy"
    SERVER = "server"


@dataclass
class ConfigField:
    """One environment key the loader understands."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    default: Any = None
    env_var: Optional[str] = None     # defaults to key
    options: Optional[List[str]] = None  # allowed values, case-insensitive
    folder_key: Optional[str] = None  # default folder fed by this path

    def __post_init__(self):
        self.env_var = self.env_var or self.key


# ==================== Defaults ====================

DEFAULT_ALLOWED_EXTENSIONS = (
    ".txt", ".md", ".pdf", ".docx", ".xlsx", ".csv", ".json", ".xml", ".log",
)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


# ==================== Known keys ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Folders ===
    ConfigField(
        key="DOCUMENTS_FOLDER",
        description="Root of the 'documents' folder",
        config_type=ConfigType.PATH,
        category=ConfigCategory.FOLDERS,
        default="~/Documents",
        folder_key="documents",
    ),
    ConfigField(
        key="REPORTS_FOLDER",
        description="Root of the 'reports' folder",
        config_type=ConfigType.PATH,
        category=ConfigCategory.FOLDERS,
        default="~/Reports",
        folder_key="reports",
    ),
    ConfigField(
        key="DESKTOP_FOLDER",
        description="Root of the 'desktop' folder",
        config_type=ConfigType.PATH,
        category=ConfigCategory.FOLDERS,
        default="~/Desktop",
        folder_key="desktop",
    ),

    # === Policy ===
    ConfigField(
        key="FILE_SERVER_CONFIG_PATH",
        description="JSON file with folders/allowedExtensions/maxFileSize overrides",
        config_type=ConfigType.PATH,
        category=ConfigCategory.POLICY,
    ),
    ConfigField(
        key="FILE_SERVER_CONFIG",
        description="Inline JSON overrides, applied last (shallow merge)",
        config_type=ConfigType.JSON,
        category=ConfigCategory.POLICY,
    ),

    # === Server ===
    ConfigField(
        key="LOG_LEVEL",
        description="Logging level for the scriptorium loggers",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),
    ConfigField(
        key="HTTP_HOST",
        description="Bind address for the HTTP API",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        default="127.0.0.1",
    ),
    ConfigField(
        key="HTTP_PORT",
        description="Port for the HTTP API",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.SERVER,
        default=8765,
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Look up a field by key; None if unknown."""
    return next((f for f in CONFIG_SCHEMA if f.key == key), None)
