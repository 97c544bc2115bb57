"""
Scriptorium Configuration.

Builds one immutable ServerConfig at process start.

Priority order (shallow merge, top-level keys replace):
1. FILE_SERVER_CONFIG (inline JSON)
2. FILE_SERVER_CONFIG_PATH (JSON file)
3. Schema defaults (folder env vars, extension list, 10MB limit)

Environment variables may also come from a .env file.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from scriptorium.shared.gate import ConfigLoader, GateLogger
from scriptorium.FolderGate.models import AccessPolicy

from scriptorium.Config.schema import (
    CONFIG_SCHEMA,
    ConfigCategory,
    ConfigField,
    ConfigType,
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE,
    get_schema_by_key,
)

_log = GateLogger.get("Config")


# snake_case spellings accepted in override files
KEY_ALIASES = {
    "allowed_extensions": "allowedExtensions",
    "max_file_size": "maxFileSize",
    "log_level": "logLevel",
    "http_host": "httpHost",
    "http_port": "httpPort",
}


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and make sure it starts with a dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


class ServerConfig(BaseModel):
    """Immutable configuration for one server process."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    folders: Dict[str, str] = Field(default_factory=dict)
    allowed_extensions: Tuple[str, ...] = Field(
        default=DEFAULT_ALLOWED_EXTENSIONS,
        alias="allowedExtensions",
    )
    max_file_size: Optional[int] = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        ge=0,
        alias="maxFileSize",
        description="Bytes. None = no limit; 0 = only empty files.",
    )
    log_level: str = Field(default="INFO", alias="logLevel")
    http_host: str = Field(default="127.0.0.1", alias="httpHost")
    http_port: int = Field(default=8765, ge=1, le=65535, alias="httpPort")

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        normalized = (normalize_extension(str(v)) for v in value)
        return tuple(dict.fromkeys(ext for ext in normalized if ext))

    def to_policy(self) -> AccessPolicy:
        """Build the AccessPolicy shared by all operations."""
        return AccessPolicy(
            allowed_extensions=frozenset(self.allowed_extensions),
            max_file_size=self.max_file_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict using the camelCase file format."""
        return self.model_dump(mode="json", by_alias=True)


def _convert_type(value: Any, config_type: ConfigType) -> Any:
    """Convert value to appropriate type."""
    if value is None:
        return None

    try:
        if config_type == ConfigType.INTEGER:
            return int(value)
        return str(value) if value != "" else None
    except (ValueError, TypeError):
        return value


def _read_fields(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Read every schema field from the environment, falling back to defaults."""
    values = {}
    for field in CONFIG_SCHEMA:
        value = environ.get(field.env_var)
        if value is None or value == "":
            value = field.default
        elif field.options and str(value).upper() not in field.options:
            _log.warning(f"Ignoring {field.env_var}={value!r}; expected one of {field.options}")
            value = field.default
        converted = _convert_type(value, field.config_type)
        if field.config_type == ConfigType.INTEGER and not isinstance(converted, int):
            _log.warning(f"Ignoring {field.env_var}={value!r}; expected an integer")
            converted = field.default
        values[field.key] = converted
    return values


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(key, key): value for key, value in data.items()}


def _defaults(values: Dict[str, Any]) -> Dict[str, Any]:
    folders = {
        field.folder_key: values[field.key]
        for field in CONFIG_SCHEMA
        if field.category == ConfigCategory.FOLDERS and field.folder_key
    }
    return {
        "folders": folders,
        "allowedExtensions": list(DEFAULT_ALLOWED_EXTENSIONS),
        "maxFileSize": DEFAULT_MAX_FILE_SIZE,
        "logLevel": values["LOG_LEVEL"],
        "httpHost": values["HTTP_HOST"],
        "httpPort": values["HTTP_PORT"],
    }


def load(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> ServerConfig:
    """
    Build the ServerConfig for this process.

    Args:
        environ: Environment mapping (default: os.environ after loading .env)
        env_file: .env file to load when environ is not given

    Returns:
        Frozen ServerConfig. Invalid overrides are logged and the defaults
        are used instead.
    """
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    values = _read_fields(environ)
    defaults = _defaults(values)
    merged = dict(defaults)

    config_path = values["FILE_SERVER_CONFIG_PATH"]
    if config_path:
        file_config = ConfigLoader.load_json(config_path)
        if file_config is None:
            _log.warning(f"Config file not loaded, using defaults: {config_path}")
        else:
            merged.update(_normalize_keys(file_config))

    inline = values["FILE_SERVER_CONFIG"]
    if inline:
        env_config = ConfigLoader.parse_json(inline, get_schema_by_key("FILE_SERVER_CONFIG").env_var)
        if env_config is not None:
            merged.update(_normalize_keys(env_config))

    try:
        return ServerConfig.model_validate(merged)
    except ValidationError as e:
        _log.error(f"Invalid configuration, falling back to defaults: {e}")

    try:
        return ServerConfig.model_validate(defaults)
    except ValidationError as e:
        # environment values themselves are bad (e.g. HTTP_PORT=0)
        _log.error(f"Invalid environment settings, using built-in defaults: {e}")
        return ServerConfig(folders=defaults["folders"])


__all__ = [
    "ServerConfig",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "CONFIG_SCHEMA",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "DEFAULT_MAX_FILE_SIZE",
    "load",
    "normalize_extension",
]
