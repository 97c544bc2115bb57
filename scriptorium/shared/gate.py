"""
Shared helpers used by every Scriptorium gate.

- GateLogger: per-gate loggers under the "scriptorium" namespace
- build_health_status: the health payload returned by gates and /api/health
- ConfigLoader: JSON overrides from strings and files
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


ROOT_LOGGER = "scriptorium"
LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


# =============================================================================
# Logging
# =============================================================================


class GateLogger:
    """
    Per-gate loggers sharing one stderr handler.

    stdout carries the MCP stdio stream, so nothing here ever writes to it.
    """

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def _configure_root(cls):
        if cls._configured:
            return

        root = logging.getLogger(ROOT_LOGGER)
        if not root.handlers:
            stream = logging.StreamHandler(sys.stderr)
            stream.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(stream)
            root.setLevel(logging.INFO)

        cls._configured = True

    @classmethod
    def get(cls, gate_name: str) -> logging.Logger:
        """
        Logger named "scriptorium.<gate_name>".

        Args:
            gate_name: Gate or component name (e.g., "FolderGate", "MCPServer")
        """
        cls._configure_root()

        name = f"{ROOT_LOGGER}.{gate_name}"
        logger = cls._loggers.get(name)
        if logger is None:
            logger = cls._loggers[name] = logging.getLogger(name)
        return logger

    @classmethod
    def set_level(cls, level: Union[int, str], gate_name: Optional[str] = None):
        """
        Change the log level.

        Args:
            level: logging constant or level name ("DEBUG", "warning", ...).
                Unknown names mean INFO.
            gate_name: Only this gate's logger, or None for the whole tree
        """
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                level = logging.INFO

        if gate_name is None:
            cls._configure_root()
            logging.getLogger(ROOT_LOGGER).setLevel(level)
            return

        cls.get(gate_name).setLevel(level)


def get_logger(gate_name: str) -> logging.Logger:
    """Same as GateLogger.get()."""
    return GateLogger.get(gate_name)


# =============================================================================
# Health
# =============================================================================


def build_health_status(
    gate_name: str,
    initialized: bool,
    dependencies: List[str],
    checks: Dict[str, bool],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Assemble a gate health payload.

    The gate is healthy when it is initialized and no check failed. No
    checks at all counts as passing.
    """
    failed = [name for name, passed in checks.items() if not passed]

    return {
        "gate": gate_name,
        "healthy": bool(initialized) and not failed,
        "initialized": initialized,
        "dependencies": list(dependencies),
        "checks": dict(checks),
        "details": dict(details) if details else {},
    }


# =============================================================================
# JSON config overrides
# =============================================================================


class ConfigLoader:
    """
    Reads JSON config overrides.

    Every failure is logged and reported as None so startup can continue
    on defaults.
    """

    @staticmethod
    def parse_json(raw: str, source: str) -> Optional[Dict[str, Any]]:
        """
        Parse a JSON object.

        Args:
            raw: JSON text
            source: Env var or file the text came from, used in log messages

        Returns:
            The object as a dict, or None for invalid JSON or a non-object
        """
        log = GateLogger.get("ConfigLoader")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            log.error(f"Error parsing {source}: {e}")
            return None

        if not isinstance(parsed, dict):
            log.error(f"Error parsing {source}: expected a JSON object")
            return None
        return parsed

    @staticmethod
    def load_json(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
        """Read and parse a JSON object file. Missing or unreadable files give None."""
        config_file = Path(path).expanduser()
        if not config_file.is_file():
            return None

        try:
            raw = config_file.read_text(encoding="utf-8")
        except OSError as e:
            GateLogger.get("ConfigLoader").error(f"Cannot read config file {config_file}: {e}")
            return None

        return ConfigLoader.parse_json(raw, str(config_file))
