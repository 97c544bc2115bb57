"""
Tests for the shared gate helpers (logging, health payload, JSON overrides).
"""

import logging
import pytest

from scriptorium.shared.gate import (
    ROOT_LOGGER,
    GateLogger,
    build_health_status,
    ConfigLoader,
    get_logger,
)


@pytest.fixture
def restore_root_level():
    root = logging.getLogger(ROOT_LOGGER)
    level = root.level
    yield root
    root.setLevel(level)


class TestLogging:
    """GateLogger naming and levels."""

    def test_logger_is_namespaced(self):
        log = GateLogger.get("FolderGate")

        assert isinstance(log, logging.Logger)
        assert log.name == "scriptorium.FolderGate"

    def test_logger_is_cached(self):
        assert GateLogger.get("MCPServer") is GateLogger.get("MCPServer")
        assert get_logger("MCPServer") is GateLogger.get("MCPServer")

    def test_root_has_one_handler(self):
        GateLogger.get("a")
        GateLogger.get("b")

        assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1

    def test_level_for_one_gate(self):
        """Only the named gate changes."""
        GateLogger.set_level(logging.DEBUG, "VerboseGate")

        assert GateLogger.get("VerboseGate").level == logging.DEBUG
        assert GateLogger.get("QuietGate").level == logging.NOTSET

    def test_level_by_name(self, restore_root_level):
        GateLogger.set_level("warning")

        assert restore_root_level.level == logging.WARNING

    def test_unknown_level_name_means_info(self, restore_root_level):
        GateLogger.set_level("LOUD")

        assert restore_root_level.level == logging.INFO


class TestHealthPayload:
    """build_health_status."""

    def test_all_checks_pass(self):
        status = build_health_status(
            gate_name="FolderGate",
            initialized=True,
            dependencies=["filesystem"],
            checks={"folder_docs": True},
            details={"folder_count": 1},
        )

        assert status == {
            "gate": "FolderGate",
            "healthy": True,
            "initialized": True,
            "dependencies": ["filesystem"],
            "checks": {"folder_docs": True},
            "details": {"folder_count": 1},
        }

    def test_one_failed_check(self):
        status = build_health_status(
            "FolderGate", True, [], {"folder_docs": True, "folder_ghost": False}
        )

        assert status["healthy"] is False

    def test_no_checks_is_healthy(self):
        assert build_health_status("FolderGate", True, [], {})["healthy"] is True

    def test_not_initialized(self):
        status = build_health_status("FolderGate", False, [], {})

        assert status["healthy"] is False
        assert status["details"] == {}


class TestJsonOverrides:
    """ConfigLoader."""

    def test_parse_object(self):
        assert ConfigLoader.parse_json('{"maxFileSize": 1}', "FILE_SERVER_CONFIG") == {"maxFileSize": 1}

    def test_parse_invalid_is_logged(self, caplog):
        """The source name appears in the log line."""
        with caplog.at_level(logging.ERROR, logger=ROOT_LOGGER):
            parsed = ConfigLoader.parse_json("{oops", "FILE_SERVER_CONFIG")

        assert parsed is None
        assert "FILE_SERVER_CONFIG" in caplog.text

    @pytest.mark.parametrize("raw", ["[1, 2]", '"text"', "3"])
    def test_parse_non_object(self, raw):
        assert ConfigLoader.parse_json(raw, "inline") is None

    def test_load_file(self, tmp_path):
        override = tmp_path / "server.json"
        override.write_text('{"folders": {"notes": "/srv/notes"}}')

        assert ConfigLoader.load_json(override) == {"folders": {"notes": "/srv/notes"}}

    def test_load_missing_file(self, tmp_path):
        assert ConfigLoader.load_json(tmp_path / "absent.json") is None

    def test_load_directory(self, tmp_path):
        assert ConfigLoader.load_json(tmp_path) is None

    def test_load_broken_file(self, tmp_path):
        override = tmp_path / "broken.json"
        override.write_text("{")

        assert ConfigLoader.load_json(override) is None
