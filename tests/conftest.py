"""
Pytest configuration and fixtures for Scriptorium tests.
"""

import os
import sys
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from scriptorium.FolderGate import AccessPolicy, FolderGate, FolderRegistry

TEST_EXTENSIONS = frozenset({".txt", ".md", ".json"})


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_folder(temp_dir: Path) -> Path:
    """Create a sample folder with test files."""
    folder = temp_dir / "docs"
    folder.mkdir(parents=True, exist_ok=True)

    (folder / "notes.txt").write_text("alpha\nBeta\ngamma beta\n")
    (folder / "readme.md").write_text("# Readme\nNothing to see\n")
    (folder / "data.json").write_text('{"key": "value"}')
    (folder / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (folder / "Makefile").write_text("all:\n\techo beta\n")

    subfolder = folder / "subfolder"
    subfolder.mkdir()
    (subfolder / "nested.txt").write_text("Nested beta content")

    return folder


@pytest.fixture
def outside_folder(temp_dir: Path) -> Path:
    """A sibling of the sample folder that must stay unreachable."""
    folder = temp_dir / "docsX"
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "secret.txt").write_text("top secret beta")
    return folder


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy(allowed_extensions=TEST_EXTENSIONS, max_file_size=100)


@pytest.fixture
def gate(sample_folder: Path, policy: AccessPolicy) -> FolderGate:
    """FolderGate with one 'docs' folder over sample_folder."""
    return FolderGate(FolderRegistry({"docs": str(sample_folder)}), policy)


@pytest.fixture
def clean_env(monkeypatch) -> dict:
    """Environment mapping with no Scriptorium variables set."""
    for key in (
        "FILE_SERVER_CONFIG",
        "FILE_SERVER_CONFIG_PATH",
        "DOCUMENTS_FOLDER",
        "REPORTS_FOLDER",
        "DESKTOP_FOLDER",
        "LOG_LEVEL",
        "HTTP_HOST",
        "HTTP_PORT",
    ):
        # set first so teardown also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return {}

