"""
Scriptorium - scoped, read-only file access over MCP and HTTP.
"""

from scriptorium import Config
from scriptorium.FolderGate import FolderGate

__version__ = "1.0.0"

__all__ = ["Config", "FolderGate", "__version__"]
