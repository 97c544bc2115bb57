"""
Helpers shared by the Scriptorium gates.
"""

from scriptorium.shared.gate import (
    GateLogger,
    ConfigLoader,
    build_health_status,
    get_logger,
)

__all__ = [
    "GateLogger",
    "ConfigLoader",
    "build_health_status",
    "get_logger",
]
