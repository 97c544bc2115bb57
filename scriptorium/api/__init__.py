"""
HTTP API for Scriptorium.

Usage:
    scriptorium-http
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from scriptorium import Config
from scriptorium.Config import ServerConfig
from scriptorium.shared.gate import GateLogger
from scriptorium.FolderGate import FolderGate
from scriptorium.api import files, health

_log = GateLogger.get("api")


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Build the FastAPI app around one FolderGate."""
    config = config or Config.load()
    gate = FolderGate.from_config(config)

    app = FastAPI(title="Scriptorium", version="1.0.0")
    app.state.gate = gate
    app.include_router(files.create_router(gate))
    app.include_router(health.create_router(gate))

    _log.info(f"Configured folders: {', '.join(gate.folder_keys())}")
    return app


def main() -> None:
    """Console entry point."""
    import uvicorn

    config = Config.load()
    GateLogger.set_level(config.log_level)
    uvicorn.run(create_app(config), host=config.http_host, port=config.http_port)


__all__ = ["create_app", "main"]
