"""
Health check API endpoint.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Response

from scriptorium.FolderGate import FolderGate


def create_router(gate: FolderGate) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    def api_health(response: Response) -> Dict[str, Any]:
        """
        Get FolderGate health.

        Returns 200 when every folder root is readable, 503 otherwise.
        """
        status = gate.get_health_status()
        if not status["healthy"]:
            response.status_code = 503
        return status

    return router


__all__ = ["create_router"]
