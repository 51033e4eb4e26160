"""Health check routes."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint

from teerpro.db import get_database
from teerpro.container import get_services
from teerpro.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Liveness plus database and scheduler state."""

    database = get_database()
    return ok(
        {
            "status": "online",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if database.ping() else "disconnected",
            "backend": database.backend,
            "scheduler": "running" if get_services().scheduler.running else "stopped",
        }
    )
