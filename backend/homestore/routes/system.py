# backend/homestore/routes/system.py
"""
System liveness and health endpoints.

/api/ping never touches the database; /api/health runs a trivial query so
load balancers can tell a dead database from a dead process. /api/email/status
reports whether an email provider key is configured.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from homestore.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and latency.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/ping")
def ping():
    return {"pong": True, "timestamp": to_utc_z(utcnow())}


@system_bp.get("/email/status")
def email_status():
    """Whether outgoing email is configured. The key itself is never echoed."""
    return {
        "configured": bool(current_app.config.get("EMAIL_API_KEY")),
        "from": current_app.config.get("EMAIL_FROM"),
        "adminNotices": bool(current_app.config.get("EMAIL_ADMIN_TO")),
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"
    response = {
        "status": "ok" if healthy else "error",
        "database": healthy,
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503
