"""
System Routes - health probes
"""

from flask import Blueprint, current_app
import socket

from zimshelf.api_responses import success_response, handle_api_errors
from zimshelf.constants import BUILD_VERSION
from zimshelf.db import check_db_connection
from zimshelf.library import current_settings
from zimshelf.utils import now_utc
import logging

logger = logging.getLogger("main")

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.route("/health", methods=["GET"])
@handle_api_errors
def health_check_api():
    """
    Health check endpoint for monitoring.
    """
    overall_status = "healthy"
    checks = {
        "timestamp": now_utc().isoformat(),
        "version": BUILD_VERSION,
        "hostname": socket.gethostname(),
        "database": "unknown",
        "storage": "unknown",
    }

    # Check Database connection
    try:
        check_db_connection()
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        checks["database"] = f"error: {str(e)}"
        overall_status = "unhealthy"

    # Uploads need a CDN provider, browsing does not
    if current_app.extensions.get("zimshelf.cdn") is not None:
        checks["storage"] = current_settings()["storage"].get("provider")
    else:
        checks["storage"] = "not_configured"
        if overall_status == "healthy":
            overall_status = "degraded"

    status_code = 503 if overall_status == "unhealthy" else 200
    return success_response(data={"status": overall_status, "checks": checks}, status_code=status_code)


@system_bp.route("/health/live", methods=["GET"])
@handle_api_errors
def health_live_api():
    """
    Liveness probe - checks if the application is alive.
    """
    return success_response(data={"status": "alive", "timestamp": now_utc().isoformat()})
