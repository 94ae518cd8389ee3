"""
Wait Time Tracker - Health Check Endpoint
Reports history store and refresh state.
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from collector.refresh_orchestrator import RefreshState
from api.routes.wait_times import ORCHESTRATOR_EXTENSION
from utils.logger import logger

health_bp = Blueprint('health', __name__)

# History older than this is reported as stale
STALE_AFTER_MINUTES = 30


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint.

    Response:
        200 OK: Healthy or degraded (stale/no data, last refresh failed)
        503 Service Unavailable: Health check itself failed
    """
    now = datetime.now(timezone.utc)
    health_data = {
        "status": "healthy",
        "timestamp": now.isoformat(),
        "api_version": "1.0.0",
        "checks": {}
    }

    try:
        orchestrator = current_app.extensions[ORCHESTRATOR_EXTENSION]
        store_stats = orchestrator.store.stats()
        last_error = orchestrator.last_error

        health_data["checks"]["refresh"] = {
            "status": "failing" if orchestrator.state is RefreshState.FETCH_FAILED else "healthy",
            "state": orchestrator.state.value,
            "last_error": str(last_error) if last_error else None,
            **orchestrator.stats
        }

        latest = orchestrator.store.latest()
        if latest is None:
            history_status = {"status": "no_data", "message": "No snapshots stored yet"}
        else:
            age_minutes = int((now - latest.timestamp).total_seconds() / 60)
            history_status = {
                "status": "healthy" if age_minutes < STALE_AFTER_MINUTES else "stale",
                "age_minutes": age_minutes,
                "message": f"Last stored snapshot {age_minutes} minutes ago"
            }
        health_data["checks"]["history"] = {**history_status, **store_stats}

    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        health_data["status"] = "unhealthy"
        health_data["checks"]["error"] = {"status": "unhealthy", "message": str(e)}
        return jsonify(health_data), 503

    check_statuses = [check.get("status") for check in health_data["checks"].values()]
    if any(status in ("stale", "no_data", "failing") for status in check_statuses):
        health_data["status"] = "degraded"

    return jsonify(health_data), 200
