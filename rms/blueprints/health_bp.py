"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — API name, version and database connectivity
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from rms.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness with database status. 503 when the database is unreachable."""
    body = {
        "name": current_app.config["API_NAME"],
        "version": current_app.config["API_VERSION"],
    }
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        body["database"] = "connected"
        body["database_latency_ms"] = round((time.perf_counter() - t0) * 1000, 1)
        body["status"] = "ok"
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check — database failed: %s", exc)
        body["database"] = "disconnected"
        body["status"] = "degraded"

    return jsonify(body), 200 if body["status"] == "ok" else 503
