"""
routes/health.py — Liveness endpoint for monitoring and container healthchecks.

  GET /api/v1/health → 200
"""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": current_app.config["APP_VERSION"],
        "environment": current_app.config["ENV_NAME"],
    }), 200
