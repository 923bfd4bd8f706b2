import time

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from .models import utcnow
from . import db

health_bp = Blueprint("health", __name__, url_prefix="/api")


@health_bp.route("/health")
def health():
    status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Health check database error: %s", e)
        status = "degraded"

    return jsonify({
        "status": status,
        "version": current_app.config.get("APP_VERSION", "0.1.0"),
        "timestamp": utcnow().isoformat() + "Z",
        "uptime": round(time.monotonic() - current_app.config["STARTED_AT"], 3),
        "environment": current_app.config.get("ENV_NAME", "development"),
    })
