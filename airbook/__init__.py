import logging
import os
import time

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

db = SQLAlchemy()
login_manager = LoginManager()

SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}
PRODUCTION_CSP = (
    "default-src 'self'; style-src 'self' 'unsafe-inline'; img-src 'self' blob: data:; "
    "font-src 'self'; object-src 'none'"
)


def create_app(config_name=None):
    """Create and configure the AirBook application.

    Args:
        config_name: 'development', 'production', 'testing' or None to read FLASK_ENV
    """
    from .config import config

    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "default")

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config["default"]))
    app.config["STARTED_AT"] = time.monotonic()

    configure_logging(app)

    db.init_app(app)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "message": "Authentication required"}), 401

    from .errors import register_error_handlers
    register_error_handlers(app)

    @app.after_request
    def add_security_headers(response):
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if app.config.get("ENV_NAME") == "production":
            response.headers.setdefault("Content-Security-Policy", PRODUCTION_CSP)
        return response

    # register blueprints
    from .auth import auth_bp
    app.register_blueprint(auth_bp)

    from .flights import flights_bp
    app.register_blueprint(flights_bp)

    from .bookings import bookings_bp
    app.register_blueprint(bookings_bp)

    from .users import users_bp
    app.register_blueprint(users_bp)

    from .dashboard import dashboard_bp
    app.register_blueprint(dashboard_bp)

    from .destinations import destinations_bp
    app.register_blueprint(destinations_bp)

    from .health import health_bp
    app.register_blueprint(health_bp)

    # create tables
    with app.app_context():
        from . import models
        db.create_all()

    app.logger.info("AirBook started (%s)", app.config.get("ENV_NAME", config_name))
    return app


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger("airbook").setLevel(level)
