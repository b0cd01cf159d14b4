# backend/armory/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .services.concurrency import KeyLockRegistry


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Per-key ledger locks shared by every request thread of this app
    app.extensions["ledger_locks"] = KeyLockRegistry(timeout=app.config["LEDGER_LOCK_TIMEOUT_SECONDS"])

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.acquisitions import acquisitions_bp
    from .routes.transfers import transfers_bp
    from .routes.assignments import assignments_bp
    from .routes.expenditures import expenditures_bp
    from .routes.ledger import ledger_bp
    from .routes.dashboard import dashboard_bp
    from .routes.reference import reference_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(acquisitions_bp)
    app.register_blueprint(transfers_bp)
    app.register_blueprint(assignments_bp)
    app.register_blueprint(expenditures_bp)
    app.register_blueprint(ledger_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reference_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
