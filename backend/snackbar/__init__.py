# backend/snackbar/__init__.py
import os

from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=os.path.join(os.path.dirname(os.path.dirname(__file__)), "migrations"))

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Spreadsheet ledger (NullLedger when not configured)
    from .services.ledger_export_service import init_ledger
    init_ledger(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.menu import menu_bp
    from .routes.orders import orders_bp
    from .routes.refunds import refunds_bp
    from .routes.reports import reports_bp
    from .routes.auth import auth_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(menu_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(refunds_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(auth_bp)

    allowed_origins = {
        origin.strip()
        for origin in str(app.config.get("CORS_ORIGINS", "")).split(",")
        if origin.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
