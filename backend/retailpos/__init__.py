# backend/retailpos/__init__.py
from flask import Flask, current_app, jsonify, request

from .config import Config
from .errors import ConfigurationError, PosError
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before the extensions bind the engine
    if config_overrides:
        app.config.update(config_overrides)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise ConfigurationError("SQLALCHEMY_DATABASE_URI (DATABASE_URL) is not set")

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.locations import locations_bp
    from .routes.inventory import inventory_bp
    from .routes.exchange_rates import exchange_rates_bp
    from .routes.sales import sales_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(exchange_rates_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    @app.errorhandler(PosError)
    def handle_pos_error(exc: PosError):
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.path, exc)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(500)
    def handle_internal_error(exc):
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", ()))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Admin-Secret, X-Changed-By"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
