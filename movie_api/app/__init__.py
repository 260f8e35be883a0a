"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, which enables:
           - Multiple isolated test app instances
           - `alembic` to import the metadata without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging and the per-request trace id
  3. Initialise extensions (SQLAlchemy, MemoryCache) via init_app()
  4. Register all route blueprints under /api (and /health)
  5. Register the global exception handler (any exception → problem details)
"""

from __future__ import annotations

import traceback

from flask import Flask, g, jsonify, request
from marshmallow import ValidationError

from movie_api.config import config_by_name, validate_production_config

PROBLEM_CONTENT_TYPE = "application/problem+json"


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Logging / request context ──────────────────────────────────────────
    from movie_api.app.logging_config import configure_logging
    from movie_api.app.middleware.request_context import register_request_context
    configure_logging(app)
    register_request_context(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from movie_api.app.extensions import cache, db
    db.init_app(app)
    cache.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated for
    # create_all() and Alembic autogenerate.
    with app.app_context():
        from movie_api.app.models import (  # noqa: F401
            movie,
            refresh_token,
            user,
            user_role,
        )

    _register_blueprints(app)
    _register_error_handlers(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints.

    The url_prefix is set here so individual route files only specify the
    path relative to their resource.
    """
    from movie_api.app.routes.health import health_bp
    from movie_api.app.routes.movies import movies_bp
    from movie_api.app.routes.tokens import tokens_bp
    from movie_api.app.routes.users import users_bp

    app.register_blueprint(movies_bp, url_prefix="/api/movies")
    app.register_blueprint(tokens_bp, url_prefix="/api/tokens")
    app.register_blueprint(users_bp,  url_prefix="/api/users")
    app.register_blueprint(health_bp)


def _register_error_handlers(app: Flask) -> None:
    """
    Registers one handler for every exception type.

    The status and title come from errors.map_exception(). The body is a
    problem-details object:
      status, title, type (exception class), detail (DEBUG only), instance,
      traceId, timestamp
    plus code/message/field for AppError and errors for schema failures.

    Stack traces never leave the server unless DEBUG is on; 5xx errors are
    logged with their traceback.
    """
    from movie_api.app.errors import AppError, map_exception
    from movie_api.app.timeutils import utcnow

    @app.errorhandler(Exception)
    def handle_exception(error: Exception):
        status, title = map_exception(error)

        if status >= 500:
            app.logger.error(
                "Unhandled exception: %s\n%s",
                str(error),
                traceback.format_exc(),
            )
        else:
            app.logger.info("%s -> %d %s", type(error).__name__, status, title)

        problem = {
            "status": status,
            "title": title,
            "type": f"{type(error).__module__}.{type(error).__qualname__}",
            "instance": request.path,
        }
        if app.config.get("DEBUG"):
            problem["detail"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        if isinstance(error, AppError):
            problem.update(error.to_dict())
        elif isinstance(error, ValidationError):
            problem["errors"] = error.messages

        problem["traceId"] = g.get("trace_id")
        problem["timestamp"] = utcnow().isoformat()

        response = jsonify(problem)
        response.status_code = status
        response.content_type = PROBLEM_CONTENT_TYPE
        return response
