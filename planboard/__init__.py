"""Planboard application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from planboard.config import config_by_name
from planboard.core.events.event_bus import event_bus
from planboard.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Planboard Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = db_uri.replace("sqlite:///", "", 1)
        abs_path = Path(db_path)
        if not abs_path.is_absolute():
            abs_path = project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"
    if not db_uri.startswith("sqlite"):
        # Drop sqlite-specific connect_args that break Postgres/MySQL drivers
        engine_opts = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        connect_args = engine_opts.get("connect_args") or {}
        connect_args.pop("timeout", None)
        if not connect_args:
            engine_opts.pop("connect_args", None)

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    # Attach the shared bus and wire rule evaluation to task lifecycle events
    app.extensions["event_bus"] = event_bus

    from planboard.domains.automation import runner

    runner.register_subscriptions(event_bus)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    @app.get("/api/v1/ping")
    def ping():
        """Lightweight endpoint for load-balancer health checks."""
        return {"pong": True}, 200

    from planboard.scripts.automation import register_commands

    register_commands(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from planboard.domains.automation.controllers.rule_api import rule_api_bp
    from planboard.domains.projects.controllers.project_api import project_api_bp

    app.register_blueprint(project_api_bp, url_prefix="/api/projects")
    app.register_blueprint(rule_api_bp, url_prefix="/api/automation")


def _register_error_handlers(app: Flask) -> None:
    """Basic JSON error responses."""
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
