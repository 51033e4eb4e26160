"""Teer result ingestion & settlement service."""

from __future__ import annotations

import atexit
from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(config_overrides: Mapping[str, Any] | None = None, **service_overrides: Any) -> Flask:
    """Application factory.

    Args:
        config_overrides: values applied over the environment config.
        service_overrides: `source` / `publisher` replacements passed to
            `build_services` (tests, alternative providers).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from teerpro.config import get_config
    from teerpro.container import build_services
    from teerpro.db import Database, init_db
    from teerpro.error_handlers import register_error_handlers
    from teerpro.logging_config import configure_logging
    from teerpro.routes.health import health_bp
    from teerpro.routes.results import results_bp
    from teerpro.routes.wagers import wagers_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)

    database = Database.from_config(app.config)
    init_db(app, database)
    register_error_handlers(app)

    services = build_services(app.config, database, **service_overrides)
    app.extensions["services"] = services

    app.register_blueprint(health_bp)
    app.register_blueprint(results_bp, url_prefix="/api")
    app.register_blueprint(wagers_bp, url_prefix="/api")

    if app.config.get("SCHEDULER_ENABLED"):
        services.scheduler.start()

    if not app.config.get("TESTING"):
        atexit.register(services.shutdown)

    return app
