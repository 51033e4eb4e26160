"""Logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flask import Flask


def configure_logging(app: Flask | Mapping[str, Any]) -> None:
    """Configure stdlib logging from LOG_LEVEL.

    Accepts the Flask app or a bare config mapping (scripts).
    """

    config = app.config if isinstance(app, Flask) else app
    level_name = str(config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(threadName)s %(name)s %(message)s",
    )

    # Reduce noisy loggers if needed
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
