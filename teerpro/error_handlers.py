"""Maps exceptions to the JSON error envelope."""

from __future__ import annotations

import logging

from flask import Flask
from marshmallow import ValidationError as MarshmallowValidationError
from werkzeug.exceptions import HTTPException

from teerpro.db import STORE_EXCEPTIONS
from teerpro.errors import AppError, StoreError, ValidationError
from teerpro.utils.responses import fail

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    404: ("not_found", "Not found"),
    405: ("method_not_allowed", "Method not allowed"),
}


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if isinstance(exc, StoreError):
            logger.error("Store error: %s (%s)", exc.message, exc.details)
        return fail(exc.code, exc.message, exc.status_code, exc.details)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        # field -> list[str]
        wrapped = ValidationError(details=exc.messages)
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    for exc_type in STORE_EXCEPTIONS:

        @app.errorhandler(exc_type)
        def _handle_store_failure(exc: Exception):
            # Reads on the request session land here; mutations are wrapped in StoreError already.
            logger.error("Store unavailable: %s", exc)
            wrapped = StoreError()
            return fail(wrapped.code, wrapped.message, wrapped.status_code)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(exc.code or 500)
        if status in _HTTP_CODES:
            code, message = _HTTP_CODES[status]
            return fail(code, message, status)

        return fail("http_error", exc.description or "HTTP error", status, details={"name": exc.name})

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception")
        return fail("internal_error", "Internal server error", 500)
