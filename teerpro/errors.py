"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class ConflictError(AppError):
    """Conflict (e.g., unique constraint)."""

    def __init__(self, message: str = "Conflict", details: Any | None = None) -> None:
        super().__init__(code="conflict", message=message, status_code=409, details=details)


class UnauthorizedError(AppError):
    """Missing or wrong admin credentials."""

    def __init__(self, message: str = "Unauthorized", details: Any | None = None) -> None:
        super().__init__(code="unauthorized", message=message, status_code=401, details=details)


class StoreError(AppError):
    """A result or wager mutation could not be persisted."""

    def __init__(self, message: str = "Store unavailable", details: Any | None = None) -> None:
        super().__init__(code="store_error", message=message, status_code=503, details=details)


class SourceErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    UNCONFIGURED = "unconfigured"


class SourceError(Exception):
    """The external result source could not be read.

    Never shown to end users; the next scheduled cycle is the retry.
    """

    def __init__(self, game: str, kind: SourceErrorKind, message: str) -> None:
        super().__init__(f"{game}: {kind.value}: {message}")
        self.game = game
        self.kind = kind
        self.message = message
