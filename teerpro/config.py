"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


DEFAULT_SOURCE_URLS: dict[str, str] = {
    "shillong": "https://www.meghalayateer.com/shillong-teer-result",
    "khanapara": "https://www.meghalayateer.com/khanapara-teer-result",
    "juwai": "https://www.meghalayateer.com/juwai-teer-result",
}


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def parse_source_urls(value: str | None) -> dict[str, str]:
    """Parse `game=url,game2=url2` into a map layered over the defaults."""

    urls = dict(DEFAULT_SOURCE_URLS)
    if not value:
        return urls
    for chunk in value.split(","):
        chunk = chunk.strip()
        if "=" not in chunk:
            continue
        game, url = chunk.split("=", 1)
        urls[game.strip().lower()] = url.strip()
    return urls


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        password = os.getenv("PGPASSWORD")
        sslmode = os.getenv("PGSSLMODE", "require")

        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        query = {"sslmode": sslmode} if sslmode else {}
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=password,
            host=host,
            port=port,
            database=database,
            query=query,
        )
        return str(url)

    return "sqlite:///./teerpro.db"


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    TESTING: bool = False
    DB_BACKEND: str = (
        os.getenv("DB_BACKEND")
        or ("mongo" if os.getenv("MONGODB_URI") else "sql")
    ).lower().strip()  # "sql" | "mongo"

    # SQL backend
    DATABASE_URL: str = resolve_database_url()

    # Mongo backend
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB: str = os.getenv("MONGODB_DB", "teerpro")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Scheduling
    SCHEDULER_ENABLED: bool = _as_bool(os.getenv("SCHEDULER_ENABLED"), default=False)
    TRIGGERS_FILE: str | None = os.getenv("TRIGGERS_FILE") or None
    # Calendar used to stamp the draw date of a scheduled fire. UTC keeps the
    # night game's after-midnight SR on the same date as its FR.
    DRAW_DATE_TIMEZONE: str = os.getenv("DRAW_DATE_TIMEZONE", "UTC")

    # Result source
    # `game=url,...` overrides layered over DEFAULT_SOURCE_URLS
    SOURCE_URLS: str = os.getenv("SOURCE_URLS", "")
    SOURCE_TIMEOUT_SECONDS: float = _as_float(os.getenv("SOURCE_TIMEOUT_SECONDS"), 10.0)
    SOURCE_RETRIES: int = _as_int(os.getenv("SOURCE_RETRIES"), 2)
    SOURCE_FR_SELECTOR: str = os.getenv("SOURCE_FR_SELECTOR", ".fr-result")
    SOURCE_SR_SELECTOR: str = os.getenv("SOURCE_SR_SELECTOR", ".sr-result")

    # Settlement
    SETTLEMENT_WORKERS: int = _as_int(os.getenv("SETTLEMENT_WORKERS"), 4)
    PAYOUT_MULTIPLIER: int = _as_int(os.getenv("PAYOUT_MULTIPLIER"), 80)

    # Admin entry; empty disables the header check
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "")


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Test configuration: sqlite, no background scheduler."""

    DEBUG: bool = False
    TESTING: bool = True
    DB_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite:///:memory:"
    SCHEDULER_ENABLED: bool = False
    ADMIN_TOKEN: str = ""


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
