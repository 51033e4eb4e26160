"""Create tables (sql) or indexes (mongo) in the configured database.

Reads DATABASE_URL / DB_BACKEND from .env / environment.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy import text

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from teerpro.config import get_config
from teerpro.db import Database


def _as_mapping(config_cls: type) -> dict[str, object]:
    return {key: getattr(config_cls, key) for key in dir(config_cls) if key.isupper()}


def main() -> int:
    """Create all ORM tables / Mongo indexes in the target database."""

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    database = Database.from_config(_as_mapping(get_config()))
    database.create_schema()

    # create_all() does not add indexes to existing tables.
    if database.engine is not None and database.engine.dialect.name == "postgresql":
        ddl = [
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_results_game_date ON results (game, date)",
            "CREATE INDEX IF NOT EXISTS ix_wagers_settlement ON wagers (game, round, date, status)",
            "CREATE INDEX IF NOT EXISTS ix_wagers_user_status_date ON wagers (user_id, status, date)",
        ]
        with database.engine.begin() as conn:
            for stmt in ddl:
                conn.execute(text(stmt))

    database.close()
    print(f"Schema ready ({database.backend} backend).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
