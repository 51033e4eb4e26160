"""Database handle + session management.

`Database` is constructed once at process start and passed to the
repositories. HTTP requests use a session-per-request pattern on top of it;
background work (scheduler, settlement workers) opens short
`session_scope()` units of work instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from flask import Flask, current_app, g
from pymongo.errors import PyMongoError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from teerpro.models.base import Base

logger = logging.getLogger(__name__)

# Driver failures that mean "the store could not be read or written".
STORE_EXCEPTIONS: tuple[type[BaseException], ...] = (SQLAlchemyError, PyMongoError)


def create_app_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        # Scheduler and settlement threads share the pool.
        connect_args = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            return create_engine(
                database_url,
                connect_args=connect_args,
                poolclass=StaticPool,
                future=True,
            )
        return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True, future=True)

    return create_engine(database_url, pool_pre_ping=True, future=True)


class Database:
    """The configured storage backend: SQLAlchemy (`sql`) or pymongo (`mongo`)."""

    def __init__(
        self,
        backend: str,
        engine: Engine | None = None,
        mongo_client: Any | None = None,
        mongo_db_name: str | None = None,
    ) -> None:
        self.backend = backend
        self.engine = engine
        self.session_factory = (
            sessionmaker(bind=engine, autoflush=False, expire_on_commit=False) if engine is not None else None
        )
        self.mongo_client = mongo_client
        self._mongo_db_name = mongo_db_name

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Database":
        backend = str(config.get("DB_BACKEND", "sql")).lower().strip()
        if backend == "mongo":
            from pymongo import MongoClient

            client = MongoClient(str(config["MONGODB_URI"]), tz_aware=True)
            return cls("mongo", mongo_client=client, mongo_db_name=str(config["MONGODB_DB"]))

        return cls("sql", engine=create_app_engine(str(config["DATABASE_URL"])))

    @property
    def is_mongo(self) -> bool:
        return self.backend == "mongo"

    @property
    def mongo(self) -> Any:
        if self.mongo_client is None:
            raise RuntimeError("Mongo client not initialized")
        return self.mongo_client[self._mongo_db_name]

    def new_session(self) -> Session | None:
        if self.session_factory is None:
            return None
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session | None]:
        """One unit of work: commit on success, roll back on error.

        Yields None on the mongo backend, where writes are immediate.
        """

        session = self.new_session()
        if session is None:
            yield None
            return

        try:
            yield session
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create tables (sql) or indexes (mongo)."""

        if self.is_mongo:
            from pymongo import ASCENDING, DESCENDING

            self.require_transactions()

            db = self.mongo
            db["results"].create_index([("game", ASCENDING), ("date", ASCENDING)], unique=True)
            db["results"].create_index([("date", DESCENDING)])
            db["wagers"].create_index("id", unique=True)
            db["wagers"].create_index(
                [("game", ASCENDING), ("round", ASCENDING), ("date", ASCENDING), ("status", ASCENDING)]
            )
            db["wagers"].create_index([("user_id", ASCENDING), ("status", ASCENDING), ("date", ASCENDING)])
            db["user_stats"].create_index("user_id", unique=True)
            return

        # Import models so they register with Base.metadata
        from teerpro import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def require_transactions(self) -> None:
        """Fail unless the mongo server supports multi-document transactions.

        Wager settlement updates the wager and the owner's stats in one
        transaction, which needs a replica set member or a mongos router.
        """

        hello = self.mongo_client.admin.command("hello")
        if hello.get("setName") or hello.get("msg") == "isdbgrid":
            return
        raise RuntimeError(
            "MongoDB at MONGODB_URI is a standalone server; the mongo backend needs a replica set "
            "(start mongod with --replSet and run rs.initiate())"
        )

    def ping(self) -> bool:
        try:
            if self.is_mongo:
                self.mongo_client.admin.command("ping")
            else:
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        if self.mongo_client is not None:
            self.mongo_client.close()


def init_db(app: Flask, database: Database) -> None:
    """Attach the database and per-request sessions to the app."""

    database.create_schema()
    app.extensions["database"] = database

    @app.before_request
    def _open_session() -> None:
        g.db = database.new_session()  # type: ignore[attr-defined]

    @app.teardown_request
    def _close_session(exc: BaseException | None) -> None:
        session: Session | None = getattr(g, "db", None)
        if session is None:
            return

        try:
            if exc is None:
                session.commit()
            else:
                session.rollback()
        finally:
            session.close()


def get_database() -> Database:
    return current_app.extensions["database"]


def get_optional_session() -> Session | None:
    """Current request's session, or None on the mongo backend."""

    return getattr(g, "db", None)


def get_session() -> Session:
    """Get the current request's SQLAlchemy session."""

    session: Session | None = getattr(g, "db", None)
    if session is None:
        raise RuntimeError("Database session not initialized")
    return session
