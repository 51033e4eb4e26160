"""Repository layer for declared results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from teerpro.db import Database
from teerpro.games import Round
from teerpro.models.result import DrawResult


@dataclass(frozen=True)
class ResultRecord:
    game: str
    date: str
    fr: str | None = None
    sr: str | None = None
    fr_declared_at: datetime | None = None
    sr_declared_at: datetime | None = None

    def number_for(self, round_: Round) -> str | None:
        return self.fr if round_ is Round.FR else self.sr


def _from_row(row: DrawResult) -> ResultRecord:
    return ResultRecord(
        game=row.game,
        date=row.date,
        fr=row.fr,
        sr=row.sr,
        fr_declared_at=row.fr_declared_at,
        sr_declared_at=row.sr_declared_at,
    )


def _from_doc(doc: dict[str, Any]) -> ResultRecord:
    return ResultRecord(
        game=str(doc.get("game")),
        date=str(doc.get("date")),
        fr=doc.get("fr"),
        sr=doc.get("sr"),
        fr_declared_at=doc.get("fr_declared_at"),
        sr_declared_at=doc.get("sr_declared_at"),
    )


class ResultRepository:
    """Keyed (game, date) storage with write-once round numbers."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def _require(self, session: Session | None) -> Session:
        if session is None:
            raise RuntimeError("SQLAlchemy session required for sql backend")
        return session

    def get(self, session: Session | None, game: str, date: str) -> ResultRecord | None:
        if self._db.is_mongo:
            doc = self._db.mongo["results"].find_one({"game": game, "date": date}, {"_id": 0})
            return _from_doc(doc) if doc else None

        row = self._require(session).scalars(
            select(DrawResult).where(DrawResult.game == game, DrawResult.date == date)
        ).first()
        return _from_row(row) if row is not None else None

    def ensure(self, session: Session | None, game: str, date: str) -> ResultRecord:
        """Load the result, creating an empty one if none exists yet.

        Creation is insert-if-absent, so concurrent callers never fail on the
        unique (game, date) key.
        """

        if self._db.is_mongo:
            from pymongo import ReturnDocument

            doc = self._db.mongo["results"].find_one_and_update(
                {"game": game, "date": date},
                {"$setOnInsert": {"game": game, "date": date, "fr": None, "sr": None}},
                upsert=True,
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
            return _from_doc(doc)

        session = self._require(session)
        dialect = session.get_bind().dialect.name
        values = {"game": game, "date": date}
        if dialect == "sqlite":
            stmt = sqlite_insert(DrawResult).values(**values).on_conflict_do_nothing(index_elements=["game", "date"])
            session.execute(stmt)
        elif dialect == "postgresql":
            stmt = pg_insert(DrawResult).values(**values).on_conflict_do_nothing(index_elements=["game", "date"])
            session.execute(stmt)
        elif self.get(session, game, date) is None:
            session.execute(insert(DrawResult).values(**values))

        record = self.get(session, game, date)
        if record is None:
            raise RuntimeError(f"Result row for {game} {date} missing after insert")
        return record

    def declare(
        self,
        session: Session | None,
        game: str,
        date: str,
        round_: Round,
        number: str,
        declared_at: datetime,
    ) -> bool:
        """Set the round's number only if it is still absent.

        A single conditional write; returns True for the one caller that set
        it and False for everyone else.
        """

        field = round_.field
        stamp_field = f"{field}_declared_at"

        if self._db.is_mongo:
            res = self._db.mongo["results"].update_one(
                {"game": game, "date": date, field: None},
                {"$set": {field: number, stamp_field: declared_at}},
            )
            return res.modified_count == 1

        column = getattr(DrawResult, field)
        stmt = (
            update(DrawResult)
            .where(DrawResult.game == game, DrawResult.date == date, column.is_(None))
            .values({field: number, stamp_field: declared_at})
            .execution_options(synchronize_session=False)
        )
        res = self._require(session).execute(stmt)
        return res.rowcount == 1

    def list_for_date(self, session: Session | None, date: str, game: str | None = None) -> Sequence[ResultRecord]:
        if self._db.is_mongo:
            query: dict[str, Any] = {"date": date}
            if game:
                query["game"] = game
            cur = self._db.mongo["results"].find(query, {"_id": 0}).sort("game", 1)
            return [_from_doc(d) for d in cur]

        stmt = select(DrawResult).where(DrawResult.date == date)
        if game:
            stmt = stmt.where(DrawResult.game == game)
        stmt = stmt.order_by(DrawResult.game.asc())
        return [_from_row(r) for r in self._require(session).scalars(stmt).all()]

    def history(
        self,
        session: Session | None,
        game: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 30,
    ) -> Sequence[ResultRecord]:
        """Results newest first, optionally filtered by game and date range."""

        if self._db.is_mongo:
            query: dict[str, Any] = {}
            if game:
                query["game"] = game
            date_range: dict[str, str] = {}
            if start_date:
                date_range["$gte"] = start_date
            if end_date:
                date_range["$lte"] = end_date
            if date_range:
                query["date"] = date_range
            cur = self._db.mongo["results"].find(query, {"_id": 0}).sort([("date", -1), ("game", 1)]).limit(int(limit))
            return [_from_doc(d) for d in cur]

        stmt = select(DrawResult)
        if game:
            stmt = stmt.where(DrawResult.game == game)
        if start_date:
            stmt = stmt.where(DrawResult.date >= start_date)
        if end_date:
            stmt = stmt.where(DrawResult.date <= end_date)
        stmt = stmt.order_by(DrawResult.date.desc(), DrawResult.game.asc()).limit(int(limit))
        return [_from_row(r) for r in self._require(session).scalars(stmt).all()]
