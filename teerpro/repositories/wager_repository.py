"""Repository layer for wagers and per-user counters."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from teerpro.db import Database
from teerpro.games import WagerStatus
from teerpro.models.user_stats import UserStats
from teerpro.models.wager import Wager


@dataclass(frozen=True)
class WagerRecord:
    id: str
    user_id: str
    game: str
    round: str
    number: str
    stake: int
    date: str
    status: str
    settled_number: str | None
    payout: int
    created_at: datetime
    settled_at: datetime | None = None


@dataclass(frozen=True)
class UserStatsRecord:
    user_id: str
    wagers_placed: int = 0
    wagers_won: int = 0
    total_staked: int = 0
    total_payout: int = 0


_WAGER_FIELDS = (
    "id",
    "user_id",
    "game",
    "round",
    "number",
    "stake",
    "date",
    "status",
    "settled_number",
    "payout",
    "created_at",
    "settled_at",
)

_STATS_FIELDS = ("wagers_placed", "wagers_won", "total_staked", "total_payout")


def _wager_from_row(row: Wager) -> WagerRecord:
    return WagerRecord(**{f: getattr(row, f) for f in _WAGER_FIELDS})


def _wager_from_doc(doc: dict[str, Any]) -> WagerRecord:
    return WagerRecord(**{f: doc.get(f) for f in _WAGER_FIELDS})


class WagerRepository:
    """Wager persistence plus the denormalized UserStats counters."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def _require(self, session: Session | None) -> Session:
        if session is None:
            raise RuntimeError("SQLAlchemy session required for sql backend")
        return session

    def create(
        self,
        session: Session | None,
        *,
        user_id: str,
        game: str,
        round_: str,
        number: str,
        stake: int,
        date: str,
    ) -> WagerRecord:
        """Insert an active wager and count it in the owner's stats."""

        record = WagerRecord(
            id=uuid.uuid4().hex,
            user_id=str(user_id),
            game=game,
            round=round_,
            number=str(number).zfill(2),
            stake=int(stake),
            date=date,
            status=WagerStatus.ACTIVE.value,
            settled_number=None,
            payout=0,
            created_at=datetime.now(timezone.utc),
        )

        if self._db.is_mongo:
            self._db.mongo["wagers"].insert_one({f: getattr(record, f) for f in _WAGER_FIELDS})
            self._db.mongo["user_stats"].update_one(
                {"user_id": record.user_id},
                {"$inc": {"wagers_placed": 1, "total_staked": record.stake}},
                upsert=True,
            )
            return record

        session = self._require(session)
        session.add(Wager(**{f: getattr(record, f) for f in _WAGER_FIELDS}))
        self._increment_stats(session, record.user_id, wagers_placed=1, total_staked=record.stake)
        session.flush()
        return record

    def get(self, session: Session | None, wager_id: str) -> WagerRecord | None:
        if self._db.is_mongo:
            doc = self._db.mongo["wagers"].find_one({"id": wager_id}, {"_id": 0})
            return _wager_from_doc(doc) if doc else None

        row = self._require(session).get(Wager, wager_id)
        return _wager_from_row(row) if row is not None else None

    def list_active(self, session: Session | None, game: str, round_: str, date: str) -> Sequence[WagerRecord]:
        if self._db.is_mongo:
            cur = self._db.mongo["wagers"].find(
                {"game": game, "round": round_, "date": date, "status": WagerStatus.ACTIVE.value},
                {"_id": 0},
            )
            return [_wager_from_doc(d) for d in cur]

        stmt = select(Wager).where(
            Wager.game == game,
            Wager.round == round_,
            Wager.date == date,
            Wager.status == WagerStatus.ACTIVE.value,
        )
        return [_wager_from_row(r) for r in self._require(session).scalars(stmt).all()]

    def settle(
        self,
        session: Session | None,
        wager: WagerRecord,
        *,
        status: WagerStatus,
        settled_number: str,
        payout: int,
        settled_at: datetime,
    ) -> bool:
        """Move an active wager to its terminal status.

        The status change and, for a win, the owner's stats increment are
        applied together. Returns False (and changes nothing) when the wager
        is no longer active.
        """

        changes = {
            "status": status.value,
            "settled_number": settled_number,
            "payout": int(payout),
            "settled_at": settled_at,
        }
        won = status is WagerStatus.WON

        if self._db.is_mongo:
            db = self._db.mongo

            def _apply(mongo_session: Any) -> bool:
                res = db["wagers"].update_one(
                    {"id": wager.id, "status": WagerStatus.ACTIVE.value},
                    {"$set": changes},
                    session=mongo_session,
                )
                if res.modified_count != 1:
                    return False
                if won:
                    db["user_stats"].update_one(
                        {"user_id": wager.user_id},
                        {"$inc": {"wagers_won": 1, "total_payout": int(payout)}},
                        upsert=True,
                        session=mongo_session,
                    )
                return True

            # Multi-document transactions need a replica set.
            with self._db.mongo_client.start_session() as mongo_session:
                return bool(mongo_session.with_transaction(_apply))

        session = self._require(session)
        res = session.execute(
            update(Wager)
            .where(Wager.id == wager.id, Wager.status == WagerStatus.ACTIVE.value)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return False
        if won:
            self._increment_stats(session, wager.user_id, wagers_won=1, total_payout=int(payout))
        return True

    def _increment_stats(self, session: Session, user_id: str, **deltas: int) -> None:
        dialect = session.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            # Insert-or-increment in one statement.
            dialect_insert = sqlite_insert if dialect == "sqlite" else pg_insert
            initial = {name: 0 for name in _STATS_FIELDS}
            initial.update(deltas)
            stmt = dialect_insert(UserStats).values(user_id=user_id, **initial)
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id"],
                set_={name: getattr(UserStats, name) + amount for name, amount in deltas.items()},
            )
            session.execute(stmt)
            return

        values = {name: getattr(UserStats, name) + amount for name, amount in deltas.items()}
        res = session.execute(
            update(UserStats)
            .where(UserStats.user_id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            initial = {name: 0 for name in _STATS_FIELDS}
            initial.update(deltas)
            session.add(UserStats(user_id=user_id, **initial))
            session.flush()

    def list_for_user(
        self,
        session: Session | None,
        user_id: str,
        status: str | None = None,
        game: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Sequence[WagerRecord]:
        """A user's wagers, newest first."""

        if self._db.is_mongo:
            query: dict[str, Any] = {"user_id": user_id}
            if status:
                query["status"] = status
            if game:
                query["game"] = game
            date_range: dict[str, str] = {}
            if start_date:
                date_range["$gte"] = start_date
            if end_date:
                date_range["$lte"] = end_date
            if date_range:
                query["date"] = date_range
            cur = self._db.mongo["wagers"].find(query, {"_id": 0}).sort("created_at", -1)
            return [_wager_from_doc(d) for d in cur]

        stmt = select(Wager).where(Wager.user_id == user_id)
        if status:
            stmt = stmt.where(Wager.status == status)
        if game:
            stmt = stmt.where(Wager.game == game)
        if start_date:
            stmt = stmt.where(Wager.date >= start_date)
        if end_date:
            stmt = stmt.where(Wager.date <= end_date)
        stmt = stmt.order_by(Wager.created_at.desc())
        return [_wager_from_row(r) for r in self._require(session).scalars(stmt).all()]

    def get_stats(self, session: Session | None, user_id: str) -> UserStatsRecord | None:
        if self._db.is_mongo:
            doc = self._db.mongo["user_stats"].find_one({"user_id": user_id}, {"_id": 0})
            if not doc:
                return None
            return UserStatsRecord(user_id=user_id, **{f: int(doc.get(f) or 0) for f in _STATS_FIELDS})

        row = self._require(session).get(UserStats, user_id)
        if row is None:
            return None
        return UserStatsRecord(user_id=user_id, **{f: int(getattr(row, f) or 0) for f in _STATS_FIELDS})
