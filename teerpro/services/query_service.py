"""Read-only use-cases behind the results and wagers endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date as date_type
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from teerpro.db import Database
from teerpro.errors import NotFoundError
from teerpro.repositories.result_repository import ResultRecord, ResultRepository
from teerpro.repositories.wager_repository import UserStatsRecord, WagerRecord, WagerRepository


def _iso(value: date_type | None) -> str | None:
    return value.isoformat() if value is not None else None


class QueryService:
    """Today's results, result history, a user's wagers and stats."""

    def __init__(self, database: Database, draw_date_timezone: str = "UTC") -> None:
        self._results = ResultRepository(database)
        self._wagers = WagerRepository(database)
        self._tz = ZoneInfo(draw_date_timezone)

    def today(self) -> str:
        return datetime.now(self._tz).date().isoformat()

    def results_today(self, session: Session | None, game: str | None = None) -> Sequence[ResultRecord]:
        return self._results.list_for_date(session, self.today(), game=game)

    def result_history(
        self,
        session: Session | None,
        game: str | None = None,
        start_date: date_type | None = None,
        end_date: date_type | None = None,
        limit: int = 30,
    ) -> Sequence[ResultRecord]:
        return self._results.history(
            session,
            game=game,
            start_date=_iso(start_date),
            end_date=_iso(end_date),
            limit=limit,
        )

    def user_wagers(
        self,
        session: Session | None,
        user_id: str,
        status: str | None = None,
        game: str | None = None,
        start_date: date_type | None = None,
        end_date: date_type | None = None,
    ) -> Sequence[WagerRecord]:
        return self._wagers.list_for_user(
            session,
            user_id,
            status=status,
            game=game,
            start_date=_iso(start_date),
            end_date=_iso(end_date),
        )

    def user_stats(self, session: Session | None, user_id: str) -> UserStatsRecord:
        stats = self._wagers.get_stats(session, user_id)
        if stats is None:
            raise NotFoundError(message=f"No stats for user {user_id}")
        return stats
