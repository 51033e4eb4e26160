"""Declares results and drives settlement + notification.

Both the scheduled fetch (`ingest`) and admin entry (`declare_manual`) go
through the same conditional write, so a round is declared, settled and
broadcast at most once no matter how many callers race for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime, timezone
from enum import Enum

from teerpro.db import STORE_EXCEPTIONS, Database
from teerpro.errors import ConflictError, SourceError, StoreError
from teerpro.games import Round, parse_draw_date, parse_game, parse_number, parse_round
from teerpro.repositories.result_repository import ResultRecord, ResultRepository
from teerpro.services.publisher import Publisher
from teerpro.services.settlement_service import SettlementEngine, SettlementReport
from teerpro.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


class IngestOutcome(str, Enum):
    DECLARED = "declared"
    ALREADY_DECLARED = "already_declared"
    NO_RESULT_YET = "no_result_yet"


@dataclass(frozen=True)
class IngestResult:
    outcome: IngestOutcome
    game: str
    round: Round
    date: str
    result: ResultRecord | None = None
    number: str | None = None
    settlement: SettlementReport | None = None
    source_error: SourceError | None = None


class IngestionCoordinator:
    """One polling attempt or admin entry for a (game, round, date)."""

    def __init__(
        self,
        database: Database,
        source: SourceAdapter,
        settlement: SettlementEngine,
        publisher: Publisher,
        results: ResultRepository | None = None,
    ) -> None:
        self._db = database
        self._source = source
        self._settlement = settlement
        self._publisher = publisher
        self._results = results or ResultRepository(database)

    def ingest(self, game: str, round_: Round | str, date: date_type | str) -> IngestResult:
        game = parse_game(game)
        round_ = parse_round(round_)
        draw_date = parse_draw_date(date)

        current = self._load_or_create(game, draw_date)
        declared = current.number_for(round_)
        if declared is not None:
            logger.debug("%s %s %s already declared (%s)", game, round_.value, draw_date, declared)
            return IngestResult(IngestOutcome.ALREADY_DECLARED, game, round_, draw_date, current, declared)

        if round_ is Round.SR and current.fr is None:
            logger.info("%s SR %s waits for FR to be declared", game, draw_date)
            return IngestResult(IngestOutcome.NO_RESULT_YET, game, round_, draw_date, current)

        try:
            pair = self._source.fetch(game)
        except SourceError as exc:
            logger.warning("Source unavailable for %s %s %s: %s", game, round_.value, draw_date, exc)
            return IngestResult(IngestOutcome.NO_RESULT_YET, game, round_, draw_date, current, source_error=exc)

        number = pair.number_for(round_) if pair is not None else None
        if number is None:
            logger.info("No %s result yet for %s %s", round_.value, game, draw_date)
            return IngestResult(IngestOutcome.NO_RESULT_YET, game, round_, draw_date, current)

        return self._declare(game, round_, draw_date, number)

    def declare_manual(
        self,
        game: str,
        round_: Round | str,
        date: date_type | str,
        number: str,
    ) -> IngestResult:
        """Admin entry: validated up front, then the same write path as `ingest`."""

        game = parse_game(game)
        round_ = parse_round(round_)
        draw_date = parse_draw_date(date)
        number = parse_number(number)

        current = self._load_or_create(game, draw_date)
        declared = current.number_for(round_)
        if declared is not None:
            return IngestResult(IngestOutcome.ALREADY_DECLARED, game, round_, draw_date, current, declared)

        if round_ is Round.SR and current.fr is None:
            raise ConflictError(
                message="First round must be declared before second round",
                details={"game": game, "date": draw_date},
            )

        logger.info("Manual entry %s %s %s = %s", game, round_.value, draw_date, number)
        return self._declare(game, round_, draw_date, number)

    def resettle(self, game: str, round_: Round | str, date: date_type | str) -> SettlementReport | None:
        """Re-run settlement for an already declared round.

        Only wagers still active are touched; returns None when the round has
        not been declared.
        """

        game = parse_game(game)
        round_ = parse_round(round_)
        draw_date = parse_draw_date(date)

        try:
            with self._db.session_scope() as session:
                current = self._results.get(session, game, draw_date)
        except STORE_EXCEPTIONS as exc:
            raise StoreError(message=f"Could not load result for {game} {draw_date}", details=str(exc)) from exc

        number = current.number_for(round_) if current is not None else None
        if number is None:
            return None

        report = self._settlement.settle(game, round_, draw_date, number)
        self._notify_winners(report)
        return report

    def _load_or_create(self, game: str, draw_date: str) -> ResultRecord:
        try:
            with self._db.session_scope() as session:
                return self._results.ensure(session, game, draw_date)
        except STORE_EXCEPTIONS as exc:
            raise StoreError(message=f"Could not load result for {game} {draw_date}", details=str(exc)) from exc

    def _declare(self, game: str, round_: Round, draw_date: str, number: str) -> IngestResult:
        try:
            with self._db.session_scope() as session:
                won = self._results.declare(
                    session,
                    game,
                    draw_date,
                    round_,
                    number,
                    declared_at=datetime.now(timezone.utc),
                )
                record = self._results.get(session, game, draw_date)
        except STORE_EXCEPTIONS as exc:
            raise StoreError(
                message=f"Could not declare {game} {round_.value} {draw_date}",
                details=str(exc),
            ) from exc

        if not won:
            existing = record.number_for(round_) if record is not None else None
            logger.info("%s %s %s declared concurrently (%s)", game, round_.value, draw_date, existing)
            return IngestResult(IngestOutcome.ALREADY_DECLARED, game, round_, draw_date, record, existing)

        logger.info("%s %s result declared for %s: %s", game, round_.value, draw_date, number)

        try:
            report = self._settlement.settle(game, round_, draw_date, number)
        except StoreError:
            # The declaration itself is durable; settlement can be re-run later.
            logger.error("Settlement did not start for %s %s %s", game, round_.value, draw_date)
            self._publisher.publish_result_declared(game, round_.value, draw_date, number)
            raise

        self._publisher.publish_result_declared(game, round_.value, draw_date, number)
        self._notify_winners(report)

        return IngestResult(IngestOutcome.DECLARED, game, round_, draw_date, record, number, report)

    def _notify_winners(self, report: SettlementReport) -> None:
        for win in report.winners:
            self._publisher.publish_wager_won(
                win.user_id,
                win.wager_id,
                report.game,
                report.round,
                win.number,
                win.stake,
                win.payout,
            )
