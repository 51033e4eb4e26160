"""Settles every active wager placed against a declared round."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from teerpro.db import STORE_EXCEPTIONS, Database
from teerpro.errors import StoreError
from teerpro.games import DEFAULT_PAYOUT_MULTIPLIER, Round, WagerStatus
from teerpro.repositories.wager_repository import WagerRecord, WagerRepository

logger = logging.getLogger(__name__)


class WagerOutcome(str, Enum):
    WON = "won"
    LOST = "lost"
    SKIPPED = "skipped"  # already terminal when we got to it
    FAILED = "failed"


@dataclass(frozen=True)
class WagerSettlement:
    wager_id: str
    user_id: str
    number: str
    stake: int
    outcome: WagerOutcome
    payout: int = 0
    error: StoreError | None = None


@dataclass
class SettlementReport:
    game: str
    round: str
    date: str
    winning_number: str
    settlements: list[WagerSettlement] = field(default_factory=list)

    def _with(self, outcome: WagerOutcome) -> list[WagerSettlement]:
        return [s for s in self.settlements if s.outcome is outcome]

    @property
    def winners(self) -> list[WagerSettlement]:
        return self._with(WagerOutcome.WON)

    @property
    def losers(self) -> list[WagerSettlement]:
        return self._with(WagerOutcome.LOST)

    @property
    def skipped(self) -> list[WagerSettlement]:
        return self._with(WagerOutcome.SKIPPED)

    @property
    def failures(self) -> list[WagerSettlement]:
        return self._with(WagerOutcome.FAILED)

    @property
    def total_payout(self) -> int:
        return sum(s.payout for s in self.winners)


class SettlementEngine:
    """Turns active wagers into won/lost, one transaction per wager.

    Wagers are independent, so they are settled in parallel on a bounded
    pool. A wager whose transaction fails is reported, not retried; running
    `settle` again only touches wagers that are still active.
    """

    def __init__(
        self,
        database: Database,
        wagers: WagerRepository | None = None,
        *,
        multiplier: int = DEFAULT_PAYOUT_MULTIPLIER,
        max_workers: int = 4,
    ) -> None:
        self._db = database
        self._wagers = wagers or WagerRepository(database)
        self._multiplier = int(multiplier)
        self._pool = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="settlement")

    def settle(self, game: str, round_: Round, date: str, winning_number: str) -> SettlementReport:
        report = SettlementReport(game=game, round=round_.value, date=date, winning_number=winning_number)

        try:
            with self._db.session_scope() as session:
                active = self._wagers.list_active(session, game, round_.value, date)
        except STORE_EXCEPTIONS as exc:
            raise StoreError(
                message=f"Could not load active wagers for {game} {round_.value} {date}",
                details=str(exc),
            ) from exc

        if not active:
            logger.info("No active wagers for %s %s %s", game, round_.value, date)
            return report

        settled_at = datetime.now(timezone.utc)
        report.settlements = list(
            self._pool.map(lambda w: self._settle_one(w, winning_number, settled_at), active)
        )

        logger.info(
            "Settled %s %s %s (%s): %s won, %s lost, %s skipped, %s failed, payout %s",
            game,
            round_.value,
            date,
            winning_number,
            len(report.winners),
            len(report.losers),
            len(report.skipped),
            len(report.failures),
            report.total_payout,
        )
        return report

    def _settle_one(self, wager: WagerRecord, winning_number: str, settled_at: datetime) -> WagerSettlement:
        won = wager.number == winning_number
        status = WagerStatus.WON if won else WagerStatus.LOST
        payout = wager.stake * self._multiplier if won else 0

        try:
            with self._db.session_scope() as session:
                applied = self._wagers.settle(
                    session,
                    wager,
                    status=status,
                    settled_number=winning_number,
                    payout=payout,
                    settled_at=settled_at,
                )
        except STORE_EXCEPTIONS as exc:
            logger.error("Settlement of wager %s failed: %s", wager.id, exc)
            return WagerSettlement(
                wager_id=wager.id,
                user_id=wager.user_id,
                number=wager.number,
                stake=wager.stake,
                outcome=WagerOutcome.FAILED,
                error=StoreError(message=f"Could not settle wager {wager.id}", details=str(exc)),
            )

        if not applied:
            return WagerSettlement(
                wager_id=wager.id,
                user_id=wager.user_id,
                number=wager.number,
                stake=wager.stake,
                outcome=WagerOutcome.SKIPPED,
            )

        return WagerSettlement(
            wager_id=wager.id,
            user_id=wager.user_id,
            number=wager.number,
            stake=wager.stake,
            outcome=WagerOutcome.WON if won else WagerOutcome.LOST,
            payout=payout,
        )

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)
