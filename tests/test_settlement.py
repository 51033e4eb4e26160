from __future__ import annotations

from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

from teerpro.games import Round
from teerpro.models import UserStats
from teerpro.repositories.wager_repository import WagerRepository
from teerpro.services.settlement_service import SettlementEngine, WagerOutcome

DRAW_DATE = "2024-01-01"


def test_win_loss_split(services, place_wager, load_wager):
    a = place_wager("u1", "07", stake=10)
    b = place_wager("u2", "23", stake=10)
    c = place_wager("u3", "07", stake=10)

    report = services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")

    assert {s.wager_id for s in report.winners} == {a.id, c.id}
    assert [s.wager_id for s in report.losers] == [b.id]
    assert report.total_payout == 1600

    for wager in (a, c):
        stored = load_wager(wager.id)
        assert stored.status == "won"
        assert stored.payout == 800
        assert stored.settled_number == "07"
        assert stored.settled_at is not None

    lost = load_wager(b.id)
    assert lost.status == "lost"
    assert lost.payout == 0
    assert lost.settled_number == "07"


def test_settle_twice_is_a_no_op(services, place_wager, load_stats):
    place_wager("u1", "07", stake=10)
    place_wager("u1", "23", stake=10)

    first = services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")
    after_first = load_stats("u1")
    second = services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")

    assert len(first.winners) == 1
    assert second.settlements == []
    assert load_stats("u1") == after_first
    assert after_first.wagers_placed == 2
    assert after_first.total_staked == 20
    assert after_first.wagers_won == 1
    assert after_first.total_payout == 800


def test_only_matching_game_round_and_date_are_settled(services, place_wager, load_wager):
    target = place_wager("u1", "07")
    other_round = place_wager("u1", "07", round_="SR")
    other_game = place_wager("u1", "07", game="juwai")
    other_day = place_wager("u1", "07", date="2024-01-02")

    services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")

    assert load_wager(target.id).status == "won"
    for wager in (other_round, other_game, other_day):
        assert load_wager(wager.id).status == "active"


def test_stale_snapshot_is_skipped(services, place_wager, load_stats):
    wager = place_wager("u1", "07", stake=10)
    repo = WagerRepository(services.database)
    services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")

    # A second engine still holding the old active snapshot.
    engine = SettlementEngine(services.database, repo, max_workers=1)
    try:
        outcome = engine._settle_one(wager, "07", settled_at=wager.created_at)
    finally:
        engine.shutdown()

    assert outcome.outcome is WagerOutcome.SKIPPED
    assert load_stats("u1").wagers_won == 1


class _FlakyRepository(WagerRepository):
    def __init__(self, database, fail_ids):
        super().__init__(database)
        self.fail_ids = set(fail_ids)

    def settle(self, session, wager, **kwargs):
        if wager.id in self.fail_ids:
            raise OperationalError("UPDATE wagers", {}, Exception("disk I/O error"))
        return super().settle(session, wager, **kwargs)


def test_failed_wager_is_reported_and_others_settle(services, place_wager, load_wager, load_stats):
    ok_win = place_wager("u1", "07", stake=10)
    broken = place_wager("u2", "07", stake=10)
    ok_loss = place_wager("u3", "99", stake=10)

    engine = SettlementEngine(services.database, _FlakyRepository(services.database, [broken.id]), max_workers=2)
    try:
        report = engine.settle("shillong", Round.FR, DRAW_DATE, "07")
    finally:
        engine.shutdown()

    assert [f.wager_id for f in report.failures] == [broken.id]
    assert report.failures[0].error.code == "store_error"
    assert load_wager(ok_win.id).status == "won"
    assert load_wager(ok_loss.id).status == "lost"
    assert load_wager(broken.id).status == "active"
    assert load_stats("u2").wagers_won == 0

    retry = services.settlement.settle("shillong", Round.FR, DRAW_DATE, "07")

    assert [s.wager_id for s in retry.winners] == [broken.id]
    assert load_wager(broken.id).status == "won"
    assert load_stats("u2").wagers_won == 1
    assert load_stats("u1").wagers_won == 1


def test_custom_multiplier(services, place_wager):
    place_wager("u1", "12", stake=7)
    engine = SettlementEngine(services.database, multiplier=90, max_workers=1)
    try:
        report = engine.settle("shillong", Round.FR, DRAW_DATE, "12")
    finally:
        engine.shutdown()

    assert report.winners[0].payout == 630


def test_parallel_wins_for_user_without_stats_row(services, place_wager, load_stats):
    for _ in range(6):
        place_wager("fresh", "44", stake=10)
    with services.database.session_scope() as session:
        session.execute(delete(UserStats).where(UserStats.user_id == "fresh"))

    engine = SettlementEngine(services.database, max_workers=4)
    try:
        report = engine.settle("shillong", Round.FR, DRAW_DATE, "44")
    finally:
        engine.shutdown()

    assert report.failures == []
    assert len(report.winners) == 6
    stats = load_stats("fresh")
    assert stats.wagers_won == 6
    assert stats.total_payout == 6 * 800
    assert stats.wagers_placed == 0
