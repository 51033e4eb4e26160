from __future__ import annotations

import threading
from datetime import datetime, time, timedelta, timezone

from teerpro.games import Round
from teerpro.services.scheduler import Trigger, TriggerScheduler, next_fire_time

IST = "Asia/Kolkata"


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_next_fire_time_same_day():
    trigger = Trigger("shillong", Round.FR, time(15, 35), IST)

    fire = next_fire_time(trigger, _utc(2024, 1, 1, 10, 0))

    assert fire.astimezone(timezone.utc) == _utc(2024, 1, 1, 10, 5)


def test_next_fire_time_is_strictly_after_now():
    trigger = Trigger("shillong", Round.FR, time(15, 35), IST)

    fire = next_fire_time(trigger, _utc(2024, 1, 1, 10, 5))

    assert fire.astimezone(timezone.utc) == _utc(2024, 1, 2, 10, 5)


def test_next_fire_time_after_local_midnight():
    trigger = Trigger("night", Round.SR, time(0, 15), IST)

    fire = next_fire_time(trigger, _utc(2024, 1, 1, 18, 0))

    assert fire.astimezone(timezone.utc) == _utc(2024, 1, 1, 18, 45)


def test_next_fire_time_across_dst_change():
    trigger = Trigger("shillong", Round.FR, time(9, 0), "America/New_York")

    # 09:00 EST on the 9th has passed; the 10th is already on EDT.
    fire = next_fire_time(trigger, _utc(2024, 3, 9, 15, 0))

    assert fire.astimezone(timezone.utc) == _utc(2024, 3, 10, 13, 0)


def test_fire_reports_failure_without_raising():
    calls = []

    def job(trigger):
        calls.append(trigger.name)
        raise RuntimeError("source down")

    scheduler = TriggerScheduler([], job)

    assert scheduler.fire(Trigger("juwai", Round.FR, time(13, 50), IST)) is False
    assert calls == ["juwai-FR"]


def _jumping_clock(start: datetime):
    """Each thread sees `start` once, then two days later; every trigger fires once."""

    seen = threading.local()

    def clock() -> datetime:
        if getattr(seen, "started", False):
            return start + timedelta(days=2)
        seen.started = True
        return start

    return clock


def test_failing_trigger_does_not_block_others():
    shillong = Trigger("shillong", Round.FR, time(15, 35), IST)
    khanapara = Trigger("khanapara", Round.FR, time(15, 50), IST)
    shillong_ran = threading.Event()
    khanapara_ran = threading.Event()

    def job(trigger):
        if trigger.game == "shillong":
            shillong_ran.set()
            raise RuntimeError("boom")
        khanapara_ran.set()

    scheduler = TriggerScheduler([shillong, khanapara], job, clock=_jumping_clock(_utc(2024, 1, 1, 0, 0)))
    scheduler.start()
    try:
        assert shillong_ran.wait(5)
        assert khanapara_ran.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop()

    assert not scheduler.running
