"""Daily wall-clock triggers, one background thread per trigger entry.

Each entry computes its next fire time in its own timezone, sleeps until
then, fires, and repeats. A trigger missed while the process was down is
not replayed; the next fire is the next scheduled occurrence.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from teerpro.games import Round

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class Trigger:
    game: str
    round: Round
    at: time
    timezone: str

    @property
    def name(self) -> str:
        return f"{self.game}-{self.round.value}"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_fire_time(trigger: Trigger, now: datetime) -> datetime:
    """First local `trigger.at` strictly after `now`, as an aware datetime."""

    tz = trigger.tz
    local_now = now.astimezone(tz)
    candidate = datetime.combine(local_now.date(), trigger.at, tzinfo=tz)
    if candidate.astimezone(timezone.utc) <= now.astimezone(timezone.utc):
        candidate = datetime.combine(local_now.date() + timedelta(days=1), trigger.at, tzinfo=tz)
    return candidate


class TriggerScheduler:
    """Runs `job(trigger)` at each trigger's daily local time.

    Triggers are isolated from each other: each has its own thread, and an
    exception from one firing is logged without touching the others or the
    next day's firing of the same trigger.
    """

    def __init__(
        self,
        triggers: Sequence[Trigger],
        job: Callable[[Trigger], object],
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._triggers = list(triggers)
        self._job = job
        self._clock = clock
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def triggers(self) -> list[Trigger]:
        return list(self._triggers)

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._threads = [
            threading.Thread(target=self._loop, args=(trigger,), name=f"trigger-{trigger.name}", daemon=True)
            for trigger in self._triggers
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Scheduler started with %s triggers", len(self._threads))

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        logger.info("Scheduler stopped")

    def fire(self, trigger: Trigger) -> bool:
        """Run the job once for `trigger`; returns False if it raised."""

        logger.info("Checking %s %s result...", trigger.game, trigger.round.value)
        try:
            self._job(trigger)
        except Exception:
            logger.exception("Trigger %s failed", trigger.name)
            return False
        return True

    def _loop(self, trigger: Trigger) -> None:
        while not self._stop.is_set():
            target = next_fire_time(trigger, self._clock())
            while not self._stop.is_set():
                remaining = (target - self._clock()).total_seconds()
                if remaining <= 0:
                    break
                # Wake up at least hourly so clock jumps are picked up.
                self._stop.wait(min(remaining, 3600.0))
            if self._stop.is_set():
                return
            self.fire(trigger)
