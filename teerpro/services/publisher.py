"""Fan-out of result and win events to subscribers.

Delivery is best-effort and at-most-once: nothing is queued for a
subscriber that is not registered at publish time. The stored wager and
result rows remain the source of truth.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

RESULT_UPDATE = "result-update"
WAGER_WON = "wager-won"

Handler = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class Subscription:
    id: int
    user_id: str | None = None


class SubscriberRegistry:
    """In-process subscriber registry.

    Handlers registered without a user id receive broadcasts; handlers
    registered with one also receive that user's targeted events. A
    transport (websocket, SSE, push) plugs in by registering a handler per
    connection.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._handlers: dict[int, tuple[str | None, Handler]] = {}

    def subscribe(self, handler: Handler, user_id: str | None = None) -> Subscription:
        with self._lock:
            sub = Subscription(id=next(self._ids), user_id=str(user_id) if user_id is not None else None)
            self._handlers[sub.id] = (sub.user_id, handler)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._handlers.pop(subscription.id, None)

    def _snapshot(self) -> list[tuple[int, str | None, Handler]]:
        with self._lock:
            return [(sid, uid, h) for sid, (uid, h) in self._handlers.items()]

    def broadcast(self, event: str, payload: dict[str, Any]) -> int:
        return self._deliver(event, payload, self._snapshot())

    def send_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> int:
        targets = [t for t in self._snapshot() if t[1] == str(user_id)]
        return self._deliver(event, payload, targets)

    @staticmethod
    def _deliver(event: str, payload: dict[str, Any], targets: list[tuple[int, str | None, Handler]]) -> int:
        delivered = 0
        for sid, _uid, handler in targets:
            try:
                handler(event, dict(payload))
            except Exception:
                logger.warning("Subscriber %s failed on %s", sid, event, exc_info=True)
                continue
            delivered += 1
        return delivered


class Publisher:
    """Builds event payloads and hands them to the registry."""

    def __init__(self, registry: SubscriberRegistry | None = None) -> None:
        self.registry = registry or SubscriberRegistry()

    def publish_result_declared(self, game: str, round_: str, date: str, number: str) -> int:
        payload = {"game": game, "round": round_, "number": number, "date": date}
        delivered = self.registry.broadcast(RESULT_UPDATE, payload)
        logger.info("Published %s %s %s=%s to %s subscribers", RESULT_UPDATE, game, round_, number, delivered)
        return delivered

    def publish_wager_won(
        self,
        user_id: str,
        wager_id: str,
        game: str,
        round_: str,
        number: str,
        stake: int,
        payout: int,
    ) -> int:
        payload = {
            "wagerId": wager_id,
            "game": game,
            "round": round_,
            "number": number,
            "stake": stake,
            "payout": payout,
        }
        return self.registry.send_to_user(user_id, WAGER_WON, payload)
