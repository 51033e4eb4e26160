from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from teerpro import create_app
from teerpro.repositories.wager_repository import WagerRecord, WagerRepository
from teerpro.sources.base import SourcePair


DRAW_DATE = "2024-01-01"


class FakeSource:
    """In-memory source adapter; set `pairs`, `error` or `delay` per test."""

    def __init__(self) -> None:
        self.pairs: dict[str, SourcePair | None] = {}
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch(self, game: str) -> SourcePair | None:
        with self._lock:
            self.calls.append(game)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.pairs.get(game)


class RecordingSubscriber:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self._lock = threading.Lock()

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self.events.append((event, payload))

    def named(self, event: str) -> list[dict[str, Any]]:
        return [p for e, p in self.events if e == event]


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def make_app(tmp_path, source):
    apps = []

    def _make(**overrides: Any):
        config = {
            "TESTING": True,
            "DB_BACKEND": "sql",
            "DATABASE_URL": f"sqlite:///{tmp_path / f'teer{len(apps)}.db'}",
            "SCHEDULER_ENABLED": False,
            "SETTLEMENT_WORKERS": 2,
            "ADMIN_TOKEN": "",
            "TRIGGERS_FILE": None,
        }
        config.update(overrides)
        app = create_app(config, source=source)
        apps.append(app)
        return app

    yield _make

    for app in apps:
        app.extensions["services"].shutdown()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["services"]


@pytest.fixture
def subscriber(services) -> RecordingSubscriber:
    recorder = RecordingSubscriber()
    services.publisher.registry.subscribe(recorder)
    return recorder


@pytest.fixture
def place_wager(services) -> Callable[..., WagerRecord]:
    repo = WagerRepository(services.database)

    def _place(
        user_id: str,
        number: str,
        stake: int = 10,
        game: str = "shillong",
        round_: str = "FR",
        date: str = DRAW_DATE,
    ) -> WagerRecord:
        with services.database.session_scope() as session:
            return repo.create(
                session,
                user_id=user_id,
                game=game,
                round_=round_,
                number=number,
                stake=stake,
                date=date,
            )

    return _place


@pytest.fixture
def load_wager(services) -> Callable[[str], WagerRecord | None]:
    repo = WagerRepository(services.database)

    def _load(wager_id: str) -> WagerRecord | None:
        with services.database.session_scope() as session:
            return repo.get(session, wager_id)

    return _load


@pytest.fixture
def load_stats(services):
    repo = WagerRepository(services.database)

    def _load(user_id: str):
        with services.database.session_scope() as session:
            return repo.get_stats(session, user_id)

    return _load


@pytest.fixture
def recorder_factory() -> Callable[[], RecordingSubscriber]:
    return RecordingSubscriber
