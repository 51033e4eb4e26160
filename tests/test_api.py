from __future__ import annotations

import pytest

from teerpro.repositories.result_repository import ResultRepository

DRAW_DATE = "2024-01-01"


def _declare(client, number="42", game="shillong", round_="FR", date=DRAW_DATE, headers=None):
    return client.post(
        "/api/admin/result",
        json={"game": game, "round": round_, "date": date, "number": number},
        headers=headers or {},
    )


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "online"
    assert body["data"]["database"] == "connected"
    assert body["data"]["backend"] == "sql"
    assert body["data"]["scheduler"] == "stopped"


def test_admin_declare_then_already_declared(client, place_wager):
    place_wager("u1", "42", stake=10)
    place_wager("u2", "13", stake=10)

    first = _declare(client, "42")

    assert first.status_code == 201
    body = first.get_json()
    assert body["data"]["fr"] == "42"
    assert body["meta"]["outcome"] == "declared"
    assert body["meta"]["settlement"] == {"won": 1, "lost": 1, "failed": [], "total_payout": 800}

    second = _declare(client, "55")

    assert second.status_code == 200
    body = second.get_json()
    assert body["meta"] == {"outcome": "already_declared", "number": "42"}
    assert body["data"]["fr"] == "42"


def test_admin_rejects_bad_number_without_mutation(client, services):
    resp = _declare(client, "abc")

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "validation_error"
    assert "number" in body["error"]["details"]

    with services.database.session_scope() as session:
        assert ResultRepository(services.database).get(session, "shillong", DRAW_DATE) is None


@pytest.mark.parametrize("number", ["12\n", "\u0661\u0662", "\uff11\uff12"])
def test_admin_rejects_non_ascii_or_trailing_newline_numbers(client, services, number):
    resp = _declare(client, number)

    assert resp.status_code == 400
    with services.database.session_scope() as session:
        assert ResultRepository(services.database).get(session, "shillong", DRAW_DATE) is None


def test_admin_rejects_unknown_game(client):
    resp = _declare(client, "12", game="lucknow")

    assert resp.status_code == 400
    assert "game" in resp.get_json()["error"]["details"]


def test_admin_second_round_before_first_is_conflict(client):
    resp = _declare(client, "12", round_="SR")

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "conflict"


def test_admin_token_required_when_configured(make_app):
    client = make_app(ADMIN_TOKEN="s3cret").test_client()

    assert _declare(client).status_code == 401
    assert _declare(client, headers={"X-Admin-Token": "wrong"}).status_code == 401
    assert _declare(client, headers={"X-Admin-Token": "s3cret"}).status_code == 201


def test_results_today(client, services):
    today = services.queries.today()
    _declare(client, "21", game="juwai", date=today)
    _declare(client, "34", game="night", date=today)
    _declare(client, "55", game="juwai", date="2000-01-01")

    everything = client.get("/api/results/today").get_json()
    juwai = client.get("/api/results/today?game=juwai").get_json()

    assert {r["game"] for r in everything["data"]} == {"juwai", "night"}
    assert juwai["meta"]["count"] == 1
    assert juwai["data"][0]["fr"] == "21"
    assert juwai["data"][0]["date"] == today


def test_results_history_is_newest_first_and_filtered(client):
    for day, number in (("2024-01-01", "10"), ("2024-01-02", "20"), ("2024-01-03", "30")):
        _declare(client, number, date=day)
    _declare(client, "99", game="khanapara", date="2024-01-02")

    resp = client.get("/api/results/history?game=shillong")
    dates = [r["date"] for r in resp.get_json()["data"]]
    assert dates == ["2024-01-03", "2024-01-02", "2024-01-01"]

    ranged = client.get("/api/results/history?game=shillong&start_date=2024-01-02&end_date=2024-01-02&limit=5")
    assert [r["fr"] for r in ranged.get_json()["data"]] == ["20"]

    limited = client.get("/api/results/history?limit=2")
    assert len(limited.get_json()["data"]) == 2


def test_results_history_rejects_inverted_range(client):
    resp = client.get("/api/results/history?start_date=2024-02-01&end_date=2024-01-01")

    assert resp.status_code == 400


def test_user_wagers_and_stats(client, place_wager):
    place_wager("u1", "42", stake=10)
    place_wager("u1", "07", stake=5, game="juwai")
    _declare(client, "42")

    wagers = client.get("/api/users/u1/wagers").get_json()
    won = client.get("/api/users/u1/wagers?status=won").get_json()
    stats = client.get("/api/users/u1/stats").get_json()

    assert wagers["meta"]["count"] == 2
    assert [w["number"] for w in won["data"]] == ["42"]
    assert won["data"][0]["payout"] == 800
    assert stats["data"] == {
        "user_id": "u1",
        "wagers_placed": 2,
        "wagers_won": 1,
        "total_staked": 15,
        "total_payout": 800,
    }


def test_unknown_user_stats_is_404(client):
    resp = client.get("/api/users/nobody/stats")

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "not_found"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json() == {
        "success": False,
        "data": None,
        "error": {"code": "not_found", "message": "Not found", "details": None},
    }


def test_wrong_method_uses_envelope(client):
    resp = client.get("/api/admin/result")

    assert resp.status_code == 405
    assert resp.get_json()["error"]["code"] == "method_not_allowed"


def test_timestamps_are_serialized_as_utc(client, place_wager):
    place_wager("u1", "42", stake=10)

    declared = _declare(client, "42").get_json()["data"]
    wager = client.get("/api/users/u1/wagers").get_json()["data"][0]

    assert declared["fr_declared_at"].endswith("+00:00")
    assert declared["sr_declared_at"] is None
    assert wager["created_at"].endswith("+00:00")
    assert wager["settled_at"].endswith("+00:00")
