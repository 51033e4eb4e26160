"""Result routes (controllers). No business logic here."""

from __future__ import annotations

import hmac

from flask import Blueprint, current_app, request

from teerpro.container import get_services
from teerpro.db import get_optional_session
from teerpro.errors import UnauthorizedError
from teerpro.schemas.result import (
    AdminResultSchema,
    ResultHistoryQuerySchema,
    ResultSchema,
    TodayQuerySchema,
)
from teerpro.services.ingestion_service import IngestOutcome
from teerpro.utils.responses import ok

results_bp = Blueprint("results", __name__)

_result_schema = ResultSchema()
_results_schema = ResultSchema(many=True)
_admin_schema = AdminResultSchema()
_history_query = ResultHistoryQuerySchema()
_today_query = TodayQuerySchema()


def _require_admin() -> None:
    expected = str(current_app.config.get("ADMIN_TOKEN") or "")
    if not expected:
        return
    given = request.headers.get("X-Admin-Token", "")
    if not hmac.compare_digest(given.encode(), expected.encode()):
        raise UnauthorizedError(message="Admin token required")


@results_bp.get("/results/today")
def results_today():
    """Today's results, optionally for one game."""

    args = _today_query.load(request.args)
    results = get_services().queries.results_today(get_optional_session(), game=args["game"])
    return ok(_results_schema.dump(results), meta={"count": len(results)})


@results_bp.get("/results/history")
def results_history():
    """Results newest first, filtered by game and date range."""

    args = _history_query.load(request.args)
    results = get_services().queries.result_history(
        get_optional_session(),
        game=args["game"],
        start_date=args["start_date"],
        end_date=args["end_date"],
        limit=args["limit"],
    )
    return ok(_results_schema.dump(results), meta={"count": len(results)})


@results_bp.post("/admin/result")
def declare_result():
    """Manual result entry; idempotent per (game, round, date)."""

    _require_admin()
    payload = request.get_json(silent=True) or {}
    data = _admin_schema.load(payload)

    outcome = get_services().ingestion.declare_manual(
        data["game"],
        data["round"],
        data["date"],
        data["number"],
    )

    meta: dict[str, object] = {"outcome": outcome.outcome.value, "number": outcome.number}
    if outcome.settlement is not None:
        meta["settlement"] = {
            "won": len(outcome.settlement.winners),
            "lost": len(outcome.settlement.losers),
            "failed": [s.wager_id for s in outcome.settlement.failures],
            "total_payout": outcome.settlement.total_payout,
        }

    status_code = 201 if outcome.outcome is IngestOutcome.DECLARED else 200
    return ok(_result_schema.dump(outcome.result), status_code=status_code, meta=meta)
