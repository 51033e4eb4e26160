"""Per-user wager routes (read-only)."""

from __future__ import annotations

from flask import Blueprint, request

from teerpro.container import get_services
from teerpro.db import get_optional_session
from teerpro.schemas.wager import UserStatsSchema, WagerQuerySchema, WagerSchema
from teerpro.utils.responses import ok

wagers_bp = Blueprint("wagers", __name__)

_wagers_schema = WagerSchema(many=True)
_stats_schema = UserStatsSchema()
_query_schema = WagerQuerySchema()


@wagers_bp.get("/users/<user_id>/wagers")
def list_user_wagers(user_id: str):
    args = _query_schema.load(request.args)
    wagers = get_services().queries.user_wagers(
        get_optional_session(),
        user_id,
        status=args["status"],
        game=args["game"],
        start_date=args["start_date"],
        end_date=args["end_date"],
    )
    return ok(_wagers_schema.dump(wagers), meta={"count": len(wagers)})


@wagers_bp.get("/users/<user_id>/stats")
def get_user_stats(user_id: str):
    stats = get_services().queries.user_stats(get_optional_session(), user_id)
    return ok(_stats_schema.dump(stats))
