"""Schema for trigger table entries."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from marshmallow import RAISE, Schema, ValidationError, fields, post_load, validate, validates

from teerpro.games import GAMES, Round
from teerpro.services.scheduler import Trigger


class TriggerSchema(Schema):
    """Exactly `{game, round, time, timezone}`; anything else is rejected."""

    class Meta:
        unknown = RAISE

    game = fields.String(required=True, validate=validate.OneOf(GAMES))
    round = fields.String(required=True, validate=validate.OneOf([r.value for r in Round]))
    time = fields.String(required=True, validate=validate.Regexp(r"^([01]\d|2[0-3]):[0-5]\d$"))
    timezone = fields.String(required=True)

    @validates("timezone")
    def _validate_timezone(self, value: str, **kwargs):  # type: ignore[no-untyped-def]
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValidationError(f"Unknown timezone: {value}") from exc

    @post_load
    def _make_trigger(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return Trigger(
            game=data["game"],
            round=Round(data["round"]),
            at=datetime.strptime(data["time"], "%H:%M").time(),
            timezone=data["timezone"],
        )
