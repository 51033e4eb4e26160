"""Marshmallow schemas for wagers and user stats."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from teerpro.games import GAMES, WagerStatus


class WagerSchema(Schema):
    """Serialize a WagerRecord."""

    id = fields.String(required=True)
    user_id = fields.String(required=True)
    game = fields.String(required=True)
    round = fields.String(required=True)
    number = fields.String(required=True)
    stake = fields.Integer(required=True)
    date = fields.String(required=True)
    status = fields.String(required=True)
    settled_number = fields.String(allow_none=True)
    payout = fields.Integer(required=True)
    created_at = fields.DateTime()
    settled_at = fields.DateTime(allow_none=True)


class WagerQuerySchema(Schema):
    status = fields.String(
        required=False,
        load_default=None,
        validate=validate.OneOf([s.value for s in WagerStatus]),
    )
    game = fields.String(required=False, load_default=None, validate=validate.OneOf(GAMES))
    start_date = fields.Date(required=False, load_default=None)
    end_date = fields.Date(required=False, load_default=None)

    @validates_schema
    def _validate_range(self, data, **kwargs):  # type: ignore[no-untyped-def]
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and start > end:
            raise ValidationError({"start_date": ["start_date must be <= end_date"]})


class UserStatsSchema(Schema):
    user_id = fields.String(required=True)
    wagers_placed = fields.Integer()
    wagers_won = fields.Integer()
    total_staked = fields.Integer()
    total_payout = fields.Integer()
