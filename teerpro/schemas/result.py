"""Schemas for declared results and admin entry."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from teerpro.games import GAMES, NUMBER_PATTERN, Round


class ResultSchema(Schema):
    """Serialize a ResultRecord."""

    game = fields.String(required=True)
    date = fields.String(required=True)
    fr = fields.String(allow_none=True)
    sr = fields.String(allow_none=True)
    fr_declared_at = fields.DateTime(allow_none=True)
    sr_declared_at = fields.DateTime(allow_none=True)


class AdminResultSchema(Schema):
    """Validate a manual result entry."""

    game = fields.String(required=True, validate=validate.OneOf(GAMES))
    round = fields.String(required=True, validate=validate.OneOf([r.value for r in Round]))
    date = fields.Date(required=True)
    number = fields.String(
        required=True,
        validate=validate.Regexp(NUMBER_PATTERN, error="Must be exactly two digits (00-99)"),
    )


class ResultHistoryQuerySchema(Schema):
    game = fields.String(required=False, load_default=None, validate=validate.OneOf(GAMES))
    start_date = fields.Date(required=False, load_default=None)
    end_date = fields.Date(required=False, load_default=None)
    limit = fields.Integer(required=False, load_default=30, validate=validate.Range(min=1, max=365))

    @validates_schema
    def _validate_range(self, data, **kwargs):  # type: ignore[no-untyped-def]
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and start > end:
            raise ValidationError({"start_date": ["start_date must be <= end_date"]})


class TodayQuerySchema(Schema):
    game = fields.String(required=False, load_default=None, validate=validate.OneOf(GAMES))
