"""Games, rounds and number rules shared by every layer."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum

from teerpro.errors import ValidationError


GAMES: tuple[str, ...] = ("shillong", "khanapara", "juwai", "night")

# ASCII digits only; \Z so a trailing newline does not match.
NUMBER_PATTERN = re.compile(r"^[0-9]{2}\Z")

DEFAULT_PAYOUT_MULTIPLIER = 80


class Round(str, Enum):
    FR = "FR"
    SR = "SR"

    @property
    def field(self) -> str:
        """Result column/key holding this round's number."""
        return self.value.lower()


class WagerStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"


def is_two_digit(value: object) -> bool:
    return isinstance(value, str) and NUMBER_PATTERN.match(value) is not None


def parse_game(value: object) -> str:
    game = str(value or "").strip().lower()
    if game not in GAMES:
        raise ValidationError(
            message="Invalid game",
            details={"game": [f"Must be one of {'|'.join(GAMES)}"]},
        )
    return game


def parse_round(value: object) -> Round:
    if isinstance(value, Round):
        return value
    try:
        return Round(str(value or "").strip().upper())
    except ValueError as exc:
        raise ValidationError(
            message="Invalid round",
            details={"round": ["Must be one of FR|SR"]},
        ) from exc


def parse_number(value: object) -> str:
    if not is_two_digit(value):
        raise ValidationError(
            message="Invalid number",
            details={"number": ["Must be exactly two digits (00-99)"]},
        )
    return str(value)


def parse_draw_date(value: date | datetime | str) -> str:
    """Normalize a draw date to its stored `YYYY-MM-DD` form."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError as exc:
        raise ValidationError(
            message="Invalid date",
            details={"date": ["Must be an ISO date (YYYY-MM-DD)"]},
        ) from exc
