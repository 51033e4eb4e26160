"""Declared results, one row per (game, date).

`fr` and `sr` stay NULL until the round is declared and are never
overwritten afterwards.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from teerpro.models.base import Base
from teerpro.models.types import UTCDateTime


class DrawResult(Base):
    """First and second round numbers for one game on one day."""

    __tablename__ = "results"
    __table_args__ = (UniqueConstraint("game", "date", name="uq_results_game_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # YYYY-MM-DD

    fr: Mapped[str | None] = mapped_column(String(2), nullable=True)
    sr: Mapped[str | None] = mapped_column(String(2), nullable=True)
    fr_declared_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    sr_declared_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
