"""Wager ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from teerpro.models.base import Base
from teerpro.models.types import UTCDateTime


class Wager(Base):
    """A stake on one two-digit number for one (game, round, date)."""

    __tablename__ = "wagers"
    __table_args__ = (
        Index("ix_wagers_settlement", "game", "round", "date", "status"),
        Index("ix_wagers_user_status_date", "user_id", "status", "date"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    game: Mapped[str] = mapped_column(String(32), nullable=False)
    round: Mapped[str] = mapped_column(String(2), nullable=False)  # FR | SR
    number: Mapped[str] = mapped_column(String(2), nullable=False)
    stake: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(8), nullable=False, default="active")
    settled_number: Mapped[str | None] = mapped_column(String(2), nullable=True)
    payout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    settled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
