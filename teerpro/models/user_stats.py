"""Per-user running counters."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from teerpro.models.base import Base


class UserStats(Base):
    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    wagers_placed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wagers_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_staked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_payout: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
