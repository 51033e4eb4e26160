"""ORM models."""

from teerpro.models.result import DrawResult
from teerpro.models.user_stats import UserStats
from teerpro.models.wager import Wager

__all__ = ["DrawResult", "UserStats", "Wager"]
