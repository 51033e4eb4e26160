"""Source adapter contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from teerpro.games import Round, is_two_digit


@dataclass(frozen=True)
class SourcePair:
    """What a source currently shows for one game.

    Either round may be None while the source still shows a placeholder.
    """

    fr: str | None = None
    sr: str | None = None

    def number_for(self, round_: Round) -> str | None:
        return self.fr if round_ is Round.FR else self.sr

    @classmethod
    def from_raw(cls, fr: object, sr: object) -> "SourcePair | None":
        """Keep only values shaped like `^\\d{2}$`; None if neither is usable."""

        fr_value = str(fr).strip() if fr is not None else None
        sr_value = str(sr).strip() if sr is not None else None
        pair = cls(
            fr=fr_value if is_two_digit(fr_value) else None,
            sr=sr_value if is_two_digit(sr_value) else None,
        )
        if pair.fr is None and pair.sr is None:
            return None
        return pair


class SourceAdapter(Protocol):
    """Reads the currently published result pair for a game.

    Returns None when nothing usable is published yet and raises
    `teerpro.errors.SourceError` when the source cannot be read.
    """

    def fetch(self, game: str) -> SourcePair | None:
        ...
