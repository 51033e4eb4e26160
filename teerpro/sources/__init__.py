"""External result sources."""

from teerpro.sources.base import SourceAdapter, SourcePair
from teerpro.sources.meghalaya import MeghalayaTeerSource

__all__ = ["MeghalayaTeerSource", "SourceAdapter", "SourcePair"]
