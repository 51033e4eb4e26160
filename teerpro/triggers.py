"""Trigger table: when each (game, round) is polled."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from teerpro.schemas.trigger import TriggerSchema
from teerpro.services.scheduler import Trigger

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_TABLE: list[dict[str, str]] = [
    {"game": "shillong", "round": "FR", "time": "15:35", "timezone": "Asia/Kolkata"},
    {"game": "shillong", "round": "SR", "time": "16:35", "timezone": "Asia/Kolkata"},
    {"game": "khanapara", "round": "FR", "time": "15:50", "timezone": "Asia/Kolkata"},
    {"game": "khanapara", "round": "SR", "time": "16:20", "timezone": "Asia/Kolkata"},
    {"game": "juwai", "round": "FR", "time": "13:50", "timezone": "Asia/Kolkata"},
    {"game": "juwai", "round": "SR", "time": "14:35", "timezone": "Asia/Kolkata"},
    {"game": "night", "round": "FR", "time": "23:15", "timezone": "Asia/Kolkata"},
    {"game": "night", "round": "SR", "time": "00:15", "timezone": "Asia/Kolkata"},
]

_schema = TriggerSchema(many=True)


def parse_trigger_table(entries: Any) -> list[Trigger]:
    """Validate raw entries; raises marshmallow.ValidationError on any bad entry."""

    if isinstance(entries, dict):
        entries = entries.get("triggers")
    return list(_schema.load(entries or []))


def load_triggers(path: str | None = None) -> list[Trigger]:
    """Load the YAML trigger table at `path`, or the built-in default."""

    if not path:
        return parse_trigger_table(DEFAULT_TRIGGER_TABLE)

    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    triggers = parse_trigger_table(raw)
    logger.info("Loaded %s triggers from %s", len(triggers), path)
    return triggers
