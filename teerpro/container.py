"""Wires the long-lived service objects together.

Built once by the app factory (or a script) and shut down at exit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from flask import current_app

from teerpro.config import parse_source_urls
from teerpro.db import Database
from teerpro.services.ingestion_service import IngestionCoordinator, IngestResult
from teerpro.services.publisher import Publisher
from teerpro.services.query_service import QueryService
from teerpro.services.scheduler import Trigger, TriggerScheduler
from teerpro.services.settlement_service import SettlementEngine
from teerpro.sources.base import SourceAdapter
from teerpro.sources.meghalaya import MeghalayaTeerSource, build_http_session
from teerpro.triggers import load_triggers

logger = logging.getLogger(__name__)


@dataclass
class Services:
    database: Database
    publisher: Publisher
    settlement: SettlementEngine
    ingestion: IngestionCoordinator
    queries: QueryService
    scheduler: TriggerScheduler

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.settlement.shutdown()
        self.database.close()


def get_services() -> Services:
    """Services of the current Flask app."""

    return current_app.extensions["services"]


def scheduled_ingest(ingestion: IngestionCoordinator, draw_date_timezone: str) -> Callable[[Trigger], IngestResult]:
    """The scheduler job: ingest the trigger's round for the current draw date."""

    tz = ZoneInfo(draw_date_timezone)

    def _job(trigger: Trigger) -> IngestResult:
        draw_date = datetime.now(tz).date()
        result = ingestion.ingest(trigger.game, trigger.round, draw_date)
        logger.info("Trigger %s for %s: %s", trigger.name, draw_date, result.outcome.value)
        return result

    return _job


def build_source(config: Mapping[str, Any]) -> MeghalayaTeerSource:
    return MeghalayaTeerSource(
        parse_source_urls(config.get("SOURCE_URLS")),
        build_http_session(retries=int(config.get("SOURCE_RETRIES", 2))),
        timeout_seconds=float(config.get("SOURCE_TIMEOUT_SECONDS", 10.0)),
        fr_selector=str(config.get("SOURCE_FR_SELECTOR", ".fr-result")),
        sr_selector=str(config.get("SOURCE_SR_SELECTOR", ".sr-result")),
    )


def build_services(
    config: Mapping[str, Any],
    database: Database,
    source: SourceAdapter | None = None,
    publisher: Publisher | None = None,
) -> Services:
    publisher = publisher or Publisher()
    settlement = SettlementEngine(
        database,
        multiplier=int(config.get("PAYOUT_MULTIPLIER", 80)),
        max_workers=int(config.get("SETTLEMENT_WORKERS", 4)),
    )
    ingestion = IngestionCoordinator(database, source or build_source(config), settlement, publisher)
    draw_tz = str(config.get("DRAW_DATE_TIMEZONE", "UTC"))
    scheduler = TriggerScheduler(
        load_triggers(config.get("TRIGGERS_FILE")),
        scheduled_ingest(ingestion, draw_tz),
    )
    return Services(
        database=database,
        publisher=publisher,
        settlement=settlement,
        ingestion=ingestion,
        queries=QueryService(database, draw_date_timezone=draw_tz),
        scheduler=scheduler,
    )
