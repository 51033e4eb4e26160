"""Operator tool: one ingestion attempt, a manual result, or a re-settlement.

Usage:
  python scripts/ingest_once.py shillong FR                  # poll the source now
  python scripts/ingest_once.py shillong FR --number 42      # manual entry
  python scripts/ingest_once.py shillong FR --resettle       # retry failed wagers
Options:
  --date 2024-01-01   (default: today in DRAW_DATE_TIMEZONE)
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from teerpro import create_app
from teerpro.container import get_services
from teerpro.errors import AppError
from teerpro.games import GAMES


logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one result ingestion for a game/round")
    parser.add_argument("game", choices=GAMES)
    parser.add_argument("round", choices=("FR", "SR"))
    parser.add_argument("--date", dest="draw_date", type=str, default=None)
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--number", type=str, default=None, help="Declare this number manually")
    group.add_argument("--resettle", action="store_true", help="Re-run settlement for a declared round")
    args = parser.parse_args(argv)

    app = create_app({"SCHEDULER_ENABLED": False})
    draw_date = args.draw_date or datetime.now(ZoneInfo(app.config["DRAW_DATE_TIMEZONE"])).date().isoformat()

    with app.app_context():
        services = get_services()
        try:
            if args.resettle:
                report = services.ingestion.resettle(args.game, args.round, draw_date)
                if report is None:
                    logger.error("%s %s %s is not declared yet", args.game, args.round, draw_date)
                    return 1
                logger.info(
                    "Re-settled: %s won, %s lost, %s failed",
                    len(report.winners),
                    len(report.losers),
                    len(report.failures),
                )
                return 2 if report.failures else 0

            if args.number is not None:
                result = services.ingestion.declare_manual(args.game, args.round, draw_date, args.number)
            else:
                result = services.ingestion.ingest(args.game, args.round, draw_date)
        except AppError as exc:
            logger.error("%s: %s (%s)", exc.code, exc.message, exc.details)
            return 1
        finally:
            services.shutdown()

    logger.info("%s %s %s: %s %s", args.game, args.round, draw_date, result.outcome.value, result.number or "")
    if result.settlement is not None and result.settlement.failures:
        logger.error("Failed wagers: %s", ", ".join(s.wager_id for s in result.settlement.failures))
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
