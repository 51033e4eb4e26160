"""Run the result triggers as a dedicated process.

Usage:
  python scripts/run_scheduler.py [--triggers triggers.yaml]

Stops cleanly on SIGINT / SIGTERM.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import signal
import sys
import threading
from collections.abc import Sequence

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from teerpro import create_app
from teerpro.container import get_services


logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the scheduled result checks")
    parser.add_argument("--triggers", dest="triggers_file", type=str, default=None, help="YAML trigger table")
    args = parser.parse_args(argv)

    overrides: dict[str, object] = {"SCHEDULER_ENABLED": True}
    if args.triggers_file:
        overrides["TRIGGERS_FILE"] = args.triggers_file

    app = create_app(overrides)
    stop = threading.Event()

    def _on_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %s, stopping", signum)
        stop.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    with app.app_context():
        services = get_services()
        for trigger in services.scheduler.triggers:
            logger.info("Trigger %s at %s %s", trigger.name, trigger.at.strftime("%H:%M"), trigger.timezone)

        stop.wait()
        services.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
