"""WSGI entrypoint for Gunicorn.

Usage:
  gunicorn -w 2 -b 0.0.0.0:3000 wsgi:app

With SCHEDULER_ENABLED=true every worker runs its own triggers; declarations
stay exactly-once, but prefer scripts/run_scheduler.py as a single
dedicated process.
"""

from teerpro import create_app

app = create_app()
