"""
Background scheduler for cache housekeeping.
Uses APScheduler to run periodic tasks within the Flask app context.

Jobs:
  1. purge_expired_cache – every hour, delete cache entries past their stale window
"""

import atexit
import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from petcheck.services.container import get_services

logger = logging.getLogger("petcheck.scheduler")

_scheduler = None


def init_scheduler(app: Flask) -> None:
    """
    Initialize and start the background scheduler.
    Must be called after the Flask app is fully configured.
    """
    global _scheduler

    # Only run scheduler in the main process (not in reloader subprocess)
    if os.environ.get("WERKZEUG_RUN_MAIN") != "true" and app.config.get("DEBUG"):
        logger.info("Scheduler deferred to reloader child process.")
        return

    _scheduler = BackgroundScheduler(daemon=True)
    _scheduler.add_job(
        func=_job_purge_cache,
        trigger=IntervalTrigger(hours=1),
        id="purge_expired_cache",
        name="Delete expired cache entries",
        replace_existing=True,
        kwargs={"app": app},
        misfire_grace_time=600,
    )
    _scheduler.start()
    logger.info("Background scheduler started with 1 recurring job.")

    atexit.register(_shutdown_scheduler)


def _shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Background scheduler shut down.")


def _job_purge_cache(app: Flask) -> None:
    """Scheduled job: drop expired cache rows."""
    with app.app_context():
        try:
            removed = get_services().cache.purge_expired()
            logger.info("Cache purge complete: removed=%d", removed)
        except Exception as exc:
            logger.error("Cache purge job failed: %s", exc, exc_info=True)
