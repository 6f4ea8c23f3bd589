"""APScheduler setup for periodic outage reconciliation."""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from outage_tracker.config import settings
from outage_tracker.errors import CycleAbortedError, ConfigurationError

logger = logging.getLogger(__name__)

_scheduler: BackgroundScheduler | None = None


def _run_reconcile():
    from outage_tracker.services.reconciliation import run_configured_cycle
    try:
        run_configured_cycle()
    except CycleAbortedError as e:
        logger.error("Reconciliation job aborted (%s): %s", e.kind, e.detail)
    except ConfigurationError as e:
        logger.error("Reconciliation job misconfigured: %s", e)


def start_scheduler():
    global _scheduler
    _scheduler = BackgroundScheduler()

    _scheduler.add_job(
        _run_reconcile,
        "interval",
        minutes=settings.poll_interval_minutes,
        id="outage_reconcile",
        name="Outage reconciliation",
        max_instances=1,
    )

    _scheduler.start()
    logger.info("Scheduler started: reconciling outages every %d min", settings.poll_interval_minutes)


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
