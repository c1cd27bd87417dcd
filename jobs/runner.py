# APScheduler Orchestrator
from __future__ import annotations
import logging
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from analysis.jobs.aggregate_daily_stats import (
    run_daily_account_stats,
    run_daily_toot_stats,
    run_hashtag_stats,
)
from core.logging import setup_json_logging
from core.settings import get_settings

log = logging.getLogger("runner")

def safe(fn):
    def _wrap():
        try:
            fn()
        except Exception:
            log.exception("Job failed: %s", getattr(fn, "__name__", "unknown"))
    _wrap.__name__ = getattr(fn, "__name__", "job")
    return _wrap

def build_scheduler() -> BlockingScheduler:
    """Hourly jobs; each run picks the timezones that just passed local midnight"""
    sched = BlockingScheduler(timezone=get_settings().scheduler_timezone)
    # at minute 5, after the last samples of the closed day have landed
    sched.add_job(safe(run_daily_account_stats), CronTrigger(minute="5"), id="aggregate_daily_account_stats")
    # at minute 10
    sched.add_job(safe(run_daily_toot_stats), CronTrigger(minute="10"), id="aggregate_daily_toot_stats")
    # at minute 15
    sched.add_job(safe(run_hashtag_stats), CronTrigger(minute="15"), id="aggregate_hashtag_stats")
    return sched

if __name__ == "__main__":
    setup_json_logging()
    sched = build_scheduler()
    log.info("Scheduler starting...")
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler stopped.")
