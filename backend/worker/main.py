"""Scheduled daily-tip jobs.

    python -m backend.worker.main            # run the scheduler
    python -m backend.worker.main batch      # pre-generate once and exit
    python -m backend.worker.main cleanup    # purge expired entries once and exit
"""
import logging
import sys
from zoneinfo import ZoneInfo

import sentry_sdk
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from backend.app import config
from backend.app.jobs import BatchPregenerationJob, CacheCleanupJob
from backend.app.logging_config import setup_logging
from backend.app.pipeline import build_pipeline
from backend.app.sources import SupabaseUserDirectory

logger = logging.getLogger(__name__)

def build_jobs():
    pipeline = build_pipeline()
    return BatchPregenerationJob(pipeline, SupabaseUserDirectory()), CacheCleanupJob(pipeline)

def build_scheduler(batch: BatchPregenerationJob, cleanup: CacheCleanupJob) -> BlockingScheduler:
    tz = ZoneInfo(config.SERVICE_TIMEZONE)
    scheduler = BlockingScheduler(timezone=tz)
    job_defaults = {"max_instances": 1, "coalesce": True, "misfire_grace_time": 3600}

    scheduler.add_job(
        batch.run_for_all_users,
        CronTrigger.from_crontab(config.TIP_BATCH_CRON, timezone=tz),
        id="daily_tips_pregeneration",
        **job_defaults
    )
    scheduler.add_job(
        cleanup.run,
        CronTrigger.from_crontab(config.TIP_CLEANUP_CRON, timezone=tz),
        id="daily_tips_cleanup",
        **job_defaults
    )

    def on_error(event):
        logger.error(f"Scheduled job {event.job_id} raised: {event.exception}", extra={"job": event.job_id})

    scheduler.add_listener(on_error, EVENT_JOB_ERROR)
    return scheduler

def run_worker(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    setup_logging()
    sentry_sdk.init(dsn=config.SENTRY_DSN, traces_sample_rate=0.2)

    batch, cleanup = build_jobs()

    if argv and argv[0] == "batch":
        batch.run_for_all_users()
        return
    if argv and argv[0] == "cleanup":
        cleanup.run()
        return
    if argv:
        raise SystemExit(f"Unknown command: {argv[0]} (expected 'batch' or 'cleanup')")

    scheduler = build_scheduler(batch, cleanup)
    logger.info(
        f"Worker started. Pre-generation '{config.TIP_BATCH_CRON}', cleanup '{config.TIP_CLEANUP_CRON}' "
        f"({config.SERVICE_TIMEZONE})"
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Worker stopped")

if __name__ == "__main__":
    run_worker()
