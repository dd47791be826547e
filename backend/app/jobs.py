"""Periodic jobs over the daily tip cache: pre-generation and cleanup."""
import logging
from typing import Optional

from .logging_config import log_error
from .pipeline import TipGenerationPipeline
from .schemas import BatchSummary
from .windows import window_for

logger = logging.getLogger(__name__)

class BatchPregenerationJob:
    """Warms the cache for every known user at the start of a window."""

    def __init__(self, pipeline: TipGenerationPipeline, users):
        self.pipeline = pipeline
        self.users = users

    def run_for_all_users(self) -> BatchSummary:
        now = self.pipeline.clock()
        window = window_for(now)
        summary = BatchSummary()
        context = {"job": "tip_pregeneration", "window_start": window.start.isoformat()}

        try:
            user_ids = self.users.all_user_ids()
        except Exception as e:
            log_error(logger, e, context)
            return summary

        for user_id in user_ids:
            summary.total += 1
            try:
                if self.pipeline.cache.lookup(user_id, now) is not None:
                    logger.debug(f"User {user_id} already has tips for current window, skipping")
                    summary.skipped_existing += 1
                    continue

                snapshot = self.pipeline.snapshots.latest_for(user_id)
                if snapshot is None:
                    logger.debug(f"User {user_id} has no test results, skipping")
                    summary.skipped_no_snapshot += 1
                    continue

                tips = self.pipeline.generate_for(snapshot, window)
                stored = self.pipeline.persist(user_id, window, tips)
                if stored.tips_by_category != tips:
                    # lost the insert race to an on-demand request
                    logger.debug(f"User {user_id} was cached concurrently, skipping")
                    summary.skipped_existing += 1
                    continue
                summary.generated += 1
            except Exception as e:
                summary.failed += 1
                log_error(logger, e, {**context, "user_id": user_id})

        logger.info(
            f"Daily tips generation summary - total: {summary.total}, generated: {summary.generated}, "
            f"skipped (existing): {summary.skipped_existing}, "
            f"skipped (no snapshot): {summary.skipped_no_snapshot}, failed: {summary.failed}",
            extra=context
        )
        return summary

class CacheCleanupJob:
    def __init__(self, pipeline: TipGenerationPipeline):
        self.pipeline = pipeline

    def run(self) -> Optional[int]:
        now = self.pipeline.clock()
        try:
            removed = self.pipeline.cache.purge_expired(now)
        except Exception as e:
            log_error(logger, e, {"job": "tip_cleanup"})
            return None
        logger.info(f"Daily tips cleanup executed at {now.isoformat()}", extra={"job": "tip_cleanup"})
        return removed
