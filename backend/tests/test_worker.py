from unittest.mock import MagicMock, patch

import pytest

from backend.app.jobs import BatchPregenerationJob, CacheCleanupJob
from backend.worker.main import build_scheduler, run_worker

from conftest import FakeUserDirectory

def test_scheduler_registers_both_jobs(pipeline):
    batch = BatchPregenerationJob(pipeline, FakeUserDirectory([]))
    cleanup = CacheCleanupJob(pipeline)
    scheduler = build_scheduler(batch, cleanup)

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"daily_tips_pregeneration", "daily_tips_cleanup"}

    batch_fields = {f.name: str(f) for f in jobs["daily_tips_pregeneration"].trigger.fields}
    cleanup_fields = {f.name: str(f) for f in jobs["daily_tips_cleanup"].trigger.fields}
    assert (batch_fields["hour"], batch_fields["minute"]) == ("6", "0")
    assert (cleanup_fields["hour"], cleanup_fields["minute"]) == ("6", "5")
    assert jobs["daily_tips_pregeneration"].max_instances == 1

@pytest.mark.parametrize("command, runs_batch", [("batch", True), ("cleanup", False)])
def test_one_shot_commands(command, runs_batch):
    batch, cleanup = MagicMock(), MagicMock()
    with patch("backend.worker.main.build_jobs", return_value=(batch, cleanup)), \
         patch("backend.worker.main.setup_logging"):
        run_worker([command])

    assert batch.run_for_all_users.called is runs_batch
    assert cleanup.run.called is not runs_batch

def test_unknown_command_exits():
    with patch("backend.worker.main.build_jobs", return_value=(MagicMock(), MagicMock())), \
         patch("backend.worker.main.setup_logging"):
        with pytest.raises(SystemExit):
            run_worker(["bogus"])
