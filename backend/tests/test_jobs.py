from datetime import timedelta
from unittest.mock import patch

from backend.app.jobs import BatchPregenerationJob, CacheCleanupJob
from backend.app.logging_config import PersistenceError
from backend.app.windows import window_for

from conftest import FakeUserDirectory, make_snapshot

class TestBatchPregenerationJob:

    def test_generates_only_for_eligible_users(self, pipeline, cache, snapshots, backend, clock):
        """A has no snapshot, B needs tips, C is already cached"""
        snapshots.snapshots.update({"B": make_snapshot("B"), "C": make_snapshot("C")})
        cache.store("C", window_for(clock()), {})

        summary = BatchPregenerationJob(pipeline, FakeUserDirectory(["A", "B", "C"])).run_for_all_users()

        assert summary.total == 3
        assert summary.generated == 1
        assert summary.skipped_no_snapshot == 1
        assert summary.skipped_existing == 1
        assert summary.failed == 0
        assert len(backend.prompts) == 1
        assert "C" not in snapshots.calls
        assert cache.lookup("B", clock()) is not None
        assert cache.lookup("A", clock()) is None

    def test_one_user_failure_does_not_abort_run(self, pipeline, cache, snapshots, clock):
        snapshots.snapshots.update({"B": make_snapshot("B"), "D": make_snapshot("D")})
        original_latest = snapshots.latest_for

        def flaky(user_id):
            if user_id == "B":
                raise ConnectionError("snapshot store unavailable")
            return original_latest(user_id)

        with patch.object(snapshots, "latest_for", side_effect=flaky):
            summary = BatchPregenerationJob(pipeline, FakeUserDirectory(["B", "D"])).run_for_all_users()

        assert summary.failed == 1
        assert summary.generated == 1
        assert cache.lookup("D", clock()) is not None

    def test_persistence_error_counts_as_failure(self, pipeline, cache, snapshots):
        with patch.object(cache, "_insert", side_effect=PersistenceError("insert", "db down")):
            summary = BatchPregenerationJob(pipeline, FakeUserDirectory(["user-1"])).run_for_all_users()

        assert summary.failed == 1
        assert summary.generated == 0

    def test_second_run_skips_everyone(self, pipeline, snapshots, backend):
        job = BatchPregenerationJob(pipeline, FakeUserDirectory(["user-1"]))
        job.run_for_all_users()
        summary = job.run_for_all_users()

        assert summary.skipped_existing == 1
        assert len(backend.prompts) == 1

    def test_user_listing_failure_returns_empty_summary(self, pipeline):
        class BrokenDirectory:
            def all_user_ids(self):
                raise ConnectionError("users table unavailable")

        summary = BatchPregenerationJob(pipeline, BrokenDirectory()).run_for_all_users()
        assert summary.total == 0

    def test_lost_insert_race_counts_as_existing(self, pipeline, cache, clock):
        original_generate = pipeline.generate_for

        def racing_generate(snapshot, window):
            tips = original_generate(snapshot, window)
            # an on-demand request lands first
            cache.store(snapshot.user_id, window, {"diet": []})
            return tips

        with patch.object(pipeline, "generate_for", side_effect=racing_generate):
            summary = BatchPregenerationJob(pipeline, FakeUserDirectory(["user-1"])).run_for_all_users()

        assert summary.generated == 0
        assert summary.skipped_existing == 1
        assert summary.failed == 0
        assert cache.lookup("user-1", clock()).tips_by_category == {"diet": []}

    def test_batch_then_on_demand_returns_same_tips(self, pipeline, backend):
        BatchPregenerationJob(pipeline, FakeUserDirectory(["user-1"])).run_for_all_users()
        pipeline.get_daily_tips("user-1")
        assert len(backend.prompts) == 1

class TestCacheCleanupJob:

    def test_removes_expired_keeps_current(self, pipeline, cache, clock):
        cache.store("u1", window_for(clock() - timedelta(days=2)), {})
        cache.store("u1", window_for(clock() - timedelta(days=1)), {})
        cache.store("u1", window_for(clock()), {})

        assert CacheCleanupJob(pipeline).run() == 2
        assert cache.lookup("u1", clock()) is not None

    def test_failure_is_logged_not_raised(self, pipeline, cache):
        with patch.object(cache, "purge_expired", side_effect=PersistenceError("delete", "db down")):
            assert CacheCleanupJob(pipeline).run() is None
