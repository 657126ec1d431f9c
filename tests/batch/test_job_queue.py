"""
Unit tests for core/job_queue.py - SQLite work queue.
"""
import time
import pytest

from core.job_queue import JobQueue, JobPriority, EntryState, QueueAck


class TestQueueLifecycle:

    def test_requires_open(self, test_settings):
        queue = JobQueue(test_settings.db_path)
        with pytest.raises(RuntimeError):
            queue.enqueue("job-1")

    def test_context_manager(self, test_settings):
        with JobQueue(test_settings.db_path) as queue:
            assert queue.is_open
            queue.enqueue("job-1")
        assert not queue.is_open

    def test_entries_survive_reopen(self, test_settings):
        with JobQueue(test_settings.db_path) as queue:
            queue.enqueue("job-1")
        with JobQueue(test_settings.db_path) as queue:
            assert queue.dequeue().job_id == "job-1"


class TestEnqueueDequeue:

    def test_enqueue_ack(self, job_queue):
        ack = job_queue.enqueue("job-1")
        assert isinstance(ack, QueueAck)
        assert ack.job_id == "job-1"
        assert ack.status == "queued"
        assert job_queue.get_queue_stats()["waiting"] == 1

    def test_dequeue_empty(self, job_queue):
        assert job_queue.dequeue() is None

    def test_dequeue_claims_entry(self, job_queue):
        job_queue.enqueue("job-1", max_attempts=4)
        entry = job_queue.dequeue()
        assert entry.job_id == "job-1"
        assert entry.state == EntryState.ACTIVE.value
        assert entry.attempts == 1
        assert entry.max_attempts == 4
        assert entry.attempts_left == 3

        # Claimed entries are not handed out twice
        assert job_queue.dequeue() is None
        assert job_queue.active_count() == 1

    def test_priority_then_fifo(self, job_queue):
        job_queue.enqueue("normal-1", JobPriority.NORMAL)
        time.sleep(0.01)
        job_queue.enqueue("urgent", JobPriority.URGENT)
        time.sleep(0.01)
        job_queue.enqueue("normal-2", JobPriority.NORMAL)
        time.sleep(0.01)
        job_queue.enqueue("low", JobPriority.LOW)

        order = [job_queue.dequeue().job_id for _ in range(4)]
        assert order == ["urgent", "normal-1", "normal-2", "low"]

    def test_two_queues_never_share_an_entry(self, test_settings, job_queue):
        job_queue.enqueue("job-1")
        with JobQueue(test_settings.db_path) as other:
            claims = [job_queue.dequeue(), other.dequeue()]
        assert sum(entry is not None for entry in claims) == 1


class TestSettlement:

    def test_complete_and_fail(self, job_queue):
        job_queue.enqueue("a")
        job_queue.enqueue("b")
        first, second = job_queue.dequeue(), job_queue.dequeue()
        job_queue.complete(first.entry_id)
        job_queue.fail(second.entry_id, "ProviderAuthFailed: bad key")

        stats = job_queue.get_queue_stats()
        assert stats["completed"] == 1
        assert stats["failed"] == 1
        assert stats["total"] == 2
        assert job_queue.get_entries("b")[0].last_error == "ProviderAuthFailed: bad key"

    def test_retry_waits_for_delay(self, job_queue):
        job_queue.enqueue("job-1")
        entry = job_queue.dequeue()
        job_queue.retry(entry.entry_id, delay=60, error="ProviderUnavailable")

        assert job_queue.dequeue() is None
        assert job_queue.get_queue_stats()["delayed"] == 1

    def test_retry_without_delay_is_ready(self, job_queue):
        job_queue.enqueue("job-1")
        entry = job_queue.dequeue()
        job_queue.retry(entry.entry_id, delay=0)

        again = job_queue.dequeue()
        assert again.entry_id == entry.entry_id
        assert again.attempts == 2

    def test_release_refunds_attempt(self, job_queue):
        job_queue.enqueue("job-1")
        entry = job_queue.dequeue()

        assert job_queue.release(entry.entry_id, "Worker stopped")
        released = job_queue.get_entries("job-1")[0]
        assert released.state == "waiting"
        assert released.attempts == 0
        assert released.last_error == "Worker stopped"

        assert job_queue.dequeue().attempts == 1

    def test_release_only_active_entries(self, job_queue):
        job_queue.enqueue("job-1")
        entry = job_queue.dequeue()
        job_queue.complete(entry.entry_id)

        assert job_queue.release(entry.entry_id) is False
        assert job_queue.get_entries("job-1")[0].state == "completed"

    @pytest.mark.parametrize("attempt,expected", [(1, 1.0), (2, 2.0), (3, 4.0)])
    def test_backoff_delay(self, test_settings, attempt, expected):
        queue = JobQueue(test_settings.db_path, backoff_base=1.0)
        assert queue.backoff_delay(attempt) == expected

    def test_remove_job(self, job_queue):
        job_queue.enqueue("job-1")
        job_queue.enqueue("job-2")
        assert job_queue.remove_job("job-1") == 1
        assert job_queue.get_entries("job-1") == []
        assert job_queue.get_queue_stats()["total"] == 1


class TestPrune:

    def test_prune_respects_retention(self, job_queue, job_store):
        for job_id in ("done", "broken", "waiting"):
            job_queue.enqueue(job_id)
        done, broken = job_queue.dequeue(), job_queue.dequeue()
        job_queue.complete(done.entry_id)
        job_queue.fail(broken.entry_id, "x")

        # Nothing is old enough yet
        assert job_queue.prune(completed_retention=3600, failed_retention=3600) == 0

        time.sleep(0.02)
        assert job_queue.prune(completed_retention=0.01, failed_retention=3600) == 1
        assert job_queue.prune(completed_retention=0.01, failed_retention=0.01) == 1
        assert job_queue.get_queue_stats()["waiting"] == 1

    def test_prune_never_touches_job_records(self, job_queue, job_store):
        job = job_store.create("u", "/tmp/a.txt", "en", "de", "deepl", "txt")
        job_queue.enqueue(job.job_id)
        entry = job_queue.dequeue()
        job_queue.complete(entry.entry_id)

        time.sleep(0.02)
        assert job_queue.prune(completed_retention=0.01) == 1
        assert job_store.get(job.job_id) is not None


class TestReporting:

    def test_report_progress_delegates_to_store(self, job_queue, job_store):
        job = job_store.create("u", "/tmp/a.txt", "en", "de", "deepl", "txt")
        job_store.mark_processing(job.job_id)
        assert job_queue.report_progress(job.job_id, 1, 2)
        assert job_store.get(job.job_id).progress == 50

    def test_report_result(self, job_queue, job_store):
        ok = job_store.create("u", "/tmp/a.txt", "en", "de", "deepl", "txt")
        bad = job_store.create("u", "/tmp/b.txt", "en", "de", "deepl", "txt")
        job_store.mark_processing(ok.job_id)

        assert job_queue.report_result(ok.job_id, output_file="/out/a_de.txt")
        assert job_queue.report_result(bad.job_id, failure_reason="ExtractionFailed",
                                       error_message="unreadable")
        assert job_store.get(ok.job_id).status == "completed"
        assert job_store.get(bad.job_id).failure_reason == "ExtractionFailed"

    def test_reporting_requires_store(self, test_settings):
        with JobQueue(test_settings.db_path) as queue:
            with pytest.raises(RuntimeError):
                queue.report_progress("x", 1, 1)
