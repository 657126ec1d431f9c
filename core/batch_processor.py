#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Batch Processor - Process translation jobs from queue

Runs a fixed pool of asyncio workers. Each worker claims one queue entry,
runs the orchestrator for that job to completion, applies the retry policy
to the outcome, then claims the next entry.

Retry policy:
- Permanent error (bad request, auth, unsupported format, ...): job failed
- Retryable or unclassified error: retried with exponential backoff until
  the entry runs out of attempts, then job failed with that reason
- Canceled: entry completed, job left as canceled
"""

import asyncio
from typing import List, Optional

from config.logging_config import get_logger

from .errors import (
    JobCanceled,
    ProviderUnavailable,
    describe_error,
    is_retryable,
)
from .job_queue import JobQueue, QueueEntry
from .job_store import JobStore, JobStatus
from .orchestrator import TranslationOrchestrator

logger = get_logger(__name__)


class BatchProcessor:
    """Process translation jobs from queue with a bounded worker pool"""

    def __init__(
        self,
        queue: JobQueue,
        store: JobStore,
        orchestrator: TranslationOrchestrator,
        max_workers: int = 1,
        poll_interval: float = 2.0,
        job_timeout: Optional[float] = None,
    ):
        """
        Initialize batch processor

        Args:
            queue: Open job queue
            store: Job record store
            orchestrator: Runs one job per call
            max_workers: Number of concurrent jobs
            poll_interval: Sleep between empty dequeues (seconds)
            job_timeout: Bound on a whole orchestrator run (None = unbounded)
        """
        self.queue = queue
        self.store = store
        self.orchestrator = orchestrator
        self.max_workers = max(1, max_workers)
        self.poll_interval = poll_interval
        self.job_timeout = job_timeout
        self.is_running = False
        self.current_jobs: List[str] = []
        self.background_tasks: List[asyncio.Task] = []

    # =========================================================================
    # Single entry
    # =========================================================================

    async def process_entry(self, entry: QueueEntry) -> str:
        """
        Run the job behind a claimed entry and settle the entry

        Returns:
            Final job status as seen by this worker
        """
        job = self.store.get(entry.job_id)
        if job is None:
            logger.warning(f"Queue entry {entry.entry_id} points at missing job {entry.job_id}")
            self.queue.fail(entry.entry_id, "Job record not found")
            return JobStatus.FAILED.value

        logger.info(f"Processing job {job.job_id} (attempt {entry.attempts}/{entry.max_attempts})")
        self.current_jobs.append(job.job_id)
        try:
            await asyncio.wait_for(self.orchestrator.run(job), timeout=self.job_timeout)

        except JobCanceled:
            logger.info(f"Job {job.job_id} canceled, stopping")
            self.queue.complete(entry.entry_id)
            return JobStatus.CANCELED.value

        except asyncio.TimeoutError:
            error = ProviderUnavailable(f"Job exceeded {self.job_timeout:g}s")
            return self._handle_failure(entry, error)

        except asyncio.CancelledError:
            # Worker shutdown: the interrupted run does not count as an attempt
            self.queue.release(entry.entry_id, "Worker stopped")
            raise

        except Exception as e:
            return self._handle_failure(entry, e)

        finally:
            self.current_jobs.remove(job.job_id)

        self.queue.complete(entry.entry_id)
        return JobStatus.COMPLETED.value

    def _handle_failure(self, entry: QueueEntry, error: BaseException) -> str:
        """Apply the retry policy to a failed run"""
        reason, message = describe_error(error)

        if reason == "InternalError":
            logger.error(f"Job {entry.job_id} raised an unclassified error", exc_info=error)

        if is_retryable(error) and entry.attempts < entry.max_attempts:
            delay = self.queue.backoff_delay(entry.attempts)
            logger.warning(f"Job {entry.job_id} attempt {entry.attempts} failed [{reason}]: "
                           f"{message}; retrying in {delay:g}s")
            self.queue.retry(entry.entry_id, delay, f"{reason}: {message}")
            return JobStatus.PROCESSING.value

        logger.error(f"Job {entry.job_id} failed [{reason}]: {message}")
        self.queue.report_result(entry.job_id, failure_reason=reason, error_message=message)
        self.queue.fail(entry.entry_id, f"{reason}: {message}")
        return JobStatus.FAILED.value

    # =========================================================================
    # Worker pool
    # =========================================================================

    async def _worker(self, worker_id: int, continuous: bool):
        logger.debug(f"Worker {worker_id} started")
        while self.is_running:
            entry = self.queue.dequeue()
            if entry is None:
                if not continuous and not self._has_pending_work():
                    break
                await asyncio.sleep(self.poll_interval)
                continue
            await self.process_entry(entry)
        logger.debug(f"Worker {worker_id} stopped")

    def _has_pending_work(self) -> bool:
        """Entries still waiting, backing off or being run by another worker"""
        stats = self.queue.get_queue_stats()
        return bool(stats["waiting"] or stats["delayed"] or stats["active"])

    async def start(self, continuous: bool = True):
        """
        Start processing jobs from queue

        Args:
            continuous: If True, keep processing until stopped; otherwise
                return once the queue is drained
        """
        self.is_running = True
        logger.info(f"Batch Processor started ({self.max_workers} workers)")

        self.background_tasks = [
            asyncio.create_task(self._worker(i, continuous))
            for i in range(self.max_workers)
        ]
        try:
            await asyncio.gather(*self.background_tasks)
        except asyncio.CancelledError:
            logger.info("Batch Processor cancelled")
        finally:
            self.is_running = False
            self.background_tasks = []
            logger.info("Batch Processor stopped")

    async def run_until_idle(self):
        """Process until nothing is waiting, delayed or active"""
        await self.start(continuous=False)

    def stop(self):
        """Stop processing jobs and cancel all worker tasks"""
        self.is_running = False

        logger.info(f"Cancelling {len(self.background_tasks)} worker tasks...")
        for task in self.background_tasks:
            if not task.done():
                task.cancel()

    def get_status(self) -> dict:
        """Get processor status"""
        return {
            "is_running": self.is_running,
            "current_jobs": list(self.current_jobs),
            "max_workers": self.max_workers,
            "queue_stats": self.queue.get_queue_stats(),
        }


async def run_batch_processor(
    queue: JobQueue,
    store: JobStore,
    settings=None,
    continuous: bool = True,
):
    """
    Run a batch processor configured from settings

    Args:
        queue: Open job queue
        store: Job record store
        settings: Settings object (default: global settings)
        continuous: Keep polling after the queue drains
    """
    if settings is None:
        from config.settings import settings

    orchestrator = TranslationOrchestrator(
        store,
        chunk_size=settings.chunk_size,
        provider_timeout=settings.provider_timeout,
        output_dir=settings.output_dir,
    )
    processor = BatchProcessor(
        queue,
        store,
        orchestrator,
        max_workers=settings.max_workers,
        poll_interval=settings.poll_interval,
        job_timeout=settings.job_timeout,
    )

    try:
        await processor.start(continuous=continuous)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        processor.stop()
    return processor
