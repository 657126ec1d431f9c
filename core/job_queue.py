#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Job Queue System - SQLite-based work queue with priority scheduling

A lightweight, file-based queue that feeds translation jobs to workers.
No external dependencies like Redis or Celery required.

Queue entries live in their own table (``queue_entries``) and only carry
scheduling bookkeeping: attempts, backoff, last error. Job state itself is
owned by the JobStore; the queue forwards progress and results to it.
"""

import sqlite3
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, TYPE_CHECKING

from config.constants import (
    JOB_MAX_ATTEMPTS,
    JOB_BACKOFF_BASE_SECONDS,
    COMPLETED_RETENTION_SECONDS,
    FAILED_RETENTION_SECONDS,
)
from config.logging_config import get_logger

if TYPE_CHECKING:
    from .job_store import JobStore

logger = get_logger(__name__)


class EntryState(str, Enum):
    """Queue entry states"""
    WAITING = "waiting"          # Ready to be picked up
    ACTIVE = "active"            # Claimed by a worker
    DELAYED = "delayed"          # Waiting for its backoff to expire
    COMPLETED = "completed"      # Run finished (success or cancel)
    FAILED = "failed"            # Gave up


class JobPriority(int, Enum):
    """Job priority levels (higher number = higher priority)"""
    LOW = 1
    NORMAL = 5
    HIGH = 10
    URGENT = 20
    CRITICAL = 50


@dataclass
class QueueAck:
    """Returned by enqueue"""
    entry_id: str
    job_id: str
    status: str = "queued"


@dataclass
class QueueEntry:
    """A claimed unit of work"""
    entry_id: str
    job_id: str
    priority: int
    state: str
    attempts: int
    max_attempts: int
    available_at: float
    last_error: Optional[str] = None
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def attempts_left(self) -> int:
        return max(0, self.max_attempts - self.attempts)


class JobQueue:
    """
    SQLite-based job queue with priority scheduling

    The queue holds one connection between open() and close(). Workers
    receive the queue instance; nothing reaches for a global connection.

    Example:
        >>> with JobQueue(db_path, store=store) as queue:
        ...     ack = queue.enqueue(job.job_id)
        ...     entry = queue.dequeue()
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        store: Optional["JobStore"] = None,
        backoff_base: float = JOB_BACKOFF_BASE_SECONDS,
        max_attempts: int = JOB_MAX_ATTEMPTS,
    ):
        """
        Initialize job queue

        Args:
            db_path: Path to SQLite database (default: settings.db_path)
            store: Job record store that progress and results are reported to
            backoff_base: First retry delay in seconds
            max_attempts: Default attempt cap for new entries
        """
        if db_path is None:
            from config.settings import settings
            db_path = settings.db_path

        self.db_path = Path(db_path)
        self.store = store
        self.backoff_base = backoff_base
        self.max_attempts = max_attempts
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> "JobQueue":
        """Open the database connection and create the schema"""
        if self._conn is not None:
            return self

        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        # Autocommit mode; dequeue manages its own transaction
        self._conn = sqlite3.connect(
            str(self.db_path),
            timeout=30,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._init_db()
        logger.info(f"Job queue opened: {self.db_path}")
        return self

    def close(self):
        """Close the database connection"""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Job queue closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> "JobQueue":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Job queue is not open")
        return self._conn

    def _init_db(self):
        """Initialize database schema"""
        conn = self._db()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS queue_entries (
                entry_id TEXT PRIMARY KEY,
                job_id TEXT NOT NULL,
                priority INTEGER NOT NULL DEFAULT 5,
                state TEXT NOT NULL,
                attempts INTEGER NOT NULL DEFAULT 0,
                max_attempts INTEGER NOT NULL DEFAULT 3,
                available_at REAL NOT NULL,
                last_error TEXT,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
        """)

        # Indexes for performance
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_queue_ready
            ON queue_entries(state, priority DESC, created_at)
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_queue_job
            ON queue_entries(job_id)
        """)

    def _row_to_entry(self, row: sqlite3.Row) -> QueueEntry:
        return QueueEntry(**dict(row))

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(
        self,
        job_id: str,
        priority: int = JobPriority.NORMAL,
        max_attempts: Optional[int] = None,
    ) -> QueueAck:
        """
        Add a job to the queue

        Args:
            job_id: Job record to process
            priority: Job priority level
            max_attempts: Attempt cap (default: queue default)

        Returns:
            QueueAck with the new entry id
        """
        now = time.time()
        entry_id = uuid.uuid4().hex
        with self._lock:
            self._db().execute("""
                INSERT INTO queue_entries (
                    entry_id, job_id, priority, state, attempts, max_attempts,
                    available_at, last_error, created_at, updated_at
                ) VALUES (?, ?, ?, ?, 0, ?, ?, NULL, ?, ?)
            """, (
                entry_id, job_id, int(priority), EntryState.WAITING.value,
                max_attempts or self.max_attempts, now, now, now,
            ))

        logger.debug(f"Job {job_id} enqueued as {entry_id} (priority {int(priority)})")
        return QueueAck(entry_id=entry_id, job_id=job_id)

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def dequeue(self) -> Optional[QueueEntry]:
        """
        Claim the next entry to process based on priority and FIFO

        The select and the claim run in one IMMEDIATE transaction, so two
        workers (or two processes sharing the file) never get the same entry.

        Returns:
            The claimed entry (state active, attempts incremented) or None
        """
        now = time.time()
        with self._lock:
            conn = self._db()
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("""
                    SELECT * FROM queue_entries
                    WHERE state = ?
                       OR (state = ? AND available_at <= ?)
                    ORDER BY priority DESC, created_at ASC
                    LIMIT 1
                """, (EntryState.WAITING.value, EntryState.DELAYED.value, now)).fetchone()

                if row is None:
                    conn.execute("COMMIT")
                    return None

                conn.execute("""
                    UPDATE queue_entries
                    SET state = ?, attempts = attempts + 1, updated_at = ?
                    WHERE entry_id = ?
                """, (EntryState.ACTIVE.value, now, row["entry_id"]))
                claimed = conn.execute(
                    "SELECT * FROM queue_entries WHERE entry_id = ?", (row["entry_id"],)
                ).fetchone()
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

        return self._row_to_entry(claimed)

    def _set_state(self, entry_id: str, state: EntryState, error: Optional[str] = None,
                   available_at: Optional[float] = None) -> bool:
        now = time.time()
        with self._lock:
            cursor = self._db().execute("""
                UPDATE queue_entries
                SET state = ?,
                    last_error = COALESCE(?, last_error),
                    available_at = COALESCE(?, available_at),
                    updated_at = ?
                WHERE entry_id = ?
            """, (state.value, error, available_at, now, entry_id))
            return cursor.rowcount == 1

    def complete(self, entry_id: str) -> bool:
        """Mark an entry as finished"""
        return self._set_state(entry_id, EntryState.COMPLETED)

    def fail(self, entry_id: str, error: str) -> bool:
        """Give up on an entry"""
        return self._set_state(entry_id, EntryState.FAILED, error=error)

    def retry(self, entry_id: str, delay: float, error: Optional[str] = None) -> bool:
        """Put an entry back, available again after delay seconds"""
        return self._set_state(
            entry_id, EntryState.DELAYED, error=error,
            available_at=time.time() + max(0.0, delay),
        )

    def release(self, entry_id: str, error: Optional[str] = None) -> bool:
        """
        Hand an active entry back untouched by its run

        The attempt counted at dequeue is refunded and the entry is ready
        again at once.
        """
        now = time.time()
        with self._lock:
            cursor = self._db().execute("""
                UPDATE queue_entries
                SET state = ?,
                    attempts = MAX(attempts - 1, 0),
                    last_error = COALESCE(?, last_error),
                    available_at = ?,
                    updated_at = ?
                WHERE entry_id = ? AND state = ?
            """, (EntryState.WAITING.value, error, now, now, entry_id, EntryState.ACTIVE.value))
            return cursor.rowcount == 1

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff: base, 2*base, 4*base, ..."""
        return self.backoff_base * (2 ** max(0, attempt - 1))

    def remove_job(self, job_id: str) -> int:
        """Delete every entry for a job"""
        with self._lock:
            cursor = self._db().execute(
                "DELETE FROM queue_entries WHERE job_id = ?", (job_id,)
            )
            return cursor.rowcount

    def get_entries(self, job_id: str) -> list:
        """All entries for a job, oldest first"""
        with self._lock:
            rows = self._db().execute(
                "SELECT * FROM queue_entries WHERE job_id = ? ORDER BY created_at",
                (job_id,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    # ------------------------------------------------------------------
    # Reporting (delegates to the job store)
    # ------------------------------------------------------------------

    def _require_store(self) -> "JobStore":
        if self.store is None:
            raise RuntimeError("Job queue has no job store attached")
        return self.store

    def report_progress(self, job_id: str, processed: int, total: int) -> bool:
        """Forward a progress commit to the job store"""
        return self._require_store().record_progress(job_id, processed, total)

    def report_result(
        self,
        job_id: str,
        output_file: Optional[str] = None,
        failure_reason: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """Forward a terminal result (output or failure) to the job store"""
        store = self._require_store()
        if output_file is not None:
            return store.mark_completed(job_id, output_file)
        return store.mark_failed(
            job_id, failure_reason or "InternalError", error_message or "",
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def prune(
        self,
        completed_retention: float = COMPLETED_RETENTION_SECONDS,
        failed_retention: float = FAILED_RETENTION_SECONDS,
    ) -> int:
        """
        Delete finished queue entries past their retention window

        Only queue bookkeeping is removed; job records are untouched.

        Returns:
            Number of entries deleted
        """
        now = time.time()
        with self._lock:
            cursor = self._db().execute("""
                DELETE FROM queue_entries
                WHERE (state = ? AND updated_at < ?)
                   OR (state = ? AND updated_at < ?)
            """, (
                EntryState.COMPLETED.value, now - completed_retention,
                EntryState.FAILED.value, now - failed_retention,
            ))
            deleted = cursor.rowcount

        if deleted:
            logger.info(f"Pruned {deleted} finished queue entries")
        return deleted

    def get_queue_stats(self) -> Dict[str, int]:
        """Get queue statistics"""
        stats = {state.value: 0 for state in EntryState}
        with self._lock:
            for row in self._db().execute(
                "SELECT state, COUNT(*) FROM queue_entries GROUP BY state"
            ):
                stats[row[0]] = row[1]

        stats['total'] = sum(stats.values())
        return stats

    def active_count(self) -> int:
        return self.get_queue_stats()[EntryState.ACTIVE.value]
