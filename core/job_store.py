#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Job Record Store - SQLite persistence for translation jobs.

The store is the single source of truth for job state. Every status change
is a conditional UPDATE (``WHERE status IN (...)``) so the state machine only
moves forward:

    queued -> processing -> completed | failed | canceled
    queued -> failed | canceled

A rejected transition returns False instead of raising; the caller decides
what that means (the orchestrator treats a rejected progress commit as a
cancellation).
"""

import sqlite3
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any

from config.logging_config import get_logger

logger = get_logger(__name__)


class JobStatus(str, Enum):
    """Job status states"""
    QUEUED = "queued"            # Accepted, waiting for a worker
    PROCESSING = "processing"    # A worker owns the job
    COMPLETED = "completed"      # Output file written
    FAILED = "failed"            # Unrecoverable error, no output
    CANCELED = "canceled"        # Canceled by request


ACTIVE_STATUSES = (JobStatus.QUEUED, JobStatus.PROCESSING)
TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELED)


def compute_progress(processed: int, total: int) -> int:
    """Percentage of processed chunks, rounded half-up; 0 when total is unknown"""
    if total <= 0:
        return 0
    processed = max(0, min(processed, total))
    return (processed * 200 + total) // (2 * total)


@dataclass
class TranslationJob:
    """A translation job record"""

    # Identification
    job_id: str
    owner_id: str

    # Translation config
    source_lang: str
    target_lang: str
    provider: str

    # Input/Output
    source_file: str
    file_format: str
    original_file_name: Optional[str] = None
    output_file: Optional[str] = None

    # Status & progress
    status: str = JobStatus.QUEUED
    progress: int = 0
    total_chunks: int = 0
    processed_chunks: int = 0
    priority: int = 5

    # Failure details
    failure_reason: Optional[str] = None
    error_message: Optional[str] = None

    # Timestamps
    created_at: float = 0.0
    updated_at: float = 0.0
    completed_at: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        if isinstance(data.get('status'), Enum):
            data['status'] = data['status'].value
        return data

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobStore:
    """SQLite-backed job record store"""

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the store

        Args:
            db_path: Path to SQLite database (default: settings.db_path)
        """
        if db_path is None:
            from config.settings import settings
            db_path = settings.db_path

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)

        self._init_db()

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        """Initialize database schema"""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    job_id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,

                    -- Translation config
                    source_lang TEXT NOT NULL,
                    target_lang TEXT NOT NULL,
                    provider TEXT NOT NULL,

                    -- Input/Output
                    source_file TEXT NOT NULL,
                    file_format TEXT NOT NULL,
                    original_file_name TEXT,
                    output_file TEXT,

                    -- Progress
                    status TEXT NOT NULL,
                    progress INTEGER DEFAULT 0,
                    total_chunks INTEGER DEFAULT 0,
                    processed_chunks INTEGER DEFAULT 0,
                    priority INTEGER DEFAULT 5,

                    -- Failure details
                    failure_reason TEXT,
                    error_message TEXT,

                    -- Timestamps
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    completed_at REAL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_owner
                ON jobs(owner_id, created_at DESC)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_status
                ON jobs(status)
            """)

    def _row_to_job(self, row: sqlite3.Row) -> TranslationJob:
        """Convert database row to TranslationJob"""
        return TranslationJob(**dict(row))

    def _transition(self, job_id: str, allowed: tuple, assignments: str, params: tuple) -> bool:
        """Apply an UPDATE only while the job is in one of the allowed states"""
        placeholders = ", ".join("?" for _ in allowed)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE jobs SET {assignments}, updated_at = ? "
                f"WHERE job_id = ? AND status IN ({placeholders})",
                (*params, time.time(), job_id, *[s.value for s in allowed]),
            )
            return cursor.rowcount == 1

    # ------------------------------------------------------------------
    # Creation & lookup
    # ------------------------------------------------------------------

    def create(
        self,
        owner_id: str,
        source_file: str,
        source_lang: str,
        target_lang: str,
        provider: str,
        file_format: str,
        original_file_name: Optional[str] = None,
        priority: int = 5,
    ) -> TranslationJob:
        """
        Create a new job record in the queued state

        Returns:
            The stored TranslationJob
        """
        now = time.time()
        job = TranslationJob(
            job_id=uuid.uuid4().hex,
            owner_id=owner_id,
            source_lang=source_lang,
            target_lang=target_lang,
            provider=provider,
            source_file=str(source_file),
            file_format=file_format,
            original_file_name=original_file_name or Path(source_file).name,
            priority=int(priority),
            created_at=now,
            updated_at=now,
        )

        data = job.to_dict()
        columns = ", ".join(data)
        placeholders = ", ".join("?" for _ in data)
        with self._get_connection() as conn:
            conn.execute(
                f"INSERT INTO jobs ({columns}) VALUES ({placeholders})",
                tuple(data.values()),
            )

        logger.info(f"Job {job.job_id} created ({file_format}, {provider}, "
                    f"{source_lang}->{target_lang})")
        return job

    def get(self, job_id: str) -> Optional[TranslationJob]:
        """Get job by its exact ID"""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM jobs WHERE job_id = ?", (job_id,)
            ).fetchone()

        return self._row_to_job(row) if row else None

    def find_by_prefix(self, prefix: str) -> Optional[TranslationJob]:
        """
        Get the one job whose ID starts with prefix

        The prefix is compared literally. Returns None when no job or more
        than one job matches.
        """
        if not prefix:
            return None
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM jobs WHERE substr(job_id, 1, ?) = ? LIMIT 2",
                (len(prefix), prefix),
            ).fetchall()

        return self._row_to_job(rows[0]) if len(rows) == 1 else None

    def list_jobs(
        self,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[TranslationJob]:
        """
        List jobs, newest first

        Args:
            owner_id: Filter by owner (None = all)
            status: Filter by status (None = all)
            limit: Maximum number of jobs to return
            offset: Number of jobs to skip
        """
        clauses = []
        params: List[Any] = []
        if owner_id:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        if status:
            clauses.append("status = ?")
            params.append(status.value if isinstance(status, Enum) else status)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM jobs {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()

        return [self._row_to_job(row) for row in rows]

    def count_by_status(self) -> Dict[str, int]:
        """Number of jobs per status"""
        stats = {status.value: 0 for status in JobStatus}
        with self._get_connection() as conn:
            for row in conn.execute("SELECT status, COUNT(*) FROM jobs GROUP BY status"):
                stats[row[0]] = row[1]
        stats['total'] = sum(stats.values())
        return stats

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def mark_processing(self, job_id: str) -> bool:
        """Claim the job for a run; a retried job is already processing"""
        return self._transition(
            job_id, ACTIVE_STATUSES,
            "status = ?", (JobStatus.PROCESSING.value,),
        )

    def set_total_chunks(self, job_id: str, total: int) -> bool:
        """Persist the chunk count before translation starts"""
        return self._transition(
            job_id, (JobStatus.PROCESSING,),
            "total_chunks = ?, "
            "processed_chunks = MIN(processed_chunks, ?), "
            "progress = CASE WHEN ? > 0 "
            "THEN (MIN(processed_chunks, ?) * 200 + ?) / (2 * ?) ELSE 0 END",
            (total, total, total, total, total, total),
        )

    def record_progress(self, job_id: str, processed: int, total: int) -> bool:
        """
        Commit the processed chunk count for a running job.

        The stored count never decreases, so a retried run that starts over
        from the first chunk does not move progress backwards.

        Returns:
            False when the job is no longer processing (canceled)
        """
        if total <= 0:
            return self._transition(
                job_id, (JobStatus.PROCESSING,), "progress = 0", (),
            )
        processed = max(0, min(processed, total))
        return self._transition(
            job_id, (JobStatus.PROCESSING,),
            "total_chunks = ?, "
            "processed_chunks = MAX(processed_chunks, ?), "
            "progress = (MAX(processed_chunks, ?) * 200 + ?) / (2 * ?)",
            (total, processed, processed, total, total),
        )

    def mark_completed(self, job_id: str, output_file: str) -> bool:
        """Record the output reference; only a processing job can complete"""
        now = time.time()
        ok = self._transition(
            job_id, (JobStatus.PROCESSING,),
            "status = ?, output_file = ?, progress = 100, "
            "processed_chunks = total_chunks, completed_at = ?",
            (JobStatus.COMPLETED.value, str(output_file), now),
        )
        if ok:
            logger.info(f"Job {job_id} completed: {output_file}")
        return ok

    def mark_failed(self, job_id: str, reason: str, message: str) -> bool:
        """Record an unrecoverable failure"""
        ok = self._transition(
            job_id, ACTIVE_STATUSES,
            "status = ?, failure_reason = ?, error_message = ?, completed_at = ?",
            (JobStatus.FAILED.value, reason, message, time.time()),
        )
        if ok:
            logger.warning(f"Job {job_id} failed [{reason}]: {message}")
        return ok

    def cancel(self, job_id: str) -> bool:
        """Cancel a queued or processing job"""
        ok = self._transition(
            job_id, ACTIVE_STATUSES,
            "status = ?, completed_at = ?",
            (JobStatus.CANCELED.value, time.time()),
        )
        if ok:
            logger.info(f"Job {job_id} canceled")
        return ok

    def is_canceled(self, job_id: str) -> bool:
        job = self.get(job_id)
        return job is not None and job.status == JobStatus.CANCELED

    def delete(self, job_id: str) -> bool:
        """Delete a job record"""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM jobs WHERE job_id = ?", (job_id,))
            deleted = cursor.rowcount == 1
        if deleted:
            logger.info(f"Job {job_id} deleted")
        return deleted
