#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Translation Service - entry point for the surrounding application.

The web layer (accounts, routing, uploads) calls this facade to submit jobs
and read their state. Submission returns the job id at once; the work
happens later in a BatchProcessor worker.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.logging_config import get_logger

from . import codecs
from .errors import (
    JobAccessDenied,
    OutputMissing,
    OutputNotReady,
    ProviderBadRequest,
    UnsupportedFormat,
)
from .job_queue import JobQueue, JobPriority
from .job_store import JobStore, JobStatus, TranslationJob

logger = get_logger(__name__)


# Fields a caller may see; everything else stays internal
PUBLIC_FIELDS = (
    "job_id",
    "owner_id",
    "status",
    "progress",
    "total_chunks",
    "processed_chunks",
    "source_lang",
    "target_lang",
    "provider",
    "file_format",
    "original_file_name",
    "failure_reason",
    "error_message",
    "created_at",
    "updated_at",
    "completed_at",
)


@dataclass
class JobOutput:
    """A completed job's translated file, ready to hand to the caller"""
    job_id: str
    path: Path
    file_name: str
    media_type: str


class TranslationService:
    """
    Job service facade.

    Example:
        >>> service = TranslationService(store, queue)
        >>> job_id = service.submit_job("user-1", "uploads/book.epub", "en", "de", "deepl")
        >>> service.get_status(job_id)["status"]
        'queued'
    """

    def __init__(self, store: JobStore, queue: JobQueue, settings=None):
        if settings is None:
            from config.settings import settings
        self.store = store
        self.queue = queue
        self.settings = settings

    def submit_job(
        self,
        owner_id: str,
        source_file,
        source_lang: str,
        target_lang: str,
        provider: Optional[str] = None,
        file_format: Optional[str] = None,
        original_file_name: Optional[str] = None,
        priority: int = JobPriority.NORMAL,
    ) -> str:
        """
        Create a job record and enqueue it.

        The declared format wins; without one it is detected from the file
        name. A job whose format or provider cannot be handled is stored
        as failed and never enqueued.

        Returns:
            The new job id
        """
        from providers import is_registered

        provider = provider or self.settings.default_provider
        name = original_file_name or Path(source_file).name
        fmt = (file_format or codecs.detect_format(name) or Path(name).suffix.lstrip(".")).lower()

        job = self.store.create(
            owner_id=owner_id,
            source_file=str(source_file),
            source_lang=source_lang,
            target_lang=target_lang,
            provider=provider,
            file_format=fmt,
            original_file_name=name,
            priority=priority,
        )

        rejection = None
        if fmt not in codecs.supported_formats():
            rejection = UnsupportedFormat(f"Unsupported file format: {fmt or 'unknown'}")
        elif not is_registered(provider):
            rejection = ProviderBadRequest(f"Unknown provider: {provider}")

        if rejection is not None:
            self.store.mark_failed(job.job_id, rejection.reason, str(rejection))
            return job.job_id

        self.queue.enqueue(job.job_id, priority, self.settings.job_max_attempts)
        return job.job_id

    def get_job(self, job_id: str) -> Optional[TranslationJob]:
        return self.store.get(job_id)

    def get_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Public view of a job, or None if it does not exist"""
        job = self.store.get(job_id)
        if job is None:
            return None
        data = job.to_dict()
        status = {key: data[key] for key in PUBLIC_FIELDS}
        status["has_output"] = bool(job.output_file)
        return status

    def list_jobs(
        self,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[TranslationJob]:
        return self.store.list_jobs(owner_id=owner_id, status=status, limit=limit, offset=offset)

    def _owned_job(self, job_id: str, owner_id: Optional[str]) -> Optional[TranslationJob]:
        """
        Look up a job for a caller

        Raises:
            JobAccessDenied: owner_id is given and the job belongs to someone else
        """
        job = self.store.get(job_id)
        if job is not None and owner_id is not None and job.owner_id != owner_id:
            raise JobAccessDenied(job.job_id, owner_id)
        return job

    def get_output(self, job_id: str, owner_id: Optional[str] = None) -> Optional[JobOutput]:
        """
        The translated file of a completed job, or None if the job does not exist

        Raises:
            JobAccessDenied: Job belongs to another owner
            OutputNotReady: Job has not completed; carries status and progress
            OutputMissing: Job completed but its file is gone
        """
        job = self._owned_job(job_id, owner_id)
        if job is None:
            return None
        if job.status != JobStatus.COMPLETED:
            raise OutputNotReady(job.job_id, job.status, job.progress)

        path = Path(job.output_file) if job.output_file else None
        if path is None or not path.is_file():
            raise OutputMissing(job.job_id)

        try:
            media_type = codecs.get_codec(job.file_format).media_type
        except UnsupportedFormat:
            media_type = codecs.DocumentCodec.media_type
        return JobOutput(job_id=job.job_id, path=path, file_name=path.name, media_type=media_type)

    def cancel_job(self, job_id: str, owner_id: Optional[str] = None) -> bool:
        """
        Cancel a queued or processing job; terminal jobs are left alone

        Raises:
            JobAccessDenied: owner_id is given and does not own the job
        """
        job = self._owned_job(job_id, owner_id)
        if job is None:
            return False
        return self.store.cancel(job.job_id)

    def delete_job(self, job_id: str, owner_id: Optional[str] = None) -> bool:
        """
        Remove the record, its queue entries and its output file

        Raises:
            JobAccessDenied: owner_id is given and does not own the job
        """
        job = self._owned_job(job_id, owner_id)
        if job is None:
            return False

        if job.output_file:
            output = Path(job.output_file)
            output.unlink(missing_ok=True)
            # Per-job output directory
            if output.parent.is_dir() and not any(output.parent.iterdir()):
                output.parent.rmdir()

        self.queue.remove_job(job.job_id)
        return self.store.delete(job.job_id)

    def cleanup_queue(self) -> int:
        """Prune finished queue bookkeeping; job records are kept"""
        return self.queue.prune(
            completed_retention=self.settings.completed_retention_seconds,
            failed_retention=self.settings.failed_retention_seconds,
        )

    def get_queue_stats(self) -> Dict[str, Any]:
        return {
            "queue": self.queue.get_queue_stats(),
            "jobs": self.store.count_by_status(),
        }
