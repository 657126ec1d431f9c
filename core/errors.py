#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Error taxonomy for the translation job pipeline.

Every failure that can end a job is one of the classes below. Each class
carries a stable ``reason`` code (stored as the job's failure reason) and a
``retryable`` flag consulted by the batch processor's retry policy.

Provider adapters reclassify raw transport errors into this taxonomy, so the
orchestrator and the queue never see httpx or botocore exceptions.
"""

from typing import Optional, Tuple


class TranslationJobError(Exception):
    """Base class for classified pipeline errors"""

    reason = "InternalError"
    retryable = False

    def __init__(self, message: str = "", provider: Optional[str] = None):
        super().__init__(message or self.reason)
        self.message = message or self.reason
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


# ============================================================================
# Document errors
# ============================================================================

class UnsupportedFormat(TranslationJobError):
    """The declared file format has no registered codec"""
    reason = "UnsupportedFormat"


class ExtractionFailed(TranslationJobError):
    """The source file could not be read or parsed"""
    reason = "ExtractionFailed"


class ReconstructionFailed(TranslationJobError):
    """The translated text could not be written in the target format"""
    reason = "ReconstructionFailed"


# ============================================================================
# Provider errors
# ============================================================================

class ProviderAuthFailed(TranslationJobError):
    """Credentials missing or rejected - a configuration issue"""
    reason = "ProviderAuthFailed"


class ProviderQuotaExceeded(TranslationJobError):
    reason = "ProviderQuotaExceeded"
    retryable = True


class ProviderRateLimited(TranslationJobError):
    reason = "ProviderRateLimited"
    retryable = True


class ProviderUnavailable(TranslationJobError):
    """Backend unreachable or timed out"""
    reason = "ProviderUnavailable"
    retryable = True


class ProviderInternalError(TranslationJobError):
    """Backend answered with a server-side error"""
    reason = "ProviderInternalError"
    retryable = True


class ProviderBadRequest(TranslationJobError):
    """Malformed chunk, unknown provider or rejected parameters"""
    reason = "ProviderBadRequest"


class UnsupportedLanguagePair(ProviderBadRequest):
    reason = "UnsupportedLanguagePair"


# ============================================================================
# Control flow
# ============================================================================

class JobCanceled(Exception):
    """Raised inside a run when the job was canceled; not a failure"""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} was canceled")
        self.job_id = job_id


# ============================================================================
# Caller errors
# ============================================================================

class JobAccessDenied(Exception):
    """The caller does not own the job"""

    def __init__(self, job_id: str, owner_id: str):
        super().__init__(f"Job {job_id} does not belong to {owner_id}")
        self.job_id = job_id
        self.owner_id = owner_id


class OutputNotReady(Exception):
    """Output was requested for a job that has not completed"""

    def __init__(self, job_id: str, status: str, progress: int):
        super().__init__(f"Job {job_id} is {status} ({progress}%)")
        self.job_id = job_id
        self.status = status
        self.progress = progress


class OutputMissing(Exception):
    """A completed job's output file is gone from disk"""

    def __init__(self, job_id: str):
        super().__init__(f"Output file for job {job_id} not found")
        self.job_id = job_id


def is_retryable(exc: BaseException) -> bool:
    """Unclassified exceptions are retried; classified ones follow their flag"""
    if isinstance(exc, TranslationJobError):
        return exc.retryable
    return not isinstance(exc, JobCanceled)


def describe_error(exc: BaseException) -> Tuple[str, str]:
    """
    Build the (failure_reason, error_message) pair stored on a failed job.

    Unclassified exceptions get a generic message so no internal detail
    leaks to the caller.
    """
    if isinstance(exc, TranslationJobError):
        return exc.reason, str(exc)
    return TranslationJobError.reason, "Internal error while processing the job"
