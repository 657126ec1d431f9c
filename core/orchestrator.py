#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Translation Orchestrator - runs one job end to end.

    extract -> chunk -> translate chunk by chunk -> reconstruct -> complete

Progress is committed to the job store after every chunk. A commit that
the store rejects means the job left the processing state (it was
canceled), so the run stops and discards its partial output.

Usage:
    orchestrator = TranslationOrchestrator(store, output_dir=settings.output_dir)
    result = await orchestrator.run(job)
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from config.constants import TRANSLATION_CHUNK_SIZE, PROVIDER_TIMEOUT_SECONDS
from config.logging_config import get_logger

from . import codecs
from .chunker import TextChunker, TranslationChunk
from .errors import (
    TranslationJobError,
    JobCanceled,
    ProviderInternalError,
    ProviderUnavailable,
)
from .job_store import JobStore, TranslationJob

logger = get_logger(__name__)


@dataclass
class OrchestratorResult:
    """Result from one orchestrator run."""
    job_id: str
    output_file: Path
    total_chunks: int = 0
    processed_chunks: int = 0
    duration_seconds: float = 0.0
    skipped_chunks: List[int] = field(default_factory=list)


def default_provider_factory(provider_id: str):
    from providers import create_provider
    return create_provider(provider_id)


class TranslationOrchestrator:
    """
    Executes a single translation job.

    The orchestrator knows nothing about individual providers: it asks the
    factory for one by id and calls ``translate`` on it.

    Attributes:
        store: Job record store that receives progress and the final result
        chunk_size: Maximum characters per chunk
        provider_timeout: Bound on each provider call, in seconds
        output_dir: Root directory for output files (one subdirectory per job)
    """

    def __init__(
        self,
        store: JobStore,
        chunk_size: int = TRANSLATION_CHUNK_SIZE,
        provider_timeout: float = PROVIDER_TIMEOUT_SECONDS,
        output_dir: Optional[Path] = None,
        provider_factory: Optional[Callable] = None,
    ):
        if output_dir is None:
            from config.settings import settings
            output_dir = settings.output_dir

        self.store = store
        self.chunker = TextChunker(max_chars=chunk_size)
        self.provider_timeout = provider_timeout
        self.output_dir = Path(output_dir)
        self.provider_factory = provider_factory or default_provider_factory

    def output_path_for(self, job: TranslationJob) -> Path:
        """output_dir/<job_id>/<stem>_<target_lang>.<ext>"""
        codec = codecs.get_codec(job.file_format)
        stem = Path(job.original_file_name or job.source_file).stem
        extension = codec.extensions[0] if codec.extensions else f".{codec.format}"
        return self.output_dir / job.job_id / f"{stem}_{job.target_lang}{extension}"

    def discard_output(self, output_path: Path):
        """Remove an output file and its job directory once empty"""
        output_path.unlink(missing_ok=True)
        job_dir = output_path.parent
        if job_dir.is_dir() and not any(job_dir.iterdir()):
            job_dir.rmdir()

    async def _in_executor(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _reconstruct(self, text: str, output_path: Path, job: TranslationJob, metadata: dict):
        """
        Write the output file in the default executor.

        A writer thread cannot be interrupted, so when the run fails or is
        cancelled (job timeout, worker shutdown) the thread is waited out and
        whatever it wrote is removed before the error propagates.
        """
        loop = asyncio.get_running_loop()
        write = loop.run_in_executor(
            None, codecs.reconstruct, text, output_path, job.file_format, metadata
        )
        try:
            await asyncio.shield(write)
        except BaseException:
            if not write.done():
                await asyncio.wait([write])
            self.discard_output(output_path)
            raise

    async def _translate_chunk(self, provider, job: TranslationJob, chunk: TranslationChunk) -> str:
        """One bounded provider call; every failure leaves as a taxonomy error"""
        timeout = getattr(provider, "timeout_budget", None) or self.provider_timeout
        try:
            return await asyncio.wait_for(
                provider.translate(chunk.text, job.source_lang, job.target_lang),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(
                f"Provider call timed out after {timeout:g}s", provider=job.provider
            ) from e
        except TranslationJobError:
            raise
        except Exception as e:
            logger.debug(f"Unclassified provider error on job {job.job_id}", exc_info=True)
            raise ProviderInternalError(
                f"Unexpected provider error: {type(e).__name__}", provider=job.provider
            ) from e

    async def run(self, job: TranslationJob) -> OrchestratorResult:
        """
        Run a job to completion.

        Args:
            job: Job record (status queued or processing)

        Returns:
            OrchestratorResult with the output path

        Raises:
            TranslationJobError: Classified failure; the caller decides on retry
            JobCanceled: The job was canceled during the run
        """
        start_time = time.time()
        job_id = job.job_id

        if not self.store.mark_processing(job_id):
            raise JobCanceled(job_id)

        provider = self.provider_factory(job.provider)
        output_path = self.output_path_for(job)

        # Extract
        text = await self._in_executor(codecs.extract_text, job.source_file, job.file_format)
        logger.info(f"Job {job_id}: extracted {len(text)} chars from {job.file_format}")

        # Chunk
        chunks = self.chunker.create_chunks(text)
        total = len(chunks)
        if not self.store.set_total_chunks(job_id, total):
            raise JobCanceled(job_id)
        logger.info(f"Job {job_id}: {total} chunks via {job.provider} "
                    f"({job.source_lang}->{job.target_lang})")

        # Translate
        translated: List[str] = []
        skipped: List[int] = []
        for index, chunk in enumerate(chunks, start=1):
            if self.store.is_canceled(job_id):
                raise JobCanceled(job_id)

            if chunk.is_blank:
                translated.append(chunk.text)
                skipped.append(chunk.id)
            else:
                translated.append(await self._translate_chunk(provider, job, chunk))

            if not self.store.record_progress(job_id, index, total):
                raise JobCanceled(job_id)
            logger.debug(f"Job {job_id}: chunk {index}/{total} done")

        # Reconstruct
        metadata = {
            "title": Path(job.original_file_name or job.source_file).stem,
            "language": job.target_lang,
        }
        await self._reconstruct("".join(translated), output_path, job, metadata)

        # Complete
        if not self.store.mark_completed(job_id, str(output_path)):
            self.discard_output(output_path)
            raise JobCanceled(job_id)

        return OrchestratorResult(
            job_id=job_id,
            output_file=output_path,
            total_chunks=total,
            processed_chunks=total,
            duration_seconds=time.time() - start_time,
            skipped_chunks=skipped,
        )
