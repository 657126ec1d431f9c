#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
End-to-End Pipeline Test

Submits jobs through TranslationService and drains them with a
BatchProcessor, with fake providers standing in for the real backends:
1. Submission and format checks
2. Chunked translation and reconstruction
3. Retries on transient failures
4. Cancellation mid-job
5. Permanent failures
6. Output access and ownership checks
"""

import asyncio
import os
import pytest

from core.batch_processor import BatchProcessor
from core.errors import (
    JobAccessDenied,
    OutputMissing,
    OutputNotReady,
    ProviderBadRequest,
    ProviderUnavailable,
)
from core.job_queue import JobPriority
from tests.fakes import ScriptedProvider


@pytest.fixture
def pipeline(service, job_store, job_queue, make_orchestrator, test_settings):
    """Run every queued job with the given provider until the queue is idle."""
    async def _run(provider, **orchestrator_overrides):
        processor = BatchProcessor(
            job_queue,
            job_store,
            make_orchestrator(provider, **orchestrator_overrides),
            max_workers=test_settings.max_workers,
            poll_interval=test_settings.poll_interval,
            job_timeout=test_settings.job_timeout,
        )
        await processor.run_until_idle()
        return processor
    return _run


class TestHappyPath:

    @pytest.mark.asyncio
    async def test_txt_document_translated(self, service, pipeline, sample_txt_file,
                                           sample_document_text):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")
        assert service.get_status(job_id)["status"] == "queued"

        provider = ScriptedProvider()
        await pipeline(provider)

        status = service.get_status(job_id)
        assert status["status"] == "completed"
        assert status["progress"] == 100
        assert status["total_chunks"] == 3
        assert status["processed_chunks"] == 3
        assert status["has_output"] is True
        assert [len(text) for text in provider.calls] == [999, 1000, 501]

        output = service.get_job(job_id).output_file
        with open(output, encoding="utf-8") as f:
            assert f.read() == sample_document_text.upper()

    @pytest.mark.asyncio
    async def test_docx_document_translated(self, service, pipeline, temp_dir):
        pytest.importorskip("docx")
        from core.codecs import extract_text, reconstruct

        source = reconstruct("Hello there.\n\nSecond paragraph.", temp_dir / "memo.docx", "docx")
        job_id = service.submit_job("user-1", source, "en", "fr")
        await pipeline(ScriptedProvider())

        job = service.get_job(job_id)
        assert job.status == "completed"
        assert job.output_file.endswith("memo_fr.docx")
        assert extract_text(job.output_file, "docx") == "HELLO THERE.\n\nSECOND PARAGRAPH."

    @pytest.mark.asyncio
    async def test_priority_order(self, service, pipeline, sample_txt_file):
        low = service.submit_job("user-1", sample_txt_file, "en", "de", priority=JobPriority.LOW)
        await asyncio.sleep(0.01)
        urgent = service.submit_job("user-1", sample_txt_file, "en", "fr",
                                    priority=JobPriority.URGENT)

        provider = ScriptedProvider()
        await pipeline(provider, chunk_size=5000)

        # One chunk per job, so calls map to jobs in run order
        assert len(provider.calls) == 2
        assert service.get_job(urgent).completed_at < service.get_job(low).completed_at


class TestSubmissionChecks:

    def test_unsupported_extension(self, service, job_queue, temp_dir):
        source = temp_dir / "slides.pptx"
        source.write_bytes(b"not really")

        job_id = service.submit_job("user-1", source, "en", "de")

        status = service.get_status(job_id)
        assert status["status"] == "failed"
        assert status["failure_reason"] == "UnsupportedFormat"
        assert status["has_output"] is False
        assert job_queue.get_entries(job_id) == []

    def test_unknown_provider(self, service, job_queue, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de", provider="babelfish")

        status = service.get_status(job_id)
        assert status["status"] == "failed"
        assert status["failure_reason"] == ProviderBadRequest.reason
        assert job_queue.get_entries(job_id) == []


class TestRetries:

    @pytest.mark.asyncio
    async def test_timeout_twice_then_success(self, service, job_queue, pipeline, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")

        # First call of each of the first two attempts outlives the provider timeout
        provider = ScriptedProvider([0.5, 0.5])
        await pipeline(provider, provider_timeout=0.1)

        job = service.get_job(job_id)
        assert job.status == "completed"
        assert job.progress == 100
        assert job_queue.get_entries(job_id)[0].attempts == 3
        assert len(provider.calls) == 5

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_across_retries(self, service, job_store, pipeline,
                                                        sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")
        seen = []

        class ObservingProvider(ScriptedProvider):
            async def translate(self, text, source_lang, target_lang):
                seen.append(job_store.get(job_id).progress)
                return await super().translate(text, source_lang, target_lang)

        # Fails on the sixth chunk once, so the second attempt starts over
        provider = ObservingProvider([None] * 5 + [ProviderUnavailable("blip")])
        await pipeline(provider, chunk_size=100)

        assert seen == sorted(seen)
        assert job_store.get(job_id).progress == 100


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_after_some_chunks(self, service, job_queue, pipeline, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")

        class CancelingProvider(ScriptedProvider):
            async def translate(self, text, source_lang, target_lang):
                if len(self.calls) == 4:
                    service.cancel_job(job_id)
                return await super().translate(text, source_lang, target_lang)

        provider = CancelingProvider()
        await pipeline(provider, chunk_size=500)

        status = service.get_status(job_id)
        assert status["status"] == "canceled"
        # 499, 500, 500, 500, 500 and the trailing blank span
        assert status["total_chunks"] == 6
        assert status["processed_chunks"] == 4
        assert status["progress"] == 67
        assert status["has_output"] is False
        assert len(provider.calls) == 5
        assert job_queue.get_entries(job_id)[0].state == "completed"

    def test_cancel_terminal_job_is_refused(self, service, temp_dir):
        source = temp_dir / "bad.xyz"
        source.write_text("x")
        job_id = service.submit_job("user-1", source, "en", "de")

        assert service.cancel_job(job_id) is False
        assert service.get_status(job_id)["status"] == "failed"


class TestPermanentFailure:

    @pytest.mark.asyncio
    async def test_bad_request_fails_without_output(self, service, pipeline, sample_txt_file,
                                                    test_settings):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "xx")
        provider = ScriptedProvider([None, ProviderBadRequest("target language xx")])
        await pipeline(provider)

        status = service.get_status(job_id)
        assert status["status"] == "failed"
        assert status["failure_reason"] == "ProviderBadRequest"
        assert status["has_output"] is False
        assert len(provider.calls) == 2
        assert not (test_settings.output_dir / job_id).exists()


class TestHousekeeping:

    @pytest.mark.asyncio
    async def test_delete_removes_output(self, service, job_queue, pipeline, sample_txt_file,
                                         test_settings):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")
        await pipeline(ScriptedProvider())
        output = service.get_job(job_id).output_file

        assert service.delete_job(job_id)
        assert service.get_job(job_id) is None
        assert job_queue.get_entries(job_id) == []
        assert not (test_settings.output_dir / job_id).exists()
        assert not os.path.exists(output)

    @pytest.mark.asyncio
    async def test_stats_and_cleanup(self, service, pipeline, sample_txt_file, temp_dir):
        service.submit_job("user-1", sample_txt_file, "en", "de")
        service.submit_job("user-1", temp_dir / "nope.xyz", "en", "de")
        await pipeline(ScriptedProvider())

        stats = service.get_queue_stats()
        assert stats["jobs"]["completed"] == 1
        assert stats["jobs"]["failed"] == 1
        assert stats["queue"]["completed"] == 1

        # Default retention keeps a just-finished entry
        assert service.cleanup_queue() == 0


class TestOutputAccess:

    @pytest.mark.asyncio
    async def test_completed_job_output(self, service, pipeline, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")
        await pipeline(ScriptedProvider())

        output = service.get_output(job_id, owner_id="user-1")
        assert output.job_id == job_id
        assert output.file_name == "report_de.txt"
        assert output.media_type == "text/plain"
        assert output.path.is_file()

    @pytest.mark.asyncio
    async def test_docx_media_type(self, service, pipeline, temp_dir):
        pytest.importorskip("docx")
        from core.codecs import reconstruct

        source = reconstruct("Hello there.", temp_dir / "memo.docx", "docx")
        job_id = service.submit_job("user-1", source, "en", "fr")
        await pipeline(ScriptedProvider())

        assert service.get_output(job_id).media_type == (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        )

    def test_output_not_ready(self, service, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")

        with pytest.raises(OutputNotReady) as exc_info:
            service.get_output(job_id)
        assert exc_info.value.status == "queued"
        assert exc_info.value.progress == 0

    @pytest.mark.asyncio
    async def test_output_file_removed(self, service, pipeline, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")
        await pipeline(ScriptedProvider())
        os.remove(service.get_job(job_id).output_file)

        with pytest.raises(OutputMissing):
            service.get_output(job_id)

    def test_unknown_job(self, service):
        assert service.get_output("0" * 32) is None


class TestOwnership:

    def test_other_owner_cannot_cancel_or_delete(self, service, sample_txt_file):
        job_id = service.submit_job("alice", sample_txt_file, "en", "de")

        with pytest.raises(JobAccessDenied):
            service.cancel_job(job_id, owner_id="mallory")
        with pytest.raises(JobAccessDenied):
            service.delete_job(job_id, owner_id="mallory")
        with pytest.raises(JobAccessDenied):
            service.get_output(job_id, owner_id="mallory")

        assert service.get_status(job_id)["status"] == "queued"

        assert service.cancel_job(job_id, owner_id="alice")
        assert service.delete_job(job_id, owner_id="alice")
        assert service.get_job(job_id) is None

    def test_ids_are_matched_exactly(self, service, sample_txt_file):
        job_id = service.submit_job("user-1", sample_txt_file, "en", "de")

        assert service.get_status("%") is None
        assert service.cancel_job(job_id[:8]) is False
        assert service.delete_job("%") is False
        assert service.get_status(job_id)["status"] == "queued"
