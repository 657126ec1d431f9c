"""
Pytest configuration and shared fixtures for Document Translation Jobs tests.
"""
import sys
import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Settings
from core.job_queue import JobQueue
from core.job_store import JobStore
from core.orchestrator import TranslationOrchestrator
from core.translation_service import TranslationService
from providers import PROVIDER_REGISTRY, PROVIDER_INFO, register_provider
from tests.fakes import UppercaseProvider


# ============================================================================
# Fixtures: Configuration & Settings
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Settings rooted in a temp dir, with fast retries."""
    return Settings(
        data_dir=temp_dir / "data",
        logs_dir=temp_dir / "logs",
        default_provider="upper",
        chunk_size=1000,
        provider_timeout=5.0,
        job_max_attempts=3,
        job_backoff_base=0.0,
        poll_interval=0.01,
        max_workers=1,
        job_timeout=30.0,
    )


# ============================================================================
# Fixtures: Pipeline components
# ============================================================================

@pytest.fixture
def job_store(test_settings: Settings) -> JobStore:
    return JobStore(test_settings.db_path)


@pytest.fixture
def job_queue(test_settings: Settings, job_store: JobStore) -> Generator[JobQueue, None, None]:
    queue = JobQueue(
        test_settings.db_path,
        store=job_store,
        backoff_base=test_settings.job_backoff_base,
        max_attempts=test_settings.job_max_attempts,
    )
    queue.open()
    yield queue
    queue.close()


@pytest.fixture
def upper_provider():
    """Register the uppercasing provider under id 'upper'."""
    register_provider("upper", UppercaseProvider)
    yield UppercaseProvider
    PROVIDER_REGISTRY.pop("upper", None)
    PROVIDER_INFO.pop("upper", None)


@pytest.fixture
def service(job_store, job_queue, test_settings, upper_provider) -> TranslationService:
    return TranslationService(job_store, job_queue, test_settings)


@pytest.fixture
def make_orchestrator(job_store, test_settings):
    """Build an orchestrator that always hands out the given provider."""
    def _make(provider, **overrides):
        options = {
            "chunk_size": test_settings.chunk_size,
            "provider_timeout": test_settings.provider_timeout,
            "output_dir": test_settings.output_dir,
        }
        options.update(overrides)
        return TranslationOrchestrator(
            job_store,
            provider_factory=lambda provider_id: provider,
            **options,
        )
    return _make


# ============================================================================
# Fixtures: Sample Data
# ============================================================================

@pytest.fixture
def sample_document_text() -> str:
    """2,500 characters: fifty 50-char sentences."""
    sentence = "word " * 9 + "end" + ". "
    return sentence * 50


@pytest.fixture
def sample_txt_file(temp_dir: Path, sample_document_text: str) -> Path:
    path = temp_dir / "report.txt"
    path.write_bytes(sample_document_text.encode("utf-8"))
    return path
