#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    TRANSLATION_CHUNK_SIZE,
    PROVIDER_TIMEOUT_SECONDS,
    ARGOS_PROVISION_TIMEOUT_SECONDS,
    DEEPL_API_URL,
    MICROSOFT_TRANSLATOR_ENDPOINT,
    LIBRE_TRANSLATE_API_URL,
    AWS_DEFAULT_REGION,
    JOB_MAX_ATTEMPTS,
    JOB_BACKOFF_BASE_SECONDS,
    JOB_TIMEOUT_SECONDS,
    QUEUE_POLL_INTERVAL,
    BATCH_PARALLEL_WORKERS,
    COMPLETED_RETENTION_SECONDS,
    FAILED_RETENTION_SECONDS,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields from .env that aren't defined in model
    )

    # ========== Provider credentials ==========
    # DeepL
    deepl_api_key: str = ""
    deepl_api_url: str = DEEPL_API_URL

    # Microsoft Translator
    microsoft_translator_key: str = ""
    microsoft_translator_region: str = "global"
    microsoft_translator_endpoint: str = MICROSOFT_TRANSLATOR_ENDPOINT

    # Amazon Translate (falls back to the default boto3 credential chain)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = AWS_DEFAULT_REGION

    # LibreTranslate
    libre_translate_api_url: str = LIBRE_TRANSLATE_API_URL
    libre_translate_api_key: str = ""

    # Argos Translate (offline)
    argos_provision_timeout: float = ARGOS_PROVISION_TIMEOUT_SECONDS

    # ========== Pipeline ==========
    default_provider: str = "libre"
    chunk_size: int = TRANSLATION_CHUNK_SIZE
    provider_timeout: float = PROVIDER_TIMEOUT_SECONDS

    # ========== Job queue ==========
    job_max_attempts: int = JOB_MAX_ATTEMPTS
    job_backoff_base: float = JOB_BACKOFF_BASE_SECONDS
    job_timeout: float = JOB_TIMEOUT_SECONDS
    max_workers: int = BATCH_PARALLEL_WORKERS
    poll_interval: float = QUEUE_POLL_INTERVAL
    completed_retention_seconds: int = COMPLETED_RETENTION_SECONDS
    failed_retention_seconds: int = FAILED_RETENTION_SECONDS

    # ========== Directories ==========
    data_dir: Path = BASE_DIR / "data"
    logs_dir: Path = BASE_DIR / "logs"
    upload_dir: Optional[Path] = None
    output_dir: Optional[Path] = None
    db_path: Optional[Path] = None

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Derived paths follow data_dir unless set explicitly
        if self.upload_dir is None:
            self.upload_dir = self.data_dir / "uploads"
        if self.output_dir is None:
            self.output_dir = self.data_dir / "output"
        if self.db_path is None:
            self.db_path = self.data_dir / "jobs.db"

        # Create directories
        for dir_path in [
            self.data_dir,
            self.logs_dir,
            self.upload_dir,
            self.output_dir,
            self.db_path.parent,
        ]:
            dir_path.mkdir(exist_ok=True, parents=True)

    def get_provider_credentials(self, provider_id: str) -> dict:
        """Get the credential subset a provider adapter needs"""
        if provider_id == "deepl":
            return {"api_key": self.deepl_api_key, "api_url": self.deepl_api_url}
        elif provider_id == "microsoft":
            return {
                "api_key": self.microsoft_translator_key,
                "region": self.microsoft_translator_region,
                "endpoint": self.microsoft_translator_endpoint,
            }
        elif provider_id == "amazon":
            return {
                "access_key_id": self.aws_access_key_id,
                "secret_access_key": self.aws_secret_access_key,
                "region": self.aws_region,
            }
        elif provider_id == "libre":
            return {
                "api_url": self.libre_translate_api_url,
                "api_key": self.libre_translate_api_key,
            }
        elif provider_id == "argos":
            return {"provision_timeout": self.argos_provision_timeout}
        return {}


# Global settings instance
settings = Settings()
