"""
Centralized constants for Document Translation Jobs.
All magic numbers for the job pipeline live here.
"""

# ===========================================
# CHUNKING
# ===========================================
TRANSLATION_CHUNK_SIZE = 1000         # characters per chunk
SENTENCE_TERMINATORS = ".!?"

# ===========================================
# PROVIDERS
# ===========================================
PROVIDER_TIMEOUT_SECONDS = 30.0       # per provider call
ARGOS_PROVISION_TIMEOUT_SECONDS = 600.0
DEEPL_API_URL = "https://api-free.deepl.com/v2/translate"
MICROSOFT_TRANSLATOR_ENDPOINT = "https://api.cognitive.microsofttranslator.com"
MICROSOFT_API_VERSION = "3.0"
LIBRE_TRANSLATE_API_URL = "http://localhost:5000"
AWS_DEFAULT_REGION = "us-east-1"

# ===========================================
# JOB QUEUE
# ===========================================
JOB_MAX_ATTEMPTS = 3                  # total attempts per job
JOB_BACKOFF_BASE_SECONDS = 1.0        # exponential: base * 2^(attempt-1)
JOB_TIMEOUT_SECONDS = 7200            # 2 hours per attempt
QUEUE_POLL_INTERVAL = 2.0             # seconds between empty dequeues
BATCH_PARALLEL_WORKERS = 2            # default worker count
COMPLETED_RETENTION_SECONDS = 86400   # 1 day
FAILED_RETENTION_SECONDS = 604800     # 7 days


# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'translator.log'          # under settings.logs_dir
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
