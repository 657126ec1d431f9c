"""
Amazon Translate Provider
Document Translation Jobs - Multi-Provider Support

boto3 is synchronous, so calls run in the default executor.
"""

import asyncio
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from config.constants import AWS_DEFAULT_REGION, PROVIDER_TIMEOUT_SECONDS
from config.logging_config import get_logger
from core.errors import (
    TranslationJobError,
    ProviderAuthFailed,
    ProviderBadRequest,
    ProviderInternalError,
    ProviderQuotaExceeded,
    ProviderRateLimited,
    ProviderUnavailable,
    UnsupportedLanguagePair,
)

logger = get_logger(__name__)


# AWS error code -> taxonomy class
ERROR_CODE_MAP: Dict[str, type] = {
    "UnrecognizedClientException": ProviderAuthFailed,
    "AccessDeniedException": ProviderAuthFailed,
    "AccessDenied": ProviderAuthFailed,
    "InvalidSignatureException": ProviderAuthFailed,
    "LimitExceededException": ProviderQuotaExceeded,
    "TooManyRequestsException": ProviderRateLimited,
    "ThrottlingException": ProviderRateLimited,
    "Throttling": ProviderRateLimited,
    "InvalidRequestException": ProviderBadRequest,
    "InvalidParameterValueException": ProviderBadRequest,
    "TextSizeLimitExceededException": ProviderBadRequest,
    "UnsupportedLanguagePairException": UnsupportedLanguagePair,
    "DetectedLanguageLowConfidenceException": ProviderBadRequest,
    "ServiceUnavailableException": ProviderUnavailable,
    "InternalServerException": ProviderInternalError,
}


def classify_client_error(exc: ClientError, provider: str = "amazon") -> TranslationJobError:
    """Map a botocore ClientError to the taxonomy by its error code"""
    error = exc.response.get("Error", {})
    code = error.get("Code", "")
    message = error.get("Message", "") or code

    error_cls = ERROR_CODE_MAP.get(code)
    if error_cls is None:
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 500)
        error_cls = ProviderInternalError if status >= 500 else ProviderBadRequest

    return error_cls(f"{code}: {message}" if code else message, provider=provider)


class AmazonProvider:
    """
    Amazon Translate provider

    Codes are looked up lower-cased; unmapped codes pass through lower-cased.
    Credentials come from settings, or from the default boto3 chain when
    they are not set there.
    """

    provider_id = "amazon"
    display_name = "Amazon Translate"

    LANGUAGE_MAP: Dict[str, str] = {
        "zh": "zh",
        "zh-cn": "zh",
        "zh-tw": "zh-TW",
        "ja": "ja",
        "ko": "ko",
        "ar": "ar",
        "cs": "cs",
        "da": "da",
        "nl": "nl",
        "en": "en",
        "fi": "fi",
        "fr": "fr",
        "de": "de",
        "he": "he",
        "hi": "hi",
        "id": "id",
        "it": "it",
        "ms": "ms",
        "no": "no",
        "fa": "fa",
        "pl": "pl",
        "pt": "pt",
        "ro": "ro",
        "ru": "ru",
        "es": "es",
        "sv": "sv",
        "tr": "tr",
        "uk": "uk",
        "vi": "vi",
    }

    SUPPORTED_LANGUAGES = frozenset(LANGUAGE_MAP.values())

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = AWS_DEFAULT_REGION,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        client: Optional[Any] = None,
    ):
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region = region
        self.timeout = timeout
        self._client = client

    def map_language_code(self, code: str) -> str:
        lowered = code.lower()
        return self.LANGUAGE_MAP.get(lowered, lowered)

    async def is_available(self) -> bool:
        return True

    def _get_client(self):
        """Build a boto3 client; an injected client is reused as-is"""
        if self._client is not None:
            return self._client

        kwargs = {
            "region_name": self.region,
            "config": BotoConfig(
                connect_timeout=self.timeout,
                read_timeout=self.timeout,
                retries={"max_attempts": 1},
            ),
        }
        if self.access_key_id and self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
        return boto3.client("translate", **kwargs)

    def _call(self, operation: str, **params) -> Dict[str, Any]:
        """Run one Translate API call and reclassify its errors"""
        try:
            client = self._get_client()
            return getattr(client, operation)(**params)
        except NoCredentialsError as e:
            raise ProviderAuthFailed("AWS credentials not configured", provider=self.provider_id) from e
        except ClientError as e:
            error = classify_client_error(e, self.provider_id)
            logger.warning(f"Amazon Translate error: {error.reason}")
            raise error from e
        except (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError) as e:
            raise ProviderUnavailable(
                f"Could not reach Amazon Translate ({type(e).__name__})", provider=self.provider_id
            ) from e
        except BotoCoreError as e:
            # botocore messages can carry endpoint and transport details
            logger.warning(f"Amazon Translate client error: {e}")
            raise ProviderInternalError(
                f"Amazon Translate client error ({type(e).__name__})", provider=self.provider_id
            ) from e

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with Amazon Translate"""
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, lambda: self._call(
            "translate_text",
            Text=text,
            SourceLanguageCode=self.map_language_code(source_lang),
            TargetLanguageCode=self.map_language_code(target_lang),
        ))

        try:
            return response["TranslatedText"]
        except (KeyError, TypeError) as e:
            raise ProviderInternalError(
                "Malformed response from Amazon Translate", provider=self.provider_id
            ) from e

    def is_language_supported(self, code: str) -> bool:
        """Check against the static table; no network call"""
        return self.map_language_code(code) in self.SUPPORTED_LANGUAGES

    async def get_supported_languages(self) -> List[Dict[str, str]]:
        """
        List the languages the service reports

        Returns:
            [{"code", "name"}, ...]
        """
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, lambda: self._call("list_languages"))
        return [
            {"code": lang["LanguageCode"], "name": lang.get("LanguageName", "")}
            for lang in response.get("Languages", [])
        ]
