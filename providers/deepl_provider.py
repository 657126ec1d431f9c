"""
DeepL Provider
Document Translation Jobs - Multi-Provider Support

DeepL REST API v2 (/v2/translate) over httpx.
"""

from typing import Dict, Optional

import httpx

from config.constants import DEEPL_API_URL, PROVIDER_TIMEOUT_SECONDS
from config.logging_config import get_logger
from core.errors import (
    ProviderAuthFailed,
    ProviderInternalError,
    ProviderQuotaExceeded,
)

from .base import classify_status, classify_transport_error, error_detail

logger = get_logger(__name__)


class DeepLProvider:
    """
    DeepL translation provider

    Language codes are upper-cased (``en`` -> ``EN``); the table only lists
    the codes DeepL documents explicitly.
    """

    provider_id = "deepl"
    display_name = "DeepL"

    LANGUAGE_MAP: Dict[str, str] = {
        "en": "EN",
        "es": "ES",
        "fr": "FR",
        "de": "DE",
        "it": "IT",
        "pt": "PT",
        "ru": "RU",
        "zh": "ZH",
        "ja": "JA",
        "ko": "KO",
    }

    # 456 is DeepL's "quota exceeded"; 403 means a bad key
    STATUS_OVERRIDES = {
        403: ProviderAuthFailed,
        456: ProviderQuotaExceeded,
    }

    def __init__(
        self,
        api_key: str = "",
        api_url: str = DEEPL_API_URL,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    def map_language_code(self, code: str) -> str:
        return self.LANGUAGE_MAP.get(code, code.upper())

    async def is_available(self) -> bool:
        return True

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with DeepL"""
        if not self.api_key:
            raise ProviderAuthFailed("DeepL API key not configured", provider=self.provider_id)

        payload = {
            "text": [text],
            "source_lang": self.map_language_code(source_lang),
            "target_lang": self.map_language_code(target_lang),
        }
        headers = {
            "Authorization": f"DeepL-Auth-Key {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = classify_status(
                e.response.status_code, self.provider_id,
                error_detail(e.response), self.STATUS_OVERRIDES,
            )
            logger.warning(f"DeepL error: {error.reason} ({e.response.status_code})")
            raise error from e
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.provider_id) from e

        try:
            return response.json()["translations"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderInternalError(
                "Malformed response from DeepL", provider=self.provider_id
            ) from e
