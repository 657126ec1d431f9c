"""
LibreTranslate Provider
Document Translation Jobs - Multi-Provider Support

Self-hosted or public LibreTranslate server over httpx.
"""

from typing import Dict, List, Optional

import httpx

from config.constants import LIBRE_TRANSLATE_API_URL, PROVIDER_TIMEOUT_SECONDS
from config.logging_config import get_logger
from core.errors import ProviderInternalError

from .base import classify_status, classify_transport_error, error_detail

logger = get_logger(__name__)


class LibreTranslateProvider:
    """
    LibreTranslate provider

    LibreTranslate does not distinguish regional variants, so unmapped codes
    are reduced to their lower-cased base code (``en-US`` -> ``en``).
    """

    provider_id = "libre"
    display_name = "LibreTranslate"

    LANGUAGE_MAP: Dict[str, str] = {
        "zh": "zh",
        "zh-CN": "zh",
        "zh-TW": "zh",
        "en": "en",
        "fr": "fr",
        "de": "de",
        "it": "it",
        "ja": "ja",
        "ko": "ko",
        "pt": "pt",
        "ru": "ru",
        "es": "es",
        "ar": "ar",
        "bg": "bg",
        "cs": "cs",
        "da": "da",
        "nl": "nl",
        "fi": "fi",
        "el": "el",
        "he": "he",
        "hi": "hi",
        "hu": "hu",
        "id": "id",
        "pl": "pl",
        "ro": "ro",
        "sk": "sk",
        "sv": "sv",
        "tr": "tr",
        "uk": "uk",
    }

    def __init__(
        self,
        api_url: str = LIBRE_TRANSLATE_API_URL,
        api_key: str = "",
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def map_language_code(self, code: str) -> str:
        base = code.split("-")[0].lower()
        return self.LANGUAGE_MAP.get(code) or self.LANGUAGE_MAP.get(base) or base

    async def is_available(self) -> bool:
        """Probe the server's base URL"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.api_url)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"LibreTranslate not reachable at {self.api_url}: {e}")
            return False

    def _raise_for_status(self, response: httpx.Response):
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = classify_status(response.status_code, self.provider_id, error_detail(response))
            logger.warning(f"LibreTranslate error: {error.reason} ({response.status_code})")
            raise error from e

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with LibreTranslate"""
        payload = {
            "q": text,
            "source": self.map_language_code(source_lang),
            "target": self.map_language_code(target_lang),
            "format": "text",
        }
        if self.api_key:
            payload["api_key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.api_url}/translate", json=payload)
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.provider_id) from e

        self._raise_for_status(response)

        try:
            return response.json()["translatedText"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderInternalError(
                "Malformed response from LibreTranslate", provider=self.provider_id
            ) from e

    async def get_supported_languages(self) -> List[Dict[str, str]]:
        """
        List the languages installed on the server

        Returns:
            [{"code", "name"}, ...]
        """
        params = {"api_key": self.api_key} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.api_url}/languages", params=params)
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.provider_id) from e

        self._raise_for_status(response)

        data = response.json()
        if not isinstance(data, list):
            raise ProviderInternalError(
                "Malformed language list from LibreTranslate", provider=self.provider_id
            )
        return [{"code": lang.get("code", ""), "name": lang.get("name", "")} for lang in data]

    async def is_language_supported(self, code: str) -> bool:
        """False when the server cannot be asked"""
        mapped = self.map_language_code(code)
        try:
            languages = await self.get_supported_languages()
        except Exception as e:
            logger.warning(f"Could not check LibreTranslate language {code}: {e}")
            return False
        return any(lang["code"] == mapped for lang in languages)
