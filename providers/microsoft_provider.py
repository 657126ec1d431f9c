"""
Microsoft Translator Provider
Document Translation Jobs - Multi-Provider Support

Microsoft Translator Text API v3 over httpx.
"""

from typing import Dict, List, Optional

import httpx

from config.constants import (
    MICROSOFT_API_VERSION,
    MICROSOFT_TRANSLATOR_ENDPOINT,
    PROVIDER_TIMEOUT_SECONDS,
)
from config.logging_config import get_logger
from core.errors import (
    ProviderAuthFailed,
    ProviderInternalError,
    UnsupportedLanguagePair,
)

from .base import classify_status, classify_transport_error

logger = get_logger(__name__)


class MicrosoftProvider:
    """
    Microsoft Translator provider

    Uses BCP-47 tags; only the special cases below are remapped, everything
    else passes through unchanged.
    """

    provider_id = "microsoft"
    display_name = "Microsoft Translator"

    LANGUAGE_MAP: Dict[str, str] = {
        "zh": "zh-Hans",
        "zh-CN": "zh-Hans",
        "zh-TW": "zh-Hant",
        "sr-Latn": "sr-Latn",
        "sr-Cyrl": "sr-Cyrl",
        "no": "nb",
        "pt": "pt",
        "pt-BR": "pt-br",
        "pt-PT": "pt-pt",
        "sr": "sr-Cyrl",
    }

    # Translator error codes for an invalid source/target language
    UNSUPPORTED_LANGUAGE_CODES = {400035, 400036}

    def __init__(
        self,
        api_key: str = "",
        region: str = "global",
        endpoint: str = MICROSOFT_TRANSLATOR_ENDPOINT,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.region = region
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def map_language_code(self, code: str) -> str:
        return self.LANGUAGE_MAP.get(code, code)

    async def is_available(self) -> bool:
        return True

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderAuthFailed(
                "Microsoft Translator API key not configured", provider=self.provider_id
            )
        return {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Ocp-Apim-Subscription-Region": self.region,
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response):
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                body = response.json()
            except ValueError:
                body = {}
            error = body.get("error") if isinstance(body, dict) else None
            if not isinstance(error, dict):
                error = {}
            code, message = error.get("code"), error.get("message", "")

            if response.status_code == 400 and code in self.UNSUPPORTED_LANGUAGE_CODES:
                raise UnsupportedLanguagePair(message or "Language not supported",
                                              provider=self.provider_id) from e

            error = classify_status(response.status_code, self.provider_id, message)
            logger.warning(f"Microsoft Translator error: {error.reason} ({response.status_code})")
            raise error from e

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with Microsoft Translator"""
        headers = self._headers()
        params = {
            "api-version": MICROSOFT_API_VERSION,
            "from": self.map_language_code(source_lang),
            "to": self.map_language_code(target_lang),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.endpoint}/translate",
                    params=params,
                    json=[{"text": text}],
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.provider_id) from e

        self._raise_for_status(response)

        try:
            return response.json()[0]["translations"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderInternalError(
                "Malformed response from Microsoft Translator", provider=self.provider_id
            ) from e

    async def get_supported_languages(self) -> List[Dict[str, str]]:
        """
        List the languages the translation scope supports

        Returns:
            [{"code", "name", "native_name", "dir"}, ...]
        """
        headers = self._headers()
        headers["Accept-Language"] = "en"
        params = {"api-version": MICROSOFT_API_VERSION, "scope": "translation"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.endpoint}/languages", params=params, headers=headers)
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.provider_id) from e

        self._raise_for_status(response)

        try:
            translation = response.json()["translation"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderInternalError(
                "Malformed language list from Microsoft Translator", provider=self.provider_id
            ) from e

        return [
            {
                "code": code,
                "name": data.get("name", ""),
                "native_name": data.get("nativeName", ""),
                "dir": data.get("dir", "ltr"),
            }
            for code, data in translation.items()
        ]

    async def is_language_supported(self, code: str) -> bool:
        mapped = self.map_language_code(code)
        languages = await self.get_supported_languages()
        return any(lang["code"] == mapped for lang in languages)
