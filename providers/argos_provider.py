"""
Argos Translate Provider
Document Translation Jobs - Multi-Provider Support

Offline translation through the argostranslate package. Missing language
packages are downloaded and installed on first use.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

try:
    import argostranslate.package
    import argostranslate.translate
    HAS_ARGOS = True
except ImportError:
    HAS_ARGOS = False

from config.constants import ARGOS_PROVISION_TIMEOUT_SECONDS, PROVIDER_TIMEOUT_SECONDS
from config.logging_config import get_logger
from core.errors import (
    ProviderInternalError,
    ProviderUnavailable,
    UnsupportedLanguagePair,
)

logger = get_logger(__name__)


class ArgosProvider:
    """
    Argos Translate provider (offline)

    A call for a pair that is not installed triggers one provisioning
    attempt and one re-check; if the pair is still missing the call fails
    with UnsupportedLanguagePair. The attempt is tracked per call, not on
    the instance.
    """

    provider_id = "argos"
    display_name = "Argos Translate (offline)"

    LANGUAGE_MAP: Dict[str, str] = {
        "en": "en",
        "es": "es",
        "fr": "fr",
        "de": "de",
        "it": "it",
        "pt": "pt",
        "ru": "ru",
        "zh": "zh",
        "zh-CN": "zh",
        "ja": "ja",
        "ar": "ar",
        "hi": "hi",
        "bg": "bg",
        "ca": "ca",
        "cs": "cs",
        "da": "da",
        "nl": "nl",
        "fi": "fi",
        "el": "el",
        "he": "he",
        "hu": "hu",
        "id": "id",
        "ko": "ko",
        "pl": "pl",
        "ro": "ro",
        "sk": "sk",
        "sv": "sv",
        "tr": "tr",
        "uk": "uk",
    }

    def __init__(
        self,
        provision_timeout: float = ARGOS_PROVISION_TIMEOUT_SECONDS,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ):
        self.provision_timeout = provision_timeout
        self.timeout = timeout

    @property
    def timeout_budget(self) -> float:
        """Per-call bound the orchestrator applies; covers one provisioning"""
        return self.timeout + self.provision_timeout

    def map_language_code(self, code: str) -> str:
        return self.LANGUAGE_MAP.get(code, code)

    async def is_available(self) -> bool:
        return HAS_ARGOS

    # ------------------------------------------------------------------
    # Blocking helpers (run in the executor)
    # ------------------------------------------------------------------

    def _find_translation(self, source: str, target: str):
        """Installed translation object for the pair, or None"""
        languages = {lang.code: lang for lang in argostranslate.translate.get_installed_languages()}
        from_lang, to_lang = languages.get(source), languages.get(target)
        if from_lang is None or to_lang is None:
            return None
        return from_lang.get_translation(to_lang)

    def _provision(self, source: str, target: str) -> bool:
        """Download and install the package for the pair; False if none exists"""
        logger.info(f"Provisioning Argos package {source}->{target}")
        argostranslate.package.update_package_index()
        for package in argostranslate.package.get_available_packages():
            if package.from_code == source and package.to_code == target:
                argostranslate.package.install_from_path(package.download())
                logger.info(f"Installed Argos package {source}->{target}")
                return True
        return False

    def get_installed_language_pairs(self) -> List[Tuple[str, str]]:
        """(from_code, to_code) for every installed package"""
        if not HAS_ARGOS:
            return []
        return [
            (package.from_code, package.to_code)
            for package in argostranslate.package.get_installed_packages()
        ]

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    async def _run(self, func, *args, timeout: Optional[float] = None):
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(loop.run_in_executor(None, func, *args), timeout)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with the locally installed Argos models"""
        if not HAS_ARGOS:
            raise ProviderUnavailable("argostranslate is not installed", provider=self.provider_id)

        source = self.map_language_code(source_lang)
        target = self.map_language_code(target_lang)

        translation = await self._run(self._find_translation, source, target)
        if translation is None:
            try:
                await self._run(self._provision, source, target, timeout=self.provision_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Argos provisioning {source}->{target} timed out")
            except Exception as e:
                logger.warning(f"Argos provisioning {source}->{target} failed: {e}")

            translation = await self._run(self._find_translation, source, target)
            if translation is None:
                raise UnsupportedLanguagePair(
                    f"Language pair {source}->{target} is not available",
                    provider=self.provider_id,
                )

        try:
            return await self._run(translation.translate, text)
        except Exception as e:
            raise ProviderInternalError(
                f"Argos translation failed: {type(e).__name__}", provider=self.provider_id
            ) from e
