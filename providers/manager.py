"""
Translation Provider Registry
Document Translation Jobs - Multi-Provider Support

Maps provider ids to adapter classes and builds configured instances.
"""

from typing import Dict, List, Optional, Type

from core.errors import ProviderBadRequest

from .base import ProviderInfo, TranslationProvider
from .deepl_provider import DeepLProvider
from .microsoft_provider import MicrosoftProvider
from .amazon_provider import AmazonProvider
from .argos_provider import ArgosProvider
from .libre_provider import LibreTranslateProvider


# Registry of all available providers
PROVIDER_REGISTRY: Dict[str, Type] = {
    "deepl": DeepLProvider,
    "microsoft": MicrosoftProvider,
    "amazon": AmazonProvider,
    "argos": ArgosProvider,
    "libre": LibreTranslateProvider,
}

# Provider information
PROVIDER_INFO: Dict[str, ProviderInfo] = {
    "deepl": ProviderInfo(
        provider_id="deepl",
        display_name=DeepLProvider.display_name,
        description="DeepL API v2 - high quality for European languages",
        language_map=DeepLProvider.LANGUAGE_MAP,
        env_keys=["DEEPL_API_KEY", "DEEPL_API_URL"],
    ),
    "microsoft": ProviderInfo(
        provider_id="microsoft",
        display_name=MicrosoftProvider.display_name,
        description="Azure Translator v3 - broad language coverage",
        language_map=MicrosoftProvider.LANGUAGE_MAP,
        env_keys=["MICROSOFT_TRANSLATOR_KEY", "MICROSOFT_TRANSLATOR_REGION"],
    ),
    "amazon": ProviderInfo(
        provider_id="amazon",
        display_name=AmazonProvider.display_name,
        description="Amazon Translate via boto3",
        language_map=AmazonProvider.LANGUAGE_MAP,
        env_keys=["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_REGION"],
    ),
    "argos": ProviderInfo(
        provider_id="argos",
        display_name=ArgosProvider.display_name,
        description="Offline neural translation, models installed on demand",
        language_map=ArgosProvider.LANGUAGE_MAP,
        env_keys=[],
        offline=True,
    ),
    "libre": ProviderInfo(
        provider_id="libre",
        display_name=LibreTranslateProvider.display_name,
        description="Self-hosted LibreTranslate server",
        language_map=LibreTranslateProvider.LANGUAGE_MAP,
        env_keys=["LIBRE_TRANSLATE_API_URL", "LIBRE_TRANSLATE_API_KEY"],
    ),
}


def is_registered(provider_id: str) -> bool:
    return provider_id in PROVIDER_REGISTRY


def create_provider(provider_id: str, settings=None) -> TranslationProvider:
    """
    Create a configured provider instance

    Args:
        provider_id: Registry key (e.g. "deepl")
        settings: Settings object (default: global settings)

    Raises:
        ProviderBadRequest: If the id is not registered
    """
    provider_class = PROVIDER_REGISTRY.get(provider_id)
    if provider_class is None:
        raise ProviderBadRequest(f"Unknown provider: {provider_id}")

    if settings is None:
        from config.settings import settings

    kwargs = dict(settings.get_provider_credentials(provider_id))
    kwargs["timeout"] = settings.provider_timeout
    return provider_class(**kwargs)


def register_provider(provider_id: str, provider_class: Type, info: Optional[ProviderInfo] = None):
    """Add or replace a registry entry"""
    PROVIDER_REGISTRY[provider_id] = provider_class
    PROVIDER_INFO[provider_id] = info or ProviderInfo(
        provider_id=provider_id,
        display_name=getattr(provider_class, "display_name", provider_id),
        description="",
        language_map=dict(getattr(provider_class, "LANGUAGE_MAP", {})),
    )


def list_providers() -> List[ProviderInfo]:
    """List all registered providers"""
    return list(PROVIDER_INFO.values())
