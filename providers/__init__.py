"""
Translation Providers Package
Document Translation Jobs - Multi-Provider Support

Supports:
- DeepL (API v2)
- Microsoft Translator (Text API v3)
- Amazon Translate (boto3)
- Argos Translate (offline, optional extra)
- LibreTranslate (self-hosted)

Usage:
    from providers import create_provider

    provider = create_provider("deepl")
    translated = await provider.translate("Hello, world!", "en", "de")
"""

from .base import (
    TranslationProvider,
    ProviderInfo,
    classify_status,
    classify_transport_error,
)

from .deepl_provider import DeepLProvider
from .microsoft_provider import MicrosoftProvider
from .amazon_provider import AmazonProvider
from .argos_provider import ArgosProvider
from .libre_provider import LibreTranslateProvider

from .manager import (
    PROVIDER_REGISTRY,
    PROVIDER_INFO,
    create_provider,
    register_provider,
    is_registered,
    list_providers,
)

__all__ = [
    # Interface
    "TranslationProvider",
    "ProviderInfo",
    "classify_status",
    "classify_transport_error",

    # Providers
    "DeepLProvider",
    "MicrosoftProvider",
    "AmazonProvider",
    "ArgosProvider",
    "LibreTranslateProvider",

    # Registry
    "PROVIDER_REGISTRY",
    "PROVIDER_INFO",
    "create_provider",
    "register_provider",
    "is_registered",
    "list_providers",
]
