"""
Translation Provider - Capability interface
Document Translation Jobs - Multi-Provider Support
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, runtime_checkable

import httpx

from core.errors import (
    TranslationJobError,
    ProviderAuthFailed,
    ProviderBadRequest,
    ProviderInternalError,
    ProviderRateLimited,
    ProviderUnavailable,
)


@runtime_checkable
class TranslationProvider(Protocol):
    """
    What the orchestrator needs from a translation backend.

    Adapters do not share a base class; any object with these members can
    be registered.
    """

    provider_id: str
    display_name: str

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate one chunk; raises a TranslationJobError subclass on failure"""
        ...

    def map_language_code(self, code: str) -> str:
        """Map a caller language code to the backend's code"""
        ...

    async def is_available(self) -> bool:
        """Liveness check; True when the backend has none"""
        ...


@dataclass
class ProviderInfo:
    """Information about a translation provider"""
    provider_id: str
    display_name: str
    description: str
    language_map: Dict[str, str] = field(default_factory=dict)
    env_keys: List[str] = field(default_factory=list)  # Settings fields holding credentials
    offline: bool = False


# ============================================================================
# Shared HTTP error classification
# ============================================================================

DEFAULT_STATUS_MAP: Dict[int, type] = {
    400: ProviderBadRequest,
    401: ProviderAuthFailed,
    403: ProviderAuthFailed,
    429: ProviderRateLimited,
}


def error_detail(response: httpx.Response) -> str:
    """Pull a short message out of a JSON error body, if there is one"""
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        error = data.get("error", data.get("message", ""))
        if isinstance(error, dict):
            return str(error.get("message", ""))
        return str(error)
    return ""


def classify_status(
    status_code: int,
    provider: str,
    detail: str = "",
    overrides: Optional[Dict[int, type]] = None,
) -> TranslationJobError:
    """
    Map an HTTP status to a taxonomy error

    Args:
        status_code: Response status
        provider: Provider id, carried on the error
        detail: Backend message, appended when present
        overrides: Provider-specific status codes (e.g. DeepL 456)
    """
    status_map = {**DEFAULT_STATUS_MAP, **(overrides or {})}
    error_cls = status_map.get(status_code)
    if error_cls is None:
        error_cls = ProviderInternalError if status_code >= 500 else ProviderBadRequest

    message = f"HTTP {status_code}"
    if detail:
        message = f"{message}: {detail}"
    return error_cls(message, provider=provider)


def classify_transport_error(exc: httpx.HTTPError, provider: str) -> TranslationJobError:
    """Connection failures and timeouts are transient"""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderUnavailable("Request timed out", provider=provider)
    return ProviderUnavailable(f"Could not reach backend ({type(exc).__name__})", provider=provider)

