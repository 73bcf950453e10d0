"""
Platform Adapters - Unified interface for AI answer engines
"""

from typing import Dict, Iterable, Optional, Union

import httpx

from app.config import get_settings
from .base import (
    BasePlatformAdapter,
    LLMConfig,
    LLMUsage,
    PlatformId,
    PlatformResponse,
    ProviderError,
    ProviderRateLimitError,
    ProviderAuthenticationError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
    ProviderNotConfiguredError,
)
from .openai_adapter import OpenAIAdapter
from .google_adapter import GoogleAdapter
from .perplexity_adapter import PerplexityAdapter

ADAPTERS = {
    PlatformId.PERPLEXITY: PerplexityAdapter,
    PlatformId.GOOGLE_AI: GoogleAdapter,
    PlatformId.CHATGPT: OpenAIAdapter,
}


def get_adapter(
    platform: Union[PlatformId, str],
    api_key: Optional[str] = None,
    config: Optional[LLMConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BasePlatformAdapter:
    """
    Factory function to get the appropriate platform adapter.

    Args:
        platform: One of "perplexity", "google_ai", "chatgpt"
        api_key: Optional API key (uses env var if not provided)
        config: Optional request configuration
        transport: Optional httpx transport, for tests and proxies

    Returns:
        Configured adapter instance. An adapter without a key is still
        returned; its calls raise ProviderNotConfiguredError.

    Raises:
        ValueError: If platform is not supported
    """
    try:
        platform = PlatformId(platform)
    except ValueError:
        raise ValueError(
            f"Unsupported platform: {platform}. Must be one of {[p.value for p in PlatformId]}"
        )

    settings = get_settings()
    if config is None:
        model_map = {
            PlatformId.PERPLEXITY: settings.PERPLEXITY_DEFAULT_MODEL,
            PlatformId.GOOGLE_AI: settings.GOOGLE_DEFAULT_MODEL,
            PlatformId.CHATGPT: settings.OPENAI_DEFAULT_MODEL,
        }
        config = LLMConfig(
            model=model_map[platform],
            temperature=settings.PROVIDER_DEFAULT_TEMPERATURE,
            max_tokens=settings.PROVIDER_DEFAULT_MAX_TOKENS,
            timeout=settings.PROVIDER_REQUEST_TIMEOUT,
            max_retries=settings.PROVIDER_MAX_RETRIES,
            retry_delay=settings.PROVIDER_RETRY_DELAY,
        )

    return ADAPTERS[platform](api_key=api_key, config=config, transport=transport)


def get_adapters(
    platforms: Optional[Iterable[Union[PlatformId, str]]] = None,
    api_keys: Optional[Dict[str, str]] = None,
) -> Dict[PlatformId, BasePlatformAdapter]:
    """
    Get adapters for the requested platforms (all platforms by default).

    Args:
        platforms: Platforms to build adapters for
        api_keys: Optional dict of {platform: api_key} overriding env vars

    Returns:
        Dict of {platform: adapter}
    """
    api_keys = api_keys or {}
    platforms = [PlatformId(p) for p in (platforms or list(PlatformId))]
    return {
        p: get_adapter(p, api_key=api_keys.get(p.value))
        for p in platforms
    }


async def query_platform(
    platform: Union[PlatformId, str],
    domain: str,
    question: str,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PlatformResponse:
    """Issue one question to one platform and return its normalized response"""
    adapter = get_adapter(platform, api_key=api_key, transport=transport)
    return await adapter.query(domain, question)


__all__ = [
    # Factory
    "get_adapter",
    "get_adapters",
    "query_platform",
    # Base classes
    "BasePlatformAdapter",
    "LLMConfig",
    "LLMUsage",
    "PlatformId",
    "PlatformResponse",
    # Exceptions
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderAuthenticationError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "ProviderResponseError",
    "ProviderNotConfiguredError",
    # Adapters
    "OpenAIAdapter",
    "GoogleAdapter",
    "PerplexityAdapter",
]
