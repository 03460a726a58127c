from typing import Optional

import httpx

from supportchat.config import Settings, settings as default_settings

from .base import (
    AuthenticationError,
    BaseStreamingProvider,
    LLMProviderError,
    RateLimitError,
    close_http_client,
    get_http_client,
)
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider


def get_chat_provider(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> BaseStreamingProvider:
    """
    Build the configured streaming provider from current settings.

    Cheap to call per request (the HTTP pool is shared). Raises
    AuthenticationError when the provider's API key is missing.
    """
    settings = settings or default_settings
    if settings.llm_provider == "openai":
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            base_url=settings.openai_base_url,
            client=client,
        )
    return AnthropicProvider(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
        base_url=settings.anthropic_base_url,
        api_version=settings.anthropic_version,
        client=client,
    )


__all__ = [
    "AnthropicProvider",
    "AuthenticationError",
    "BaseStreamingProvider",
    "LLMProviderError",
    "OpenAIProvider",
    "RateLimitError",
    "close_http_client",
    "get_chat_provider",
    "get_http_client",
]
