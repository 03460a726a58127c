"""
LLM Provider Base Class
=======================

Abstract base class and exceptions for upstream chat-completion providers.

Providers here do not parse the stream. They open the streaming HTTP
request, classify failures that happen before the first byte, and hand
the still-unread response to the StreamTranscoder together with the
ReframingSchema that describes their event format.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from supportchat.config import settings
from supportchat.services.stream_transcoder import ReframingSchema

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(self.message)


class RateLimitError(LLMProviderError):
    """Raised when provider rate limit is exceeded."""
    pass


class AuthenticationError(LLMProviderError):
    """Raised when API key is invalid or missing."""
    pass


# ---------------------------------------------------------------------------
# Shared HTTP client (one connection pool for all upstream calls)
# ---------------------------------------------------------------------------
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared upstream HTTP client (singleton)."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout_s, connect=settings.upstream_connect_timeout_s),
        )
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


class BaseStreamingProvider(ABC):
    """
    Base class for streaming chat-completion providers.

    Implementations supply the request shape and the re-framing schema;
    sending, status classification and cleanup are shared.
    """

    name: str = "unknown"
    schema: ReframingSchema
    DEFAULT_MODEL: str = ""

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        max_tokens: int = 1024,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise AuthenticationError(
                f"{self.name} API key is not configured",
                provider=self.name,
            )
        self.api_key = api_key
        self.model_name = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    @abstractmethod
    def build_request(
        self, system_prompt: str, messages: List[Dict[str, str]]
    ) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """Return (url, headers, json body) for a streaming completion."""

    async def open_stream(self, system_prompt: str, messages: List[Dict[str, str]]) -> httpx.Response:
        """
        Send the streaming request and return the unread response.

        The caller owns the returned response and must `aclose()` it.

        Raises:
            RateLimitError: upstream answered 429
            LLMProviderError: any other non-2xx status or a transport failure
        """
        url, headers, body = self.build_request(system_prompt, messages)
        request = self.client.build_request("POST", url, json=body, headers=headers)

        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise LLMProviderError(
                f"{self.name} request failed: {e}",
                provider=self.name,
                original_error=e,
            )

        if response.is_success:
            return response

        try:
            error_text = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            error_text = ""
        finally:
            await response.aclose()

        logger.error("%s API error: %s %s", self.name, response.status_code, error_text[:500])

        if response.status_code == 429:
            raise RateLimitError(
                f"{self.name} API rate limit exceeded",
                provider=self.name,
                status_code=429,
            )
        raise LLMProviderError(
            f"{self.name} API error ({response.status_code})",
            provider=self.name,
            status_code=response.status_code,
        )

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "model": self.model_name,
            "max_tokens": self.max_tokens,
        }
