"""
Anthropic Claude Streaming Provider
===================================

Calls the Messages API with `stream: true`. Its SSE stream carries
`content_block_delta` events for text and a `message_stop` event at the end;
ANTHROPIC_SCHEMA tells the transcoder how to read them.
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from supportchat.services.stream_transcoder import ANTHROPIC_SCHEMA
from .base import BaseStreamingProvider


DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_API_VERSION = "2023-06-01"


class AnthropicProvider(BaseStreamingProvider):
    """Anthropic Messages API, system prompt via the separate `system` field."""

    name = "anthropic"
    schema = ANTHROPIC_SCHEMA
    DEFAULT_MODEL = DEFAULT_MODEL

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        max_tokens: int = 1024,
        base_url: str = "https://api.anthropic.com",
        api_version: str = DEFAULT_API_VERSION,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key, model=model, max_tokens=max_tokens, client=client)
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version

    def build_request(
        self, system_prompt: str, messages: List[Dict[str, str]]
    ) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        body: Dict[str, Any] = {
            "model": self.model_name,
            "max_tokens": self.max_tokens,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "stream": True,
        }
        if system_prompt:
            body["system"] = system_prompt
        return f"{self.base_url}/v1/messages", headers, body
