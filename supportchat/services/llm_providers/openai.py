"""
OpenAI Streaming Provider
=========================

Chat Completions with `stream: true`. The system prompt travels as the first
`system` message. The stream already uses `choices[0].delta.content`, but it
still goes through the transcoder so extra fields never reach the widget.
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from supportchat.services.stream_transcoder import OPENAI_SCHEMA
from .base import BaseStreamingProvider


class OpenAIProvider(BaseStreamingProvider):
    """OpenAI chat completions (gpt-4o-mini by default)."""

    name = "openai"
    schema = OPENAI_SCHEMA
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        max_tokens: int = 1024,
        base_url: str = "https://api.openai.com",
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key, model=model, max_tokens=max_tokens, client=client)
        self.base_url = base_url.rstrip("/")

    def build_request(
        self, system_prompt: str, messages: List[Dict[str, str]]
    ) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        chat_messages = []
        if system_prompt:
            chat_messages.append({"role": "system", "content": system_prompt})
        chat_messages.extend({"role": m["role"], "content": m["content"]} for m in messages)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        body = {
            "model": self.model_name,
            "max_tokens": self.max_tokens,
            "messages": chat_messages,
            "stream": True,
        }
        return f"{self.base_url}/v1/chat/completions", headers, body
