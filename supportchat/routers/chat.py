"""
Chat Router
===========

Streaming endpoint for the website support widget.

The browser re-sends the full transcript every turn; nothing is stored
server-side. Everything that can fail is checked before the first byte:
provider configuration, retrieval, and the upstream status. Once the
StreamingResponse starts, the body is the transcoded upstream stream and
the upstream response is closed when the body finishes.
"""

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from supportchat.config import settings
from supportchat.core.auth import verify_widget_key
from supportchat.core.errors import SupportChatError
from supportchat.models.chat import ChatRequest
from supportchat.prompts.website_chat import build_system_prompt
from supportchat.services.knowledge_service import get_knowledge_service
from supportchat.services.llm_providers import (
    AuthenticationError,
    BaseStreamingProvider,
    LLMProviderError,
    RateLimitError,
    get_chat_provider,
)
from supportchat.services.stream_transcoder import StreamTranscoder

logger = logging.getLogger(__name__)

router = APIRouter()


async def _knowledge_context(request: ChatRequest) -> str:
    """Retrieval block for the last user turn, or "" when disabled or empty."""
    if not settings.knowledge_enabled:
        return ""
    query = request.last_user_message()
    if not query:
        return ""
    try:
        service = get_knowledge_service()
    except Exception as e:
        logger.warning("Knowledge service unavailable: %s", e)
        return ""
    return await service.search_context(query)


def chat_provider() -> BaseStreamingProvider:
    """Configured provider, resolved before the request body is validated."""
    try:
        return get_chat_provider()
    except AuthenticationError as e:
        raise SupportChatError("SC-CFG-001", detail=e.message, context={"provider": e.provider})


async def _stream_body(response: httpx.Response, transcoder: StreamTranscoder):
    try:
        async for frame in transcoder.transcode(response.aiter_bytes()):
            yield frame
    except httpx.HTTPError as e:
        # Headers are already sent; the widget sees a truncated stream.
        logger.warning(
            "Upstream stream interrupted: %s",
            e,
            extra={"provider": transcoder.schema.name, "content_frames": transcoder.content_frames},
        )
    finally:
        await response.aclose()


@router.post(
    "",
    summary="Streaming website chat",
    description="Returns normalized `data:` frames terminated by `data: [DONE]`.",
    dependencies=[Depends(verify_widget_key)],
)
async def chat(request: ChatRequest, provider: BaseStreamingProvider = Depends(chat_provider)):
    system_prompt = build_system_prompt(await _knowledge_context(request))
    messages = [turn.model_dump() for turn in request.messages]

    try:
        upstream = await provider.open_stream(system_prompt, messages)
    except RateLimitError as e:
        raise SupportChatError("SC-LLM-002", detail=e.message, context={"provider": e.provider})
    except LLMProviderError as e:
        raise SupportChatError(
            "SC-LLM-001",
            detail=e.message,
            context={"provider": e.provider, "status_code": e.status_code},
        )

    logger.info(
        "Chat stream opened",
        extra={"provider": provider.name, "model": provider.model_name, "turns": len(messages)},
    )
    transcoder = StreamTranscoder(provider.schema)
    return StreamingResponse(
        _stream_body(upstream, transcoder),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
