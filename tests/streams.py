"""Byte-stream builders shared by the streaming tests."""

from typing import AsyncIterator, Callable, Iterable

import httpx


def sse_lines(*lines: str) -> bytes:
    """Join SSE lines with newlines (each event followed by a blank line)."""
    return "".join(f"{line}\n" for line in lines).encode("utf-8")


def anthropic_events(*texts: str, stop: bool = True) -> bytes:
    """A minimal Anthropic Messages stream carrying `texts` as deltas."""
    lines = [
        "event: message_start",
        'data: {"type":"message_start","message":{"id":"msg_1","role":"assistant"}}',
        "",
    ]
    for text in texts:
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        lines += [
            "event: content_block_delta",
            f'data: {{"type":"content_block_delta","index":0,"delta":{{"type":"text_delta","text":"{escaped}"}}}}',
            "",
        ]
    if stop:
        lines += ["event: message_stop", 'data: {"type":"message_stop"}', ""]
    return sse_lines(*lines)


async def aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


def split_every(data: bytes, size: int) -> list:
    return [data[i:i + size] for i in range(0, len(data), size)]


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))

