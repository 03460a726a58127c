"""
Stream Transcoder
=================

Re-frames an upstream provider's SSE stream into the normalized wire format
the widget consumes, one blank-line-terminated `data: ` frame per event:

    data: {"choices":[{"delta":{"content":"<fragment>"}}]}
    data: [DONE]

The vendor-specific part is a ReframingSchema (where the text lives, which
event means "message complete"). Swapping providers only swaps the schema;
the consumer never sees vendor events.

Per line:
- blank and comment lines are ignored
- lines without the `data: ` marker are ignored (e.g. `event: ...`)
- malformed JSON drops that line only
- the DONE frame goes out at most once; nothing is emitted after it
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Callable, List, Optional

from supportchat.services.sse import (
    DATA_PREFIX,
    DONE_FRAME,
    DONE_SENTINEL,
    LineBuffer,
    format_delta_frame,
    is_ignorable,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReframingSchema:
    """How to read one vendor's streaming events."""

    name: str
    extract_text: Callable[[dict], Optional[str]]
    is_stop: Callable[[dict], bool]


def _anthropic_text(event: dict) -> Optional[str]:
    if event.get("type") != "content_block_delta":
        return None
    delta = event.get("delta")
    if not isinstance(delta, dict):
        return None
    text = delta.get("text")
    return text if isinstance(text, str) else None


def _openai_text(event: dict) -> Optional[str]:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


ANTHROPIC_SCHEMA = ReframingSchema(
    name="anthropic",
    extract_text=_anthropic_text,
    is_stop=lambda event: event.get("type") == "message_stop",
)

# OpenAI terminates with the literal [DONE] sentinel; finish_reason is not terminal here.
OPENAI_SCHEMA = ReframingSchema(
    name="openai",
    extract_text=_openai_text,
    is_stop=lambda event: False,
)


class StreamTranscoder:
    """Stateful re-framer for a single upstream response."""

    def __init__(self, schema: ReframingSchema = ANTHROPIC_SCHEMA) -> None:
        self.schema = schema
        self._lines = LineBuffer()
        self.done = False
        self.content_frames = 0
        self.dropped_lines = 0

    def process_line(self, line: str) -> Optional[str]:
        """Map one decoded upstream line to a normalized frame, or None."""
        if self.done or is_ignorable(line):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        data = line[len(DATA_PREFIX):]
        if data.strip() == DONE_SENTINEL:
            return self._finish()

        try:
            event: Any = json.loads(data)
        except ValueError:
            self.dropped_lines += 1
            logger.debug("Dropping malformed upstream line: %.120s", data)
            return None
        if not isinstance(event, dict):
            return None

        text = self.schema.extract_text(event)
        if text:
            self.content_frames += 1
            return format_delta_frame(text)
        if self.schema.is_stop(event):
            return self._finish()
        return None

    def _finish(self) -> str:
        self.done = True
        return DONE_FRAME

    def feed(self, chunk: bytes) -> List[str]:
        """Feed raw upstream bytes; return frames for every completed line."""
        frames = []
        for line in self._lines.feed(chunk):
            frame = self.process_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> List[str]:
        """Handle a final line the upstream left without a newline."""
        rest = self._lines.flush()
        if rest is None:
            return []
        frame = self.process_line(rest)
        return [frame] if frame is not None else []

    async def transcode(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        """Async generator suitable as a StreamingResponse body."""
        async for chunk in chunks:
            for frame in self.feed(chunk):
                yield frame.encode("utf-8")
        for frame in self.flush():
            yield frame.encode("utf-8")

        logger.info(
            "Upstream stream finished",
            extra={
                "provider": self.schema.name,
                "content_frames": self.content_frames,
                "dropped_lines": self.dropped_lines,
                "completed": self.done,
            },
        )
