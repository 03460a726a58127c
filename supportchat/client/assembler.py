"""
Client-side reassembly of the normalized chat stream.

DeltaAssembler is the pure part of the consumer: raw bytes in, content
fragments out. It holds no I/O, so it can be driven by any transport.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from supportchat.services.sse import DATA_PREFIX, DONE_SENTINEL, LineBuffer, is_ignorable

logger = logging.getLogger(__name__)


class DeltaAssembler:
    """Accumulates `delta.content` fragments from `data:` lines.

    A line that fails to parse is put back at the buffer front and the rest
    of that read is deferred. It gets one more attempt on the next read; if
    it fails again it is dropped so later lines keep flowing.
    """

    def __init__(self) -> None:
        self._lines = LineBuffer()
        self._retry_line: Optional[str] = None
        self._ended = False
        self.content = ""
        self.done = False
        self.dropped_lines = 0

    def feed(self, chunk: bytes) -> List[str]:
        """Decode one network read; return the fragments it completed."""
        if self.done:
            return []
        self._lines.decode(chunk)
        return self._drain()

    def finish(self) -> List[str]:
        """End of stream: process any complete lines still buffered.

        No later read can repair a line now, so unparseable lines are
        dropped on first sight. Unterminated trailing text is discarded.
        """
        self._ended = True
        fragments = self._drain()
        rest = self._lines.flush()
        if rest and not self.done:
            logger.debug("Discarding unterminated stream tail: %.120s", rest)
        return fragments

    def _drain(self) -> List[str]:
        fragments: List[str] = []
        line = self._lines.next_line()
        while line is not None and not self.done:
            if self._handle_line(line, fragments) is False:
                break
            line = self._lines.next_line()
        return fragments

    def _handle_line(self, line: str, fragments: List[str]) -> Optional[bool]:
        """Returns False when processing must stop for this read."""
        if is_ignorable(line) or not line.startswith(DATA_PREFIX):
            return None

        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            return False

        try:
            payload = json.loads(data)
        except ValueError:
            if self._ended or self._retry_line == line:
                self._retry_line = None
                self.dropped_lines += 1
                logger.warning("Dropping unparseable stream line: %.120s", line)
                return None
            logger.debug("Re-buffering unparseable stream line: %.120s", line)
            self._retry_line = line
            self._lines.push_front(line)
            return False

        self._retry_line = None
        text = _delta_content(payload)
        if text:
            self.content += text
            fragments.append(text)
        return None


def _delta_content(payload) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None
