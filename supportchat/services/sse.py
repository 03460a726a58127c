"""
SSE line framing shared by the transcoder (server) and the consumer (client).

Bytes arrive in arbitrary network-sized pieces. LineBuffer decodes them with
an incremental UTF-8 decoder (a multi-byte character split across two reads
is held back until complete) and hands out whole lines only. The partial
tail stays buffered until its newline arrives.
"""

from __future__ import annotations

import codecs
import json
from typing import List, Optional

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
DONE_FRAME = f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"


def format_delta_frame(text: str) -> str:
    """Serialize one content fragment in the normalized wire shape."""
    payload = {"choices": [{"delta": {"content": text}}]}
    return f"{DATA_PREFIX}{json.dumps(payload, ensure_ascii=False, separators=(',', ':'))}\n\n"


def is_ignorable(line: str) -> bool:
    """Blank lines and SSE comments (leading ':') carry no event."""
    return not line.strip() or line.startswith(":")


class LineBuffer:
    """Incremental decoder plus "extract complete lines, keep remainder" buffer."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self.buffer = ""

    def decode(self, chunk: bytes) -> None:
        """Append newly decoded text. Never re-decodes earlier bytes."""
        self.buffer += self._decoder.decode(chunk)

    def next_line(self) -> Optional[str]:
        """Pop the next complete line (newline removed, trailing CR stripped)."""
        newline_index = self.buffer.find("\n")
        if newline_index == -1:
            return None
        line = self.buffer[:newline_index]
        self.buffer = self.buffer[newline_index + 1:]
        if line.endswith("\r"):
            line = line[:-1]
        return line

    def push_front(self, line: str) -> None:
        """Put a line back at the buffer front, restoring its newline."""
        self.buffer = line + "\n" + self.buffer

    def feed(self, chunk: bytes) -> List[str]:
        """Decode a chunk and return every line it completed."""
        self.decode(chunk)
        lines: List[str] = []
        line = self.next_line()
        while line is not None:
            lines.append(line)
            line = self.next_line()
        return lines

    def flush(self) -> Optional[str]:
        """Finish decoding and return any unterminated trailing text."""
        self.buffer += self._decoder.decode(b"", final=True)
        rest, self.buffer = self.buffer, ""
        if rest.endswith("\r"):
            rest = rest[:-1]
        return rest or None
