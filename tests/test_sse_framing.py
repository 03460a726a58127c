"""
Tests for the shared SSE line buffer and frame formatting.
"""

import json

from supportchat.services.sse import (
    DONE_FRAME,
    LineBuffer,
    format_delta_frame,
    is_ignorable,
)


class TestFormatDeltaFrame:

    def test_compact_normalized_shape(self):
        assert format_delta_frame("Hi") == 'data: {"choices":[{"delta":{"content":"Hi"}}]}\n\n'

    def test_non_ascii_kept_verbatim(self):
        frame = format_delta_frame("café ☕")
        assert "café ☕" in frame
        payload = json.loads(frame[len("data: "):].strip())
        assert payload["choices"][0]["delta"]["content"] == "café ☕"

    def test_newlines_in_text_are_escaped(self):
        frame = format_delta_frame("a\nb")
        assert frame.count("\n") == 2
        assert frame.endswith("\n\n")

    def test_done_frame(self):
        assert DONE_FRAME == "data: [DONE]\n\n"


class TestIsIgnorable:

    def test_blank_and_whitespace(self):
        assert is_ignorable("")
        assert is_ignorable("   ")

    def test_comment(self):
        assert is_ignorable(": keep-alive")

    def test_data_line_is_not_ignorable(self):
        assert not is_ignorable("data: {}")


class TestLineBuffer:

    def test_line_split_across_reads(self):
        buf = LineBuffer()
        assert buf.feed(b"data: hel") == []
        assert buf.feed(b"lo\nda") == ["data: hello"]
        assert buf.buffer == "da"

    def test_crlf_stripped(self):
        buf = LineBuffer()
        assert buf.feed(b"one\r\ntwo\r\n") == ["one", "two"]

    def test_split_multibyte_character(self):
        buf = LineBuffer()
        encoded = "né\n".encode("utf-8")
        assert buf.feed(encoded[:2]) == []
        assert buf.feed(encoded[2:]) == ["né"]

    def test_push_front_restores_newline(self):
        buf = LineBuffer()
        buf.feed(b"first\nsecond")
        buf.push_front("first")
        assert buf.next_line() == "first"
        assert buf.next_line() is None
        assert buf.buffer == "second"

    def test_flush_returns_unterminated_tail(self):
        buf = LineBuffer()
        buf.feed(b"complete\npartial\r")
        assert buf.flush() == "partial"
        assert buf.flush() is None
