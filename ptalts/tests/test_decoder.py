"""
Unit tests for event-stream frame decoding.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from ptalts.sse.decoder import FrameDecoder, aiter_frames, iter_frames


async def _alines(lines):
    for line in lines:
        yield line


class TestFrameDecoder:
    """Test cases for FrameDecoder and iter_frames."""

    def test_single_frame(self):
        """Test a data line closed by a blank line yields one payload."""
        assert list(iter_frames(['data: {"a": 1}', ""])) == ['{"a": 1}']

    def test_multiline_frame_joined_with_newlines(self):
        """Test data lines of one frame are joined in order."""
        lines = ["data: first", "data:second", "data:   third", ""]

        assert list(iter_frames(lines)) == ["first\nsecond\nthird"]

    def test_one_payload_per_block(self):
        """Test each closed block yields exactly one payload."""
        lines = ["data: 1", "", "data: 2", "data: 3", "", "data: 4", ""]

        assert list(iter_frames(lines)) == ["1", "2\n3", "4"]

    def test_non_data_fields_ignored(self):
        """Test event/id/retry fields and comments are skipped."""
        lines = [": keep-alive", "event: restock", "id: 7", "retry: 1000", "data: payload", ""]

        assert list(iter_frames(lines)) == ["payload"]

    def test_consecutive_blank_lines_are_noops(self):
        """Test blank lines with nothing pending emit nothing."""
        lines = ["", "", "data: x", "", "", ""]

        assert list(iter_frames(lines)) == ["x"]

    def test_frame_without_data_emits_nothing(self):
        """Test a block with only non-data fields is dropped."""
        assert list(iter_frames(["event: heartbeat", ""])) == []

    def test_truncated_final_frame_is_dropped(self):
        """Test a frame never closed by a blank line is never flushed."""
        decoder = FrameDecoder()
        lines = ["data: complete", "", "data: partial"]

        assert list(iter_frames(lines)) == ["complete"]

        for line in lines:
            decoder.feed(line)
        assert decoder.pending is True

    def test_only_truncated_frame_yields_nothing(self):
        """Test a stream holding only an unterminated frame yields no payload."""
        assert list(iter_frames(['data: {"event": "token", "token": "abc"}'])) == []

    def test_line_terminators_are_stripped(self):
        """Test CRLF and LF terminated input decode the same."""
        lines = ["data: crlf\r\n", "\r\n", "data: lf\n", "\n"]

        assert list(iter_frames(lines)) == ["crlf", "lf"]

    def test_whitespace_only_payload_is_dropped(self):
        """Test a frame whose data is blank is not emitted."""
        assert list(iter_frames(["data:    ", ""])) == []

    def test_iter_frames_is_lazy(self):
        """Test payloads are produced before the input is exhausted."""
        def lines():
            yield "data: early"
            yield ""
            raise AssertionError("read past the first frame")

        frames = iter_frames(lines())
        assert next(frames) == "early"

    @pytest.mark.asyncio
    async def test_aiter_frames(self):
        """Test the async variant matches the sync one."""
        lines = ["data: a", "", "event: x", "data: b", "data: c", "", "data: dangling"]

        payloads = [payload async for payload in aiter_frames(_alines(lines))]

        assert payloads == ["a", "b\nc"]
