"""Tests for ptyhost.pty.buffer.RingBuffer."""

from __future__ import annotations

import re

import pytest

from ptyhost.errors import ErrorKind, InvalidPatternError
from ptyhost.pty.buffer import DEFAULT_MAX_LINES, RingBuffer, default_capacity


class TestRingBufferBasics:
    def test_empty(self) -> None:
        buf = RingBuffer()
        assert buf.length == 0
        assert len(buf) == 0
        assert buf.read() == []

    def test_default_capacity(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PTY_MAX_BUFFER_LINES", raising=False)
        assert RingBuffer().capacity == DEFAULT_MAX_LINES == 50_000

    def test_capacity_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PTY_MAX_BUFFER_LINES", "7")
        assert default_capacity() == 7
        assert RingBuffer().capacity == 7

    def test_bad_capacity_env_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PTY_MAX_BUFFER_LINES", "lots")
        assert default_capacity() == DEFAULT_MAX_LINES

    def test_non_positive_capacity_rejected(self) -> None:
        with pytest.raises(ValueError):
            RingBuffer(capacity=0)

    def test_single_line_chunks_keep_order(self) -> None:
        buf = RingBuffer(capacity=10)
        for i in range(5):
            buf.append(f"line {i}")
        assert buf.length == 5
        assert buf.read() == [f"line {i}" for i in range(5)]

    def test_clear(self) -> None:
        buf = RingBuffer()
        buf.append("a\nb\nc")
        buf.clear()
        assert buf.length == 0
        assert buf.read() == []


class TestRingBufferLineSplitting:
    def test_multi_line_chunk(self) -> None:
        buf = RingBuffer()
        buf.append("line1\nline2\nline3")
        assert buf.read() == ["line1", "line2", "line3"]

    def test_trailing_newline_gives_empty_tail_line(self) -> None:
        buf = RingBuffer()
        buf.append("line1\nline2\n")
        assert buf.read() == ["line1", "line2", ""]

    def test_crlf_is_one_terminator(self) -> None:
        buf = RingBuffer()
        buf.append("hi\r\nthere\r\n")
        assert buf.read() == ["hi", "there", ""]

    def test_lone_cr_is_kept(self) -> None:
        buf = RingBuffer()
        buf.append("50%\r100%")
        assert buf.read() == ["50%\r100%"]

    def test_chunks_are_never_merged(self) -> None:
        buf = RingBuffer()
        buf.append("partial li")
        buf.append("ne\n")
        assert buf.read() == ["partial li", "ne", ""]

    def test_empty_chunk_appends_one_empty_line(self) -> None:
        buf = RingBuffer()
        buf.append("")
        assert buf.read() == [""]


class TestRingBufferOverflow:
    def test_keeps_last_capacity_lines(self) -> None:
        buf = RingBuffer(capacity=5)
        for i in range(10):
            buf.append(f"line {i}")
        assert buf.length == 5
        assert buf.read() == ["line 5", "line 6", "line 7", "line 8", "line 9"]

    def test_overflow_within_one_chunk(self) -> None:
        buf = RingBuffer(capacity=3)
        buf.append("a\nb\nc\nd\ne")
        assert buf.read() == ["c", "d", "e"]

    def test_length_never_exceeds_capacity(self) -> None:
        buf = RingBuffer(capacity=4)
        for i in range(50):
            buf.append(f"{i}\n{i}")
            assert buf.length <= 4


class TestRingBufferRead:
    @pytest.fixture
    def buf(self) -> RingBuffer:
        buf = RingBuffer()
        for i in range(10):
            buf.append(f"line {i}")
        return buf

    def test_offset_and_limit(self, buf: RingBuffer) -> None:
        assert buf.read(offset=5, limit=3) == ["line 5", "line 6", "line 7"]

    def test_limit_past_end(self, buf: RingBuffer) -> None:
        assert buf.read(offset=8, limit=100) == ["line 8", "line 9"]

    def test_no_limit_reads_to_end(self, buf: RingBuffer) -> None:
        assert buf.read(offset=7) == ["line 7", "line 8", "line 9"]

    def test_offset_beyond_end_is_empty(self, buf: RingBuffer) -> None:
        assert buf.read(offset=10, limit=10) == []
        assert buf.read(offset=500) == []

    def test_negative_offset_clamped(self, buf: RingBuffer) -> None:
        assert buf.read(offset=-3, limit=2) == ["line 0", "line 1"]

    def test_zero_limit(self, buf: RingBuffer) -> None:
        assert buf.read(offset=0, limit=0) == []

    def test_read_tail(self, buf: RingBuffer) -> None:
        assert buf.read_tail(3) == ["line 7", "line 8", "line 9"]
        assert buf.read_tail(100) == buf.read()
        assert buf.read_tail(0) == []


class TestRingBufferSearch:
    def test_search_positions_are_one_based(self) -> None:
        buf = RingBuffer()
        buf.append("error: something failed\ninfo: all good\nerror: another failure")
        assert buf.search("error") == [
            (1, "error: something failed"),
            (3, "error: another failure"),
        ]

    def test_search_compiled_pattern(self) -> None:
        buf = RingBuffer()
        buf.append("ERROR one\nerror two\nfine")
        results = buf.search(re.compile("error", re.IGNORECASE))
        assert [n for n, _ in results] == [1, 2]

    def test_search_every_match_once_in_order(self) -> None:
        buf = RingBuffer()
        for i in range(100):
            buf.append(f"match {i}" if i % 3 == 0 else f"skip {i}")
        numbers = [n for n, _ in buf.search("match")]
        assert numbers == sorted(set(numbers))
        assert len(numbers) == 34

    def test_search_positions_follow_eviction(self) -> None:
        buf = RingBuffer(capacity=3)
        buf.append("a\nhit\nb")
        assert buf.search("hit") == [(2, "hit")]
        buf.append("c")
        # "a" evicted, so "hit" moved up one position
        assert buf.search("hit") == [(1, "hit")]

    def test_search_no_matches(self) -> None:
        buf = RingBuffer()
        buf.append("hello")
        assert buf.search("xyz") == []

    def test_search_invalid_regex_raises(self) -> None:
        buf = RingBuffer()
        buf.append("hello")
        with pytest.raises(InvalidPatternError) as exc_info:
            buf.search("[invalid")
        assert exc_info.value.kind is ErrorKind.INVALID_PATTERN
        assert exc_info.value.pattern == "[invalid"
