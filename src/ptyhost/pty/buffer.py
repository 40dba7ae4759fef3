"""Ring buffer for PTY session output."""

from __future__ import annotations

import os
import re
import threading
from collections import deque

from ptyhost.errors import InvalidPatternError

DEFAULT_MAX_LINES = 50_000

# A CR directly before the LF belongs to the terminator; PTYs emit CRLF.
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def default_capacity() -> int:
    """Capacity from ``PTY_MAX_BUFFER_LINES``, else :data:`DEFAULT_MAX_LINES`."""
    value = os.environ.get("PTY_MAX_BUFFER_LINES", "")
    try:
        capacity = int(value)
    except ValueError:
        return DEFAULT_MAX_LINES
    return capacity if capacity > 0 else DEFAULT_MAX_LINES


class RingBuffer:
    """Thread-safe, fixed-capacity store of output lines.

    Oldest lines are evicted first once ``capacity`` is exceeded. Line
    positions reported by :meth:`search` are relative to the current
    content, so they shift as lines are evicted.

    Every chunk passed to :meth:`append` is split on its own; fragments are
    never merged with the previous chunk's last line. ``"a\\nb"`` followed
    by ``"c\\n"`` therefore yields ``["a", "b", "c", ""]``.
    """

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is None:
            capacity = default_capacity()
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._lines: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, chunk: str) -> None:
        """Split ``chunk`` into lines and append each to the tail."""
        fragments = _LINE_SPLIT_RE.split(chunk)
        with self._lock:
            # deque(maxlen=...) drops from the head on every overflowing append
            self._lines.extend(fragments)

    def read(self, offset: int = 0, limit: int | None = None) -> list[str]:
        """Read lines starting at ``offset``.

        Args:
            offset: 0-based position within the current buffer. Negative
                values are treated as 0.
            limit: Maximum number of lines to return; ``None`` reads to the
                end.

        Returns:
            The requested lines; empty when ``offset`` is past the end.
        """
        start = max(0, offset)
        with self._lock:
            lines = list(self._lines)
        if start >= len(lines):
            return []
        end = len(lines) if limit is None else start + max(0, limit)
        return lines[start:end]

    def read_tail(self, n: int = 10) -> list[str]:
        """Read the last ``n`` lines."""
        if n <= 0:
            return []
        with self._lock:
            lines = list(self._lines)
        return lines[-n:]

    def search(self, pattern: str | re.Pattern[str]) -> list[tuple[int, str]]:
        """Find every line matching ``pattern``.

        Returns:
            ``(line_number, text)`` tuples in ascending order, with
            1-based line numbers relative to the current content.

        Raises:
            InvalidPatternError: ``pattern`` is a string that does not
                compile.
        """
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise InvalidPatternError(pattern, str(e)) from e

        with self._lock:
            lines = list(self._lines)
        return [(i, line) for i, line in enumerate(lines, start=1) if pattern.search(line)]

    @property
    def length(self) -> int:
        """Current number of lines in the buffer."""
        with self._lock:
            return len(self._lines)

    def __len__(self) -> int:
        return self.length

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()
