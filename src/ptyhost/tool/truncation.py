"""Output cleanup and truncation for rendered tool results."""

from __future__ import annotations

import re

MAX_LINE_LENGTH = 2000
PREVIEW_LENGTH = 50

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]|\x1b\][^\x07]*\x07")


def truncate_line(line: str, limit: int = MAX_LINE_LENGTH) -> str:
    """Cut ``line`` to ``limit`` characters, marking the cut with ``...``."""
    if len(line) <= limit:
        return line
    return line[:limit] + "..."


def strip_ansi(text: str) -> str:
    """Strip ANSI CSI and OSC escape sequences from text."""
    return _ANSI_RE.sub("", text)


def sanitize_binary_output(text: str) -> str:
    """Remove binary garbage from output.

    Keeps printable chars and tabs. Strips everything else (control chars,
    undefined code points, format chars).
    """
    cleaned = []
    for ch in text:
        cp = ord(ch)
        if ch == "\t":
            cleaned.append(ch)
        elif cp >= 32 and cp not in range(0x7F, 0xA0):
            # Skip C0 controls, C1 controls, and interlinear annotation chars
            if cp not in range(0xFFF9, 0xFFFC):
                cleaned.append(ch)
    return "".join(cleaned)


def clean_line(line: str, limit: int = MAX_LINE_LENGTH) -> str:
    """Make a buffered terminal line safe to show as plain text."""
    return truncate_line(sanitize_binary_output(strip_ansi(line)), limit)
