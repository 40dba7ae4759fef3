"""Escape sequences in PTY input.

Callers send text such as ``"ls\\n"`` or ``"\\x03"``; this module turns it
into the characters the terminal should receive and pulls out the command
lines it contains so they can be screened before they are written.
"""

from __future__ import annotations

import re

_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|[nrt\\])")
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\"}
_LINE_BREAK_RE = re.compile(r"[\r\n]+")
_SURROGATE_BASE = 0xDC00

# Ctrl+C / Ctrl+D are keystrokes, not commands
_CONTROL_PREFIXES = ("\x03", "\x04")


def _replace(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq[0] == "x":
        value = int(seq[1:], 16)
        # \x80-\xff name raw bytes; carried as lone surrogates until to_bytes
        return chr(value) if value < 0x80 else chr(_SURROGATE_BASE + value)
    if seq[0] == "u":
        value = int(seq[1:], 16)
        # Surrogate code points are not characters
        return match.group(0) if 0xD800 <= value <= 0xDFFF else chr(value)
    return _SIMPLE_ESCAPES[seq]


def decode(text: str) -> str:
    """Replace ``\\n``, ``\\r``, ``\\t``, ``\\\\``, ``\\xHH`` and ``\\uHHHH``.

    ``\\xHH`` is a single byte: values from ``\\x80`` up come back as lone
    surrogates so that :func:`to_bytes` can emit them unchanged. Any other
    backslash sequence is left as-is.
    """
    return _ESCAPE_RE.sub(_replace, text)


def to_bytes(decoded: str) -> bytes:
    """Encode decoded input for the terminal, UTF-8 plus any raw escaped bytes."""
    return decoded.encode("utf-8", "surrogateescape")


def extract_command_lines(decoded: str) -> list[str]:
    """Return the non-empty, trimmed lines of ``decoded`` that look like commands."""
    lines = []
    for segment in _LINE_BREAK_RE.split(decoded):
        stripped = segment.strip()
        if stripped and not stripped.startswith(_CONTROL_PREFIXES):
            lines.append(stripped)
    return lines


def parse_command_line(line: str) -> tuple[str, list[str]]:
    """Split a command line on whitespace into ``(command, args)``."""
    parts = line.split()
    if not parts:
        return "", []
    return parts[0], parts[1:]
