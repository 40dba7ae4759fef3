"""PTY process management — managed pseudo-terminal sessions.

Commands run in their own process group on a fresh PTY. Output goes into
a bounded ring buffer per session, and the registry tracks every session
until it is killed with cleanup or the server shuts down.
"""

from ptyhost.pty.buffer import RingBuffer
from ptyhost.pty.process import PtyProcess, allocate
from ptyhost.pty.registry import (
    ReadResult,
    SearchMatch,
    SearchResult,
    SessionRegistry,
    SessionStatus,
    SessionView,
    SpawnOptions,
)

__all__ = [
    "PtyProcess",
    "ReadResult",
    "RingBuffer",
    "SearchMatch",
    "SearchResult",
    "SessionRegistry",
    "SessionStatus",
    "SessionView",
    "SpawnOptions",
    "allocate",
]
