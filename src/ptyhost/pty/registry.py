"""Session registry — owns every PTY session and its output buffer."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import re
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ptyhost.errors import (
    ExecutionFailureError,
    SessionNotFoundError,
    SessionNotRunningError,
)
from ptyhost.pty import escape
from ptyhost.pty.buffer import RingBuffer
from ptyhost.pty.process import Allocator, ProcessHandle, allocate

if TYPE_CHECKING:
    from ptyhost.session.wire import Wire

logger = logging.getLogger(__name__)

COLS = 120
ROWS = 40
ID_PREFIX = "pty_"
NOTIFY_LINE_LIMIT = 250


class SessionStatus(enum.Enum):
    """Lifecycle states. RUNNING only ever moves to EXITED or KILLED."""

    RUNNING = "running"
    EXITED = "exited"  # Process exited on its own
    KILLED = "killed"  # Killed by us


@dataclass
class SpawnOptions:
    command: str
    args: list[str] | None = None
    workdir: str | None = None
    env: dict[str, str] | None = None
    title: str | None = None
    description: str | None = None
    notify_on_exit: bool = False


@dataclass(frozen=True)
class SessionView:
    """Public, immutable snapshot of a session."""

    id: str
    title: str
    description: str | None
    command: str
    args: list[str]
    workdir: str
    status: SessionStatus
    exit_code: int | None
    pid: int
    created_at: datetime
    line_count: int

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args]).strip()


@dataclass(frozen=True)
class ReadResult:
    lines: list[str]
    total_lines: int
    offset: int
    has_more: bool
    status: SessionStatus


@dataclass(frozen=True)
class SearchMatch:
    line_number: int  # 1-based, relative to current buffer content
    text: str


@dataclass(frozen=True)
class SearchResult:
    matches: list[SearchMatch]
    total_matches: int
    total_lines: int
    offset: int
    has_more: bool
    status: SessionStatus


@dataclass
class Session:
    """Internal session state. Never handed out; see :class:`SessionView`."""

    id: str
    title: str
    description: str | None
    command: str
    args: list[str]
    workdir: str
    env: dict[str, str]
    notify_on_exit: bool
    buffer: RingBuffer
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: SessionStatus = SessionStatus.RUNNING
    exit_code: int | None = None
    pid: int = 0
    process: ProcessHandle | None = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def view(self) -> SessionView:
        with self.lock:
            status, exit_code = self.status, self.exit_code
        return SessionView(
            id=self.id,
            title=self.title,
            description=self.description,
            command=self.command,
            args=list(self.args),
            workdir=self.workdir,
            status=status,
            exit_code=exit_code,
            pid=self.pid,
            created_at=self.created_at,
            line_count=self.buffer.length,
        )


class SessionRegistry:
    """Creates, tracks and tears down PTY sessions.

    Membership changes (spawn, kill with cleanup, shutdown) and the
    ``list_sessions`` snapshot run under the registry lock. Status and exit
    code are guarded by a per-session lock, which is what closes the race
    between a natural exit and an explicit kill. Buffer reads and writes
    only take the buffer's own lock.

    Output and exit callbacks are delivered by the allocator, for real
    PTYs from the asyncio loop that spawned the session.
    """

    def __init__(
        self,
        allocator: Allocator = allocate,
        *,
        root: str | None = None,
        buffer_capacity: int | None = None,
        max_sessions: int | None = None,
        wire: Wire | None = None,
    ) -> None:
        self._allocator = allocator
        self._root = os.path.abspath(root or os.getcwd())
        self._buffer_capacity = buffer_capacity
        self._max_sessions = max_sessions
        self._wire = wire
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._shut_down = False

    @property
    def root(self) -> str:
        return self._root

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def spawn(self, options: SpawnOptions) -> SessionView:
        """Start a command in a new PTY session.

        Raises:
            ExecutionFailureError: The process could not be started, the
                session limit is reached, or the registry was shut down.
        """
        args = list(options.args or [])
        workdir = options.workdir or self._root
        env = {**os.environ, **(options.env or {})}

        with self._lock:
            if self._shut_down:
                raise ExecutionFailureError(options.command, "session registry is shut down")
            if self._max_sessions is not None and len(self._sessions) >= self._max_sessions:
                raise ExecutionFailureError(
                    options.command,
                    f"session limit reached ({self._max_sessions}); kill a session with cleanup first",
                )

            session_id = self._new_id()
            title = options.title or (
                " ".join([options.command, *args]).strip() or f"Terminal {session_id[-4:]}"
            )
            session = Session(
                id=session_id,
                title=title,
                description=options.description,
                command=options.command,
                args=args,
                workdir=workdir,
                env=dict(options.env or {}),
                notify_on_exit=options.notify_on_exit,
                buffer=RingBuffer(self._buffer_capacity),
            )

            try:
                process = self._allocator(
                    options.command,
                    args,
                    workdir,
                    env,
                    COLS,
                    ROWS,
                    on_data=session.buffer.append,
                    on_exit=lambda code: self._on_exit(session, code),
                )
            except (OSError, ValueError, RuntimeError) as e:
                logger.warning("Failed to spawn %r: %s", options.command, e)
                raise ExecutionFailureError(options.command, str(e)) from e

            session.process = process
            session.pid = process.pid
            self._sessions[session_id] = session

        logger.info(
            "PTY session %s started: pid=%d cmd=%s cwd=%s",
            session_id,
            session.pid,
            session.view().command_line,
            workdir,
        )
        if self._wire:
            self._wire.send_pty_spawn(session_id, title, session.pid)
        return session.view()

    def kill(self, session_id: str, cleanup: bool = False) -> SessionView:
        """Kill a session's process if it is running.

        With ``cleanup`` the session is also removed and its buffer freed;
        otherwise it stays listable and readable.

        Returns:
            The session as it was before the kill.
        """
        with self._lock:
            session = self._get(session_id)
            before = session.view()
            with session.lock:
                if session.status is SessionStatus.RUNNING:
                    session.status = SessionStatus.KILLED
                    self._kill_process(session)
            if cleanup:
                del self._sessions[session_id]
                session.buffer.clear()

        logger.info(
            "PTY session %s killed%s (was %s)",
            session_id,
            " and cleaned up" if cleanup else "",
            before.status.value,
        )
        if self._wire:
            self._wire.send_pty_kill(session_id, before.title, cleanup)
        return before

    async def shutdown(self, timeout: float = 2.0) -> None:
        """Kill every running session, free all buffers and empty the registry."""
        with self._lock:
            self._shut_down = True
            sessions = list(self._sessions.values())
            self._sessions.clear()

        killed = []
        for session in sessions:
            with session.lock:
                if session.status is SessionStatus.RUNNING:
                    session.status = SessionStatus.KILLED
                    self._kill_process(session)
                    killed.append(session)

        # Give the reader side a moment to reap what we just killed
        waiters = [
            s.process.wait_closed(timeout) for s in killed if s.process is not None
        ]
        if waiters:
            results = await asyncio.gather(*waiters)
            stuck = sum(1 for ok in results if not ok)
            if stuck:
                logger.warning("%d PTY session(s) not reaped within %.1fs", stuck, timeout)

        for session in sessions:
            session.buffer.clear()
        logger.info("All PTY sessions cleaned up (%d killed)", len(killed))

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def write(self, session_id: str, data: str | bytes) -> None:
        """Forward ``data`` to the session's terminal input as-is."""
        session = self._lookup(session_id)
        with session.lock:
            status = session.status
        if status is not SessionStatus.RUNNING:
            raise SessionNotRunningError(session_id, status.value)
        payload = escape.to_bytes(data) if isinstance(data, str) else data
        assert session.process is not None
        session.process.write(payload)

    def read(self, session_id: str, offset: int = 0, limit: int | None = None) -> ReadResult:
        session = self._lookup(session_id)
        offset = max(0, offset)
        lines = session.buffer.read(offset, limit)
        total_lines = session.buffer.length
        return ReadResult(
            lines=lines,
            total_lines=total_lines,
            offset=offset,
            has_more=offset + len(lines) < total_lines,
            status=session.status,
        )

    def search(
        self,
        session_id: str,
        pattern: str | re.Pattern[str],
        offset: int = 0,
        limit: int | None = None,
    ) -> SearchResult:
        """Search a session's buffer and page through the matches.

        Raises:
            SessionNotFoundError: Unknown id.
            InvalidPatternError: ``pattern`` is a string that does not compile.
        """
        session = self._lookup(session_id)
        offset = max(0, offset)
        found = session.buffer.search(pattern)
        total_lines = session.buffer.length
        end = len(found) if limit is None else offset + max(0, limit)
        page = [SearchMatch(line_number=n, text=text) for n, text in found[offset:end]]
        return SearchResult(
            matches=page,
            total_matches=len(found),
            total_lines=total_lines,
            offset=offset,
            has_more=offset + len(page) < len(found),
            status=session.status,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> SessionView:
        return self._lookup(session_id).view()

    def list_sessions(self) -> list[SessionView]:
        """Snapshot of every session, running or not, in creation order."""
        with self._lock:
            return [s.view() for s in self._sessions.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        # Caller holds self._lock
        while True:
            session_id = f"{ID_PREFIX}{secrets.token_hex(6)}"
            if session_id not in self._sessions:
                return session_id

    def _get(self, session_id: str) -> Session:
        # Caller holds self._lock
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _lookup(self, session_id: str) -> Session:
        with self._lock:
            return self._get(session_id)

    def _kill_process(self, session: Session) -> None:
        # Caller holds session.lock
        if session.process is None:
            return
        try:
            session.process.kill()
        except Exception as e:
            logger.warning("Error killing PTY session %s: %s", session.id, e)
            if self._wire:
                self._wire.send_error(f"Error killing PTY session: {e}", session.id)

    def _on_exit(self, session: Session, exit_code: int | None) -> None:
        with session.lock:
            if session.status is not SessionStatus.RUNNING:
                return
            session.status = SessionStatus.EXITED
            session.exit_code = exit_code

        logger.info("PTY session %s exited (code=%s)", session.id, exit_code)
        if session.notify_on_exit:
            self._notify_exit(session, exit_code)

    def _notify_exit(self, session: Session, exit_code: int | None) -> None:
        last_line = next(
            (line for line in reversed(session.buffer.read_tail(10)) if line.strip()),
            None,
        )
        last_line = last_line[:NOTIFY_LINE_LIMIT] if last_line else "(no output)"
        total_lines = session.buffer.length

        logger.info(
            '[PTY_EXIT] %s "%s" exited with code %s | Last line: %s | Total lines: %d',
            session.id,
            session.title,
            exit_code,
            last_line,
            total_lines,
        )
        if exit_code != 0:
            logger.info(
                "[PTY_EXIT] %s: non-zero exit code. Use pty_read with pattern to search for errors.",
                session.id,
            )
        if self._wire:
            self._wire.send_pty_exit(
                session.id, session.title, exit_code, last_line, total_lines
            )
