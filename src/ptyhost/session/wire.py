"""Wire protocol — decouples session events from whoever observes them.

The registry publishes lifecycle events (spawn, exit, kill) on the wire.
The server subscribes and logs them; tests subscribe and assert on them.
Nothing on the wire is part of an operation's return value.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any

LAST_LINE_LIMIT = 250


class EventType(enum.Enum):
    PTY_SPAWN = "pty_spawn"
    PTY_EXIT = "pty_exit"
    PTY_KILL = "pty_kill"
    ERROR = "error"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire:
    """Async message bus: registry -> subscribers.

    Single-producer, multi-consumer broadcast. Must be used from the event
    loop thread.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[WireEvent | None]] = []
        self._closed: bool = False

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` has been called.
        """
        if self._closed:
            return
        for q in self._subscribers:
            q.put_nowait(event)

    def send_error(self, error: str, session_id: str | None = None) -> None:
        self.send(
            WireEvent(type=EventType.ERROR, data={"error": error, "session_id": session_id})
        )

    def send_pty_spawn(self, session_id: str, title: str, pid: int) -> None:
        self.send(
            WireEvent(
                type=EventType.PTY_SPAWN,
                data={"session_id": session_id, "title": title, "pid": pid},
            )
        )

    def send_pty_exit(
        self,
        session_id: str,
        title: str,
        exit_code: int | None,
        last_line: str = "",
        total_lines: int = 0,
    ) -> None:
        """Notify subscribers that a session's process exited on its own."""
        self.send(
            WireEvent(
                type=EventType.PTY_EXIT,
                data={
                    "session_id": session_id,
                    "title": title,
                    "exit_code": exit_code,
                    "last_line": last_line[:LAST_LINE_LIMIT],
                    "total_lines": total_lines,
                },
            )
        )

    def send_pty_kill(self, session_id: str, title: str, cleanup: bool) -> None:
        self.send(
            WireEvent(
                type=EventType.PTY_KILL,
                data={"session_id": session_id, "title": title, "cleanup": cleanup},
            )
        )

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        if q in self._subscribers:
            self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        self._closed = True
        for q in self._subscribers:
            q.put_nowait(None)
