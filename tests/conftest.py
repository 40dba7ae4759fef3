"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from ptyhost.pty.registry import SessionRegistry
from ptyhost.session.wire import Wire


@dataclass
class FakeProcess:
    """Stands in for a PTY process; tests drive its callbacks by hand."""

    pid: int
    on_data: Callable[[str], None]
    on_exit: Callable[[int | None], None]
    written: list[bytes] = field(default_factory=list)
    kill_count: int = 0

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def kill(self) -> None:
        self.kill_count += 1

    async def wait_closed(self, timeout: float | None = None) -> bool:
        return True

    def emit(self, text: str) -> None:
        self.on_data(text)

    def exit(self, code: int | None = 0) -> None:
        self.on_exit(code)


class FakeAllocator:
    """Records allocation calls and hands out :class:`FakeProcess` objects."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.processes: list[FakeProcess] = []
        self.error: Exception | None = None

    def __call__(
        self,
        command: str,
        args: list[str],
        workdir: str,
        env: dict[str, str],
        cols: int,
        rows: int,
        on_data: Callable[[str], None],
        on_exit: Callable[[int | None], None],
    ) -> FakeProcess:
        if self.error is not None:
            raise self.error
        self.calls.append(
            {
                "command": command,
                "args": args,
                "workdir": workdir,
                "env": env,
                "cols": cols,
                "rows": rows,
            }
        )
        proc = FakeProcess(pid=4000 + len(self.processes), on_data=on_data, on_exit=on_exit)
        self.processes.append(proc)
        return proc

    @property
    def last(self) -> FakeProcess:
        return self.processes[-1]


@pytest.fixture
def allocator() -> FakeAllocator:
    return FakeAllocator()


@pytest.fixture
def wire() -> Wire:
    return Wire()


@pytest.fixture
def registry(allocator: FakeAllocator, wire: Wire, tmp_path) -> SessionRegistry:
    return SessionRegistry(allocator, root=str(tmp_path), wire=wire)
