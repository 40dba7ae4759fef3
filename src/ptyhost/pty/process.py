"""Pseudo-terminal process allocation.

:func:`allocate` is the only place that touches the OS: it opens a PTY
pair, starts the command on the slave side in its own process group and
streams decoded output to a callback from the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import codecs
import fcntl
import logging
import os
import pty
import signal
import struct
import subprocess
import termios
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TERM_NAME = "xterm-256color"

DataCallback = Callable[[str], None]
ExitCallback = Callable[[int | None], None]


class ProcessHandle(Protocol):
    """What the session registry needs from a running process."""

    @property
    def pid(self) -> int: ...

    def write(self, data: bytes) -> None: ...

    def kill(self) -> None: ...

    async def wait_closed(self, timeout: float | None = None) -> bool: ...


class Allocator(Protocol):
    def __call__(
        self,
        command: str,
        args: list[str],
        workdir: str,
        env: dict[str, str],
        cols: int,
        rows: int,
        on_data: DataCallback,
        on_exit: ExitCallback,
    ) -> ProcessHandle: ...


class PtyProcess:
    """A child process attached to the slave side of a PTY.

    Output is read from the master fd with ``loop.add_reader`` and decoded
    incrementally as UTF-8, so multi-byte characters split across reads
    are delivered whole. When the slave side closes (the process group is
    gone) the child is reaped off-loop and ``on_exit`` fires exactly once.

    Uses subprocess.Popen (not os.fork) to avoid deadlocks when spawned
    from within an asyncio event loop.
    """

    def __init__(
        self,
        proc: subprocess.Popen,
        master_fd: int,
        loop: asyncio.AbstractEventLoop,
        on_data: DataCallback,
        on_exit: ExitCallback,
    ) -> None:
        self._proc = proc
        self._master_fd = master_fd
        self._pgid = os.getpgid(proc.pid)
        self._on_data = on_data
        self._on_exit = on_exit
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._loop = loop
        self._closed = asyncio.Event()
        self._reaper: asyncio.Task | None = None

        os.set_blocking(master_fd, False)
        self._loop.add_reader(master_fd, self._on_readable)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def write(self, data: bytes) -> None:
        """Write raw bytes to the terminal input."""
        view = memoryview(data)
        while view:
            try:
                written = os.write(self._master_fd, view)
            except BlockingIOError:
                # Terminal input queue is full; drop the rest rather than block.
                logger.warning(
                    "PTY pid=%d input full, dropped %d bytes", self.pid, len(view)
                )
                return
            view = view[written:]

    def kill(self) -> None:
        """SIGKILL the whole process group. Does not wait."""
        try:
            os.killpg(self._pgid, signal.SIGKILL)
            logger.debug("Sent SIGKILL to pgid=%d", self._pgid)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except PermissionError as e:
            logger.warning("Error killing pgid=%d: %s", self._pgid, e)

    async def wait_closed(self, timeout: float | None = None) -> bool:
        """Wait until the process was reaped. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def close(self) -> None:
        """Stop reading and release the master fd without reaping."""
        if self._master_fd < 0:
            return
        self._loop.remove_reader(self._master_fd)
        try:
            os.close(self._master_fd)
        except OSError:
            pass
        self._master_fd = -1

    def _on_readable(self) -> None:
        try:
            data = os.read(self._master_fd, 4096)
        except BlockingIOError:
            return
        except OSError:
            # EIO once every slave fd is closed
            data = b""

        if data:
            self._deliver(self._decoder.decode(data))
            return

        self._loop.remove_reader(self._master_fd)
        self._deliver(self._decoder.decode(b"", final=True))
        self._reaper = self._loop.create_task(self._reap())

    def _deliver(self, text: str) -> None:
        if not text:
            return
        try:
            self._on_data(text)
        except Exception:
            logger.exception("Error in on_data callback for pid=%d", self.pid)

    async def _reap(self) -> None:
        returncode = await self._loop.run_in_executor(None, self._proc.wait)
        self.close()
        # Popen reports death-by-signal as -signum; shells report 128 + signum
        exit_code = 128 - returncode if returncode < 0 else returncode
        logger.debug("PTY pid=%d reaped (code=%s)", self.pid, exit_code)
        try:
            self._on_exit(exit_code)
        except Exception:
            logger.exception("Error in on_exit callback for pid=%d", self.pid)
        finally:
            self._closed.set()


def allocate(
    command: str,
    args: list[str],
    workdir: str,
    env: dict[str, str],
    cols: int,
    rows: int,
    on_data: DataCallback,
    on_exit: ExitCallback,
) -> PtyProcess:
    """Start ``command`` on a fresh PTY of ``cols`` x ``rows``.

    Must be called from a running event loop; the loop is looked up before
    anything is opened or started.

    Raises:
        RuntimeError: No running event loop.
        OSError: The PTY could not be opened or the command could not be
            started (missing executable, bad workdir, ...).
    """
    loop = asyncio.get_running_loop()
    master_fd, slave_fd = pty.openpty()
    try:
        fcntl.ioctl(slave_fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, 0, 0))
        proc = subprocess.Popen(
            [command, *args],
            stdin=slave_fd,
            stdout=slave_fd,
            stderr=slave_fd,
            start_new_session=True,  # Own process group for killpg
            env={**env, "TERM": TERM_NAME},
            cwd=workdir,
        )
    except BaseException:
        os.close(master_fd)
        raise
    finally:
        # Parent always closes slave fd
        os.close(slave_fd)

    return PtyProcess(proc, master_fd, loop, on_data=on_data, on_exit=on_exit)
