"""Error taxonomy for PTY operations.

Every failure a caller can trigger is a :class:`PtyError` tagged with an
:class:`ErrorKind`. The tool layer catches them and turns them into
structured ``ToolError`` results; none of them is fatal to the server.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    NOT_RUNNING = "not_running"
    PERMISSION_DENIED = "permission_denied"
    EXECUTION_FAILURE = "execution_failure"
    INVALID_PATTERN = "invalid_pattern"


class PtyError(Exception):
    """Base class for recoverable PTY errors."""

    kind: ErrorKind


class SessionNotFoundError(PtyError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, session_id: str) -> None:
        super().__init__(f"PTY session not found: {session_id}")
        self.session_id = session_id


class SessionNotRunningError(PtyError):
    kind = ErrorKind.NOT_RUNNING

    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(f"PTY session {session_id} is not running (status: {status})")
        self.session_id = session_id
        self.status = status


class PermissionDeniedError(PtyError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f'Permission denied for "{command}": {reason}')
        self.command = command
        self.reason = reason


class ExecutionFailureError(PtyError):
    kind = ErrorKind.EXECUTION_FAILURE

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f'Failed to execute command "{command}": {message}')
        self.command = command
        self.message = message


class InvalidPatternError(PtyError):
    kind = ErrorKind.INVALID_PATTERN

    def __init__(self, pattern: str, message: str) -> None:
        super().__init__(f'Invalid regex pattern "{pattern}": {message}')
        self.pattern = pattern
        self.message = message
