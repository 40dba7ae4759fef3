"""Kill tool — terminate a PTY session, optionally freeing its buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, Field

from ptyhost.pty.registry import SessionStatus, SessionView
from ptyhost.tool.base import BaseTool, ToolOk, ToolResult

if TYPE_CHECKING:
    from ptyhost.pty.registry import SessionRegistry


class KillParams(BaseModel):
    id: str = Field(description="The PTY session ID (from pty_spawn).")
    cleanup: bool = Field(
        default=False, description="Remove session and free buffer (default: false)."
    )


class PtyKillTool(BaseTool[KillParams]):
    name: ClassVar[str] = "pty_kill"
    description: ClassVar[str] = (
        "Terminates a PTY session. A running session is killed and its status "
        "becomes 'killed'. With cleanup=false (default) the session and its output "
        "stay available for pty_read, e.g. to compare logs between runs; with "
        "cleanup=true the session is removed and its buffer freed. "
        'To send Ctrl+C instead of killing, use pty_write with data="\\x03".'
    )
    param_model: ClassVar[type[BaseModel]] = KillParams

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    async def execute(self, params: KillParams) -> ToolResult:
        before = self._registry.kill(params.id, cleanup=params.cleanup)
        return ToolOk(output=format_kill_output(before, params.cleanup))


def format_kill_output(before: SessionView, cleanup: bool) -> str:
    if before.status is SessionStatus.RUNNING:
        action = "Killed and cleaned up" if cleanup else "Killed (session retained for log access)"
    elif cleanup:
        action = "Cleaned up"
    else:
        action = f"Already {before.status.value} (session retained for log access)"

    return "\n".join(
        [
            "<pty_killed>",
            f"{action}: {before.id}",
            f"Title: {before.title}",
            f"Command: {before.command_line}",
            f"Final line count: {before.line_count}",
            "</pty_killed>",
        ]
    )
