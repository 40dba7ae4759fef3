"""List tool — show every tracked PTY session."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel

from ptyhost.pty.registry import SessionView
from ptyhost.tool.base import BaseTool, ToolOk, ToolResult

if TYPE_CHECKING:
    from ptyhost.pty.registry import SessionRegistry


class ListParams(BaseModel):
    pass


class PtyListTool(BaseTool[ListParams]):
    name: ClassVar[str] = "pty_list"
    description: ClassVar[str] = (
        "Lists all PTY sessions, running and exited, with their IDs, status and "
        "output line count. Sessions stay listed after exit until removed with "
        "pty_kill cleanup=true, so their output can still be read."
    )
    param_model: ClassVar[type[BaseModel]] = ListParams

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    async def execute(self, params: ListParams) -> ToolResult:
        return ToolOk(output=format_list_output(self._registry.list_sessions()))


def format_list_output(sessions: list[SessionView]) -> str:
    if not sessions:
        return "<pty_list>\nNo PTY sessions found.\n</pty_list>"

    blocks = []
    for s in sessions:
        exit_info = f" (exit: {s.exit_code})" if s.exit_code is not None else ""
        blocks.append(
            "\n".join(
                [
                    f"[{s.id}] {s.title}{exit_info}",
                    f"  Command: {s.command_line}",
                    f"  Status: {s.status.value}",
                    f"  PID: {s.pid} | Lines: {s.line_count} | Workdir: {s.workdir}",
                    f"  Created: {s.created_at.isoformat()}",
                ]
            )
        )

    return "\n".join(
        [
            "<pty_list>",
            "\n\n".join(blocks),
            "",
            f"Total: {len(sessions)} session(s)",
            "</pty_list>",
        ]
    )
