"""Write tool — send input to a running PTY session."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, Field

from ptyhost.pty import escape
from ptyhost.tool.base import BaseTool, ToolOk, ToolResult
from ptyhost.tool.truncation import PREVIEW_LENGTH

if TYPE_CHECKING:
    from ptyhost.permission import PermissionEngine
    from ptyhost.pty.registry import SessionRegistry


class WriteParams(BaseModel):
    id: str = Field(description="The PTY session ID (from pty_spawn).")
    data: str = Field(description="Input string to send (supports escape sequences).")


class PtyWriteTool(BaseTool[WriteParams]):
    """Send keystrokes to a session after screening any commands they contain."""

    name: ClassVar[str] = "pty_write"
    description: ClassVar[str] = (
        "Sends input data to an active PTY session: type commands, answer prompts, "
        "or send special keys. Escape sequences: Enter \\n or \\r, Ctrl+C \\x03, "
        "Ctrl+D \\x04, Ctrl+Z \\x1a, Tab \\t, arrows \\x1b[A \\x1b[B \\x1b[C \\x1b[D."
    )
    param_model: ClassVar[type[BaseModel]] = WriteParams

    def __init__(self, registry: SessionRegistry, permissions: PermissionEngine) -> None:
        self._registry = registry
        self._permissions = permissions

    async def execute(self, params: WriteParams) -> ToolResult:
        data = escape.decode(params.data)

        for line in escape.extract_command_lines(data):
            command, args = escape.parse_command_line(line)
            if command:
                self._permissions.require_command(command, args)

        self._registry.write(params.id, data)
        return ToolOk(output=format_write_output(params.id, data))


def format_write_output(session_id: str, data: str) -> str:
    shown = data[:PREVIEW_LENGTH].encode("unicode_escape").decode("ascii")
    if len(data) > PREVIEW_LENGTH:
        shown += "..."
    byte_count = len(escape.to_bytes(data))
    return "\n".join(
        [
            "<pty_write>",
            f"Success: {session_id}",
            f"Data sent: {shown} ({byte_count} bytes)",
            "</pty_write>",
        ]
    )
