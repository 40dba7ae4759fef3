"""Spawn tool — start a command in a new background PTY session."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from ptyhost.pty.registry import SessionView, SpawnOptions
from ptyhost.tool.base import BaseTool, ToolOk, ToolResult

if TYPE_CHECKING:
    from ptyhost.permission import PermissionEngine
    from ptyhost.pty.registry import SessionRegistry


class SpawnParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    command: str = Field(description="The command to execute (e.g., 'npm', 'python', 'bash').")
    args: list[str] | None = Field(default=None, description="Arguments to pass to the command.")
    workdir: str | None = Field(
        default=None, description="Working directory (defaults to project root)."
    )
    env: dict[str, str] | None = Field(
        default=None, description="Additional environment variables."
    )
    title: str | None = Field(default=None, description="Human-readable name for the session.")
    description: str = Field(
        description="Clear, concise 5-10 word description of what this command does."
    )
    notify_on_exit: bool = Field(
        default=False,
        alias="notifyOnExit",
        description="Receive notification when process exits (default: false).",
    )


class PtySpawnTool(BaseTool[SpawnParams]):
    """Spawn a long-running process in a background PTY session."""

    name: ClassVar[str] = "pty_spawn"
    description: ClassVar[str] = (
        "Spawns a new PTY (pseudo-terminal) session that runs in the background. "
        "Unlike synchronous shell commands, PTY sessions persist: run dev servers or "
        "watch modes, send interactive input (Ctrl+C, arrow keys), read output at any "
        "time, and manage several terminals at once. "
        "Returns the session ID to use with the other pty_* tools."
    )
    param_model: ClassVar[type[BaseModel]] = SpawnParams

    def __init__(self, registry: SessionRegistry, permissions: PermissionEngine) -> None:
        self._registry = registry
        self._permissions = permissions

    async def execute(self, params: SpawnParams) -> ToolResult:
        args = list(params.args or [])
        self._permissions.require_command(params.command, args)
        if params.workdir:
            self._permissions.require_workdir(params.workdir, self._registry.root)

        view = self._registry.spawn(
            SpawnOptions(
                command=params.command,
                args=args,
                workdir=params.workdir,
                env=params.env,
                title=params.title,
                description=params.description,
                notify_on_exit=params.notify_on_exit,
            )
        )
        return ToolOk(output=format_spawn_output(view))


def format_spawn_output(view: SessionView) -> str:
    return "\n".join(
        [
            "<pty_spawned>",
            f"ID: {view.id}",
            f"Title: {view.title}",
            f"Command: {view.command_line}",
            f"Workdir: {view.workdir}",
            f"PID: {view.pid}",
            f"Status: {view.status.value}",
            "</pty_spawned>",
        ]
    )
