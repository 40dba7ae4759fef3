"""Built-in PTY tools: spawn, write, read, list and kill."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ptyhost.tool.builtin.kill import PtyKillTool
from ptyhost.tool.builtin.list_sessions import PtyListTool
from ptyhost.tool.builtin.read import PtyReadTool
from ptyhost.tool.builtin.spawn import PtySpawnTool
from ptyhost.tool.builtin.write import PtyWriteTool

if TYPE_CHECKING:
    from ptyhost.permission import PermissionEngine
    from ptyhost.pty.registry import SessionRegistry
    from ptyhost.tool.base import BaseTool


def create_pty_tools(
    registry: SessionRegistry, permissions: PermissionEngine
) -> list[BaseTool]:
    """Instantiate every PTY tool against one registry and policy."""
    return [
        PtySpawnTool(registry, permissions),
        PtyWriteTool(registry, permissions),
        PtyReadTool(registry),
        PtyListTool(registry),
        PtyKillTool(registry),
    ]


__all__ = [
    "PtyKillTool",
    "PtyListTool",
    "PtyReadTool",
    "PtySpawnTool",
    "PtyWriteTool",
    "create_pty_tools",
]
