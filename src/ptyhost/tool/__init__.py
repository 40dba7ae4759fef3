"""Tool system — base classes, registry, and output truncation."""

from ptyhost.tool.base import BaseTool, ToolError, ToolOk, ToolResult
from ptyhost.tool.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolOk",
    "ToolError",
    "ToolRegistry",
]
