"""Read tool — page through or search a session's output buffer."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from ptyhost.errors import InvalidPatternError
from ptyhost.pty.registry import ReadResult, SearchResult
from ptyhost.tool.base import BaseTool, ToolOk, ToolResult
from ptyhost.tool.truncation import clean_line

if TYPE_CHECKING:
    from ptyhost.pty.registry import SessionRegistry

DEFAULT_LIMIT = 500


class ReadParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="The PTY session ID (from pty_spawn).")
    offset: int = Field(
        default=0,
        ge=0,
        description="Line number to start reading from (0-based). In search mode, "
        "the number of matches to skip.",
    )
    limit: int = Field(
        default=DEFAULT_LIMIT, ge=1, description="Number of lines (or matches) to return."
    )
    pattern: str | None = Field(
        default=None, description="Regex pattern to filter lines (enables search mode)."
    )
    ignore_case: bool = Field(
        default=False,
        alias="ignoreCase",
        description="Case-insensitive pattern matching (default: false).",
    )


class PtyReadTool(BaseTool[ReadParams]):
    """Read buffered output; never waits for new output."""

    name: ClassVar[str] = "pty_read"
    description: ClassVar[str] = (
        "Reads output from a PTY session's buffer. Use offset and limit to paginate. "
        "Without a pattern, returns consecutive lines; with a pattern, returns the "
        "lines matching the regex together with their line numbers. "
        "The buffer keeps the most recent PTY_MAX_BUFFER_LINES lines (default 50000); "
        "older lines are discarded."
    )
    param_model: ClassVar[type[BaseModel]] = ReadParams

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    async def execute(self, params: ReadParams) -> ToolResult:
        if params.pattern:
            flags = re.IGNORECASE if params.ignore_case else 0
            try:
                compiled = re.compile(params.pattern, flags)
            except re.error as e:
                raise InvalidPatternError(params.pattern, str(e)) from e

            result = self._registry.search(params.id, compiled, params.offset, params.limit)
            return ToolOk(output=format_search_output(params.id, result, params.pattern))

        read = self._registry.read(params.id, params.offset, params.limit)
        return ToolOk(output=format_read_output(params.id, read))


def _numbered(line_number: int, text: str) -> str:
    return f"{line_number:05d}| {clean_line(text)}"


def format_read_output(session_id: str, result: ReadResult) -> str:
    header = f'<pty_output id="{session_id}" status="{result.status.value}">'
    if not result.lines:
        return "\n".join(
            [
                header,
                "Buffer is empty or offset is beyond available lines.",
                "",
                f"Total lines in buffer: {result.total_lines}",
                "</pty_output>",
            ]
        )

    out = [header]
    out.extend(
        _numbered(result.offset + i + 1, line) for i, line in enumerate(result.lines)
    )
    if result.has_more:
        next_offset = result.offset + len(result.lines)
        out.append("")
        out.append(
            f"(Buffer has more lines. Use offset={next_offset} to read beyond line {next_offset})"
        )
    out.append("</pty_output>")
    return "\n".join(out)


def format_search_output(session_id: str, result: SearchResult, pattern: str) -> str:
    header = (
        f'<pty_output id="{session_id}" status="{result.status.value}" pattern="{pattern}">'
    )
    if not result.matches:
        return "\n".join(
            [
                header,
                "No matches found.",
                "",
                f"Pattern: {pattern}",
                f"Total lines searched: {result.total_lines}",
                "</pty_output>",
            ]
        )

    out = [header]
    out.extend(_numbered(m.line_number, m.text) for m in result.matches)
    out.append("")
    if result.has_more:
        out.append(
            f"({len(result.matches)} of {result.total_matches} matches shown. "
            f"Use offset={result.offset + len(result.matches)} to see more.)"
        )
    else:
        out.append(f"(Showing all {result.total_matches} matches)")
    out.append("</pty_output>")
    return "\n".join(out)
