"""JSON-lines tool server over stdio.

Each request is one line ``{"id": ..., "tool": "pty_read", "arguments": {...}}``;
each response is one line ``{"id": ..., "content": "...", "is_error": false,
"kind": null}``. ``kind`` is the error kind for failures the caller can act on
(``not_found``, ``not_running``, ``permission_denied``, ``execution_failure``,
``invalid_pattern``).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, TextIO

from ptyhost.config import PtyHostConfig
from ptyhost.permission import PermissionEngine
from ptyhost.pty.registry import SessionRegistry
from ptyhost.session.wire import EventType, Wire
from ptyhost.tool.builtin import create_pty_tools
from ptyhost.tool.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class Server:
    """All components of a running server."""

    config: PtyHostConfig
    wire: Wire
    sessions: SessionRegistry
    permissions: PermissionEngine
    tools: ToolRegistry

    async def shutdown(self) -> None:
        await self.sessions.shutdown(self.config.server.shutdown_timeout)
        self.wire.close()


def build_server(config: PtyHostConfig, wire: Wire | None = None) -> Server:
    """Wire up registry, policy and tools from ``config``. No I/O happens here."""
    wire = wire or Wire()
    sessions = SessionRegistry(
        root=config.project_dir,
        buffer_capacity=config.buffer.max_lines,
        max_sessions=config.server.max_sessions,
        wire=wire,
    )
    permissions = PermissionEngine(config.permissions)
    tools = ToolRegistry()
    tools.register_many(create_pty_tools(sessions, permissions))
    return Server(
        config=config,
        wire=wire,
        sessions=sessions,
        permissions=permissions,
        tools=tools,
    )


async def handle_request(tools: ToolRegistry, line: str) -> dict[str, Any]:
    """Decode one request line, dispatch it and build the response object."""
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        return _response(None, f"Invalid request: {e}", is_error=True)
    if not isinstance(request, dict) or not isinstance(request.get("tool"), str):
        return _response(None, "Invalid request: expected an object with a 'tool' name", is_error=True)

    request_id = request.get("id")
    arguments = request.get("arguments") or {}
    if not isinstance(arguments, dict):
        return _response(request_id, "Invalid request: 'arguments' must be an object", is_error=True)

    result = await tools.dispatch(request["tool"], arguments)
    return _response(
        request_id,
        result.output,
        is_error=result.is_error,
        kind=result.kind.value if result.kind else None,
    )


def _response(
    request_id: Any, content: str, *, is_error: bool = False, kind: str | None = None
) -> dict[str, Any]:
    return {"id": request_id, "content": content, "is_error": is_error, "kind": kind}


async def _consume_wire(wire: Wire) -> None:
    """Log lifecycle events; stdout is reserved for responses."""
    queue = wire.subscribe()
    while True:
        event = await queue.get()
        if event is None:
            break
        d = event.data
        if event.type == EventType.PTY_EXIT:
            logger.info(
                "[pty-exit] %s (code=%s, lines=%s) last: %s",
                d.get("title") or d.get("session_id"),
                d.get("exit_code"),
                d.get("total_lines"),
                d.get("last_line"),
            )
        elif event.type == EventType.ERROR:
            logger.error("[%s] %s", d.get("session_id") or "pty", d.get("error"))
        else:
            logger.debug("[%s] %s", event.type.value, d)
    wire.unsubscribe(queue)


async def serve_stdio(
    server: Server, stdin: TextIO | None = None, stdout: TextIO | None = None
) -> None:
    """Serve requests from ``stdin`` until EOF, then shut every session down."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), stdin)

    consumer = asyncio.create_task(_consume_wire(server.wire))
    logger.info("PTY server ready (tools: %s)", ", ".join(server.tools.names()))
    try:
        while True:
            raw = await reader.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            response = await handle_request(server.tools, line)
            stdout.write(json.dumps(response) + "\n")
            stdout.flush()
    finally:
        await server.shutdown()
        await consumer
        logger.info("PTY server stopped")
