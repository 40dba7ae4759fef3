"""Configuration — Pydantic models for ptyhost settings."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ptyhost.permission.models import PermissionConfig
from ptyhost.pty.buffer import DEFAULT_MAX_LINES

logger = logging.getLogger(__name__)


class BufferConfig(BaseModel):
    """Output retention per session."""

    max_lines: int = Field(
        default=DEFAULT_MAX_LINES,
        gt=0,
        description="Lines kept per session; older lines are dropped first.",
    )


class ServerConfig(BaseModel):
    """Session limits and the trusted project root."""

    project_dir: str | None = Field(
        default=None,
        description="Trusted root for working directories. Defaults to the current directory.",
    )
    max_sessions: int | None = Field(
        default=None,
        gt=0,
        description="Refuse to spawn beyond this many tracked sessions (unlimited if unset).",
    )
    shutdown_timeout: float = Field(
        default=2.0,
        description="Seconds to wait for killed processes to be reaped on shutdown.",
    )


class PtyHostConfig(BaseModel):
    """Top-level ptyhost configuration."""

    buffer: BufferConfig = Field(default_factory=BufferConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    permissions: PermissionConfig = Field(default_factory=PermissionConfig)

    @property
    def project_dir(self) -> str:
        return os.path.abspath(self.server.project_dir or os.getcwd())

    @classmethod
    def load(cls, config_path: str | None = None) -> PtyHostConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            PTY_MAX_BUFFER_LINES  - Lines kept per session (default 50000)
            PTY_PERMISSIONS       - Permission policy as JSON
            PTY_PROJECT_DIR       - Trusted project root
            PTY_MAX_SESSIONS      - Session limit

        A malformed permission policy never aborts startup; it degrades to
        allow-all with a warning.
        """
        load_dotenv()

        config_data: dict[str, Any] = {}
        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        raw_permissions = config_data.pop("permissions", None)
        env_permissions = os.environ.get("PTY_PERMISSIONS")
        if env_permissions:
            raw_permissions = env_permissions

        buffer = config_data.setdefault("buffer", {})
        env_max_lines = _env_int("PTY_MAX_BUFFER_LINES")
        if env_max_lines is not None:
            buffer["max_lines"] = env_max_lines

        server = config_data.setdefault("server", {})
        env_project_dir = os.environ.get("PTY_PROJECT_DIR")
        if env_project_dir:
            server["project_dir"] = env_project_dir
        env_max_sessions = _env_int("PTY_MAX_SESSIONS")
        if env_max_sessions is not None:
            server["max_sessions"] = env_max_sessions

        config = cls.model_validate(config_data)
        config.permissions = PermissionConfig.parse(raw_permissions)
        return config


def _env_int(name: str) -> int | None:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, value)
        return None
    if parsed <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, value)
        return None
    return parsed


__all__ = [
    "BufferConfig",
    "PtyHostConfig",
    "ServerConfig",
]
