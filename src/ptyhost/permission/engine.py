"""Permission engine — decides whether a command or working directory may run."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from ptyhost.errors import PermissionDeniedError
from ptyhost.permission import wildcard
from ptyhost.permission.models import WILDCARD_COMMAND, Action, PermissionConfig

logger = logging.getLogger(__name__)

DENY_REASON = "Command is denied by configuration"
ASK_REASON = "Command requires approval (ask mode is not supported without an interactive channel)"
EXTERNAL_DIR_REASON = "External directory access is denied"


@dataclass(frozen=True)
class Verdict:
    """Outcome of a permission check."""

    allowed: bool
    action: Action
    subject: str  # command line or directory that was checked
    reason: str = ""
    matched: str | None = None  # rule key or pattern that decided it

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise PermissionDeniedError(self.subject, self.reason)


class PermissionEngine:
    """Evaluates commands and working directories against a policy.

    There is no interactive channel, so ``ask`` rejects a command exactly
    like ``deny``. For directories outside the root ``ask`` is let through
    with a warning instead.
    """

    def __init__(self, config: PermissionConfig | None = None) -> None:
        self.config = config or PermissionConfig()

    def check_command(self, command: str, args: list[str]) -> Verdict:
        command_line = " ".join([command, *args]).strip()
        action, matched = self._resolve(command, args)

        if action is Action.DENY:
            return Verdict(False, action, command_line, DENY_REASON, matched)
        if action is Action.ASK:
            return Verdict(False, action, command_line, ASK_REASON, matched)
        return Verdict(True, action, command_line, matched=matched)

    def check_workdir(self, path: str, root: str) -> Verdict:
        resolved = os.path.realpath(path)
        resolved_root = os.path.realpath(root)
        if _is_within(resolved, resolved_root):
            return Verdict(True, Action.ALLOW, path)

        action = self.config.external_directory
        if action is Action.DENY:
            return Verdict(False, action, path, EXTERNAL_DIR_REASON, "external_directory")
        if action is Action.ASK:
            logger.warning(
                "External directory access to %s (ask mode treated as allow)", path
            )
        return Verdict(True, action, path, matched="external_directory")

    def require_command(self, command: str, args: list[str]) -> None:
        """Raise :class:`PermissionDeniedError` unless the command is allowed."""
        verdict = self.check_command(command, args)
        if not verdict.allowed:
            logger.info("Rejected command %r: %s", verdict.subject, verdict.reason)
        verdict.raise_for_denial()

    def require_workdir(self, path: str, root: str) -> None:
        """Raise :class:`PermissionDeniedError` unless ``path`` may be used."""
        verdict = self.check_workdir(path, root)
        if not verdict.allowed:
            logger.info("Rejected workdir %r: %s", verdict.subject, verdict.reason)
        verdict.raise_for_denial()

    def _resolve(self, command: str, args: list[str]) -> tuple[Action, str | None]:
        commands = self.config.commands
        key = None
        for candidate in (command, os.path.basename(command), WILDCARD_COMMAND):
            if candidate and candidate in commands:
                key = candidate
                break
        if key is None:
            return Action.ALLOW, None

        rule = commands[key]
        if isinstance(rule, Action):
            return rule, key

        # Patterns under a named command see its arguments; patterns under
        # "*" (or legacy "bash") see the whole command line.
        if key == WILDCARD_COMMAND:
            subject = " ".join([command, *args])
        else:
            subject = " ".join(args)
        for pattern, action in rule.items():
            if wildcard.match(pattern, subject):
                return action, f"{key}: {pattern}"
        return Action.ALLOW, None


def _is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    return path.startswith(root.rstrip(os.sep) + os.sep)
