"""Permission policy models."""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

WILDCARD_COMMAND = "*"


class Action(str, enum.Enum):
    """What to do with a command or directory that a rule matches."""

    ALLOW = "allow"
    ASK = "ask"
    DENY = "deny"


# A command rule is either one action for every invocation, or an ordered
# mapping of argument patterns to actions (first match wins).
CommandRule = Action | dict[str, Action]


class PermissionConfig(BaseModel):
    """Command and directory policy.

    Example::

        {
            "commands": {
                "git": {"push *": "deny", "*": "allow"},
                "rm": "ask"
            },
            "external_directory": "deny"
        }
    """

    commands: dict[str, CommandRule] = Field(
        default_factory=dict,
        description="Rules keyed by command name; '*' applies to commands without their own rule.",
    )
    external_directory: Action = Field(
        default=Action.ALLOW,
        description="Action for working directories outside the project root.",
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PermissionConfig:
        """Build a config from any of the accepted document shapes.

        * ``{"commands": {...}, "external_directory": ...}``
        * a flat ``{"git": {"push": "deny"}, "external_directory": ...}``
        * the legacy ``{"bash": "deny"}`` / ``{"bash": {"git push *": "deny"}}``,
          which becomes the ``*`` rule

        Raises:
            ValueError: The document is not a mapping or has bad actions.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"permission config must be an object, got {type(data).__name__}")

        if "commands" in data:
            return cls.model_validate(dict(data))

        commands: dict[str, Any] = {}
        for key, value in data.items():
            if key == "external_directory":
                continue
            if key == "bash":
                commands[WILDCARD_COMMAND] = value
            else:
                commands[key] = value

        payload: dict[str, Any] = {"commands": commands}
        if "external_directory" in data:
            payload["external_directory"] = data["external_directory"]
        return cls.model_validate(payload)

    @classmethod
    def parse(cls, raw: str | Mapping[str, Any] | None) -> PermissionConfig:
        """Parse a policy document, falling back to allow-all when malformed."""
        if raw is None or raw == "":
            return cls()
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
            return cls.from_mapping(data)
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Invalid permission config, using default (allow all): %s", e)
            return cls()
