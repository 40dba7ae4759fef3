"""Base tool classes with Pydantic parameter validation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from ptyhost.errors import ErrorKind, PtyError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class ToolResult:
    """Base result from a tool execution."""

    output: str = ""
    is_error: bool = False
    kind: ErrorKind | None = None  # set on errors the caller can act on


@dataclass
class ToolOk(ToolResult):
    """Successful tool result."""

    is_error: bool = False


@dataclass
class ToolError(ToolResult):
    """Failed tool result."""

    is_error: bool = True

    @classmethod
    def from_exception(cls, error: PtyError) -> ToolError:
        return cls(output=f"Error: {error}", kind=error.kind)


class BaseTool(ABC, Generic[T]):
    """Base class for all remote-callable tools.

    Tools take structured input and return a rendered :class:`ToolResult`.
    Each tool declares its parameters as a Pydantic model (the type
    parameter T). :class:`PtyError` raised from :meth:`execute` becomes a
    tagged :class:`ToolError`; anything else is logged and reported as an
    untagged error.

    Usage:
        class MyParams(BaseModel):
            id: str

        class MyTool(BaseTool[MyParams]):
            name = "my_tool"
            description = "Does something useful"
            param_model = MyParams

            async def execute(self, params: MyParams) -> ToolResult:
                return ToolOk(output="done")
    """

    name: ClassVar[str]
    description: ClassVar[str]
    param_model: ClassVar[type[BaseModel]]

    async def __call__(self, arguments: dict[str, Any]) -> ToolResult:
        """Validate arguments and execute."""
        try:
            params = self.param_model.model_validate(arguments)
        except ValidationError as e:
            return ToolError(output=f"Invalid parameters: {e}")

        try:
            return await self.execute(params)  # type: ignore[arg-type]
        except PtyError as e:
            logger.debug("Tool %s failed: %s", self.name, e)
            return ToolError.from_exception(e)
        except Exception as e:
            logger.error("Tool %s execution error: %s", self.name, e, exc_info=True)
            return ToolError(output=f"Error executing {self.name}: {e}")

    @abstractmethod
    async def execute(self, params: T) -> ToolResult:
        """Execute the tool with validated parameters."""
        ...

    def to_spec(self) -> dict[str, Any]:
        """Describe the tool as a name, description and JSON schema."""
        schema = self.param_model.model_json_schema(by_alias=True)
        # Strip the title and $defs that Pydantic adds
        schema.pop("title", None)
        schema.pop("$defs", None)

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": schema,
        }
