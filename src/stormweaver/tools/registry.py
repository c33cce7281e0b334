"""Tool registry for model tool calling.

Tools are async callables the generative model may invoke while answering a prompt.
A registry is built per run and handed to ``GenerativeModel.generate_text``; there is no
process-wide registry.
"""

from __future__ import annotations

import inspect
import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field

from stormweaver.logging import get_logger

logger = get_logger(__name__)

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
}


class ToolResult(BaseModel):
    """Result from a tool execution."""

    success: bool = True
    content: Any = None
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def as_message(self) -> str:
        """Render the result as the text fed back to the model."""

        if not self.success:
            return f"Error: {self.error or 'tool failed'}"
        if self.content is None:
            return ""
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content, ensure_ascii=False, default=str)


class Tool(ABC):
    """Base class for tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for LLM."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool."""

    def get_schema(self) -> dict[str, Any]:
        """JSON schema for the tool arguments."""
        return {"type": "object", "properties": {}, "required": []}

    def to_openai(self) -> dict[str, Any]:
        """Function-tool definition in the Chat Completions format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.get_schema(),
            },
        }


class FunctionTool(Tool):
    """Tool wrapper for an async Python function."""

    def __init__(
        self,
        name: str,
        func: Callable[..., Awaitable[Any]],
        description: str,
        schema: dict[str, Any] | None = None,
    ) -> None:
        self._name = name
        self._func = func
        self._description = description
        self._schema = schema or self._infer_schema(func)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the wrapped function; failures become an unsuccessful result."""
        try:
            result = await self._func(**kwargs)
        except Exception as e:
            logger.exception("Tool execution failed", extra={"tool": self._name})
            return ToolResult(success=False, error=str(e))
        if isinstance(result, ToolResult):
            return result
        return ToolResult(success=True, content=result)

    def get_schema(self) -> dict[str, Any]:
        return self._schema

    @staticmethod
    def _infer_schema(func: Callable[..., Any]) -> dict[str, Any]:
        """Infer a flat schema from the function signature."""

        sig = inspect.signature(func)
        properties: dict[str, Any] = {}
        required: list[str] = []

        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue
            json_type = _JSON_TYPES.get(param.annotation, "string")
            properties[param_name] = {"type": json_type}
            if param.default is inspect.Parameter.empty:
                required.append(param_name)

        return {"type": "object", "properties": properties, "required": required}


class ToolRegistry:
    """Named collection of tools offered to the model."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        logger.debug("Tool registered", extra={"tool": tool.name})

    def register_function(
        self,
        name: str,
        func: Callable[..., Awaitable[Any]],
        description: str,
        schema: dict[str, Any] | None = None,
    ) -> None:
        """Register an async function as a tool."""
        self.register(FunctionTool(name=name, func=func, description=description, schema=schema))

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def openai_tools(self) -> list[dict[str, Any]]:
        """All tool definitions in the Chat Completions format."""
        return [tool.to_openai() for tool in self._tools.values()]

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name.

        Unknown tools and bad arguments produce an unsuccessful result instead of raising,
        so the model can recover on its next step.
        """
        tool = self.get(tool_name)
        if tool is None:
            return ToolResult(
                success=False,
                error=f"Tool '{tool_name}' not found. Available tools: {', '.join(self._tools.keys())}",
            )
        try:
            return await tool.execute(**arguments)
        except TypeError as e:
            return ToolResult(success=False, error=f"Invalid arguments for '{tool_name}': {e}")
