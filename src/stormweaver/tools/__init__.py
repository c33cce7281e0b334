"""Tools the model may call during research."""

from __future__ import annotations

from stormweaver.tools.registry import FunctionTool, Tool, ToolRegistry, ToolResult

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolRegistry",
    "ToolResult",
]
