"""
Tool registry for the MCP handler.

Maps tool names to tool instances. Tools are registered once at startup
and looked up for every tools/list and tools/call request.
"""

import threading
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog

from .schemas import Tool

if TYPE_CHECKING:
    from ..tools.base import BaseTool

logger = structlog.get_logger(__name__)


class DuplicateToolError(Exception):
    """Raised when a second tool is registered under an existing name."""

    def __init__(self, tool_name: str):
        super().__init__(f"tool {tool_name} already registered")
        self.tool_name = tool_name


class ToolRegistry:
    """Name-unique, insertion-ordered collection of tools."""

    def __init__(self) -> None:
        self._tools: Dict[str, "BaseTool"] = {}
        self._lock = threading.Lock()

    def register(self, tool: "BaseTool") -> None:
        """
        Register a tool.

        Raises:
            DuplicateToolError: If a tool with the same name is already registered
        """
        with self._lock:
            if tool.name in self._tools:
                raise DuplicateToolError(tool.name)
            self._tools[tool.name] = tool
        logger.info("Registered tool", tool_name=tool.name)

    def get(self, name: str) -> Optional["BaseTool"]:
        """Get a tool by name."""
        with self._lock:
            return self._tools.get(name)

    def list(self) -> List["BaseTool"]:
        """Registered tools in registration order."""
        with self._lock:
            return list(self._tools.values())

    def list_schemas(self) -> List[Tool]:
        return [tool.get_schema() for tool in self.list()]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)
