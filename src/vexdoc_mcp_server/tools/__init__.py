"""
VEX document MCP tools implementation.

This module provides the tool implementations that expose VEX document
creation and merging through the MCP protocol.
"""

from .base import BaseTool, ToolError, ToolResult, ToolValidationError
from .create_vex_statement import CreateVexStatementTool
from .merge_vex_documents import MergeVexDocumentsTool

__all__ = [
    "BaseTool",
    "ToolError",
    "ToolResult",
    "ToolValidationError",
    "CreateVexStatementTool",
    "MergeVexDocumentsTool",
]
