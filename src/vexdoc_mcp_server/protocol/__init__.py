"""
MCP Protocol implementation for the VEX document MCP server.

This module provides the core Model Context Protocol implementation,
including message handling, the tool registry, transport, and schema
definitions.
"""

from .handlers import MCPHandler
from .registry import DuplicateToolError, ToolRegistry
from .schemas import (
    MCPCallToolRequest,
    MCPCallToolResponse,
    MCPError,
    MCPInitializeRequest,
    MCPInitializeResponse,
    MCPListToolsRequest,
    MCPListToolsResponse,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    ServerInfo,
    Tool,
)
from .transport import StdioTransport, TransportError, TransportParseError

__all__ = [
    "MCPHandler",
    "ToolRegistry",
    "DuplicateToolError",
    "StdioTransport",
    "TransportError",
    "TransportParseError",
    "MCPError",
    "MCPInitializeRequest",
    "MCPInitializeResponse",
    "MCPListToolsRequest",
    "MCPListToolsResponse",
    "MCPCallToolRequest",
    "MCPCallToolResponse",
    "MCPNotification",
    "MCPRequest",
    "MCPResponse",
    "ServerInfo",
    "Tool",
]
