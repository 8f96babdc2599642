"""
MCP Protocol message schemas and data structures.

Defines the JSON-RPC 2.0 message formats for the Model Context Protocol,
including requests, responses, and error handling.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = Union[str, int]


class MCPError(Exception):
    """Base exception for MCP protocol errors."""

    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to JSON-RPC error format."""
        error_dict: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data:
            error_dict["data"] = self.data
        return error_dict


class MCPParseError(MCPError):
    """Error for input that is not valid JSON."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        super().__init__("Parse error", code=PARSE_ERROR, data=data)


class MCPInvalidRequestError(MCPError):
    """Error for JSON that is not a valid JSON-RPC request."""

    def __init__(self, message: str = "Invalid Request", data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_REQUEST, data=data)


class MCPValidationError(MCPError):
    """Error for invalid request parameters."""

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_PARAMS, data=data)


class MCPMethodNotFoundError(MCPError):
    """Error for unknown method calls."""

    def __init__(self, method: str):
        super().__init__(f"Method not found: {method}", code=METHOD_NOT_FOUND)


class MCPToolNotFoundError(MCPError):
    """Error for calls naming a tool that is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}", code=METHOD_NOT_FOUND)


class MCPInternalError(MCPError):
    """Error for internal server issues."""

    def __init__(self, message: str = "Internal error", data: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INTERNAL_ERROR, data=data)


# Base message types
class MCPMessage(BaseModel):
    """Base class for all MCP messages."""

    model_config = ConfigDict(extra="forbid")

    jsonrpc: str = Field(default=JSONRPC_VERSION, description="JSON-RPC version")

    @field_validator("jsonrpc")
    @classmethod
    def check_version(cls, v: str) -> str:
        if v != JSONRPC_VERSION:
            raise ValueError(f"unsupported JSON-RPC version: {v}")
        return v


class MCPRequest(MCPMessage):
    """Base class for MCP requests."""

    id: RequestId = Field(description="Request ID")
    method: str = Field(description="Method name")
    params: Optional[Any] = Field(default=None, description="Method parameters, checked per method")


class MCPResponse(MCPMessage):
    """Base class for MCP responses."""

    id: Optional[RequestId] = Field(default=None, description="Request ID")
    result: Optional[Dict[str, Any]] = Field(default=None, description="Response result")
    error: Optional[Dict[str, Any]] = Field(default=None, description="Error information")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-RPC 2.0 wire form: result OR error, never both."""
        message: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result if self.result is not None else {}
        return message

    @classmethod
    def from_error(cls, request_id: Optional[RequestId], error: MCPError) -> "MCPResponse":
        return cls(id=request_id, error=error.to_dict())


class MCPNotification(MCPMessage):
    """Base class for MCP notifications (no response expected)."""

    method: str = Field(description="Method name")
    params: Optional[Dict[str, Any]] = Field(default=None, description="Method parameters")


# Client info structures
class ClientInfo(BaseModel):
    """Information about the MCP client."""

    name: str = Field(description="Client name")
    version: str = Field(default="", description="Client version")


class ServerInfo(BaseModel):
    """Information about the MCP server."""

    name: str = Field(default="vexdoc-mcp-server", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")


# Tool structures
class ToolParameter(BaseModel):
    """
    Tool parameter definition.

    Extra JSON Schema keywords (items, minItems, maxLength, ...) are kept
    as-is and published with the schema.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(description="Parameter type")
    description: Optional[str] = Field(default=None, description="Parameter description")
    enum: Optional[List[str]] = Field(default=None, description="Allowed values")
    default: Optional[Any] = Field(default=None, description="Default value")


class ToolSchema(BaseModel):
    """Tool input schema definition."""

    type: str = Field(default="object", description="Schema type")
    properties: Dict[str, ToolParameter] = Field(description="Tool parameters")
    required: List[str] = Field(default_factory=list, description="Required parameters")
    additionalProperties: bool = Field(default=False, description="Allow undeclared parameters")


class Tool(BaseModel):
    """Tool definition."""

    name: str = Field(description="Tool name")
    description: str = Field(description="Tool description")
    inputSchema: ToolSchema = Field(description="Tool input schema")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# Initialize protocol
class InitializeParams(BaseModel):
    """Parameters of an initialize request."""

    model_config = ConfigDict(extra="allow")

    protocolVersion: Optional[str] = None
    clientInfo: Optional[ClientInfo] = None
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class MCPInitializeRequest(MCPRequest):
    """Initialize request from client."""

    method: str = Field(default="initialize")


class MCPInitializeResponse(MCPResponse):
    """Initialize response to client."""

    def __init__(
        self,
        request_id: RequestId,
        protocol_version: str = PROTOCOL_VERSION,
        server_info: Optional[ServerInfo] = None,
        capabilities: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            id=request_id,
            result={
                "protocolVersion": protocol_version,
                "serverInfo": (server_info or ServerInfo()).model_dump(),
                "capabilities": capabilities or {"tools": {"listChanged": False}},
            },
        )


# List tools
class MCPListToolsRequest(MCPRequest):
    """List tools request from client."""

    method: str = Field(default="tools/list")


class MCPListToolsResponse(MCPResponse):
    """List tools response to client."""

    def __init__(self, request_id: RequestId, tools: List[Tool]):
        super().__init__(
            id=request_id,
            result={"tools": [tool.to_dict() for tool in tools]},
        )


# Call tool
class CallToolParams(BaseModel):
    """Parameters of a tools/call request."""

    name: str = Field(min_length=1, description="Tool name")
    arguments: Optional[Dict[str, Any]] = Field(default=None, description="Tool arguments")

    @property
    def tool_arguments(self) -> Dict[str, Any]:
        return self.arguments or {}


class MCPCallToolRequest(MCPRequest):
    """Call tool request from client."""

    method: str = Field(default="tools/call")


class MCPCallToolResponse(MCPResponse):
    """Call tool response to client."""

    def __init__(self, request_id: RequestId, result: Dict[str, Any]):
        super().__init__(id=request_id, result=result)
