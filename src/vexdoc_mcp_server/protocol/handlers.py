"""
MCP Protocol message handlers.

Implements the core logic for handling MCP protocol messages and
routing them to the initialize, tools/list and tools/call handlers.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

import structlog
from pydantic import ValidationError

from .registry import ToolRegistry
from .schemas import (
    PROTOCOL_VERSION,
    CallToolParams,
    InitializeParams,
    MCPCallToolResponse,
    MCPError,
    MCPInitializeResponse,
    MCPInternalError,
    MCPListToolsResponse,
    MCPMethodNotFoundError,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    MCPToolNotFoundError,
    MCPValidationError,
    ServerInfo,
)

if TYPE_CHECKING:
    from ..tools.base import BaseTool

logger = structlog.get_logger(__name__)

RequestRoute = Callable[[MCPRequest], Awaitable[MCPResponse]]


def _params_of(request: MCPRequest) -> Any:
    """Request params for model validation; absent params validate as an empty object."""
    return {} if request.params is None else request.params


def validation_details(error: ValidationError) -> List[str]:
    """Readable one-line descriptions of pydantic errors, without input echoes."""
    details = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        details.append(f"{location}: {err['msg']}" if location else err["msg"])
    return details


class MCPHandler:
    """
    Main handler for MCP protocol messages.

    Routes incoming requests through a fixed method table. The tool
    registry is the only state shared between requests.
    """

    def __init__(
        self,
        registry: Optional[ToolRegistry] = None,
        server_info: Optional[ServerInfo] = None,
    ):
        self.registry = registry if registry is not None else ToolRegistry()
        self.server_info = server_info or ServerInfo()
        self._capabilities: Dict[str, Any] = {"tools": {"listChanged": False}}
        self._routes: Dict[str, RequestRoute] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
        }

    def register_tool(self, tool: "BaseTool") -> None:
        """Register a tool with the underlying registry."""
        self.registry.register(tool)

    @property
    def methods(self) -> List[str]:
        return list(self._routes)

    async def handle_request(self, request: MCPRequest) -> MCPResponse:
        """
        Handle incoming MCP request.

        Never raises: protocol failures and unexpected exceptions are
        returned as JSON-RPC error responses.

        Args:
            request: Incoming request

        Returns:
            Response to send back to client
        """
        logger.debug("Handling request", method=request.method, request_id=request.id)

        try:
            route = self._routes.get(request.method)
            if route is None:
                raise MCPMethodNotFoundError(request.method)
            return await route(request)

        except MCPError as e:
            logger.warning(
                "MCP error handling request",
                method=request.method,
                request_id=request.id,
                error_code=e.code,
                error_message=e.message,
            )
            return MCPResponse.from_error(request.id, e)

        except Exception as e:
            logger.error(
                "Unexpected error handling request",
                method=request.method,
                request_id=request.id,
                error=str(e),
                exc_info=True,
            )
            return MCPResponse.from_error(request.id, MCPInternalError())

    async def handle_notification(self, notification: MCPNotification) -> None:
        """Notifications are acknowledged in the log only."""
        logger.info("Received notification", method=notification.method)

    async def _handle_initialize(self, request: MCPRequest) -> MCPResponse:
        try:
            params = InitializeParams.model_validate(_params_of(request))
        except ValidationError as e:
            raise MCPValidationError(
                "Invalid initialize parameters", data={"details": validation_details(e)}
            )

        if params.protocolVersion is not None and params.protocolVersion != PROTOCOL_VERSION:
            raise MCPValidationError(
                f"Unsupported protocol version: {params.protocolVersion}",
                data={"supported": [PROTOCOL_VERSION]},
            )

        logger.info(
            "Initializing MCP session",
            protocol_version=params.protocolVersion,
            client_name=params.clientInfo.name if params.clientInfo else None,
            client_version=params.clientInfo.version if params.clientInfo else None,
        )

        return MCPInitializeResponse(
            request_id=request.id,
            protocol_version=PROTOCOL_VERSION,
            server_info=self.server_info,
            capabilities=self._capabilities,
        )

    async def _handle_list_tools(self, request: MCPRequest) -> MCPResponse:
        tools = self.registry.list_schemas()
        logger.info("Listing tools", tool_count=len(tools))
        return MCPListToolsResponse(request.id, tools)

    async def _handle_call_tool(self, request: MCPRequest) -> MCPResponse:
        try:
            params = CallToolParams.model_validate(_params_of(request))
        except ValidationError as e:
            raise MCPValidationError(
                "Invalid tool call parameters", data={"details": validation_details(e)}
            )

        tool = self.registry.get(params.name)
        if tool is None:
            raise MCPToolNotFoundError(params.name)

        logger.info("Calling tool", tool_name=params.name)

        try:
            result = await tool(params.tool_arguments)
        except Exception as e:
            # Details stay in the server log; the client gets a fixed message.
            logger.error(
                "Tool execution raised",
                tool_name=params.name,
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise MCPInternalError(data={"details": "Tool execution failed"})

        logger.info("Tool execution completed", tool_name=params.name, success=not result.is_error)
        return MCPCallToolResponse(request.id, result.to_dict())
