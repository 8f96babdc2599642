"""
Main VEX document MCP server implementation.

Coordinates the VEX client, tool registry, protocol handler and stdio
transport to expose OpenVEX authoring tools to MCP hosts.
"""

import asyncio
import signal
from typing import Dict, Optional

import structlog

from . import __version__
from .config.settings import Config
from .protocol.handlers import MCPHandler
from .protocol.registry import ToolRegistry
from .protocol.schemas import ServerInfo
from .protocol.transport import StdioTransport
from .tools.base import BaseTool
from .tools.create_vex_statement import CreateVexStatementTool
from .tools.merge_vex_documents import MergeVexDocumentsTool
from .vex.client import VexClient

logger = structlog.get_logger(__name__)


class VexDocMCPServer:
    """
    Main MCP server for VEX document authoring.

    Tools are registered once, before the transport reads its first
    message; the registry is read-only afterwards.
    """

    def __init__(self, config: Config, transport: Optional[StdioTransport] = None):
        """
        Initialize the MCP server.

        Args:
            config: Server configuration
            transport: Transport to serve on, stdin/stdout by default
        """
        self.config = config
        self._running = False
        self._shutdown_event = asyncio.Event()

        self.vex_client = VexClient(default_author=config.vex.default_author)
        self.registry = ToolRegistry()
        self.mcp_handler = MCPHandler(
            registry=self.registry,
            server_info=ServerInfo(name="vexdoc-mcp-server", version=__version__),
        )
        self.transport = transport or StdioTransport()

        self._tools: Dict[str, BaseTool] = {}

    async def start(self) -> None:
        """Register tools and wire the transport to the handler."""
        if self._running:
            return

        logger.info("Starting VEX document MCP server")

        self._register_tools()

        self.transport.set_message_handler(self.mcp_handler.handle_request)
        self.transport.set_notification_handler(self.mcp_handler.handle_notification)

        self._running = True
        logger.info(
            "Server started successfully",
            tools_registered=len(self._tools),
            default_author=self.config.vex.default_author,
        )

    async def stop(self) -> None:
        """Stop the MCP server."""
        if not self._running:
            return

        logger.info("Stopping VEX document MCP server")

        self._running = False
        self._shutdown_event.set()
        await self.transport.stop()

        logger.info("Server stopped")

    async def run_stdio(self) -> None:
        """
        Serve over stdio until end of input or a termination signal.

        This is the main entry point for MCP host integration.
        """
        try:
            await self.start()
            self._setup_signal_handlers()

            transport_task = asyncio.create_task(self.transport.start())
            shutdown_task = asyncio.create_task(self._shutdown_event.wait())

            done, pending = await asyncio.wait(
                {transport_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            if transport_task in done:
                # Surface transport failures such as a missing handler
                transport_task.result()

        except Exception as e:
            logger.error("Server error", error=str(e), exc_info=True)
            raise
        finally:
            self._remove_signal_handlers()
            await self.stop()

    def _register_tools(self) -> None:
        """Register all enabled tools with the MCP handler."""
        logger.info("Registering tools")

        if self.config.tools.create_vex_statement.enabled:
            create_tool = CreateVexStatementTool(self.vex_client)
            self._add_tool(create_tool)

        if self.config.tools.merge_vex_documents.enabled:
            merge_tool = MergeVexDocumentsTool(self.vex_client)
            self._add_tool(merge_tool)

        logger.info("Tools registered", tools=list(self._tools))

    def _add_tool(self, tool: BaseTool) -> None:
        self.mcp_handler.register_tool(tool)
        self._tools[tool.name] = tool
        logger.debug("Registered tool", tool=tool.name)

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum: int) -> None:
            logger.info("Received signal, initiating shutdown", signal=signum)
            self._shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except (NotImplementedError, RuntimeError):
                # Not available on Windows event loops or outside the main thread
                logger.debug("Signal handlers unavailable", signal=signum)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass

    @property
    def running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def tools(self) -> dict:
        """Get registered tools."""
        return self._tools.copy()
