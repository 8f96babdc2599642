"""
Transport layer for MCP protocol communication.

Implements the stdio transport: one UTF-8 JSON object per line in, one
per line out, responses written in the order requests complete.
"""

import asyncio
import json
import re
import sys
from typing import Any, Awaitable, Callable, Dict, Optional, TextIO

import structlog
from pydantic import ValidationError

from .schemas import (
    MCPInternalError,
    MCPInvalidRequestError,
    MCPNotification,
    MCPParseError,
    MCPRequest,
    MCPResponse,
    RequestId,
)

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[MCPRequest], Awaitable[MCPResponse]]
NotificationHandler = Callable[[MCPNotification], Awaitable[None]]

_ID_PATTERN = re.compile(r'"id"\s*:\s*("(?:[^"\\]|\\.)*"|-?\d+)')


class TransportError(Exception):
    """Base exception for transport errors."""

    pass


class TransportParseError(TransportError):
    """A line could not be decoded as JSON."""

    def __init__(self, message: str, line: str, request_id: Optional[RequestId] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.request_id = request_id


def recover_request_id(line: str) -> Optional[RequestId]:
    """Best-effort extraction of a request id from malformed JSON text."""
    match = _ID_PATTERN.search(line)
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return None


def _valid_id(value: Any) -> Optional[RequestId]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return value
    return None


class StdioTransport:
    """
    Stdio transport for MCP communication.

    Handles JSON-RPC message exchange over stdin/stdout. The streams can be
    replaced, which is how the tests drive the read loop.
    """

    def __init__(self, reader: Optional[TextIO] = None, writer: Optional[TextIO] = None):
        self._reader = reader if reader is not None else sys.stdin
        self._writer = writer if writer is not None else sys.stdout
        self._running = False
        self._write_lock = asyncio.Lock()
        self._message_handler: Optional[MessageHandler] = None
        self._notification_handler: Optional[NotificationHandler] = None

    def set_message_handler(self, handler: MessageHandler) -> None:
        """Set the handler for incoming requests."""
        self._message_handler = handler

    def set_notification_handler(self, handler: NotificationHandler) -> None:
        """Set the handler for incoming notifications."""
        self._notification_handler = handler

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run the read loop until EOF or stop()."""
        if self._running:
            raise TransportError("Transport is already running")

        if not self._message_handler:
            raise TransportError("Message handler not set")

        self._running = True
        logger.info("Starting stdio transport")

        try:
            await self._run_transport_loop()
        finally:
            self._running = False
            logger.info("Stdio transport stopped")

    async def stop(self) -> None:
        """Stop the loop after the message currently being processed."""
        self._running = False

    async def read_message(self) -> Optional[Any]:
        """
        Read the next JSON value from the input stream.

        Blank lines are skipped. Text streams backed by a byte buffer (such
        as stdin) are read as bytes and decoded one line at a time, so a line
        that is not valid UTF-8 only affects itself.

        Returns:
            The decoded value, or None at end of stream

        Raises:
            TransportParseError: If a line is not valid UTF-8 or not valid JSON
        """
        loop = asyncio.get_running_loop()
        source = getattr(self._reader, "buffer", self._reader)

        while True:
            raw = await loop.run_in_executor(None, source.readline)
            if not raw:
                return None

            if isinstance(raw, bytes):
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError as e:
                    text = raw.decode("utf-8", errors="replace").strip()
                    raise TransportParseError(
                        f"Invalid UTF-8: {e.reason}", text, recover_request_id(text)
                    ) from e
            else:
                line = raw

            line = line.strip()
            if not line:
                continue

            try:
                return json.loads(line)
            except json.JSONDecodeError as e:
                raise TransportParseError(
                    f"Invalid JSON: {e.msg}", line, recover_request_id(line)
                ) from e
            except (RecursionError, ValueError) as e:
                # Nesting too deep for the decoder, or numbers it refuses
                raise TransportParseError(
                    f"Invalid JSON: {type(e).__name__}", line, recover_request_id(line)
                ) from e

    async def send_response(self, response: MCPResponse) -> None:
        """Send a response message."""
        logger.debug(
            "Sending MCP response",
            response_id=response.id,
            has_error=response.error is not None,
        )
        await self.send_message(response.to_dict())

    async def send_message(self, message: Dict[str, Any]) -> None:
        """
        Write one message as a single line and flush.

        Raises:
            TransportError: If the output stream fails
        """
        message_json = json.dumps(message, separators=(",", ":"), ensure_ascii=False)
        async with self._write_lock:
            try:
                self._writer.write(message_json + "\n")
                self._writer.flush()
            except (OSError, ValueError) as e:
                raise TransportError(f"Failed to send message: {e}") from e

    async def _run_transport_loop(self) -> None:
        logger.debug("Starting transport loop")

        while self._running:
            try:
                data = await self.read_message()
            except TransportParseError as e:
                step = self._handle_parse_error(e)
            except UnicodeDecodeError as e:
                # Text-only reader without a byte buffer underneath
                logger.error("Undecodable input dropped", error=str(e))
                continue
            except (OSError, ValueError) as e:
                logger.error("Error reading from stdin", error=str(e))
                break
            else:
                if data is None:
                    logger.info("Received EOF on stdin")
                    break
                step = self._process_message(data)

            try:
                await step
            except TransportError as e:
                logger.error("Output stream failed", error=str(e))
                break
            except Exception as e:
                logger.error("Error processing message", error=str(e), exc_info=True)

    async def _process_message(self, data: Any) -> None:
        if not isinstance(data, dict):
            logger.warning("Received non-object message", message_type=type(data).__name__)
            error = MCPInvalidRequestError("Invalid Request: expected an object")
            await self.send_response(MCPResponse.from_error(None, error))
            return

        if "method" not in data:
            # Responses from the client are not expected in server mode
            logger.warning("Received message without method", message_id=data.get("id"))
            return

        if "id" in data:
            await self._handle_request(data)
        else:
            await self._handle_notification(data)

    async def _handle_request(self, message_data: Dict[str, Any]) -> None:
        request_id = _valid_id(message_data.get("id"))

        try:
            request = MCPRequest.model_validate(message_data)
        except ValidationError as e:
            logger.error("Invalid request format", error_count=e.error_count())
            await self.send_response(
                MCPResponse.from_error(request_id, MCPInvalidRequestError())
            )
            return

        logger.info("Processing request", method=request.method, request_id=request.id)

        try:
            response = await self._message_handler(request)
        except Exception as e:
            logger.error("Handler error", error=str(e), exc_info=True)
            response = MCPResponse.from_error(request.id, MCPInternalError())

        await self.send_response(response)

    async def _handle_notification(self, message_data: Dict[str, Any]) -> None:
        try:
            notification = MCPNotification.model_validate(message_data)
        except ValidationError as e:
            logger.error("Invalid notification format", error_count=e.error_count())
            return

        if self._notification_handler is not None:
            await self._notification_handler(notification)
        else:
            logger.info("Received notification", method=notification.method)

    async def _handle_parse_error(self, error: TransportParseError) -> None:
        logger.error("Invalid JSON received", error=error.message, line=error.line[:100])

        if error.request_id is None:
            logger.warning("Dropping malformed message without a recoverable id")
            return

        await self.send_response(MCPResponse.from_error(error.request_id, MCPParseError()))
