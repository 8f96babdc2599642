"""
Base classes for MCP tools.

Provides common functionality and interfaces for the VEX tools,
including argument checking, error handling, and result formatting.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import structlog

from ..protocol.schemas import Tool, ToolParameter, ToolSchema

logger = structlog.get_logger(__name__)

_JSON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


class ToolError(Exception):
    """Base exception for tool execution errors."""

    def __init__(
        self, message: str, code: str = "tool_error", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ToolValidationError(ToolError):
    """Error for invalid tool arguments."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", details=details)


class ToolResult:
    """Standardized tool result format."""

    def __init__(self, content: List[Dict[str, Any]], is_error: bool = False):
        if not content:
            raise ValueError("tool result requires at least one content item")
        self.content = content
        self.is_error = is_error

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        """Create a successful result with text content."""
        return cls(content=[{"type": "text", "text": text}], is_error=False)

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        """Create an error result. The RPC call itself still succeeds."""
        return cls(content=[{"type": "text", "text": f"Error: {message}"}], is_error=True)

    @property
    def text(self) -> str:
        """Concatenated text of all text content items."""
        return "\n".join(item.get("text", "") for item in self.content if item.get("type") == "text")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for MCP response."""
        return {
            "content": self.content,
            "isError": self.is_error,
        }


class BaseTool(ABC):
    """
    Base class for all MCP tools.

    Subclasses declare name, description and schema and implement
    execute(). Calling the tool checks arguments against the schema and
    turns ToolError into an error result; anything else propagates to the
    protocol handler.
    """

    # Tool metadata (must be defined by subclasses)
    name: str = ""
    description: str = ""

    def __init__(self) -> None:
        self.logger = logger.bind(tool=self.name)

    @abstractmethod
    def get_schema(self) -> Tool:
        """
        Get the tool schema definition.

        Returns:
            Tool schema for MCP protocol
        """

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute the tool with given arguments.

        Args:
            arguments: Tool arguments from MCP request

        Returns:
            Tool execution result

        Raises:
            ToolError: If execution fails
        """

    async def __call__(self, arguments: Dict[str, Any]) -> ToolResult:
        """Check arguments, execute, and convert tool errors into error results."""
        try:
            self.logger.info("Executing tool", argument_names=sorted(arguments))

            self._validate_arguments(arguments)
            result = await self.execute(arguments)

            self.logger.info("Tool execution completed", success=not result.is_error)
            return result

        except ToolError as e:
            self.logger.warning(
                "Tool execution failed",
                error_code=e.code,
                error_message=e.message,
                details=e.details,
            )
            return ToolResult.error(e.message)

    def _validate_arguments(self, arguments: Dict[str, Any]) -> None:
        """
        Check required parameters and JSON types against the schema.

        Allowed values are not checked here; the VEX client reports those.

        Raises:
            ToolValidationError: If validation fails
        """
        schema = self.get_schema()

        for required_param in schema.inputSchema.required:
            if arguments.get(required_param) is None:
                raise ToolValidationError(
                    f"{required_param} is required",
                    details={"missing_parameter": required_param},
                )

        for param_name, param_value in arguments.items():
            definition = schema.inputSchema.properties.get(param_name)
            if definition is None or param_value is None:
                continue
            self._validate_parameter(param_name, param_value, definition)

    def _validate_parameter(self, name: str, value: Any, definition: ToolParameter) -> None:
        expected = _JSON_TYPES.get(definition.type)
        if expected is None:
            return
        # bool is an int subclass but never a JSON number
        if isinstance(value, bool) and definition.type != "boolean":
            matches = False
        else:
            matches = isinstance(value, expected)
        if not matches:
            raise ToolValidationError(
                f"{name} must be {'an' if definition.type[0] in 'aeiou' else 'a'} {definition.type}",
                details={
                    "parameter": name,
                    "expected_type": definition.type,
                    "actual_type": type(value).__name__,
                },
            )

    def _create_parameter(
        self,
        param_type: str,
        description: str,
        enum: Optional[List[str]] = None,
        **keywords: Any,
    ) -> Dict[str, Any]:
        """Helper to create JSON Schema parameter definitions."""
        param: Dict[str, Any] = {
            "type": param_type,
            "description": description,
        }
        if enum is not None:
            param["enum"] = enum
        param.update({k: v for k, v in keywords.items() if v is not None})
        return param

    def _create_schema(self, parameters: Dict[str, Any], required: List[str]) -> Tool:
        """Helper to create tool schema with proper JSON Schema format."""
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=ToolSchema(
                type="object",
                properties=parameters,
                required=required,
                additionalProperties=False,
            ),
        )
