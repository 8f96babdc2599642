"""
Create VEX Statement tool for the VEX document MCP server.

Implements the create_vex_statement tool, which records a vulnerability
assessment for one product as a new OpenVEX document.
"""

from typing import Any, Dict, Optional

from ..protocol.schemas import Tool
from ..vex.client import CreateInput, VexClient
from ..vex.document import justification_values, status_values
from ..vex.errors import VexError
from ..vex.validation import MAX_AUTHOR_LENGTH, MAX_STRING_LENGTH
from .base import BaseTool, ToolResult, ToolValidationError


def optional_string(arguments: Dict[str, Any], name: str) -> Optional[str]:
    """Read an optional string argument; absent or null gives None."""
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ToolValidationError(f"{name} must be a string", details={"parameter": name})
    return value


class CreateVexStatementTool(BaseTool):
    """
    Tool for creating VEX statements.

    Produces an OpenVEX document with a single statement stating whether a
    product is affected by a vulnerability.
    """

    name = "create_vex_statement"
    description = (
        "Generate VEX (Vulnerability Exploitability eXchange) statements to document "
        "security vulnerability assessments for software products. Creates OpenVEX-compliant "
        "JSON documents that specify whether products are affected by specific vulnerabilities."
    )

    def __init__(self, vex_client: VexClient):
        super().__init__()
        self.vex_client = vex_client

    def get_schema(self) -> Tool:
        """Get the tool schema definition."""
        return self._create_schema(
            parameters={
                "product": self._create_parameter(
                    "string",
                    "Software product identifier using PURL (Package URL) format, e.g., "
                    "pkg:npm/lodash@4.17.21, pkg:docker/nginx@1.20.1",
                    maxLength=MAX_STRING_LENGTH,
                ),
                "vulnerability": self._create_parameter(
                    "string",
                    "Security vulnerability identifier from CVE, GHSA, or other vulnerability "
                    "databases (e.g., CVE-2023-1234, GHSA-xxxx-xxxx-xxxx)",
                    maxLength=MAX_STRING_LENGTH,
                ),
                "status": self._create_parameter(
                    "string",
                    "Assessment of how the vulnerability affects this product: not_affected "
                    "(product is safe), affected (vulnerable), fixed (patched), "
                    "under_investigation (being analyzed)",
                    enum=status_values(),
                ),
                "justification": self._create_parameter(
                    "string",
                    "Technical reason why a product is not affected by the vulnerability "
                    "(required when status=not_affected unless impact_statement is given)",
                    enum=justification_values(),
                ),
                "impact_statement": self._create_parameter(
                    "string",
                    "Detailed technical explanation of why the vulnerability cannot be "
                    "exploited in this product context (used with status=not_affected)",
                    maxLength=MAX_STRING_LENGTH,
                ),
                "action_statement": self._create_parameter(
                    "string",
                    "Recommended remediation actions for affected products, such as version "
                    "upgrades or configuration changes (required with status=affected)",
                    maxLength=MAX_STRING_LENGTH,
                ),
                "author": self._create_parameter(
                    "string",
                    "Security analyst, team, or organization responsible for this assessment",
                    maxLength=MAX_AUTHOR_LENGTH,
                ),
            },
            required=["product", "vulnerability", "status"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute create statement operation.

        Args:
            arguments: Tool arguments containing product, vulnerability, status, etc.

        Returns:
            Tool result carrying the new VEX document as JSON text
        """
        request = CreateInput(
            product=optional_string(arguments, "product") or "",
            vulnerability=optional_string(arguments, "vulnerability") or "",
            status=optional_string(arguments, "status") or "",
            justification=optional_string(arguments, "justification"),
            impact_statement=optional_string(arguments, "impact_statement"),
            action_statement=optional_string(arguments, "action_statement"),
            author=optional_string(arguments, "author"),
        )

        try:
            document = self.vex_client.create_statement(request)
        except VexError as e:
            self.logger.info("VEX statement rejected", reason=e.message)
            return ToolResult.error(e.message)

        return ToolResult.success(f"VEX statement created successfully:\n\n{document.to_json()}")
