"""
Merge VEX Documents tool for the VEX document MCP server.

Implements the merge_vex_documents tool, which consolidates OpenVEX
documents from several sources into one, optionally filtered by product
or vulnerability.
"""

from typing import Any, Dict, List

from ..protocol.schemas import Tool
from ..vex.client import MergeInput, VexClient
from ..vex.errors import VexError
from ..vex.validation import (
    MAX_AUTHOR_LENGTH,
    MAX_ID_LENGTH,
    MAX_MERGE_DOCUMENTS,
    MIN_MERGE_DOCUMENTS,
)
from .base import BaseTool, ToolResult, ToolValidationError
from .create_vex_statement import optional_string

VEX_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "description": (
        "Complete OpenVEX document containing vulnerability assessments. Must include "
        "@context for format version, statements array with vulnerability assessments, "
        "and document metadata."
    ),
    "properties": {
        "@context": {
            "type": "string",
            "description": "OpenVEX specification version URL (e.g., https://openvex.dev/ns/v0.2.0)",
        },
        "@id": {"type": "string", "description": "Globally unique identifier for this document"},
        "author": {"type": "string", "description": "Author of this VEX document"},
        "timestamp": {"type": "string", "description": "Creation time (ISO 8601)"},
        "version": {"type": "number", "description": "Document version number"},
        "statements": {
            "type": "array",
            "description": "Vulnerability assessment statements",
            "items": {"type": "object"},
        },
    },
    "required": ["@context", "statements"],
}


def string_list(arguments: Dict[str, Any], name: str) -> List[str]:
    """Read an optional array-of-strings argument."""
    values = arguments.get(name)
    if values is None:
        return []
    if not isinstance(values, list):
        raise ToolValidationError(f"{name} must be an array", details={"parameter": name})
    for index, value in enumerate(values):
        if not isinstance(value, str):
            raise ToolValidationError(
                f"{name}[{index}] must be a string", details={"parameter": name, "index": index}
            )
    return list(values)


class MergeVexDocumentsTool(BaseTool):
    """
    Tool for merging VEX documents.

    Combines statements from different vendors, teams or earlier assessments
    into a single authoritative VEX document.
    """

    name = "merge_vex_documents"
    description = (
        "Merge and consolidate multiple VEX documents into a unified security assessment "
        "report. Conflicting statements for the same vulnerability and product are resolved "
        "to the most resolved status. Supports filtering by products or vulnerabilities."
    )

    def __init__(self, vex_client: VexClient):
        super().__init__()
        self.vex_client = vex_client

    def get_schema(self) -> Tool:
        """Get the tool schema definition."""
        return self._create_schema(
            parameters={
                "documents": self._create_parameter(
                    "array",
                    "Collection of VEX documents to merge from different sources (vendors, "
                    "teams, previous assessments). Each must be a complete OpenVEX document.",
                    items=VEX_DOCUMENT_SCHEMA,
                    minItems=MIN_MERGE_DOCUMENTS,
                    maxItems=MAX_MERGE_DOCUMENTS,
                ),
                "author": self._create_parameter(
                    "string",
                    "Security analyst, team, or organization responsible for the merged document",
                    maxLength=MAX_AUTHOR_LENGTH,
                ),
                "author_role": self._create_parameter(
                    "string",
                    "Role of the author of the merged document (e.g., 'Security Engineer')",
                    maxLength=MAX_AUTHOR_LENGTH,
                ),
                "id": self._create_parameter(
                    "string",
                    "Custom identifier for the merged document. Generated when omitted.",
                    maxLength=MAX_ID_LENGTH,
                ),
                "products": self._create_parameter(
                    "array",
                    "Only keep statements for these products (PURL identifiers)",
                    items={"type": "string"},
                ),
                "vulnerabilities": self._create_parameter(
                    "array",
                    "Only keep statements for these vulnerabilities (CVE, GHSA, ...)",
                    items={"type": "string"},
                ),
            },
            required=["documents"],
        )

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute merge operation.

        Args:
            arguments: Tool arguments containing documents and optional metadata/filters

        Returns:
            Tool result carrying the merged VEX document as JSON text
        """
        documents = arguments.get("documents")
        if not isinstance(documents, list):
            raise ToolValidationError("documents must be an array")

        for index, document in enumerate(documents, start=1):
            if not isinstance(document, dict):
                raise ToolValidationError(
                    f"document {index} must be a valid JSON object", details={"index": index}
                )

        request = MergeInput(
            documents=documents,
            author=optional_string(arguments, "author"),
            author_role=optional_string(arguments, "author_role"),
            id=optional_string(arguments, "id"),
            products=string_list(arguments, "products"),
            vulnerabilities=string_list(arguments, "vulnerabilities"),
        )

        try:
            document = self.vex_client.merge_documents(request)
        except VexError as e:
            self.logger.info("VEX merge rejected", reason=e.message)
            return ToolResult.error(e.message)

        return ToolResult.success(f"VEX documents merged successfully:\n\n{document.to_json()}")
