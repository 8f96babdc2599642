"""
VEX client used by the MCP tools.

Creates single-statement VEX documents and merges existing documents.
Input passes the security boundary checks in validation.py first; every
domain decision (statuses, justifications, statement rules, document
structure) is left to the document model.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from .document import (
    Justification,
    Product,
    Statement,
    Status,
    VEXDocument,
    Vulnerability,
    parse,
)
from .errors import VexParseError, VexStatementError, VexValidationError
from .merge import filter_by_products, filter_by_vulnerabilities, merge_statements
from .validation import (
    MAX_AUTHOR_LENGTH,
    MAX_ID_LENGTH,
    MAX_STRING_LENGTH,
    validate_document_count,
    validate_field,
    validate_required,
)

logger = structlog.get_logger(__name__)

DEFAULT_AUTHOR = "vexdoc-mcp-server"


@dataclass
class CreateInput:
    """Input for creating a VEX statement."""

    product: str
    vulnerability: str
    status: str
    justification: Optional[str] = None
    impact_statement: Optional[str] = None
    action_statement: Optional[str] = None
    author: Optional[str] = None


@dataclass
class MergeInput:
    """Input for merging VEX documents."""

    documents: List[Dict[str, Any]]
    author: Optional[str] = None
    author_role: Optional[str] = None
    id: Optional[str] = None
    products: List[str] = field(default_factory=list)
    vulnerabilities: List[str] = field(default_factory=list)


def parse_status(value: str) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise VexStatementError(f"invalid status: {value}") from None


def parse_justification(value: str) -> Justification:
    try:
        return Justification(value)
    except ValueError:
        raise VexStatementError(f"invalid justification: {value}") from None


def _clean(values: Optional[List[str]]) -> List[str]:
    return [v.strip() for v in values or [] if v and v.strip()]


class VexClient:
    """
    Creates and merges OpenVEX documents.

    Every call builds fresh document objects; the client itself holds only
    the default author and is safe to share between concurrent requests.
    """

    def __init__(self, default_author: Optional[str] = None):
        self.default_author = default_author or DEFAULT_AUTHOR

    def create_statement(self, request: CreateInput) -> VEXDocument:
        """
        Create a new VEX document holding a single statement.

        Args:
            request: Statement fields

        Returns:
            The new document

        Raises:
            VexValidationError: If a security boundary check fails
            VexStatementError: If the statement is not a valid VEX statement
        """
        self._check_create_input(request)

        status = parse_status(request.status)
        justification = None
        if request.justification:
            justification = parse_justification(request.justification).value

        statement = Statement(
            vulnerability=Vulnerability(name=request.vulnerability),
            products=[Product(id=request.product)],
            status=status,
            justification=justification,
            impact_statement=request.impact_statement or None,
            action_statement=request.action_statement or None,
        )

        now = datetime.now(timezone.utc)
        document = VEXDocument(
            id=self._new_id(now),
            author=request.author or self.default_author,
            version=1,
            timestamp=now,
            statements=[statement],
        )

        try:
            statement.validate_statement()
        except VexStatementError as e:
            raise VexStatementError(f"statement validation failed: {e.message}") from e

        logger.debug(
            "Created VEX statement",
            document_id=document.id,
            vulnerability=request.vulnerability,
            status=status.value,
        )
        return document

    def merge_documents(self, request: MergeInput) -> VEXDocument:
        """
        Merge several VEX documents into one.

        Conflicting statements for the same vulnerability and product are
        collapsed (see merge.resolve_conflict); the result is sorted, has the
        requested metadata applied and is filtered by product and vulnerability.

        Raises:
            VexValidationError: If a security boundary or structural check fails
            VexParseError: If any input document cannot be parsed
        """
        self._check_merge_input(request)

        for index, raw in enumerate(request.documents, start=1):
            self._check_structure(index, raw)

        documents = [
            self._parse_document(index, raw)
            for index, raw in enumerate(request.documents, start=1)
        ]

        statements = merge_statements(documents)
        input_count = sum(len(document.statements) for document in documents)

        products = _clean(request.products)
        if products:
            statements = filter_by_products(statements, products)

        vulnerabilities = _clean(request.vulnerabilities)
        if vulnerabilities:
            statements = filter_by_vulnerabilities(statements, vulnerabilities)

        now = datetime.now(timezone.utc)
        merged = VEXDocument(
            id=request.id or self._new_id(now, prefix="merged-vex"),
            author=request.author or self.default_author,
            role=request.author_role or None,
            version=1,
            timestamp=now,
            statements=statements,
        )

        logger.debug(
            "Merged VEX documents",
            document_count=len(documents),
            input_statements=input_count,
            merged_statements=len(statements),
        )
        return merged

    def _check_create_input(self, request: CreateInput) -> None:
        try:
            validate_required("product", request.product)
            validate_field("product", request.product)
            validate_required("vulnerability", request.vulnerability)
            validate_field("vulnerability", request.vulnerability)
            validate_required("status", request.status)
            validate_field("status", request.status)
            validate_field("justification", request.justification)
            validate_field("impact_statement", request.impact_statement)
            validate_field("action_statement", request.action_statement)
            validate_field("author", request.author, MAX_AUTHOR_LENGTH)
        except VexValidationError as e:
            raise VexValidationError(f"validation error: {e.message}") from e

    def _check_merge_input(self, request: MergeInput) -> None:
        try:
            validate_document_count(len(request.documents))
            validate_field("author", request.author, MAX_AUTHOR_LENGTH)
            validate_field("author_role", request.author_role, MAX_AUTHOR_LENGTH)
            validate_field("id", request.id, MAX_ID_LENGTH)
            for i, product in enumerate(request.products or []):
                validate_field(f"products[{i}]", product, MAX_STRING_LENGTH)
            for i, vulnerability in enumerate(request.vulnerabilities or []):
                validate_field(f"vulnerabilities[{i}]", vulnerability, MAX_STRING_LENGTH)
        except VexValidationError as e:
            raise VexValidationError(f"validation error: {e.message}") from e

    @staticmethod
    def _check_structure(index: int, raw: Any) -> None:
        if not isinstance(raw, dict):
            raise VexValidationError(f"document {index} must be a valid JSON object")
        if "@context" not in raw:
            raise VexValidationError(
                f"document {index} must be a valid VEX document with @context"
            )
        if "statements" not in raw:
            raise VexValidationError(
                f"document {index} must be a valid VEX document with statements"
            )

    @staticmethod
    def _parse_document(index: int, raw: Dict[str, Any]) -> VEXDocument:
        try:
            data = json.dumps(raw).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise VexParseError(f"failed to marshal document {index}: {e}") from e

        try:
            return parse(data)
        except VexParseError as e:
            raise VexParseError(f"failed to parse document {index}: {e.message}") from e

    @staticmethod
    def _new_id(now: datetime, prefix: str = "vex") -> str:
        return f"{prefix}-{int(now.timestamp())}-{uuid.uuid4().hex[:8]}"
