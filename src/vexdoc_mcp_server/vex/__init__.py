"""OpenVEX document model, security checks and the create/merge client."""

from .client import CreateInput, MergeInput, VexClient
from .document import (
    CONTEXT,
    Justification,
    Product,
    Statement,
    Status,
    VEXDocument,
    Vulnerability,
    parse,
)
from .errors import VexError, VexParseError, VexStatementError, VexValidationError

__all__ = [
    "VexClient",
    "CreateInput",
    "MergeInput",
    "VEXDocument",
    "Statement",
    "Vulnerability",
    "Product",
    "Status",
    "Justification",
    "CONTEXT",
    "parse",
    "VexError",
    "VexValidationError",
    "VexParseError",
    "VexStatementError",
]
