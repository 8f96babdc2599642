"""
OpenVEX document model.

Pydantic models mirroring the OpenVEX wire format, the authoritative
parser for raw documents, and the statement rules a VEX statement must
satisfy before it is handed out.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import VexParseError, VexStatementError

CONTEXT = "https://openvex.dev/ns/v0.2.0"
CONTEXT_PREFIX = "https://openvex.dev/ns"


class Status(str, Enum):
    """Impact status of a vulnerability on a product."""

    NOT_AFFECTED = "not_affected"
    AFFECTED = "affected"
    FIXED = "fixed"
    UNDER_INVESTIGATION = "under_investigation"


class Justification(str, Enum):
    """Reason codes for a not_affected status."""

    COMPONENT_NOT_PRESENT = "component_not_present"
    VULNERABLE_CODE_NOT_PRESENT = "vulnerable_code_not_present"
    VULNERABLE_CODE_NOT_IN_EXECUTE_PATH = "vulnerable_code_not_in_execute_path"
    VULNERABLE_CODE_CANNOT_BE_CONTROLLED_BY_ADVERSARY = (
        "vulnerable_code_cannot_be_controlled_by_adversary"
    )
    INLINE_MITIGATIONS_ALREADY_EXIST = "inline_mitigations_already_exist"


def status_values() -> List[str]:
    return [s.value for s in Status]


def justification_values() -> List[str]:
    return [j.value for j in Justification]


class VexModel(BaseModel):
    """Common configuration: wire aliases in, python names or aliases accepted."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Vulnerability(VexModel):
    name: str
    id: Optional[str] = Field(default=None, alias="@id")
    description: Optional[str] = None
    aliases: Optional[List[str]] = None


class Component(VexModel):
    id: Optional[str] = Field(default=None, alias="@id")
    identifiers: Optional[Dict[str, str]] = None
    hashes: Optional[Dict[str, str]] = None


class Product(Component):
    subcomponents: Optional[List[Component]] = None

    @property
    def component_id(self) -> str:
        """Identifier used for grouping and filtering; falls back to the purl identifier."""
        if self.id:
            return self.id
        if self.identifiers:
            return self.identifiers.get("purl", "")
        return ""


class Statement(VexModel):
    """A single VEX assertion about one vulnerability and its products."""

    id: Optional[str] = Field(default=None, alias="@id")
    vulnerability: Vulnerability
    timestamp: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    products: List[Product] = Field(default_factory=list)
    status: Status
    status_notes: Optional[str] = None
    # Plain string: merged statements may carry a combined description.
    justification: Optional[str] = None
    impact_statement: Optional[str] = None
    action_statement: Optional[str] = None
    action_statement_timestamp: Optional[datetime] = None

    def validate_statement(self) -> None:
        """
        Enforce the OpenVEX statement rules.

        Raises:
            VexStatementError: If the statement is not a valid VEX statement
        """
        if not self.vulnerability.name:
            raise VexStatementError("vulnerability name is required")
        if not self.products:
            raise VexStatementError("at least one product is required")

        status = self.status.value

        if self.status == Status.NOT_AFFECTED:
            if not self.justification and not self.impact_statement:
                raise VexStatementError(
                    "either justification or impact statement must be defined "
                    f'when using status "{status}"'
                )
            if self.justification and self.justification not in justification_values():
                raise VexStatementError(
                    f'invalid justification value "{self.justification}", must be one of '
                    f"[{', '.join(justification_values())}]"
                )
            if self.action_statement:
                raise VexStatementError(
                    f'action statement should not be set when using status "{status}"'
                )

        elif self.status == Status.AFFECTED:
            if self.justification:
                raise VexStatementError(
                    f'justification should not be set when using status "{status}"'
                )
            if self.impact_statement:
                raise VexStatementError(
                    f'impact statement should not be set when using status "{status}"'
                )
            if not self.action_statement:
                raise VexStatementError(
                    f'action statement must be set when using status "{status}"'
                )

        else:
            for label, value in (
                ("justification", self.justification),
                ("impact statement", self.impact_statement),
                ("action statement", self.action_statement),
            ):
                if value:
                    raise VexStatementError(
                        f'{label} should not be set when using status "{status}"'
                    )

    def product_ids(self) -> List[str]:
        return [product.component_id for product in self.products]


class VEXDocument(VexModel):
    """An OpenVEX document."""

    context: str = Field(default=CONTEXT, alias="@context")
    id: str = Field(default="", alias="@id")
    author: str = ""
    role: Optional[str] = None
    timestamp: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    version: int = 1
    tooling: Optional[str] = None
    statements: List[Statement] = Field(default_factory=list)

    @field_validator("context")
    @classmethod
    def check_context(cls, v: str) -> str:
        if not v.startswith(CONTEXT_PREFIX):
            raise ValueError(f"unsupported @context {v!r}, expected an OpenVEX context")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with OpenVEX field names, omitting unset values."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def parse(data: Union[bytes, str]) -> VEXDocument:
    """
    Parse the JSON text of an OpenVEX document.

    Args:
        data: Raw JSON bytes or text

    Returns:
        Parsed document

    Raises:
        VexParseError: If the data is not valid JSON or not a VEX document
    """
    try:
        return VEXDocument.model_validate_json(data)
    except ValidationError as e:
        raise VexParseError(_summarize(e)) from e


def _summarize(error: ValidationError, limit: int = 3) -> str:
    """Compact, single-line description of a pydantic validation failure."""
    parts = []
    for err in error.errors()[:limit]:
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    remaining = error.error_count() - limit
    if remaining > 0:
        parts.append(f"and {remaining} more error(s)")
    return "; ".join(parts)
