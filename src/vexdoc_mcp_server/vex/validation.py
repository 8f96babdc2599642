"""
Security boundary checks for VEX tool input.

These checks cap input sizes and reject shell/structural metacharacters.
They are not domain validation: status values, justifications and the
OpenVEX statement rules are enforced by the document model.
"""

import re
from typing import Optional

from .errors import VexValidationError

MAX_STRING_LENGTH = 1000
MAX_AUTHOR_LENGTH = 200
MAX_ID_LENGTH = 500
MIN_MERGE_DOCUMENTS = 2
MAX_MERGE_DOCUMENTS = 20

DANGEROUS_CHARS = re.compile(r"[;&|`$(){}\[\]<>'\"\\]")


def validate_required(name: str, value: Optional[str]) -> None:
    """Require a non-empty value."""
    if not value:
        raise VexValidationError(f"{name} is required")


def validate_string_length(name: str, value: Optional[str], max_length: int) -> None:
    """
    Reject values longer than max_length characters.

    Empty values pass; required-ness is checked separately.
    """
    if not value:
        return
    if len(value) > max_length:
        raise VexValidationError(f"{name} exceeds maximum length of {max_length} characters")


def validate_dangerous_chars(name: str, value: Optional[str]) -> None:
    """Reject values containing any character from DANGEROUS_CHARS."""
    if not value:
        return
    if DANGEROUS_CHARS.search(value):
        raise VexValidationError(f"{name} contains potentially dangerous characters")


def validate_field(name: str, value: Optional[str], max_length: int = MAX_STRING_LENGTH) -> None:
    """Length check followed by the character check."""
    validate_string_length(name, value, max_length)
    validate_dangerous_chars(name, value)


def validate_document_count(count: int) -> None:
    """Bound the number of documents accepted by a single merge."""
    if count < MIN_MERGE_DOCUMENTS:
        raise VexValidationError(
            f"at least {MIN_MERGE_DOCUMENTS} VEX documents are required for merging"
        )
    if count > MAX_MERGE_DOCUMENTS:
        raise VexValidationError(
            f"maximum of {MAX_MERGE_DOCUMENTS} documents can be merged at once"
        )
