"""
Exceptions raised by the VEX domain layer.
"""


class VexError(Exception):
    """Base exception for VEX domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class VexValidationError(VexError):
    """Input rejected by a security boundary check."""

    pass


class VexParseError(VexError):
    """Raw data could not be parsed into a VEX document."""

    pass


class VexStatementError(VexError):
    """Statement violates OpenVEX semantic rules."""

    pass
