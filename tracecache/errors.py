from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a cache geometry or simulator setting cannot be used."""


class MalformedAddressError(ValueError):
    """Raised when an address token is not an unsigned hexadecimal integer."""

    def __init__(self, token: str, reason: str = "not a hexadecimal address"):
        self.token = token
        super().__init__(f"Malformed address {token!r}: {reason}")


class UnknownPolicyError(ValueError):
    """Raised when victim selection is asked for a policy it has no branch for."""


class TraceFormatError(ValueError):
    """Raised when a line of a trace file does not look like an address."""

    def __init__(self, line_number: int, line: str):
        self.line_number = line_number
        self.line = line
        super().__init__(f"Invalid address format on line {line_number}: {line}")
