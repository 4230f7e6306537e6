"""
Exception types for Accredited TREs.
"""


class AccreditedTresError(Exception):
    """Base class for all Accredited TREs errors."""


class SourceNotFound(AccreditedTresError, KeyError):
    """Raised when a province id is not in the source registry."""

    def __init__(self, province_id: str):
        self.province_id = province_id
        super().__init__(f"Unknown province: {province_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class RetrievalFailure(AccreditedTresError):
    """Raised when raw sheet text cannot be retrieved from its location."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Failed to retrieve {location}: {reason}")


class SheetParseError(AccreditedTresError):
    """Raised when raw sheet text has syntax the tokenizer cannot recover from."""
