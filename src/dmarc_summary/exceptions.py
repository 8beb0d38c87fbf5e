"""
Exception classes for the DMARC summary tool.

All exceptions inherit from DmarcSummaryError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DmarcSummaryError(Exception):
    """Base exception for all DMARC summary errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class StreamOpenError(DmarcSummaryError):
    """Raised when a plain or gzip input cannot be opened or decompressed."""

    pass


class ZipOpenError(DmarcSummaryError):
    """Raised when a zip container or one of its members cannot be opened."""

    pass


class DecodeError(DmarcSummaryError):
    """Raised when a report stream is not a well-formed aggregate report."""

    pass


class ValidationError(DmarcSummaryError):
    """Raised when a disposition, DKIM or SPF token is outside its closed set."""

    pass


class ConfigError(DmarcSummaryError):
    """Raised when the run configuration is invalid (e.g. unknown sort key)."""

    pass
