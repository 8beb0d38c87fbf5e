"""
Enumeration types for the DMARC summary tool.

These enums provide the closed token sets of aggregate reports and the
configuration choices accepted by the pipeline.
"""

from enum import Enum

from dmarc_summary.exceptions import ConfigError


class Disposition(Enum):
    """Policy action applied by the receiver."""

    NONE = "none"
    QUARANTINE = "quarantine"
    REJECT = "reject"


class AuthResult(Enum):
    """Evaluated DKIM / SPF outcome."""

    PASS = "pass"
    FAIL = "fail"


class SortKey(Enum):
    """Ordering applied to aggregates before emission."""

    DATE = "date"
    DOMAIN = "domain"
    ORGANIZATION = "organization"

    @classmethod
    def parse(cls, value: str) -> "SortKey":
        """
        Resolve a sort key from its textual name.

        Raises:
            ConfigError: If the name is not a recognized sort key
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(
                "unknown_sort_key",
                f"unknown sort option {value!r}",
                {"value": value, "allowed": [k.value for k in cls]},
            ) from None


class OutputFormat(Enum):
    """Text layout of emitted rows."""

    CSV = "csv"
    TABLE = "table"


class ErrorPolicy(Enum):
    """What to do with a stream whose content is not a conformant report."""

    ABORT = "abort"
    SKIP = "skip"


class StreamKind(Enum):
    """Container a report stream was read from."""

    PLAIN = "plain"
    GZIP = "gzip"
    ZIP_MEMBER = "zip_member"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
