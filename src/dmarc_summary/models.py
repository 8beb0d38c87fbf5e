"""
Data models for the DMARC summary tool.

This module defines the decoded report structures, the per-document
aggregates handed from the ingestion workers to the collector, and the
values describing the outcome of a pipeline run.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from .enums import StreamKind


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# ASCII base-10 digits only, no digit separators
_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_integer(text: Optional[str]) -> Optional[int]:
    """Parse base-10 integer text, or return None if it is not one."""
    text = (text or "").strip()
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def parse_epoch(text: Optional[str]) -> datetime:
    """
    Convert epoch-seconds text to an aware UTC datetime.

    Non-numeric or missing text yields the Unix epoch rather than an error.
    """
    seconds = parse_integer(text)
    if seconds is None:
        return EPOCH
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return EPOCH


@dataclass(frozen=True)
class RawRecord:
    """One <record> row of an aggregate report."""

    header_from: str
    count: int
    disposition: str
    dkim: str
    spf: str
    source_ip: str = ""


@dataclass(frozen=True)
class PolicyPublished:
    """The <policy_published> section of a report."""

    domain: str
    adkim: str = ""
    aspf: str = ""
    p: str = ""
    sp: str = ""
    pct: Optional[int] = None


@dataclass(frozen=True)
class RawDocument:
    """A decoded aggregate report; read-only after decoding."""

    org_name: str
    email: str
    report_id: str
    date_range_begin: str  # epoch seconds, as found in the report
    date_range_end: str
    policy: PolicyPublished
    records: tuple[RawRecord, ...] = ()

    @property
    def domain(self) -> str:
        return self.policy.domain

    @property
    def date_begin(self) -> datetime:
        return parse_epoch(self.date_range_begin)

    @property
    def date_end(self) -> datetime:
        return parse_epoch(self.date_range_end)


@dataclass
class DomainCounters:
    """Cumulative counters for one header-from domain within one report."""

    header_from: str
    policy_none: int = 0
    policy_quarantine: int = 0
    policy_reject: int = 0
    spf_pass: int = 0
    spf_fail: int = 0
    dkim_pass: int = 0
    dkim_fail: int = 0

    @property
    def total(self) -> int:
        """Number of messages counted for this domain."""
        return self.policy_none + self.policy_quarantine + self.policy_reject


@dataclass
class Aggregate:
    """Per-report aggregate delivered to the collector."""

    date_begin: datetime
    date_end: datetime
    organization: str
    domain: str
    domains: dict[str, DomainCounters] = field(default_factory=dict)
    source: str = ""

    def rows(self) -> Iterator[DomainCounters]:
        """Iterate the counters ordered by header-from domain."""
        for header_from in sorted(self.domains):
            yield self.domains[header_from]

    @property
    def message_count(self) -> int:
        return sum(counters.total for counters in self.domains.values())


@dataclass(frozen=True)
class StreamSource:
    """A single report stream to ingest."""

    name: str
    kind: StreamKind
    read: Callable[[], bytes] = field(compare=False, repr=False)


@dataclass
class StreamFailure:
    """A stream that was skipped instead of aborting the run."""

    source: str
    error_type: str
    code: str
    message: str


@dataclass
class PipelineResult:
    """Outcome of a complete pipeline run."""

    aggregates: list[Aggregate]
    failures: list[StreamFailure] = field(default_factory=list)
    rows_written: int = 0
    streams_total: int = 0

    @property
    def succeeded(self) -> bool:
        """True when every stream was ingested."""
        return not self.failures
