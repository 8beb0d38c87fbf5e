"""
DMARC Summary - concurrent summarizer for DMARC aggregate reports.

This package decodes DMARC aggregate reports (plain XML, gzip or zip),
aggregates authentication outcomes per header-from domain and emits a
deterministically ordered delimited-text summary.
"""

__version__ = "0.1.0"
__author__ = "DMARC Summary Team"

from dmarc_summary.exceptions import (
    DmarcSummaryError,
    StreamOpenError,
    ZipOpenError,
    DecodeError,
    ValidationError,
    ConfigError,
)
from dmarc_summary.enums import (
    Disposition,
    AuthResult,
    SortKey,
    OutputFormat,
    ErrorPolicy,
    StreamKind,
    LogLevel,
)
from dmarc_summary.config import (
    PipelineConfig,
    OutputConfig,
    LoggingConfig,
    SystemConfig,
)
from dmarc_summary.models import (
    RawRecord,
    PolicyPublished,
    RawDocument,
    DomainCounters,
    Aggregate,
    StreamSource,
    StreamFailure,
    PipelineResult,
    parse_epoch,
)
from dmarc_summary.decoder import decode_report
from dmarc_summary.aggregator import aggregate_report, add_record
from dmarc_summary.sorter import sort_aggregates
from dmarc_summary.emitter import (
    HEADER,
    ReportWriter,
    emit_report,
    format_line,
    iter_lines,
)
from dmarc_summary.sources import StreamSupplier
from dmarc_summary.diagnostics_logger import DiagnosticsLogger, LogEntry
from dmarc_summary.i18n import get_message
from dmarc_summary.pipeline import ReportPipeline, summarize
from dmarc_summary.cli import main as cli_main, create_parser

__all__ = [
    # Exceptions
    "DmarcSummaryError",
    "StreamOpenError",
    "ZipOpenError",
    "DecodeError",
    "ValidationError",
    "ConfigError",
    # Enums
    "Disposition",
    "AuthResult",
    "SortKey",
    "OutputFormat",
    "ErrorPolicy",
    "StreamKind",
    "LogLevel",
    # Configuration
    "PipelineConfig",
    "OutputConfig",
    "LoggingConfig",
    "SystemConfig",
    # Models
    "RawRecord",
    "PolicyPublished",
    "RawDocument",
    "DomainCounters",
    "Aggregate",
    "StreamSource",
    "StreamFailure",
    "PipelineResult",
    "parse_epoch",
    # Decoder / Aggregator / Sorter
    "decode_report",
    "aggregate_report",
    "add_record",
    "sort_aggregates",
    # Emitter
    "HEADER",
    "ReportWriter",
    "emit_report",
    "format_line",
    "iter_lines",
    # Stream supplier
    "StreamSupplier",
    # Diagnostics
    "DiagnosticsLogger",
    "LogEntry",
    "get_message",
    # Pipeline
    "ReportPipeline",
    "summarize",
    # CLI
    "cli_main",
    "create_parser",
]
