"""
Configuration dataclasses for the DMARC summary tool.

This module defines the configuration structures passed explicitly into the
pipeline: worker pool sizing, hand-off queue capacity, ordering, output
layout, error policy and diagnostics logging.
"""

import os
from dataclasses import dataclass, field

from .enums import ErrorPolicy, LogLevel, OutputFormat, SortKey
from .exceptions import ConfigError


def default_worker_count() -> int:
    """Default size of the ingestion worker pool."""
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass
class PipelineConfig:
    """Ingestion and ordering configuration."""

    sort_key: SortKey = SortKey.DATE
    workers: int = field(default_factory=default_worker_count)
    queue_capacity: int = 100
    error_policy: ErrorPolicy = ErrorPolicy.ABORT

    def validate(self) -> None:
        """
        Check the configuration before any ingestion starts.

        Raises:
            ConfigError: If a value is out of range or of the wrong kind
        """
        self.sort_key = SortKey.parse(self.sort_key)
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(
                "invalid_workers",
                f"worker count must be a positive integer, got {self.workers!r}",
                {"workers": self.workers},
            )
        if not isinstance(self.queue_capacity, int) or self.queue_capacity < 1:
            raise ConfigError(
                "invalid_queue_capacity",
                f"queue capacity must be a positive integer, got {self.queue_capacity!r}",
                {"queue_capacity": self.queue_capacity},
            )
        if not isinstance(self.error_policy, ErrorPolicy):
            try:
                self.error_policy = ErrorPolicy(self.error_policy)
            except ValueError:
                raise ConfigError(
                    "invalid_error_policy",
                    f"unknown error policy {self.error_policy!r}",
                    {"error_policy": self.error_policy},
                ) from None


@dataclass
class OutputConfig:
    """Emitted text layout."""

    format: OutputFormat = OutputFormat.TABLE
    delimiter: str = ","

    def validate(self) -> None:
        if not isinstance(self.format, OutputFormat):
            try:
                self.format = OutputFormat(self.format)
            except ValueError:
                raise ConfigError(
                    "invalid_output_format",
                    f"unknown output format {self.format!r}",
                    {"format": self.format},
                ) from None
        if len(self.delimiter) != 1:
            raise ConfigError(
                "invalid_delimiter",
                "delimiter must be a single character",
                {"delimiter": self.delimiter},
            )


@dataclass
class LoggingConfig:
    """Diagnostics logging configuration."""

    level: LogLevel = LogLevel.WARN
    output_format: str = "text"  # 'json', 'text', 'both'

    def validate(self) -> None:
        if not isinstance(self.level, LogLevel):
            try:
                self.level = LogLevel(self.level)
            except ValueError:
                raise ConfigError(
                    "invalid_log_level",
                    f"unknown log level {self.level!r}",
                    {"level": self.level},
                ) from None
        if self.output_format not in ("json", "text", "both"):
            raise ConfigError(
                "invalid_log_format",
                f"unknown log format {self.output_format!r}",
                {"output_format": self.output_format},
            )


@dataclass
class SystemConfig:
    """Main configuration combining all sub-configurations."""

    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'en' or 'de'

    def validate(self) -> None:
        """Validate every section; raises ConfigError on the first problem."""
        self.pipeline.validate()
        self.output.validate()
        self.logging.validate()
        if self.language not in ("en", "de"):
            raise ConfigError(
                "invalid_language",
                f"unsupported language {self.language!r}",
                {"language": self.language},
            )
