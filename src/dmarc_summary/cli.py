"""
Command-line interface for the DMARC summary tool.

Usage:
    dmarc-summary [--sort date|domain|organization] [options] PATH...

Configuration is layered: built-in defaults, then an optional JSON config
file, then ``.env`` / environment variables, then command-line flags.
Without any PATH only the header line is written.

Exit codes:
- 0: all streams summarized
- 1: run aborted by a malformed report, an invalid token or a zip error
- 2: configuration error (nothing was ingested)
- 3: run completed with ``--keep-going`` but some streams were skipped
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO

from dotenv import find_dotenv, load_dotenv

from . import __version__
from .config import LoggingConfig, OutputConfig, PipelineConfig, SystemConfig
from .diagnostics_logger import DiagnosticsLogger
from .enums import ErrorPolicy, LogLevel, OutputFormat, SortKey
from .exceptions import ConfigError, DecodeError, ValidationError, ZipOpenError
from .i18n import get_message
from .pipeline import ReportPipeline


EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_PARTIAL = 3

ENV_SORT = "DMARC_SUMMARY_SORT"
ENV_WORKERS = "DMARC_SUMMARY_WORKERS"
ENV_LANGUAGE = "DMARC_SUMMARY_LANGUAGE"


def create_default_config(language: str = "en") -> SystemConfig:
    """
    Create a default configuration.

    Args:
        language: Language of CLI messages ('en' or 'de')

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        pipeline=PipelineConfig(),
        output=OutputConfig(),
        logging=LoggingConfig(),
        language=language,
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Example::

        {
          "pipeline": {"sort": "domain", "workers": 8, "queue_capacity": 100,
                       "error_policy": "abort"},
          "output": {"format": "csv", "delimiter": ","},
          "logging": {"level": "warn", "output_format": "text"},
          "language": "en"
        }

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        defaults = create_default_config()

        pipeline_data = data.get("pipeline", {})
        pipeline = PipelineConfig(
            sort_key=pipeline_data.get("sort", defaults.pipeline.sort_key.value),
            workers=pipeline_data.get("workers", defaults.pipeline.workers),
            queue_capacity=pipeline_data.get("queue_capacity", defaults.pipeline.queue_capacity),
            error_policy=pipeline_data.get("error_policy", defaults.pipeline.error_policy.value),
        )

        output_data = data.get("output", {})
        output = OutputConfig(
            format=output_data.get("format", defaults.output.format.value),
            delimiter=output_data.get("delimiter", defaults.output.delimiter),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", defaults.logging.level.value),
            output_format=logging_data.get("output_format", defaults.logging.output_format),
        )

        return SystemConfig(
            pipeline=pipeline,
            output=output,
            logging=logging_config,
            language=data.get("language", defaults.language),
        )

    except (json.JSONDecodeError, AttributeError, TypeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except OSError:
        return None


def apply_environment(config: SystemConfig, environ: Mapping[str, str]) -> SystemConfig:
    """
    Override configuration values from environment variables.

    Raises:
        ConfigError: If a numeric variable is not an integer
    """
    if environ.get(ENV_SORT):
        config.pipeline.sort_key = environ[ENV_SORT]
    if environ.get(ENV_WORKERS):
        try:
            config.pipeline.workers = int(environ[ENV_WORKERS])
        except ValueError:
            raise ConfigError(
                "invalid_workers",
                f"{ENV_WORKERS} must be an integer, got {environ[ENV_WORKERS]!r}",
                {"variable": ENV_WORKERS},
            ) from None
    if environ.get(ENV_LANGUAGE):
        config.language = environ[ENV_LANGUAGE]
    return config


def apply_arguments(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Override configuration values with explicitly given command-line flags."""
    if args.sort is not None:
        config.pipeline.sort_key = args.sort
    if args.workers is not None:
        config.pipeline.workers = args.workers
    if args.queue_size is not None:
        config.pipeline.queue_capacity = args.queue_size
    if args.keep_going:
        config.pipeline.error_policy = ErrorPolicy.SKIP
    if args.format is not None:
        config.output.format = args.format
    if args.delimiter is not None:
        config.output.delimiter = args.delimiter
    if args.log_format is not None:
        config.logging.output_format = args.log_format
    if args.verbose:
        config.logging.level = LogLevel.DEBUG
    if args.language is not None:
        config.language = args.language
    return config


async def run_summary(
    paths: list[str],
    config: SystemConfig,
    output: Optional[TextIO] = None,
    error_stream: Optional[TextIO] = None,
    verbose: bool = False,
) -> int:
    """
    Summarize the given report files.

    Args:
        paths: Input paths (plain XML, .gz or .zip)
        config: Validated system configuration
        output: Report destination (defaults to sys.stdout)
        error_stream: Destination of diagnostics (defaults to sys.stderr)
        verbose: Print a run summary even when nothing was skipped

    Returns:
        Exit code
    """
    language = config.language
    error_stream = error_stream or sys.stderr
    logger = DiagnosticsLogger(
        output_format=config.logging.output_format,
        output_stream=error_stream,
        min_level=config.logging.level,
    )

    try:
        async with ReportPipeline(config=config, output=output, logger=logger) as pipeline:
            result = await pipeline.run(paths)
    except ConfigError as e:
        print(get_message("error.config", language, message=e.message), file=error_stream)
        return EXIT_CONFIG
    except DecodeError as e:
        print(get_message("error.decode", language, message=e.message), file=error_stream)
        return EXIT_FATAL
    except ValidationError as e:
        print(get_message("error.validation", language, message=e.message), file=error_stream)
        return EXIT_FATAL
    except ZipOpenError as e:
        print(get_message("error.zip", language, message=e.message), file=error_stream)
        return EXIT_FATAL

    if verbose or result.failures:
        print(
            get_message(
                "summary.done",
                language,
                reports=len(result.aggregates),
                streams=result.streams_total,
                rows=result.rows_written,
            ),
            file=error_stream,
        )
    if result.failures:
        print(get_message("summary.skipped", language, count=len(result.failures)), file=error_stream)
        for failure in result.failures:
            print(
                get_message("summary.skipped_item", language, source=failure.source, message=failure.message),
                file=error_stream,
            )

    if result.failures and config.pipeline.error_policy is ErrorPolicy.SKIP:
        return EXIT_PARTIAL
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="dmarc-summary",
        description="Summarize DMARC aggregate reports per header-from domain",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Report files: XML, gzip-compressed XML (.gz) or zip archives (.zip)",
    )
    # Validated by the pipeline so an unknown key surfaces as a configuration error
    parser.add_argument(
        "--sort",
        help="sort by date|organization|domain (default: date)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of concurrent ingestion workers",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        help="Capacity of the hand-off queue between workers and collector (default: 100)",
    )
    parser.add_argument(
        "--format", "-f",
        choices=[f.value for f in OutputFormat],
        help="Output layout (default: table)",
    )
    parser.add_argument(
        "--delimiter", "-d",
        help="Column delimiter (default: ',')",
    )
    parser.add_argument(
        "--keep-going", "-k",
        action="store_true",
        help="Skip malformed reports instead of aborting the run",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=["en", "de"],
        help="Language of messages (default: en)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json", "both"],
        help="Format of diagnostics on stderr (default: text)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug diagnostics and a run summary",
    )
    return parser


def main(argv: Optional[list[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        environ: Environment to read defaults from (defaults to os.environ
            after loading a ``.env`` file from the working directory)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    config = create_default_config()
    if args.config:
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(get_message("error.config_file", args.language, path=args.config), file=sys.stderr)
            return EXIT_CONFIG

    try:
        apply_environment(config, environ)
        apply_arguments(config, args)
        config.validate()
    except ConfigError as e:
        print(get_message("error.config", args.language or config.language, message=e.message), file=sys.stderr)
        return EXIT_CONFIG

    return asyncio.run(run_summary(args.paths, config, verbose=args.verbose))


if __name__ == "__main__":
    sys.exit(main())
