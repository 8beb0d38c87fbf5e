"""
Report pipeline for the DMARC summary tool.

This module provides the orchestration layer that coordinates all components
of a run:
- Expansion of input paths into report streams
- A bounded pool of ingestion workers (decode + aggregate per stream)
- A single collector draining the bounded hand-off queue
- Ordering of the collected aggregates
- Emission through the single-owner report writer

Failures are turned into values in one place (``_handle_failure``): a stream
that cannot be opened is skipped, content errors abort the run unless the
error policy says to skip them, and zip container errors always abort.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from functools import partial
from typing import Iterable, Optional, TextIO, Union

from .aggregator import aggregate_report
from .config import SystemConfig
from .decoder import decode_report
from .diagnostics_logger import DiagnosticsLogger
from .emitter import ReportWriter, emit_report
from .enums import ErrorPolicy, LogLevel
from .exceptions import (
    DecodeError,
    DmarcSummaryError,
    StreamOpenError,
    ValidationError,
)
from .models import Aggregate, PipelineResult, StreamFailure, StreamSource
from .sorter import sort_aggregates
from .sources import PathLike, StreamSupplier


# Marks the end of input on the hand-off queue
_END_OF_INPUT = object()

Outcome = Union[Aggregate, StreamFailure]


class ReportPipeline:
    """
    Orchestrates one summary run over a set of report streams.

    Each stream is ingested by one of ``config.pipeline.workers`` worker
    tasks; blocking reads and XML decoding run in worker threads. Completion
    order among streams is arbitrary, the only ordering is the one applied by
    the sorter before emission.
    """

    async def __aenter__(self) -> "ReportPipeline":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        pass

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        output: Optional[TextIO] = None,
        logger: Optional[DiagnosticsLogger] = None,
        supplier: Optional[StreamSupplier] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            config: Run configuration; validated here, before any ingestion
            output: Destination of the report (defaults to sys.stdout)
            logger: Optional diagnostics logger
            supplier: Optional stream supplier used by ``run``

        Raises:
            ConfigError: If the configuration is invalid
        """
        self._config = config or SystemConfig()
        self._config.validate()
        self._output = output
        self._logger = logger
        self._supplier = supplier or StreamSupplier(logger)

    async def run(self, paths: Iterable[PathLike]) -> PipelineResult:
        """
        Summarize the reports found at ``paths``.

        Raises:
            ZipOpenError: If a zip container or member cannot be opened
            DecodeError: On a malformed report (unless errors are skipped)
            ValidationError: On an unknown token (unless errors are skipped)
        """
        with ExitStack() as stack:
            sources = self._supplier.expand(paths, stack)
            return await self.run_sources(sources)

    async def run_sources(self, sources: list[StreamSource]) -> PipelineResult:
        """Ingest, sort and emit already expanded stream sources."""
        aggregates, failures = await self.ingest(sources)

        ordered = sort_aggregates(aggregates, self._config.pipeline.sort_key)
        writer = ReportWriter(self._output)
        try:
            rows_written = await emit_report(ordered, writer, self._config.output)
        except BaseException:
            writer.cancel()
            raise

        self._log(
            LogLevel.INFO,
            f"Summarized {len(ordered)} report(s) into {rows_written} row(s)",
            {
                "streams": len(sources),
                "reports": len(ordered),
                "rows": rows_written,
                "failures": len(failures),
            },
        )

        return PipelineResult(
            aggregates=ordered,
            failures=failures,
            rows_written=rows_written,
            streams_total=len(sources),
        )

    async def ingest(
        self, sources: list[StreamSource]
    ) -> tuple[list[Aggregate], list[StreamFailure]]:
        """
        Run the worker pool over ``sources`` and collect every outcome.

        Returns:
            Tuple of (aggregates in completion order, skipped streams)
        """
        settings = self._config.pipeline
        jobs: asyncio.Queue = asyncio.Queue()
        for source in sources:
            jobs.put_nowait(source)
        handoff: asyncio.Queue = asyncio.Queue(maxsize=settings.queue_capacity)

        worker_count = min(settings.workers, len(sources))
        self._log(
            LogLevel.DEBUG,
            f"Starting {worker_count} worker(s) for {len(sources)} stream(s)",
            {"workers": worker_count, "streams": len(sources)},
        )

        executor = ThreadPoolExecutor(max_workers=max(worker_count, 1), thread_name_prefix="dmarc-ingest")
        collector = asyncio.ensure_future(self._collect(handoff))
        workers = [
            asyncio.ensure_future(self._worker(jobs, handoff, executor))
            for _ in range(worker_count)
        ]

        try:
            await asyncio.gather(*workers)
            await handoff.put(_END_OF_INPUT)
            return await collector
        except BaseException:
            for task in (*workers, collector):
                task.cancel()
            await asyncio.gather(*workers, collector, return_exceptions=True)
            raise
        finally:
            # Reads still running after a cancel must finish before the
            # caller closes the zip archives they read from
            await asyncio.get_running_loop().run_in_executor(
                None, partial(executor.shutdown, wait=True, cancel_futures=True)
            )

    async def _worker(
        self, jobs: asyncio.Queue, handoff: asyncio.Queue, executor: ThreadPoolExecutor
    ) -> None:
        while True:
            try:
                source = jobs.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcome = await self._ingest_stream(source, executor)
            await handoff.put(outcome)

    async def _ingest_stream(self, source: StreamSource, executor: ThreadPoolExecutor) -> Outcome:
        loop = asyncio.get_running_loop()
        try:
            aggregate = await loop.run_in_executor(executor, self._decode_and_aggregate, source)
        except DmarcSummaryError as e:
            return self._handle_failure(source, e)

        self._log(
            LogLevel.DEBUG,
            f"Ingested {source.name}",
            {
                "source": source.name,
                "organization": aggregate.organization,
                "domains": len(aggregate.domains),
                "messages": aggregate.message_count,
            },
        )
        return aggregate

    @staticmethod
    def _decode_and_aggregate(source: StreamSource) -> Aggregate:
        data = source.read()
        document = decode_report(data, source.name)
        return aggregate_report(document, source.name)

    def _handle_failure(self, source: StreamSource, error: DmarcSummaryError) -> StreamFailure:
        """
        Decide whether a failed stream is skipped or aborts the run.

        Returns:
            StreamFailure for a skipped stream

        Raises:
            DmarcSummaryError: The original error, when it aborts the run
        """
        skippable = isinstance(error, StreamOpenError) or (
            isinstance(error, (DecodeError, ValidationError))
            and self._config.pipeline.error_policy is ErrorPolicy.SKIP
        )
        if not skippable:
            if self._logger:
                self._logger.log_error(
                    "ReportPipeline",
                    f"Aborting run: {error.message}",
                    error=error,
                    additional_data={"source": source.name},
                )
            raise error

        self._log(
            LogLevel.WARN,
            f"Skipping {source.name}: {error.message}",
            {"source": source.name, "code": error.code},
        )
        return StreamFailure(
            source=source.name,
            error_type=type(error).__name__,
            code=error.code,
            message=error.message,
        )

    async def _collect(self, handoff: asyncio.Queue) -> tuple[list[Aggregate], list[StreamFailure]]:
        aggregates: list[Aggregate] = []
        failures: list[StreamFailure] = []
        while True:
            outcome = await handoff.get()
            if outcome is _END_OF_INPUT:
                return aggregates, failures
            if isinstance(outcome, StreamFailure):
                failures.append(outcome)
            else:
                aggregates.append(outcome)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        """Log a message if logger is available."""
        if self._logger:
            self._logger.log(level, "ReportPipeline", message, data)

    @property
    def config(self) -> SystemConfig:
        """Get the run configuration."""
        return self._config


async def summarize(
    paths: Iterable[PathLike],
    config: Optional[SystemConfig] = None,
    output: Optional[TextIO] = None,
    logger: Optional[DiagnosticsLogger] = None,
) -> PipelineResult:
    """Convenience wrapper: build a pipeline and run it over ``paths``."""
    async with ReportPipeline(config=config, output=output, logger=logger) as pipeline:
        return await pipeline.run(paths)
