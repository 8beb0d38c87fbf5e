"""
Emitter for sorted aggregates.

Writes one header line, then one line per (aggregate, header-from domain)
pair. All output passes through a single ReportWriter task which owns the
destination stream, so lines can never interleave.
"""

import asyncio
import csv
import io
import sys
from typing import Iterable, Iterator, Optional, TextIO

from .config import OutputConfig
from .enums import OutputFormat
from .models import Aggregate, DomainCounters


DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# (header, column width in the table layout)
COLUMNS: list[tuple[str, int]] = [
    ("Date Begin", 19),
    ("Date End", 19),
    ("Organization", 22),
    ("Domain", 12),
    ("HeaderFrom", 20),
    ("Passed", 7),
    ("Quaran", 7),
    ("Reject", 7),
    ("SPF P", 7),
    ("DKIM P", 7),
    ("SPF F", 7),
    ("DKIM F", 7),
]

HEADER = [name for name, _ in COLUMNS]


def row_values(aggregate: Aggregate, counters: DomainCounters) -> list[str]:
    """Column values of one output line, in header order."""
    return [
        aggregate.date_begin.strftime(DATE_FORMAT),
        aggregate.date_end.strftime(DATE_FORMAT),
        aggregate.organization,
        aggregate.domain,
        counters.header_from,
        str(counters.policy_none),
        str(counters.policy_quarantine),
        str(counters.policy_reject),
        str(counters.spf_pass),
        str(counters.dkim_pass),
        str(counters.spf_fail),
        str(counters.dkim_fail),
    ]


def format_line(values: list[str], config: Optional[OutputConfig] = None) -> str:
    """Lay out one line of values (without the trailing newline)."""
    config = config or OutputConfig()
    if config.format is OutputFormat.TABLE:
        return config.delimiter.join(
            value.rjust(width) for value, (_, width) in zip(values, COLUMNS)
        )
    buffer = io.StringIO()
    csv.writer(buffer, delimiter=config.delimiter, lineterminator="").writerow(values)
    return buffer.getvalue()


def iter_lines(aggregates: Iterable[Aggregate], config: Optional[OutputConfig] = None) -> Iterator[str]:
    """Yield the header followed by every data line, in emission order."""
    yield format_line(HEADER, config)
    for aggregate in aggregates:
        for counters in aggregate.rows():
            yield format_line(row_values(aggregate, counters), config)


class ReportWriter:
    """
    Single owner of the report output stream.

    Lines are handed over through an asyncio queue and written by one task;
    ``close()`` ends the stream and ``wait()`` resolves once everything is
    flushed.
    """

    _END = None

    def __init__(self, stream: Optional[TextIO] = None, capacity: int = 0) -> None:
        self._stream = stream or sys.stdout
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._task: Optional[asyncio.Task] = None
        self._lines_written = 0

    @property
    def lines_written(self) -> int:
        return self._lines_written

    def start(self) -> "ReportWriter":
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return self

    async def write(self, line: str) -> None:
        await self._queue.put(line)

    async def close(self) -> None:
        await self._queue.put(self._END)

    async def wait(self) -> int:
        """Wait until the writer has drained; returns the number of lines written."""
        if self._task is not None:
            await self._task
        return self._lines_written

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def _run(self) -> None:
        while True:
            line = await self._queue.get()
            if line is self._END:
                break
            self._stream.write(line + "\n")
            self._lines_written += 1
        self._stream.flush()


async def emit_report(
    aggregates: Iterable[Aggregate],
    writer: ReportWriter,
    config: Optional[OutputConfig] = None,
) -> int:
    """
    Send the header and all data lines to ``writer`` and wait for the flush.

    Returns:
        Number of data lines written (the header is not counted)
    """
    writer.start()
    for line in iter_lines(aggregates, config):
        await writer.write(line)
    await writer.close()
    return await writer.wait() - 1
