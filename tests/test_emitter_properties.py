"""
Property-based tests for the Emitter module.

Uses Hypothesis for property-based testing to verify the line layout, the
emission order and that the single-owner writer never interleaves lines.
"""

import asyncio
import csv
import io
from datetime import datetime, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from dmarc_summary.config import OutputConfig
from dmarc_summary.emitter import (
    COLUMNS,
    HEADER,
    ReportWriter,
    emit_report,
    format_line,
    iter_lines,
    row_values,
)
from dmarc_summary.enums import OutputFormat
from dmarc_summary.models import Aggregate, DomainCounters


CSV = OutputConfig(format=OutputFormat.CSV)
TABLE = OutputConfig(format=OutputFormat.TABLE)


def google_aggregate() -> Aggregate:
    return Aggregate(
        date_begin=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        date_end=datetime.fromtimestamp(1700003600, tz=timezone.utc),
        organization="Google",
        domain="example.com",
        domains={
            "example.com": DomainCounters(
                header_from="example.com",
                policy_none=10,
                policy_reject=5,
                spf_pass=10,
                spf_fail=5,
                dkim_pass=10,
                dkim_fail=5,
            ),
        },
    )


class TestLineLayoutProperty:
    """Tests for header and row layout."""

    def test_csv_header(self) -> None:
        assert format_line(HEADER, CSV) == (
            "Date Begin,Date End,Organization,Domain,HeaderFrom,"
            "Passed,Quaran,Reject,SPF P,DKIM P,SPF F,DKIM F"
        )

    def test_csv_row_for_concrete_report(self) -> None:
        lines = list(iter_lines([google_aggregate()], CSV))

        assert lines[1] == (
            "2023-11-14 22:13:20,2023-11-14 23:13:20,Google,example.com,example.com,"
            "10,0,5,10,10,5,5"
        )
        assert len(lines) == 2

    def test_table_columns_are_right_aligned(self) -> None:
        line = format_line(HEADER, TABLE)

        cells = line.split(",")
        assert [len(cell) for cell in cells] == [width for _, width in COLUMNS]
        assert [cell.strip() for cell in cells] == HEADER
        assert cells[0] == "Date Begin".rjust(19)

    def test_table_row_for_concrete_report(self) -> None:
        aggregate = google_aggregate()
        line = format_line(row_values(aggregate, aggregate.domains["example.com"]), TABLE)

        assert line.startswith("2023-11-14 22:13:20,2023-11-14 23:13:20,                Google,")
        assert line.endswith(",     10,      0,      5,     10,     10,      5,      5")

    def test_dates_use_24_hour_clock(self) -> None:
        aggregate = google_aggregate()
        aggregate.date_begin = datetime(2024, 1, 2, 15, 4, 5, tzinfo=timezone.utc)

        values = row_values(aggregate, aggregate.domains["example.com"])

        assert values[0] == "2024-01-02 15:04:05"

    @given(organization=st.text(alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\r\n\x00"), max_size=30))
    @settings(max_examples=100)
    def test_csv_fields_round_trip(self, organization: str) -> None:
        """
        *For any* organization name, a CSV line SHALL parse back into the
        same twelve fields.
        """
        aggregate = google_aggregate()
        aggregate.organization = organization
        values = row_values(aggregate, aggregate.domains["example.com"])

        parsed = next(csv.reader([format_line(values, CSV)]))

        assert parsed == values

    def test_custom_delimiter(self) -> None:
        line = format_line(HEADER, OutputConfig(format=OutputFormat.CSV, delimiter=";"))

        assert line.split(";") == HEADER


class TestEmissionOrderProperty:
    """Property-based tests for emission order."""

    @given(domains=st.lists(
        st.text(alphabet="abcdefghij.", min_size=1, max_size=10),
        min_size=1,
        max_size=10,
        unique=True,
    ))
    @settings(max_examples=100)
    def test_rows_within_report_are_lexicographic(self, domains: list) -> None:
        """
        *For any* aggregate, its rows SHALL be emitted in lexicographic
        header-from order regardless of insertion order.
        """
        aggregate = google_aggregate()
        aggregate.domains = {d: DomainCounters(header_from=d, policy_none=1) for d in domains}

        lines = list(iter_lines([aggregate], CSV))[1:]

        assert [line.split(",")[4] for line in lines] == sorted(domains)

    def test_report_without_rows_emits_nothing(self) -> None:
        empty = google_aggregate()
        empty.domains = {}

        assert list(iter_lines([empty], CSV)) == [format_line(HEADER, CSV)]

    def test_header_written_once_before_reports(self) -> None:
        stream = io.StringIO()

        async def run() -> int:
            return await emit_report([google_aggregate(), google_aggregate()], ReportWriter(stream), CSV)

        rows = asyncio.run(run())

        lines = stream.getvalue().splitlines()
        assert rows == 2
        assert lines[0] == format_line(HEADER, CSV)
        assert lines.count(format_line(HEADER, CSV)) == 1
        assert len(lines) == 3


class TestReportWriterProperty:
    """Property-based tests for the single-owner writer."""

    @given(
        producers=st.integers(min_value=1, max_value=8),
        lines_each=st.integers(min_value=0, max_value=20),
    )
    @settings(max_examples=50)
    def test_concurrent_producers_never_interleave(self, producers: int, lines_each: int) -> None:
        """
        *For any* number of concurrent producers, every line handed to the
        writer SHALL appear intact and exactly once, and each producer's
        lines SHALL keep their relative order.
        """
        stream = io.StringIO()

        async def produce(writer: ReportWriter, producer: int) -> None:
            for n in range(lines_each):
                await writer.write(f"producer-{producer},line-{n}")
                await asyncio.sleep(0)

        async def run() -> int:
            writer = ReportWriter(stream, capacity=2).start()
            await asyncio.gather(*(produce(writer, p) for p in range(producers)))
            await writer.close()
            return await writer.wait()

        written = asyncio.run(run())

        lines = stream.getvalue().splitlines()
        assert written == producers * lines_each
        assert sorted(lines) == sorted(
            f"producer-{p},line-{n}" for p in range(producers) for n in range(lines_each)
        )
        for p in range(producers):
            own = [line for line in lines if line.startswith(f"producer-{p},")]
            assert own == [f"producer-{p},line-{n}" for n in range(lines_each)]
