"""
Aggregator for decoded DMARC reports.

Folds the records of one RawDocument into per-header-from DomainCounters.
Disposition and DKIM/SPF tokens must match their closed sets exactly; any
other token raises ValidationError so malformed input is never under-counted.
"""

from .enums import AuthResult, Disposition
from .exceptions import ValidationError
from .models import Aggregate, DomainCounters, RawDocument, RawRecord


def _disposition(record: RawRecord, source: str) -> Disposition:
    try:
        return Disposition(record.disposition)
    except ValueError:
        raise ValidationError(
            "invalid_disposition",
            f"unexpected disposition: {record.disposition}",
            {"source": source, "header_from": record.header_from, "value": record.disposition},
        ) from None


def _auth_result(value: str, mechanism: str, record: RawRecord, source: str) -> AuthResult:
    try:
        return AuthResult(value)
    except ValueError:
        raise ValidationError(
            f"invalid_{mechanism.lower()}",
            f"unexpected {mechanism} status: {value}",
            {"source": source, "header_from": record.header_from, "value": value},
        ) from None


def add_record(aggregate: Aggregate, record: RawRecord, source: str = "") -> DomainCounters:
    """
    Add one record to an aggregate.

    Exactly one disposition counter and one counter of each of the SPF and
    DKIM pass/fail pairs are incremented by the record's count. All three
    tokens are validated before anything is counted.

    Raises:
        ValidationError: If a token is outside its closed set
    """
    disposition = _disposition(record, source)
    dkim = _auth_result(record.dkim, "DKIM", record, source)
    spf = _auth_result(record.spf, "SPF", record, source)

    counters = aggregate.domains.get(record.header_from)
    if counters is None:
        counters = DomainCounters(header_from=record.header_from)
        aggregate.domains[record.header_from] = counters

    if disposition is Disposition.NONE:
        counters.policy_none += record.count
    elif disposition is Disposition.QUARANTINE:
        counters.policy_quarantine += record.count
    else:
        counters.policy_reject += record.count

    if dkim is AuthResult.PASS:
        counters.dkim_pass += record.count
    else:
        counters.dkim_fail += record.count

    if spf is AuthResult.PASS:
        counters.spf_pass += record.count
    else:
        counters.spf_fail += record.count

    return counters


def aggregate_report(document: RawDocument, source: str = "") -> Aggregate:
    """
    Build the aggregate of one decoded report.

    A report without records yields an aggregate with no domain rows.

    Raises:
        ValidationError: If any record carries an unknown token
    """
    aggregate = Aggregate(
        date_begin=document.date_begin,
        date_end=document.date_end,
        organization=document.org_name,
        domain=document.domain,
        source=source,
    )
    for record in document.records:
        add_record(aggregate, record, source)
    return aggregate
