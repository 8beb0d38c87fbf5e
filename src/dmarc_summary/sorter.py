"""
Ordering of collected aggregates.

Each sort key orders by its primary field and documented tie-break:
- date: by begin date, ties by organization
- domain: by policy domain, ties by begin date
- organization: by organization, ties by begin date

Aggregates still equal after the tie-break fall back to the remaining
fields and finally the stream name, so output never depends on the order
in which workers finished.
"""

from datetime import datetime
from typing import Callable, Iterable

from .enums import SortKey
from .models import Aggregate


def _by_date(aggregate: Aggregate) -> tuple[datetime, str, str, str]:
    return aggregate.date_begin, aggregate.organization, aggregate.domain, aggregate.source


def _by_domain(aggregate: Aggregate) -> tuple[str, datetime, str, str]:
    return aggregate.domain, aggregate.date_begin, aggregate.organization, aggregate.source


def _by_organization(aggregate: Aggregate) -> tuple[str, datetime, str, str]:
    return aggregate.organization, aggregate.date_begin, aggregate.domain, aggregate.source


SORT_KEYS: dict[SortKey, Callable[[Aggregate], tuple]] = {
    SortKey.DATE: _by_date,
    SortKey.DOMAIN: _by_domain,
    SortKey.ORGANIZATION: _by_organization,
}


def sort_aggregates(aggregates: Iterable[Aggregate], key: SortKey = SortKey.DATE) -> list[Aggregate]:
    """
    Return the aggregates ordered by ``key``.

    Args:
        aggregates: Collected aggregates, in any order
        key: A SortKey or its textual name

    Raises:
        ConfigError: If ``key`` is not a recognized sort key
    """
    return sorted(aggregates, key=SORT_KEYS[SortKey.parse(key)])
