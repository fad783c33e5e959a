"""
Filter and sort engine for the error list.

Everything here is a pure function of its arguments: no I/O, no shared state,
and identical inputs always give identical ordered output.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from app.models.error import SEVERITY_RANK, ErrorRecord
from app.models.filters import FilterOptions, SortDirection, SortKey


SEARCH_FIELDS = ("title", "description", "system", "error_code", "resolution")

_SORT_KEYS: Dict[SortKey, Callable[[ErrorRecord], object]] = {
    SortKey.TIMESTAMP: lambda record: _as_utc(record.timestamp),
    SortKey.SEVERITY: lambda record: SEVERITY_RANK[record.severity],
    SortKey.OCCURRENCES: lambda record: record.occurrences,
}


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def matches_search(record: ErrorRecord, search: str) -> bool:
    """Case-insensitive substring match against any searchable field."""
    if not search:
        return True

    term = search.lower()
    for field in SEARCH_FIELDS:
        value = getattr(record, field)
        if value and term in value.lower():
            return True
    return False


def matches_filters(record: ErrorRecord, filters: FilterOptions) -> bool:
    """True when the record satisfies every active clause."""
    if not matches_search(record, filters.search):
        return False
    if filters.severity is not None and record.severity != filters.severity:
        return False
    if filters.status is not None and record.status != filters.status:
        return False
    if filters.system is not None and record.system != filters.system:
        return False
    if filters.assigned_to is not None and record.assigned_to != filters.assigned_to:
        return False
    if filters.tags and not set(filters.tags).issubset(record.tags):
        return False

    timestamp = _as_utc(record.timestamp)
    if filters.date_from is not None and timestamp < _as_utc(filters.date_from):
        return False
    if filters.date_to is not None and timestamp > _as_utc(filters.date_to):
        return False

    return True


def sort_records(
    records: Iterable[ErrorRecord],
    sort_key: SortKey = SortKey.TIMESTAMP,
    direction: SortDirection = SortDirection.DESC,
) -> List[ErrorRecord]:
    """
    Stable sort by one key.

    Records with equal keys keep their input order in both directions.
    """
    return sorted(
        records,
        key=_SORT_KEYS[SortKey(sort_key)],
        reverse=SortDirection(direction) == SortDirection.DESC,
    )


def apply_filters(
    records: Sequence[ErrorRecord],
    filters: Optional[FilterOptions] = None,
    sort_key: SortKey = SortKey.TIMESTAMP,
    direction: SortDirection = SortDirection.DESC,
) -> List[ErrorRecord]:
    """
    Filter then sort a record set.

    Args:
        records: Input records, in the order they were fetched
        filters: Active filters; None matches everything
        sort_key: Field to order by
        direction: Ascending or descending

    Returns:
        A new list holding the matching records in sorted order
    """
    filters = filters or FilterOptions()
    matching = [record for record in records if matches_filters(record, filters)]
    return sort_records(matching, sort_key, direction)


def available_systems(records: Iterable[ErrorRecord]) -> List[str]:
    """Distinct system names, for the system dropdown."""
    return sorted({record.system for record in records})


def available_assignees(records: Iterable[ErrorRecord]) -> List[str]:
    """Distinct assignees, for the assignee dropdown."""
    return sorted({record.assigned_to for record in records if record.assigned_to})


def available_tags(records: Iterable[ErrorRecord]) -> List[str]:
    """Distinct tags, for tag suggestions."""
    return sorted({tag for record in records for tag in record.tags})


def active_filter_count(filters: FilterOptions) -> int:
    """Number of filter fields currently narrowing the list."""
    count = 0
    for value in filters.model_dump().values():
        if isinstance(value, list):
            count += bool(value)
        elif value is not None and value != "":
            count += 1
    return count
