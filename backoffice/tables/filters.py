from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from functools import cmp_to_key
from numbers import Number
from typing import Any

from backoffice.tables.columns import ColumnDescriptor, get_value

_COLLECTION_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class DateRange:
    start: date | None = None
    end: date | None = None


def normalize_text(value: str | None) -> str:
    return (value or '').strip().lower()


def stringify(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def is_empty_filter(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ''
    if isinstance(value, _COLLECTION_TYPES):
        return len(value) == 0
    if isinstance(value, DateRange):
        return value.start is None and value.end is None
    return False


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            return None
    return None


def matches_filter(value: Any, filter_value: Any) -> bool:
    if isinstance(filter_value, DateRange):
        day = _as_date(value)
        if day is None:
            return False
        if filter_value.start is not None and day < filter_value.start:
            return False
        if filter_value.end is not None and day > filter_value.end:
            return False
        return True
    if isinstance(filter_value, _COLLECTION_TYPES):
        return stringify(value) in {stringify(option) for option in filter_value}
    if isinstance(filter_value, str):
        return filter_value.lower() in stringify(value).lower()
    return value == filter_value


def column_passes(record: Any, column: ColumnDescriptor, filter_value: Any) -> bool:
    # A predicate that blows up is a non-match for this row only.
    try:
        value = get_value(record, column.key)
        if column.filter_fn is not None:
            return bool(column.filter_fn(value, filter_value))
        return matches_filter(value, filter_value)
    except Exception:
        return False


def global_search_passes(record: Any, columns: Iterable[ColumnDescriptor], text: str) -> bool:
    needle = text.lower()
    for column in columns:
        if not column.searchable:
            continue
        try:
            haystack = stringify(get_value(record, column.key)).lower()
        except Exception:
            continue
        if needle in haystack:
            return True
    return False


def default_compare(a: Any, b: Any) -> int:
    if isinstance(a, Number) and isinstance(b, Number):
        return (a > b) - (a < b)
    left, right = stringify(a), stringify(b)
    return (left > right) - (left < right)


def sort_records(
    records: list[Any], column: ColumnDescriptor, descending: bool, key_of: Callable[[Any], Any] | None = None
) -> list[Any]:
    """Stable sort on one column; missing values always go last."""
    key_of = key_of or (lambda item: item)
    comparator = column.comparator or default_compare

    def safe_compare(left: Any, right: Any) -> int:
        try:
            return comparator(get_value(key_of(left), column.key), get_value(key_of(right), column.key))
        except Exception:
            return 0

    present = [item for item in records if get_value(key_of(item), column.key) is not None]
    missing = [item for item in records if get_value(key_of(item), column.key) is None]
    return sorted(present, key=cmp_to_key(safe_compare), reverse=descending) + missing
