from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

CellRenderer = Callable[[Any], str]
FilterFn = Callable[[Any, Any], bool]
Comparator = Callable[[Any, Any], int]


@dataclass(frozen=True)
class ColumnDescriptor:
    key: str
    header: str
    size: int = 150
    min_size: int | None = None
    max_size: int | None = None
    sortable: bool = True
    hideable: bool = True
    visible: bool = True
    searchable: bool = True
    cell: CellRenderer | None = None
    filter_fn: FilterFn | None = None
    comparator: Comparator | None = None


def column(key: str, header: str, size: int = 150, **options: Any) -> ColumnDescriptor:
    return ColumnDescriptor(key=key, header=header, size=size, **options)


def get_value(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def dedupe_by_key(columns: Iterable[ColumnDescriptor]) -> list[ColumnDescriptor]:
    seen: set[str] = set()
    unique: list[ColumnDescriptor] = []
    for descriptor in columns:
        if descriptor.key in seen:
            continue
        seen.add(descriptor.key)
        unique.append(descriptor)
    return unique
