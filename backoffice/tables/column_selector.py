from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from backoffice.tables.columns import ColumnDescriptor, dedupe_by_key
from backoffice.tables.engine import DataTable
from backoffice.tables.filters import normalize_text


@dataclass(frozen=True)
class ColumnOption:
    value: str
    label: str
    checked: bool = False
    disabled: bool = False


class ColumnSelector:
    """Show/hide control over the hideable columns of one table."""

    def __init__(self, table: DataTable) -> None:
        self.table = table
        self.columns = dedupe_by_key(descriptor for descriptor in table.columns if descriptor.hideable)

    def options(self, query: str = '') -> list[ColumnOption]:
        needle = normalize_text(query)
        return [
            ColumnOption(
                value=descriptor.key,
                label=descriptor.header,
                checked=self.table.is_column_visible(descriptor.key),
            )
            for descriptor in self.columns
            if not needle or needle in normalize_text(descriptor.header)
        ]

    def set_visible(self, column_key: str, visible: bool) -> None:
        self.table.set_column_visibility(column_key, visible)

    def toggle(self, column_key: str) -> None:
        self.table.toggle_column_visibility(column_key)


class FilterColumnChooser:
    """Lists the columns a toolbar may add a faceted filter for."""

    def __init__(self, table: DataTable, filter_keys: Iterable[str]) -> None:
        self.table = table
        candidates: list[ColumnDescriptor] = []
        for key in filter_keys:
            descriptor = table.get_column(key)
            if descriptor is not None:
                candidates.append(descriptor)
        self.columns = dedupe_by_key(candidates)

    def options(self, query: str = '') -> list[ColumnOption]:
        needle = normalize_text(query)
        active = set(self.table.state.column_filters)
        return [
            ColumnOption(
                value=descriptor.key,
                label=descriptor.header,
                checked=descriptor.key in active,
                disabled=descriptor.key in active,
            )
            for descriptor in self.columns
            if not needle or needle in normalize_text(descriptor.header)
        ]

    def facets(self, column_key: str) -> list[str]:
        if column_key not in {descriptor.key for descriptor in self.columns}:
            raise KeyError(column_key)
        return [value for value in self.table.faceted_values(column_key) if value]
