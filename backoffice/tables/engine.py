"""Generic data-table engine.

A ``DataTable`` owns one ``TableState`` and derives everything it renders from
``(rows, columns, state)``. Every transition replaces the state with a new
frozen value; nothing else writes to it. The row pipeline is always

    rows -> column filters + global search -> sort -> page

so pagination never sees unfiltered rows, and selection is keyed by row id
(never by position) so it survives refreshes and re-sorting.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from loguru import logger

from backoffice.config import settings
from backoffice.tables.columns import ColumnDescriptor, column, get_value
from backoffice.tables.filters import (
    column_passes,
    global_search_passes,
    is_empty_filter,
    sort_records,
    stringify,
)


class SortDirection(str, Enum):
    ASC = 'asc'
    DESC = 'desc'


CYCLE = object()


@dataclass(frozen=True)
class SortSpec:
    column_key: str
    direction: SortDirection


@dataclass(frozen=True)
class TableState:
    sorting: tuple[SortSpec, ...] = ()
    column_filters: dict[str, Any] = field(default_factory=dict)
    global_filter: str = ''
    column_visibility: dict[str, bool] = field(default_factory=dict)
    row_selection: dict[str, bool] = field(default_factory=dict)
    page_index: int = 0
    page_size: int = 20


@dataclass(frozen=True)
class TableRow:
    id: str
    original: Any


@dataclass(frozen=True)
class RowActivated:
    row_id: str
    snapshot: Any
    data_type: str | None


SelectionListener = Callable[[dict[str, bool]], None]
ActivationListener = Callable[[RowActivated], None]


def _next_direction(current: SortDirection | None) -> SortDirection | None:
    if current is None:
        return SortDirection.ASC
    if current == SortDirection.ASC:
        return SortDirection.DESC
    return None


class DataTable:
    def __init__(
        self,
        rows: Sequence[Any],
        columns: Sequence[ColumnDescriptor],
        *,
        get_row_id: Callable[[Any], Any] | None = None,
        on_refresh: Callable[[], Any] | None = None,
        data_type: str | None = None,
        page_size: int | None = None,
    ) -> None:
        self.columns: tuple[ColumnDescriptor, ...] = tuple(columns)
        self._columns_by_key = {}
        for descriptor in self.columns:
            self._columns_by_key.setdefault(descriptor.key, descriptor)
        self.get_row_id = get_row_id
        self.on_refresh = on_refresh
        self.data_type = data_type
        self.state = TableState(page_size=page_size or settings.default_page_size)
        self._rows: list[TableRow] = self._wrap(rows)
        self._selection_listeners: list[SelectionListener] = []
        self._activation_listeners: list[ActivationListener] = []

    # -- rows ---------------------------------------------------------------

    def _row_id(self, record: Any, index: int) -> str:
        if self.get_row_id is None:
            return str(index)
        try:
            row_id = self.get_row_id(record)
        except Exception:
            row_id = None
        if row_id is None or row_id == '':
            logger.debug('Row {} of {} table has no id; falling back to index', index, self.data_type)
            return str(index)
        return str(row_id)

    def _wrap(self, rows: Iterable[Any]) -> list[TableRow]:
        return [TableRow(id=self._row_id(record, index), original=record) for index, record in enumerate(rows or [])]

    @property
    def rows(self) -> list[TableRow]:
        return list(self._rows)

    def sync_rows(self, rows: Sequence[Any]) -> None:
        """Swap in refreshed data, keeping selection for ids that still exist."""
        self._rows = self._wrap(rows)
        live_ids = {row.id for row in self._rows}
        selection = {row_id: True for row_id, selected in self.state.row_selection.items() if selected and row_id in live_ids}
        changed = selection != self.state.row_selection
        self.state = replace(self.state, row_selection=selection)
        self.state = replace(self.state, page_index=self._clamp_page(self.state.page_index))
        if changed:
            self._emit_selection()

    def get_row(self, row_id: str) -> TableRow | None:
        for row in self._rows:
            if row.id == row_id:
                return row
        return None

    # -- columns ------------------------------------------------------------

    def get_column(self, column_key: str) -> ColumnDescriptor | None:
        return self._columns_by_key.get(column_key)

    def is_column_visible(self, column_key: str) -> bool:
        descriptor = self.get_column(column_key)
        if descriptor is None:
            return False
        if not descriptor.hideable:
            return True
        return self.state.column_visibility.get(column_key, descriptor.visible)

    def visible_columns(self) -> list[ColumnDescriptor]:
        return [descriptor for descriptor in self.columns if self.is_column_visible(descriptor.key)]

    def set_column_visibility(self, column_key: str, visible: bool) -> None:
        descriptor = self.get_column(column_key)
        if descriptor is None or not descriptor.hideable:
            return
        visibility = dict(self.state.column_visibility)
        visibility[column_key] = bool(visible)
        self.state = replace(self.state, column_visibility=visibility)

    def toggle_column_visibility(self, column_key: str) -> None:
        self.set_column_visibility(column_key, not self.is_column_visible(column_key))

    # -- sorting ------------------------------------------------------------

    def current_sort(self, column_key: str) -> SortDirection | None:
        for spec in self.state.sorting:
            if spec.column_key == column_key:
                return spec.direction
        return None

    def set_sort(self, column_key: str, direction: Any = CYCLE) -> None:
        descriptor = self.get_column(column_key)
        if descriptor is None or not descriptor.sortable:
            return
        if direction is CYCLE:
            next_direction = _next_direction(self.current_sort(column_key))
        elif direction is None:
            next_direction = None
        else:
            next_direction = SortDirection(direction)

        sorting = () if next_direction is None else (SortSpec(column_key, next_direction),)
        self.state = replace(self.state, sorting=sorting)

    # -- filtering ----------------------------------------------------------

    def set_filter(self, column_key: str, value: Any) -> None:
        filters = dict(self.state.column_filters)
        if is_empty_filter(value):
            filters.pop(column_key, None)
        else:
            filters[column_key] = value
        self.state = replace(self.state, column_filters=filters, page_index=0)

    def get_filter(self, column_key: str) -> Any:
        return self.state.column_filters.get(column_key)

    def set_global_filter(self, text: str | None) -> None:
        self.state = replace(self.state, global_filter=(text or '').strip(), page_index=0)

    def reset_filters(self) -> None:
        self.state = replace(self.state, column_filters={}, global_filter='', page_index=0)

    def is_filtered(self) -> bool:
        return bool(self.state.column_filters) or bool(self.state.global_filter)

    def _passes(self, record: Any) -> bool:
        for column_key, filter_value in self.state.column_filters.items():
            descriptor = self.get_column(column_key)
            if descriptor is None:
                # unknown column behaves like an empty cell
                descriptor = column(column_key, column_key)
            if not column_passes(record, descriptor, filter_value):
                return False
        if self.state.global_filter:
            return global_search_passes(record, self.visible_columns(), self.state.global_filter)
        return True

    def filtered_rows(self) -> list[TableRow]:
        return [row for row in self._rows if self._passes(row.original)]

    def sorted_rows(self) -> list[TableRow]:
        rows = self.filtered_rows()
        for spec in self.state.sorting:
            descriptor = self.get_column(spec.column_key)
            if descriptor is None:
                continue
            rows = sort_records(
                rows,
                descriptor,
                descending=spec.direction == SortDirection.DESC,
                key_of=lambda row: row.original,
            )
        return rows

    def faceted_values(self, column_key: str) -> list[str]:
        seen: set[str] = set()
        values: list[str] = []
        for row in self._rows:
            text = stringify(get_value(row.original, column_key))
            if text in seen:
                continue
            seen.add(text)
            values.append(text)
        return values

    # -- pagination ---------------------------------------------------------

    def page_count(self) -> int:
        return math.ceil(len(self.filtered_rows()) / self.state.page_size)

    def _clamp_page(self, index: int) -> int:
        last = max(self.page_count() - 1, 0)
        return min(max(index, 0), last)

    def set_page(self, index: int) -> None:
        self.state = replace(self.state, page_index=self._clamp_page(int(index)))

    def set_page_size(self, size: int) -> None:
        size = int(size)
        if size < 1:
            raise ValueError('Page size must be at least 1')
        self.state = replace(self.state, page_size=size, page_index=0)

    def can_previous_page(self) -> bool:
        return self.state.page_index > 0

    def can_next_page(self) -> bool:
        return self.state.page_index < self.page_count() - 1

    def page_rows(self) -> list[TableRow]:
        start = self.state.page_index * self.state.page_size
        return self.sorted_rows()[start : start + self.state.page_size]

    # -- selection ----------------------------------------------------------

    def on_selection_change(self, listener: SelectionListener) -> None:
        self._selection_listeners.append(listener)

    def _emit_selection(self) -> None:
        snapshot = dict(self.state.row_selection)
        for listener in self._selection_listeners:
            listener(snapshot)

    def is_selected(self, row_id: str) -> bool:
        return self.state.row_selection.get(row_id, False)

    def set_row_selected(self, row_id: str, selected: bool) -> None:
        selection = dict(self.state.row_selection)
        if selected:
            selection[row_id] = True
        else:
            selection.pop(row_id, None)
        if selection == self.state.row_selection:
            return
        self.state = replace(self.state, row_selection=selection)
        self._emit_selection()

    def toggle_row_selection(self, row_id: str) -> None:
        self.set_row_selected(row_id, not self.is_selected(row_id))

    def toggle_all_on_page(self, checked: bool) -> None:
        selection = dict(self.state.row_selection)
        for row in self.page_rows():
            if checked:
                selection[row.id] = True
            else:
                selection.pop(row.id, None)
        if selection == self.state.row_selection:
            return
        self.state = replace(self.state, row_selection=selection)
        self._emit_selection()

    def clear_selection(self) -> None:
        if not self.state.row_selection:
            return
        self.state = replace(self.state, row_selection={})
        self._emit_selection()

    def is_all_page_selected(self) -> bool:
        page = self.page_rows()
        return bool(page) and all(self.is_selected(row.id) for row in page)

    def is_some_page_selected(self) -> bool:
        return any(self.is_selected(row.id) for row in self.page_rows()) and not self.is_all_page_selected()

    def selected_rows(self) -> list[TableRow]:
        return [row for row in self.filtered_rows() if self.is_selected(row.id)]

    # -- activation / refresh -----------------------------------------------

    def on_activate(self, listener: ActivationListener) -> None:
        self._activation_listeners.append(listener)

    def activate_row(self, row_id: str) -> RowActivated | None:
        row = self.get_row(row_id)
        if row is None:
            return None
        event = RowActivated(row_id=row.id, snapshot=row.original, data_type=self.data_type)
        for listener in self._activation_listeners:
            listener(event)
        return event

    def refresh(self) -> Any:
        if self.on_refresh is None:
            return None
        return self.on_refresh()

    # -- rendering helpers --------------------------------------------------

    def cell_text(self, record: Any, descriptor: ColumnDescriptor) -> str:
        try:
            if descriptor.cell is not None:
                return descriptor.cell(record) or ''
            return stringify(get_value(record, descriptor.key))
        except Exception:
            return ''
