"""List-page containers.

A container owns everything one list page needs: the table engine, the side
panel, and the fetch that fills them. Fetches are numbered; only the newest
one may commit its rows, so a slow response from an earlier request can never
replace fresher data, and nothing commits after the page is closed.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from backoffice.errors import SchemaValidationError, UpstreamError
from backoffice.panels.side_panel import SidePanelController
from backoffice.schemas.records import DataType, validate_collection
from backoffice.services.entity_service import EntityService
from backoffice.services.lookup_service import LookupService
from backoffice.services.mutation_service import MutationService
from backoffice.tables.definitions import TableDefinition, get_definition
from backoffice.tables.engine import DataTable, RowActivated

UNEXPECTED_ERROR = 'An unexpected error occurred'

_ACCESSORS: dict[DataType, Callable[[EntityService], list[dict]]] = {
    DataType.ITEMS: EntityService.get_items,
    DataType.VENDORS: EntityService.get_vendors,
    DataType.WAREHOUSES: EntityService.get_warehouses,
    DataType.LOCATIONS: EntityService.get_locations,
    DataType.PROCUREMENTS: EntityService.get_purchase_orders,
    DataType.RECEIVINGS: EntityService.get_receivings,
    DataType.USERS: EntityService.get_users,
    DataType.ROLES: EntityService.get_roles,
}


def record_id(record: Any) -> str | None:
    return getattr(record, 'id', None) or None


@dataclass
class LoadResult:
    generation: int
    committed: bool


class PageContainer:
    def __init__(
        self,
        data_type: DataType | str,
        entities: EntityService,
        mutations: MutationService,
        lookups: LookupService | None = None,
    ) -> None:
        self.data_type = DataType(data_type)
        self.definition: TableDefinition = get_definition(self.data_type)
        self.entities = entities
        self.mutations = mutations
        self.loading = False
        self.loaded = False
        self.error: str | None = None
        self.closed = False
        self._generations = itertools.count(1)
        self._latest = 0

        self.table = DataTable(
            [],
            self.definition.columns,
            get_row_id=record_id,
            on_refresh=self.load,
            data_type=self.data_type.value,
        )
        self.panel = SidePanelController(
            mutations,
            entities=entities,
            lookups=lookups,
            on_refresh=self.load,
        )
        self.table.on_activate(self._open_panel)

    def _open_panel(self, event: RowActivated) -> None:
        self.panel.open(event)

    def _fetch(self) -> list:
        raw = _ACCESSORS[self.data_type](self.entities)
        return validate_collection(self.data_type, raw)

    async def load(self) -> LoadResult:
        generation = next(self._generations)
        self._latest = generation
        self.loading = True
        try:
            records = await asyncio.to_thread(self._fetch)
        except SchemaValidationError as exc:
            return self._commit_error(generation, f'Data validation failed: {exc.detail}', clear_rows=True)
        except UpstreamError as exc:
            logger.warning('Loading {} failed: {}', self.data_type.value, exc)
            return self._commit_error(generation, UNEXPECTED_ERROR)

        if not self._is_current(generation):
            return LoadResult(generation, committed=False)
        self.table.sync_rows(records)
        self.error = None
        self.loading = False
        self.loaded = True
        return LoadResult(generation, committed=True)

    def _is_current(self, generation: int) -> bool:
        if self.closed or generation != self._latest:
            logger.debug('Dropping stale {} response (generation {})', self.data_type.value, generation)
            return False
        return True

    def _commit_error(self, generation: int, message: str, clear_rows: bool = False) -> LoadResult:
        if not self._is_current(generation):
            return LoadResult(generation, committed=False)
        if clear_rows:
            self.table.sync_rows([])
        self.error = message
        self.loading = False
        return LoadResult(generation, committed=True)

    def close(self) -> None:
        self.closed = True
        self._latest = next(self._generations)
        self.panel.close()

    async def bulk_set_status(self, active: bool) -> int:
        records = [row.original for row in self.table.selected_rows()]
        if not records:
            return 0
        try:
            changed = await asyncio.to_thread(self.mutations.bulk_set_status, self.data_type, records, active)
        except UpstreamError as exc:
            logger.warning('Bulk status change on {} failed: {}', self.data_type.value, exc)
            self.error = UNEXPECTED_ERROR
            return 0
        self.table.clear_selection()
        await self.load()
        return changed
