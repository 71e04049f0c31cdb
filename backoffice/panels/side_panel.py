from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from backoffice.errors import (
    CsrfTokenError,
    FormValidationError,
    SaveRejectedError,
    SchemaValidationError,
    UpstreamError,
)
from backoffice.panels.form_variants import FormVariant, PanelMode, PanelView, get_variant
from backoffice.schemas.records import DataType
from backoffice.services.entity_service import EntityService
from backoffice.services.lookup_service import LookupService
from backoffice.services.mutation_service import MutationService
from backoffice.tables.engine import RowActivated

SAVE_FAILED = 'Failed to save changes'
FIX_FIELDS = 'Please correct the highlighted fields'


@dataclass
class SidePanelSession:
    snapshot: Any
    data_type: DataType
    row_id: str | None = None
    is_open: bool = True
    is_editing: bool = False
    busy: bool = False
    error: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)
    draft: dict[str, Any] | None = None
    detail: dict[str, Any] | None = None
    options: dict[str, list[tuple[str, str]]] = field(default_factory=dict)
    collapsed: frozenset[str] = frozenset()


class SidePanelController:
    """Owns the side panel for one page: which record is open and its edit state."""

    def __init__(
        self,
        mutations: MutationService,
        *,
        entities: EntityService | None = None,
        lookups: LookupService | None = None,
        on_refresh: Callable[[], Any] | None = None,
    ) -> None:
        self.mutations = mutations
        self.entities = entities
        self.lookups = lookups
        self.on_refresh = on_refresh
        self.session: SidePanelSession | None = None

    @property
    def variant(self) -> FormVariant:
        if self.session is None:
            raise LookupError('Side panel is closed')
        return get_variant(self.session.data_type)

    def open(self, event: RowActivated) -> SidePanelSession:
        self.session = SidePanelSession(
            snapshot=event.snapshot,
            data_type=DataType(event.data_type),
            row_id=event.row_id,
        )
        return self.session

    async def load_detail(self) -> None:
        """Fetch the full record and the form's choice lists for the open row."""
        session = self.session
        if session is None or self.entities is None:
            return
        variant = self.variant
        try:
            session.detail = await asyncio.to_thread(variant.load, self.entities, session.snapshot)
            if self.lookups is not None:
                session.options = await asyncio.to_thread(variant.load_options, self.entities, self.lookups)
        except SchemaValidationError as exc:
            session.error = f'Data validation failed: {exc.detail}'
        except (UpstreamError, SaveRejectedError) as exc:
            logger.warning('Could not load {} detail: {}', session.data_type.value, exc)
            session.error = 'An unexpected error occurred'

    def close(self) -> None:
        if self.session is not None:
            self.session.is_open = False
        self.session = None

    def toggle_edit(self) -> None:
        session = self._require_open()
        session.is_editing = not session.is_editing
        if not session.is_editing:
            session.draft = None
            session.field_errors = {}
            session.error = None

    def view(self) -> PanelView:
        session = self._require_open()
        source = session.detail or session.snapshot
        return self.variant.render(
            source,
            PanelMode.EDIT if session.is_editing else PanelMode.READ,
            draft=session.draft,
            errors=session.field_errors,
            options=session.options,
            collapsed=session.collapsed,
        )

    def _require_open(self) -> SidePanelSession:
        if self.session is None or not self.session.is_open:
            raise LookupError('Side panel is closed')
        return self.session

    async def _refresh(self) -> None:
        if self.on_refresh is None:
            return
        result = self.on_refresh()
        if inspect.isawaitable(result):
            await result

    async def save(self, form_data: Mapping[str, Any]) -> bool:
        session = self._require_open()
        if session.busy:
            logger.debug('Ignoring save while a save is in flight')
            return False

        session.busy = True
        session.draft = dict(form_data)
        session.error = None
        session.field_errors = {}
        variant = self.variant
        try:
            patch = variant.parse(form_data)
            await asyncio.to_thread(variant.save, self.mutations, session.snapshot, patch)
        except FormValidationError as exc:
            session.field_errors = dict(exc.field_errors)
            session.error = FIX_FIELDS
            return False
        except (UpstreamError, CsrfTokenError, SaveRejectedError) as exc:
            logger.warning('Saving {} failed: {}', session.data_type.value, exc)
            session.error = SAVE_FAILED
            return False
        finally:
            session.busy = False

        self.close()
        await self._refresh()
        return True

    async def set_status(self, active: bool) -> bool:
        session = self._require_open()
        if session.busy:
            return False

        session.busy = True
        session.error = None
        try:
            await asyncio.to_thread(self.variant.set_status, self.mutations, session.snapshot, active)
        except (UpstreamError, CsrfTokenError, SaveRejectedError) as exc:
            logger.warning('Changing {} status failed: {}', session.data_type.value, exc)
            session.error = SAVE_FAILED
            return False
        finally:
            session.busy = False

        self.close()
        await self._refresh()
        return True
