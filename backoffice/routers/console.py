from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from loguru import logger

from backoffice.auth import Principal, get_current_principal, has_permission, require_permission
from backoffice.config import settings
from backoffice.dependencies import get_workspace, parse_data_type
from backoffice.errors import CsrfTokenError, FormValidationError, UpstreamError
from backoffice.pages.container import PageContainer
from backoffice.pages.workspace import Workspace
from backoffice.panels.form_variants import RoleVariant, get_variant
from backoffice.panels.side_panel import SAVE_FAILED
from backoffice.schemas.records import DataType
from backoffice.security.csrf import verify_csrf
from backoffice.tables.column_selector import ColumnSelector, FilterColumnChooser
from backoffice.tables.definitions import TABLE_DEFINITIONS, get_definition

router = APIRouter(prefix='/console')

_FORM_SKIP = {'csrf_token'}


def _page_url(data_type: DataType) -> str:
    return f'/console/{data_type.value}'


def _back(data_type: DataType) -> RedirectResponse:
    return RedirectResponse(_page_url(data_type), status_code=303)


def _open_container(
    data_type: str,
    principal: Principal,
    workspace: Workspace,
    action: str = 'Read',
) -> tuple[DataType, PageContainer]:
    parsed = parse_data_type(data_type)
    definition = get_definition(parsed)
    if not has_permission(principal, definition.permission(action)):
        raise HTTPException(status_code=403)
    return parsed, workspace.container(parsed)


def _int_field(value, name: str) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f'{name} must be a whole number') from None


async def _form_payload(request: Request) -> dict:
    form = await request.form()
    payload: dict = {}
    for key in form.keys():
        if key in _FORM_SKIP:
            continue
        values = form.getlist(key)
        if key.endswith('[]'):
            payload[key[:-2]] = [str(value) for value in values]
        else:
            payload[key] = str(values[-1]) if values else None
    return payload


@router.get('')
def console_root():
    return RedirectResponse(_page_url(DataType.ITEMS), status_code=303)


@router.get('/{data_type}')
async def table_page(
    data_type: str,
    request: Request,
    columns_query: str = '',
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
):
    parsed, container = _open_container(data_type, principal, workspace)
    if not container.loaded and container.error is None:
        await container.load()

    definition = container.definition
    table = container.table
    chooser = FilterColumnChooser(table, definition.filter_columns)
    panel = container.panel
    panel_view = panel.view() if panel.session is not None else None
    return request.app.state.templates.TemplateResponse(
        request,
        'table.html',
        {
            'principal': principal,
            'definitions': TABLE_DEFINITIONS,
            'definition': definition,
            'container': container,
            'table': table,
            'page_rows': table.page_rows(),
            'visible_columns': table.visible_columns(),
            'column_options': ColumnSelector(table).options(columns_query),
            'filter_options': chooser.options(),
            'filter_facets': {option.value: chooser.facets(option.value) for option in chooser.options()},
            'search_value': table.get_filter(definition.search_key) or '',
            'page_size_options': settings.page_size_options,
            'can_create': definition.create_permission is not None
            and has_permission(principal, definition.create_permission),
            'can_update': has_permission(principal, definition.permission('Update')),
            'can_disable': has_permission(principal, definition.permission('Disable')),
            'panel': panel.session,
            'panel_view': panel_view,
            'supports_status': get_variant(parsed).supports_status,
            'new_role_rows': get_variant(DataType.ROLES).tree.rows(frozenset()) if parsed == DataType.ROLES else [],
        },
    )


@router.post('/{data_type}/refresh')
async def refresh_table(
    data_type: str,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    await container.load()
    return _back(parsed)


@router.post('/{data_type}/sort')
async def sort_table(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    container.table.set_sort(str(form.get('column', '')))
    return _back(parsed)


@router.post('/{data_type}/search')
async def search_table(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    container.table.set_filter(container.definition.search_key, str(form.get('q', '')).strip())
    return _back(parsed)


@router.post('/{data_type}/filter')
async def filter_table(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    column_key = str(form.get('column', ''))
    if column_key not in container.definition.filter_columns:
        raise HTTPException(status_code=400, detail='Column cannot be filtered')
    values = [str(value) for value in form.getlist('values') if str(value)]
    container.table.set_filter(column_key, values)
    return _back(parsed)


@router.post('/{data_type}/reset')
async def reset_filters(
    data_type: str,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    container.table.reset_filters()
    return _back(parsed)


@router.post('/{data_type}/page')
async def change_page(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    if 'page_size' in form:
        size = _int_field(form.get('page_size'), 'Page size')
        if size not in settings.page_size_options:
            raise HTTPException(status_code=400, detail='Unsupported page size')
        container.table.set_page_size(size)
    else:
        container.table.set_page(_int_field(form.get('page_index'), 'Page'))
    return _back(parsed)


@router.post('/{data_type}/columns')
async def toggle_column(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    ColumnSelector(container.table).toggle(str(form.get('column', '')))
    return _back(parsed)


@router.post('/{data_type}/select')
async def select_rows(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    form = await request.form()
    if 'page' in form:
        container.table.toggle_all_on_page(str(form.get('page')) == 'on')
    else:
        container.table.toggle_row_selection(str(form.get('row_id', '')))
    return _back(parsed)


@router.post('/{data_type}/status')
async def bulk_status(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace, action='Disable')
    if not container.definition.supports_bulk_status:
        raise HTTPException(status_code=400, detail='Bulk status change is not available here')
    form = await request.form()
    await container.bulk_set_status(str(form.get('active')) == 'true')
    return _back(parsed)


@router.get('/{data_type}/rows/{row_id}')
async def open_row(
    data_type: str,
    row_id: str,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
):
    parsed, container = _open_container(data_type, principal, workspace)
    if container.table.activate_row(row_id) is None:
        raise HTTPException(status_code=404, detail='Row not found')
    await container.panel.load_detail()
    return _back(parsed)


@router.post('/{data_type}/panel/close')
async def close_panel(
    data_type: str,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace)
    container.panel.close()
    return _back(parsed)


@router.post('/{data_type}/panel/edit')
async def toggle_panel_edit(
    data_type: str,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace, action='Update')
    try:
        container.panel.toggle_edit()
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _back(parsed)


@router.post('/{data_type}/panel/save')
async def save_panel(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace, action='Update')
    payload = await _form_payload(request)
    try:
        await container.panel.save(payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _back(parsed)


@router.post('/{data_type}/panel/status')
async def panel_status(
    data_type: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(data_type, principal, workspace, action='Disable')
    form = await request.form()
    try:
        await container.panel.set_status(str(form.get('active')) == 'true')
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _back(parsed)


@router.post('/roles/panel/permissions')
async def toggle_role_permission(
    request: Request,
    principal: Principal = Depends(require_permission('Roles_Update')),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(DataType.ROLES.value, principal, workspace, action='Update')
    session = container.panel.session
    if session is None or not session.is_editing:
        raise HTTPException(status_code=400, detail='Role is not being edited')
    variant: RoleVariant = get_variant(parsed)

    payload = await _form_payload(request)
    node_id = payload.pop('node', None)
    expand = payload.pop('expand', None)
    if node_id not in variant.tree.nodes:
        raise HTTPException(status_code=400, detail='Unknown permission')

    draft = dict(session.draft or {})
    draft.update(payload)
    if expand:
        session.collapsed = session.collapsed ^ {node_id}
    else:
        if 'permissions' in draft:
            selection = variant.tree.normalize(draft['permissions'] or [])
        else:
            selection = variant.selection(session.detail or session.snapshot)
        draft['permissions'] = sorted(variant.tree.toggle(node_id, selection))
    session.draft = draft
    return _back(parsed)


@router.post('/roles/panel/members')
async def set_role_members(
    request: Request,
    principal: Principal = Depends(require_permission('Roles_Update')),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(DataType.ROLES.value, principal, workspace, action='Update')
    session = container.panel.session
    if session is None:
        raise HTTPException(status_code=404, detail='Side panel is closed')
    form = await request.form()
    usernames = [str(value).strip() for value in form.getlist('members') if str(value).strip()]
    try:
        await asyncio.to_thread(workspace.mutations.user_to_role, session.row_id, usernames)
    except (UpstreamError, CsrfTokenError) as exc:
        logger.warning('Updating members of role {} failed: {}', session.row_id, exc)
        session.error = SAVE_FAILED
        return _back(parsed)
    if session.detail is not None:
        session.detail['members'] = usernames
    return _back(parsed)


@router.post('/roles/create')
async def create_role(
    request: Request,
    principal: Principal = Depends(require_permission('Roles_Create')),
    workspace: Workspace = Depends(get_workspace),
    _: None = Depends(verify_csrf),
):
    parsed, container = _open_container(DataType.ROLES.value, principal, workspace, action='Create')
    payload = await _form_payload(request)
    try:
        patch = get_variant(parsed).parse(payload)
    except FormValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        await asyncio.to_thread(workspace.mutations.add_role, patch.to_payload())
    except (UpstreamError, CsrfTokenError) as exc:
        logger.warning('Adding role failed: {}', exc)
        container.error = SAVE_FAILED
        return _back(parsed)
    await container.load()
    return _back(parsed)
