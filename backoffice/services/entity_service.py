"""Read accessors for the list pages.

Each accessor fetches one backend collection and projects every raw entry
into the display shape the table columns expect. Backend keys are kept
alongside the projected ones (they win on collision, except where a
projected value has to replace them) so the side panel can show the full
record.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from backoffice.config import settings
from backoffice.errors import SchemaValidationError
from backoffice.services.upstream_client import AUTH, UpstreamClient

_RECORD_LIST = TypeAdapter(list[dict[str, Any]])
_RECORD = TypeAdapter(dict[str, Any])


def _active_label(raw: dict) -> str:
    return 'Activated' if raw.get('active') == 'Y' else 'Disabled'


def _enabled_label(raw: dict) -> str:
    return 'Active' if raw.get('enabled') is True else 'Disabled'


def _content(response: Any, kind: str) -> list[dict]:
    """Unwrap a paged envelope and check every entry is a JSON object."""
    if isinstance(response, dict):
        response = response.get('content')
    try:
        return _RECORD_LIST.validate_python(response or [])
    except ValidationError as exc:
        raise SchemaValidationError(kind, str(exc)) from exc


def _record(response: Any, kind: str) -> dict:
    try:
        return _RECORD.validate_python(response or {})
    except ValidationError as exc:
        raise SchemaValidationError(kind, str(exc)) from exc


def join_address(contacts: Any) -> str:
    first = contacts[0] if isinstance(contacts, list) and contacts else None
    if not isinstance(first, dict):
        return ''
    parts = [
        first.get('physicalLocationAddress'),
        first.get('city'),
        first.get('state'),
        first.get('country'),
        first.get('zipCode'),
    ]
    return ', '.join(part for part in parts if part)


def project_item(raw: dict) -> dict:
    return {
        'id': raw.get('productId'),
        'item': raw.get('productName'),
        'vendor': raw.get('supplierName'),
        'itemNumber': raw.get('internalId'),
        'status': _active_label(raw),
        **raw,
    }


def project_vendor(raw: dict) -> dict:
    return {
        'id': raw.get('supplierId'),
        'vendor': raw.get('supplierShortName'),
        'tel': raw.get('telephone'),
        'gcp': raw.get('gs1CompanyPrefix'),
        'vendorNumber': raw.get('internalId'),
        'status': _active_label(raw),
        **raw,
    }


def project_warehouse(raw: dict) -> dict:
    return {
        'id': raw.get('facilityId'),
        'warehouse': raw.get('facilityName'),
        'address': join_address(raw.get('businessContacts')),
        'warehouseNumber': raw.get('internalId'),
        'status': _active_label(raw),
        **raw,
    }


def project_location(raw: dict) -> dict:
    return {
        'id': raw.get('locationSeqId'),
        'location': raw.get('locationName'),
        'locationNumber': raw.get('locationCode'),
        'warehouse': raw.get('facilityName'),
        'status': _active_label(raw),
        **raw,
    }


def project_purchase_order(raw: dict) -> dict:
    return {
        'id': raw.get('orderId'),
        'poNumber': raw.get('orderId'),
        'vendor': raw.get('supplierName'),
        'orderStatus': raw.get('fulfillmentStatusId') or raw.get('statusId') or 'NOT_FULFILLED',
        **raw,
    }


def project_receiving(raw: dict) -> dict:
    return {
        'id': raw.get('documentId'),
        'receivingNumber': raw.get('documentId'),
        'PO': raw.get('primaryOrderId'),
        'receivingDate': raw.get('createdAt'),
        'vendor': raw.get('partyNameFrom'),
        'status': raw.get('statusId'),
        **raw,
    }


def project_user(raw: dict) -> dict:
    groups = raw.get('groups') if isinstance(raw.get('groups'), list) else []
    return {
        'id': raw.get('username'),
        'userNumber': raw.get('employeeNumber'),
        'roles': ', '.join(group.get('groupName') or '' for group in groups if isinstance(group, dict)),
        'status': _enabled_label(raw),
        **raw,
        'email': raw.get('username'),
    }


def project_role(raw: dict) -> dict:
    permissions = raw.get('permissions') or []
    # a non-list passes through for the record schema to reject
    names = permissions if isinstance(permissions, list) else []
    return {
        'role': raw.get('groupName'),
        'status': _enabled_label(raw),
        **raw,
        'permissions': ', '.join(
            permission for permission in names if isinstance(permission, str) and '_' in permission
        ),
        'permissionList': permissions,
        'id': str(raw.get('id')) if raw.get('id') is not None else None,
    }


class EntityService:
    def __init__(self, client: UpstreamClient) -> None:
        self.client = client

    def get_items(self) -> list[dict]:
        response = self.client.get('/BffRawItems', params={'size': settings.fetch_page_size})
        return [project_item(raw) for raw in _content(response, 'items')]

    def get_vendors(self) -> list[dict]:
        response = self.client.get('/BffSuppliers', params={'size': settings.fetch_page_size})
        return [project_vendor(raw) for raw in _content(response, 'vendors')]

    def get_warehouses(self) -> list[dict]:
        response = self.client.get(
            '/BffFacilities',
            params={'size': settings.fetch_page_size, 'ownerPartyId': settings.owner_party_id},
        )
        return [project_warehouse(raw) for raw in _content(response, 'warehouses')]

    def get_locations(self) -> list[dict]:
        response = self.client.get('/BffLists/Locations')
        return [project_location(raw) for raw in _content(response, 'locations')]

    def get_purchase_orders(self, supplier_id: str | None = None) -> list[dict]:
        response = self.client.get(
            '/BffPurchaseOrders',
            params={'size': settings.fetch_page_size, 'supplierId': supplier_id},
        )
        return [project_purchase_order(raw) for raw in _content(response, 'procurements')]

    def get_receivings(self) -> list[dict]:
        response = self.client.get('/BffReceipts', params={'size': settings.fetch_page_size})
        return [project_receiving(raw) for raw in _content(response, 'receivings')]

    def get_users(self) -> list[dict]:
        response = self.client.get('/api/auth-srv/users', base=AUTH)
        return [project_user(raw) for raw in _content(response, 'users')]

    def get_roles(self, enabled: bool | None = None) -> list[dict]:
        params = {'enabled': str(enabled).lower()} if enabled is not None else None
        response = self.client.get('/api/groups', base=AUTH, params=params)
        return [project_role(raw) for raw in _content(response, 'roles')]

    def get_role(self, role_id: str) -> dict:
        detail = project_role(_record(self.client.get(f'/api/auth-srv/groups/{role_id}', base=AUTH), 'roles'))
        if not isinstance(detail['permissionList'], list):
            raise SchemaValidationError('roles', 'permissions must be a list')
        return detail

    def get_role_members(self, role_id: str) -> list[str]:
        members = _content(self.client.get(f'/api/auth-srv/groups/{role_id}/users', base=AUTH), 'roles')
        return [member.get('username') for member in members if member.get('username')]
