from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from loguru import logger

from backoffice.schemas.records import DataType
from backoffice.services.upstream_client import AUTH, UpstreamClient
from backoffice.tables.columns import get_value

# auth-service page that hands out a fresh token for group and user writes
CSRF_SCOPE = '/group-management'

# data type -> (collection path, activate action, deactivate action, HTTP method)
_BULK_STATUS = {
    DataType.VENDORS: ('/BffSuppliers', 'batchActivateSuppliers', 'batchDeactivateSuppliers', 'POST'),
    DataType.ITEMS: ('/BffRawItems', 'batchActivateRawItems', 'batchDeactivateRawItems', 'PUT'),
    DataType.WAREHOUSES: ('/BffFacilities', 'batchActivateFacilities', 'batchDeactivateFacilities', 'PUT'),
}

_BULK_ID_KEYS = {
    DataType.VENDORS: 'supplier_id',
    DataType.ITEMS: 'product_id',
    DataType.WAREHOUSES: 'facility_id',
}


class MutationService:
    def __init__(self, client: UpstreamClient) -> None:
        self.client = client

    # -- data backend ---------------------------------------------------------

    def update_item(self, product_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffRawItems/{product_id}', payload)

    def update_vendor(self, supplier_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffSuppliers/{supplier_id}', payload)

    def update_warehouse(self, facility_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffFacilities/{facility_id}', payload)

    def update_location(self, facility_id: str, location_seq_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffFacilities/{facility_id}/Locations/{location_seq_id}', payload)

    def update_purchase_order(self, order_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffPurchaseOrders/{order_id}', payload)

    def update_receiving(self, document_id: str, payload: dict) -> Any:
        return self.client.put(f'/BffReceipts/{document_id}', payload)

    def set_status(self, data_type: DataType | str, ids: Iterable[str], active: bool) -> int:
        data_type = DataType(data_type)
        if data_type not in _BULK_STATUS:
            raise ValueError(f'Bulk status change is not supported for {data_type.value}')
        ids = [value for value in ids if value]
        if not ids:
            return 0
        path, activate, deactivate, method = _BULK_STATUS[data_type]
        action = activate if active else deactivate
        self.client.request(method, f'{path}/{action}', payload=ids)
        logger.info('{} {} {}', 'Activated' if active else 'Deactivated', len(ids), data_type.value)
        return len(ids)

    def set_location_status(self, facility_id: str, location_seq_ids: Iterable[str], active: bool) -> int:
        ids = [value for value in location_seq_ids if value]
        if not ids:
            return 0
        action = 'batchActivateLocations' if active else 'batchDeactivateLocations'
        self.client.put(f'/BffFacilities/{facility_id}/Locations/{action}', ids)
        logger.info(
            '{} {} locations for facility {}', 'Activated' if active else 'Deactivated', len(ids), facility_id
        )
        return len(ids)

    def bulk_set_status(self, data_type: DataType | str, records: Iterable[Any], active: bool) -> int:
        """Activate or deactivate the given table records.

        Locations are addressed per facility, so they are grouped by
        ``facility_id`` and sent as one call per facility.
        """
        data_type = DataType(data_type)
        if data_type == DataType.LOCATIONS:
            by_facility: dict[str, list[str]] = {}
            for record in records:
                facility_id = get_value(record, 'facility_id')
                location_seq_id = get_value(record, 'location_seq_id')
                if facility_id and location_seq_id:
                    by_facility.setdefault(facility_id, []).append(location_seq_id)
            return sum(
                self.set_location_status(facility_id, seq_ids, active) for facility_id, seq_ids in by_facility.items()
            )
        id_key = _BULK_ID_KEYS.get(data_type)
        if id_key is None:
            raise ValueError(f'Bulk status change is not supported for {data_type.value}')
        return self.set_status(data_type, [get_value(record, id_key) for record in records], active)

    # -- auth service ---------------------------------------------------------

    def _auth_write(self, method: str, path: str, payload: Any = None) -> Any:
        self.client.refresh_csrf(CSRF_SCOPE)
        return self.client.request(method, path, base=AUTH, payload=payload if payload is not None else {})

    def update_user(self, user_id: str, payload: dict) -> Any:
        return self._auth_write('PUT', f'/api/auth-srv/users/{user_id}', payload)

    def toggle_user_enabled(self, user_id: str) -> Any:
        return self._auth_write('POST', f'/api/users/{user_id}/toggle-enabled')

    def update_role(self, role_id: str, payload: dict) -> Any:
        return self._auth_write('PUT', f'/api/auth-srv/groups/{role_id}', payload)

    def add_role(self, payload: dict) -> Any:
        return self._auth_write('POST', '/api/auth-srv/groups', payload)

    def user_to_role(self, role_id: str, usernames: Iterable[str]) -> Any:
        return self._auth_write('PUT', f'/api/auth-srv/groups/{role_id}/users', list(usernames))

    def toggle_role_enabled(self, role_id: str) -> Any:
        return self._auth_write('POST', f'/api/groups/{role_id}/toggle-enabled')
