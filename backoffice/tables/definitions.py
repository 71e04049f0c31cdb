from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from backoffice.schemas.records import DataType
from backoffice.tables.columns import ColumnDescriptor, column, get_value


@dataclass(frozen=True)
class TableDefinition:
    data_type: DataType
    title: str
    columns: tuple[ColumnDescriptor, ...]
    search_key: str
    search_placeholder: str
    permission_prefix: str = ''
    filter_columns: tuple[str, ...] = ()
    can_create: bool = True
    supports_bulk_status: bool = False

    def permission(self, action: str) -> str:
        return f'{self.permission_prefix}_{action}'

    @property
    def create_permission(self) -> str | None:
        return self.permission('Create') if self.can_create else None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


def _time_then_date(key: str):
    def render(record) -> str:
        raw = get_value(record, key)
        parsed = _parse_timestamp(raw)
        if parsed is None:
            return raw or ''
        return parsed.strftime('%I:%M %p, %m/%d/%Y')

    return render


def _date_only(key: str):
    def render(record) -> str:
        raw = get_value(record, key)
        parsed = _parse_timestamp(raw)
        if parsed is None:
            return raw or ''
        return parsed.strftime('%m/%d/%Y')

    return render


ITEM_COLUMNS = (
    column('item_image', 'Image', 100, sortable=False, hideable=False, searchable=False),
    column('item_number', 'Item Number', 200),
    column('item', 'Item', 300),
    column('gtin', 'GTIN', 150),
    column('vendor', 'Vendor', 250),
    column('status', 'Status', 100, min_size=80),
    column('created_at', 'Created At', 150, visible=False, cell=_time_then_date('created_at')),
)

VENDOR_COLUMNS = (
    column('vendor_number', 'Vendor Number', 240, min_size=100),
    column('vendor', 'Vendor', 550, min_size=100),
    column('tel', 'Tel', 350, min_size=100),
    column('status', 'Status', 240, min_size=100),
)

WAREHOUSE_COLUMNS = (
    column('warehouse', 'Warehouse', 450, min_size=100),
    column('warehouse_number', 'Warehouse Number', 200, min_size=100),
    column('address', 'Address', 500, min_size=100),
    column('status', 'Status', 200, min_size=100),
)

LOCATION_COLUMNS = (
    column('location', 'Location', 240, min_size=100),
    column('location_number', 'Location Number', 300, min_size=100),
    column('status', 'Status', 240, min_size=100),
    column('warehouse', 'Warehouse', 600, min_size=100),
)

PURCHASE_ORDER_COLUMNS = (
    column('po_number', 'PO Number', 300, min_size=100),
    column('vendor', 'Vendor', 400, min_size=100),
    column('order_date', 'Order Date', 430, min_size=100, cell=_date_only('order_date')),
    column('order_status', 'Order Status', 300, min_size=150),
)

RECEIVING_COLUMNS = (
    column('receiving_number', 'Receiving Number', 200, min_size=100),
    column('po', 'PO Number', 200, min_size=100),
    column('vendor', 'Vendor', 400, min_size=100),
    column('receiving_date', 'Receiving Date', 350, min_size=100, cell=_time_then_date('receiving_date')),
    column('status', 'Status', 200, min_size=150),
)

USER_COLUMNS = (
    column('user_number', 'User Number', 260, min_size=100),
    column('first_name', 'First Name', 200, min_size=100),
    column('last_name', 'Last Name', 200, min_size=100),
    column('email', 'Email', 400, min_size=100),
    column('roles', 'Roles', 600, min_size=100),
    column('status', 'Status', 200, min_size=150),
)

ROLE_COLUMNS = (
    column('role', 'Role', 260, min_size=100),
    column('description', 'Description', 350, min_size=100),
    column('permissions', 'Permissions', 650, min_size=100),
    column('status', 'Status', 120, min_size=100),
)


TABLE_DEFINITIONS: dict[DataType, TableDefinition] = {
    DataType.ITEMS: TableDefinition(
        data_type=DataType.ITEMS,
        title='Items',
        columns=ITEM_COLUMNS,
        search_key='item_number',
        search_placeholder='Search Item Number',
        filter_columns=('item', 'vendor', 'status'),
        permission_prefix='Items',
        supports_bulk_status=True,
    ),
    DataType.VENDORS: TableDefinition(
        data_type=DataType.VENDORS,
        title='Vendors',
        columns=VENDOR_COLUMNS,
        search_key='vendor_number',
        search_placeholder='Search Vendor Number',
        filter_columns=('vendor', 'status'),
        permission_prefix='Vendors',
        supports_bulk_status=True,
    ),
    DataType.WAREHOUSES: TableDefinition(
        data_type=DataType.WAREHOUSES,
        title='Warehouses',
        columns=WAREHOUSE_COLUMNS,
        search_key='warehouse_number',
        search_placeholder='Search Warehouse Number',
        filter_columns=('warehouse', 'status'),
        permission_prefix='Warehouses',
        supports_bulk_status=True,
    ),
    DataType.LOCATIONS: TableDefinition(
        data_type=DataType.LOCATIONS,
        title='Locations',
        columns=LOCATION_COLUMNS,
        search_key='location',
        search_placeholder='Search Location',
        filter_columns=('warehouse', 'status'),
        permission_prefix='Locations',
        supports_bulk_status=True,
    ),
    DataType.PROCUREMENTS: TableDefinition(
        data_type=DataType.PROCUREMENTS,
        title='Procurement',
        columns=PURCHASE_ORDER_COLUMNS,
        search_key='po_number',
        search_placeholder='Search PO Number',
        filter_columns=('order_status',),
        permission_prefix='Procurement',
    ),
    DataType.RECEIVINGS: TableDefinition(
        data_type=DataType.RECEIVINGS,
        title='Receiving',
        columns=RECEIVING_COLUMNS,
        search_key='po',
        search_placeholder='Search PO Number',
        permission_prefix='Receiving',
        can_create=False,
    ),
    DataType.USERS: TableDefinition(
        data_type=DataType.USERS,
        title='Users',
        columns=USER_COLUMNS,
        search_key='user_number',
        search_placeholder='Search User Number',
        filter_columns=('last_name',),
        permission_prefix='Users',
    ),
    DataType.ROLES: TableDefinition(
        data_type=DataType.ROLES,
        title='Roles',
        columns=ROLE_COLUMNS,
        search_key='role',
        search_placeholder='Search Role',
        permission_prefix='Roles',
    ),
}


def get_definition(data_type: DataType | str) -> TableDefinition:
    return TABLE_DEFINITIONS[DataType(data_type)]
