"""Per-entity editors shown in the side panel.

Every variant answers the same four questions: what to fetch when a row is
opened, how to lay the record out (read or edit mode), how to turn submitted
form data into a validated patch, and which mutation persists it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from backoffice.errors import SaveRejectedError
from backoffice.permissions.tree import PermissionTree
from backoffice.schemas.forms import (
    EntityForm,
    ItemForm,
    LocationForm,
    PurchaseOrderForm,
    ReceivingForm,
    RoleForm,
    UserForm,
    VendorForm,
    WarehouseForm,
    parse_form,
)
from backoffice.schemas.records import DataType
from backoffice.services.entity_service import EntityService
from backoffice.services.lookup_service import LookupService
from backoffice.services.mutation_service import MutationService
from backoffice.services.upstream_client import AUTH
from backoffice.tables.columns import get_value


class PanelMode(str, Enum):
    READ = 'read'
    EDIT = 'edit'


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = 'text'
    required: bool = False
    readonly: bool = False
    options_key: str | None = None


@dataclass(frozen=True)
class PanelField:
    name: str
    label: str
    kind: str
    value: Any
    editable: bool
    required: bool = False
    error: str | None = None
    options: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class PanelView:
    title: str
    mode: PanelMode
    fields: tuple[PanelField, ...]
    extras: dict[str, Any] = field(default_factory=dict)


def _pairs(rows: Iterable[Mapping], value_key: str, label_key: str) -> list[tuple[str, str]]:
    pairs = []
    for row in rows or []:
        value = row.get(value_key)
        if value is None:
            continue
        pairs.append((str(value), str(row.get(label_key) or value)))
    return pairs


class FormVariant:
    data_type: DataType
    title: str
    form_cls: type[EntityForm]
    fields: tuple[FieldSpec, ...] = ()
    supports_status: bool = True

    def detail_path(self, record: Any) -> str | None:
        return None

    def load(self, entities: EntityService, record: Any) -> dict:
        path = self.detail_path(record)
        if path is None:
            return {}
        return entities.client.get(path) or {}

    def load_options(self, entities: EntityService, lookups: LookupService) -> dict[str, list[tuple[str, str]]]:
        return {}

    def field_value(self, source: Any, spec: FieldSpec) -> Any:
        if isinstance(source, Mapping):
            alias = self.form_cls.model_fields[spec.name].alias or spec.name
            return source.get(alias, source.get(spec.name))
        return get_value(source, spec.name)

    def render(
        self,
        record: Any,
        mode: PanelMode | str,
        *,
        draft: Mapping[str, Any] | None = None,
        errors: Mapping[str, str] | None = None,
        options: Mapping[str, list[tuple[str, str]]] | None = None,
        collapsed: frozenset[str] = frozenset(),
    ) -> PanelView:
        mode = PanelMode(mode)
        errors = errors or {}
        options = options or {}
        rendered = []
        for spec in self.fields:
            if draft is not None and spec.name in draft:
                value = draft[spec.name]
            else:
                value = self.field_value(record, spec)
            rendered.append(
                PanelField(
                    name=spec.name,
                    label=spec.label,
                    kind=spec.kind,
                    value=value,
                    editable=mode == PanelMode.EDIT and not spec.readonly,
                    required=spec.required,
                    error=errors.get(spec.name),
                    options=tuple(options.get(spec.options_key or '', ())),
                )
            )
        return PanelView(title=self.title, mode=mode, fields=tuple(rendered))

    def parse(self, form_data: Mapping[str, Any]) -> EntityForm:
        return parse_form(self.form_cls, form_data)

    def save(self, mutations: MutationService, record: Any, patch: EntityForm) -> Any:
        raise NotImplementedError

    def set_status(self, mutations: MutationService, record: Any, active: bool) -> Any:
        raise SaveRejectedError(f'Status changes are not supported for {self.data_type.value}')


def _record_id(record: Any, key: str) -> str:
    value = get_value(record, key) or get_value(record, 'id')
    if not value:
        raise SaveRejectedError(f'Record has no {key}')
    return str(value)


class ItemVariant(FormVariant):
    data_type = DataType.ITEMS
    title = 'Item'
    form_cls = ItemForm
    fields = (
        FieldSpec('product_name', 'Item Name', required=True),
        FieldSpec('internal_id', 'Item Number', required=True),
        FieldSpec('gtin', 'GTIN'),
        FieldSpec('supplier_id', 'Vendor', kind='select', required=True, options_key='vendors'),
        FieldSpec('case_uom_id', 'Packaging Type', kind='select', required=True, options_key='package_types'),
        FieldSpec('quantity_included', 'Gross Weight', kind='number', required=True),
        FieldSpec('quantity_uom_id', 'Weight Units', kind='select', required=True, options_key='weight_units'),
        FieldSpec('brand_name', 'Brand'),
        FieldSpec('produce_variety', 'Variety'),
        FieldSpec('country_of_origin', 'Country of Origin', kind='select', options_key='countries'),
        FieldSpec('description', 'Description', kind='textarea'),
    )

    def detail_path(self, record: Any) -> str | None:
        return f"/BffRawItems/{_record_id(record, 'product_id')}"

    def load_options(self, entities, lookups):
        return {
            'vendors': _pairs(entities.client.get('/BffLists/Suppliers', params={'active': 'Y'}), 'supplierId', 'supplierShortName'),
            'package_types': _pairs(lookups.package_types(), 'uomId', 'abbreviation'),
            'weight_units': _pairs(lookups.weight_units(), 'uomId', 'abbreviation'),
            'countries': _pairs(lookups.countries(), 'geoId', 'geoName'),
        }

    def save(self, mutations, record, patch):
        return mutations.update_item(_record_id(record, 'product_id'), patch.to_payload())

    def set_status(self, mutations, record, active):
        return mutations.set_status(self.data_type, [_record_id(record, 'product_id')], active)


class VendorVariant(FormVariant):
    data_type = DataType.VENDORS
    title = 'Vendor'
    form_cls = VendorForm
    fields = (
        FieldSpec('supplier_short_name', 'Vendor', required=True),
        FieldSpec('supplier_name', 'Full Name', required=True),
        FieldSpec('internal_id', 'Vendor Number'),
        FieldSpec('telephone', 'Tel', required=True),
        FieldSpec('email', 'Email'),
        FieldSpec('gs1_company_prefix', 'GCP'),
        FieldSpec('gln', 'GLN'),
        FieldSpec('preferred_currency_uom_id', 'Currency', kind='select', options_key='currencies'),
        FieldSpec('tax_id', 'Tax ID / VAT Number'),
        FieldSpec('supplier_type_enum_id', 'Type'),
        FieldSpec('bank_account_information', 'Bank Account Information'),
        FieldSpec('certification_codes', 'Certification Codes'),
        FieldSpec('supplier_product_type_description', 'Relationship'),
        FieldSpec('tpa_number', 'Trade Partner Agreement Number'),
    )

    def detail_path(self, record: Any) -> str | None:
        return f"/BffSuppliers/{_record_id(record, 'supplier_id')}"

    def load_options(self, entities, lookups):
        return {'currencies': _pairs(lookups.currencies(), 'uomId', 'abbreviation')}

    def save(self, mutations, record, patch):
        return mutations.update_vendor(_record_id(record, 'supplier_id'), patch.to_payload())

    def set_status(self, mutations, record, active):
        return mutations.set_status(self.data_type, [_record_id(record, 'supplier_id')], active)


class WarehouseVariant(FormVariant):
    data_type = DataType.WAREHOUSES
    title = 'Warehouse'
    form_cls = WarehouseForm
    fields = (
        FieldSpec('facility_name', 'Warehouse', required=True),
        FieldSpec('internal_id', 'Warehouse Number'),
        FieldSpec('gln', 'GLN'),
        FieldSpec('facility_size', 'Size', kind='number'),
    )

    def detail_path(self, record: Any) -> str | None:
        return f"/BffFacilities/{_record_id(record, 'facility_id')}"

    def render(self, record, mode, **kwargs):
        view = super().render(record, mode, **kwargs)
        contacts = get_value(record, 'businessContacts') or get_value(record, 'business_contacts') or []
        view.extras['business_contacts'] = contacts
        return view

    def save(self, mutations, record, patch):
        return mutations.update_warehouse(_record_id(record, 'facility_id'), patch.to_payload())

    def set_status(self, mutations, record, active):
        return mutations.set_status(self.data_type, [_record_id(record, 'facility_id')], active)


class LocationVariant(FormVariant):
    data_type = DataType.LOCATIONS
    title = 'Location'
    form_cls = LocationForm
    fields = (
        FieldSpec('location_name', 'Location'),
        FieldSpec('location_code', 'Location Number'),
        FieldSpec('gln', 'GLN'),
        FieldSpec('facility_name', 'Warehouse', readonly=True),
        FieldSpec('description', 'Description', kind='textarea'),
    )

    def detail_path(self, record: Any) -> str | None:
        facility_id = _record_id(record, 'facility_id')
        return f"/BffFacilities/{facility_id}/Locations/{_record_id(record, 'location_seq_id')}"

    def save(self, mutations, record, patch):
        return mutations.update_location(
            _record_id(record, 'facility_id'),
            _record_id(record, 'location_seq_id'),
            patch.to_payload(),
        )

    def set_status(self, mutations, record, active):
        return mutations.set_location_status(
            _record_id(record, 'facility_id'),
            [_record_id(record, 'location_seq_id')],
            active,
        )


class PurchaseOrderVariant(FormVariant):
    data_type = DataType.PROCUREMENTS
    title = 'Purchase Order'
    form_cls = PurchaseOrderForm
    supports_status = False
    fields = (
        FieldSpec('order_id', 'PO Number', required=True, readonly=True),
        FieldSpec('supplier_id', 'Vendor', kind='select', required=True, options_key='vendors'),
        FieldSpec('order_date', 'Order Date', kind='date'),
        FieldSpec('status_id', 'Status', readonly=True),
        FieldSpec('total_quantity', 'Total Quantity', kind='number'),
        FieldSpec('total_weight', 'Total Weight', kind='number'),
        FieldSpec('memo', 'Memo', kind='textarea'),
    )

    def detail_path(self, record: Any) -> str | None:
        return f"/BffPurchaseOrders/{_record_id(record, 'order_id')}?includesProductDetails=true"

    def load_options(self, entities, lookups):
        return {
            'vendors': _pairs(entities.client.get('/BffLists/Suppliers', params={'active': 'Y'}), 'supplierId', 'supplierShortName'),
        }

    def save(self, mutations, record, patch):
        return mutations.update_purchase_order(_record_id(record, 'order_id'), patch.to_payload())


class ReceivingVariant(FormVariant):
    data_type = DataType.RECEIVINGS
    title = 'Receiving'
    form_cls = ReceivingForm
    supports_status = False
    fields = (
        FieldSpec('document_id', 'Receiving Number', readonly=True),
        FieldSpec('primary_order_id', 'PO Number', readonly=True),
        FieldSpec('party_name_from', 'Vendor', readonly=True),
        FieldSpec('destination_facility_name', 'Warehouse', readonly=True),
        FieldSpec('status_id', 'Status'),
        FieldSpec('received_quantity', 'Received Quantity', kind='number'),
        FieldSpec('received_weight', 'Received Weight', kind='number'),
        FieldSpec('received_at', 'Received At', kind='date'),
    )

    def detail_path(self, record: Any) -> str | None:
        return f"/BffReceipts/{_record_id(record, 'document_id')}?derivesQaInspectionStatus=true"

    def save(self, mutations, record, patch):
        return mutations.update_receiving(_record_id(record, 'document_id'), patch.to_payload())


class UserVariant(FormVariant):
    data_type = DataType.USERS
    title = 'User'
    form_cls = UserForm
    fields = (
        FieldSpec('username', 'Email', required=True, readonly=True),
        FieldSpec('first_name', 'First Name', required=True),
        FieldSpec('last_name', 'Last Name', required=True),
        FieldSpec('employee_number', 'User Number'),
        FieldSpec('roles', 'Roles', kind='multiselect', required=True, options_key='roles'),
        FieldSpec('telephone_number', 'Telephone'),
        FieldSpec('mobile_number', 'Mobile'),
        FieldSpec('department_id', 'Department'),
        FieldSpec('associated_gln', 'Associated GLN'),
    )

    def load(self, entities, record):
        return entities.client.get(f"/api/users/{_record_id(record, 'username')}", base=AUTH) or {}

    def load_options(self, entities, lookups):
        return {'roles': [(role['id'], role['role']) for role in entities.get_roles(enabled=True) if role.get('id')]}

    def field_value(self, source, spec):
        if spec.name == 'roles' and isinstance(source, Mapping) and 'groups' in source:
            groups = source.get('groups') or []
            return [str(group.get('id')) for group in groups if isinstance(group, dict) and group.get('id') is not None]
        return super().field_value(source, spec)

    def save(self, mutations, record, patch):
        payload = patch.to_payload()
        payload['groupIds'] = [int(role) for role in patch.roles if str(role).isdigit()]
        return mutations.update_user(_record_id(record, 'username'), payload)

    def set_status(self, mutations, record, active):
        currently_active = get_value(record, 'status') == 'Active'
        if currently_active == active:
            return None
        return mutations.toggle_user_enabled(_record_id(record, 'username'))


class RoleVariant(FormVariant):
    data_type = DataType.ROLES
    title = 'Role'
    form_cls = RoleForm
    fields = (
        FieldSpec('group_name', 'Role', required=True),
        FieldSpec('description', 'Description', kind='textarea'),
    )

    def __init__(self, tree: PermissionTree | None = None) -> None:
        self.tree = tree or PermissionTree()

    def load(self, entities, record):
        role_id = _record_id(record, 'id')
        detail = entities.get_role(role_id)
        detail['members'] = entities.get_role_members(role_id)
        return detail

    def selection(self, source: Any) -> frozenset[str]:
        permissions = get_value(source, 'permissionList') or get_value(source, 'permission_list') or []
        return self.tree.normalize(permissions)

    def render(self, record, mode, *, draft=None, errors=None, options=None, collapsed=frozenset()):
        view = super().render(record, mode, draft=draft, errors=errors, options=options)
        if draft is not None and 'permissions' in draft:
            selection = self.tree.normalize(draft['permissions'] or [])
        else:
            selection = self.selection(record)
        view.extras['selection'] = selection
        view.extras['permission_error'] = (errors or {}).get('permissions')
        view.extras['members'] = get_value(record, 'members') or []
        if view.mode == PanelMode.EDIT:
            view.extras['permission_rows'] = self.tree.rows(selection, self.tree.expanded - collapsed)
        else:
            view.extras['permission_rows'] = self.tree.prune(selection).rows(selection)
        return view

    def parse(self, form_data):
        data = dict(form_data)
        data['permissions'] = self.tree.with_groups(self.tree.normalize(data.get('permissions') or []))
        return super().parse(data)

    def save(self, mutations, record, patch):
        return mutations.update_role(_record_id(record, 'id'), patch.to_payload())

    def set_status(self, mutations, record, active):
        currently_active = get_value(record, 'status') == 'Active'
        if currently_active == active:
            return None
        return mutations.toggle_role_enabled(_record_id(record, 'id'))


FORM_VARIANTS: dict[DataType, FormVariant] = {
    variant.data_type: variant
    for variant in (
        ItemVariant(),
        VendorVariant(),
        WarehouseVariant(),
        LocationVariant(),
        PurchaseOrderVariant(),
        ReceivingVariant(),
        UserVariant(),
        RoleVariant(),
    )
}


def get_variant(data_type: DataType | str) -> FormVariant:
    return FORM_VARIANTS[DataType(data_type)]
