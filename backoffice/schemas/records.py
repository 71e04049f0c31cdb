"""Row schemas for the list pages.

One pydantic model per record kind. The backend payload is projected by
``EntityService`` first, then validated here before it ever reaches a table.
Every field is optional because the backend omits freely; type mismatches
(a dict where a string is expected, a bare object instead of a list) are
rejected at this boundary.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from backoffice.errors import SchemaValidationError


class DataType(str, Enum):
    ITEMS = 'items'
    VENDORS = 'vendors'
    WAREHOUSES = 'warehouses'
    LOCATIONS = 'locations'
    PROCUREMENTS = 'procurements'
    RECEIVINGS = 'receivings'
    USERS = 'users'
    ROLES = 'roles'


def _iso_or_none(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # epoch milliseconds
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    return value


def _iso_if_parseable(value: Any) -> Any:
    value = _iso_or_none(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).isoformat()
        except ValueError:
            return value
    return value


IsoDate = Annotated[str | None, BeforeValidator(_iso_or_none)]
NormalizedIsoDate = Annotated[str | None, BeforeValidator(_iso_if_parseable)]


class EntityRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
        coerce_numbers_to_str=True,
    )

    kind: ClassVar[DataType]

    id: str | None = None
    status: str | None = None


class AuditedRecord(EntityRecord):
    created_by: str | None = None
    created_at: IsoDate = None
    modified_by: str | None = None
    modified_at: IsoDate = None


class BusinessContact(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    business_name: str | None = None
    contact_role: str | None = None
    email: str | None = None
    phone_number: str | None = None
    country_geo_id: str | None = None
    country: str | None = None
    state_province_geo_id: str | None = None
    state: str | None = None
    city: str | None = None
    physical_location_address: str | None = None
    zip_code: str | None = None


class ItemRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.ITEMS

    product_id: str | None = None
    small_image_url: str | None = None
    item: str | None = None
    gtin: str | None = None
    vendor: str | None = None
    item_number: str | None = None
    item_image: str | None = None


class VendorRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.VENDORS

    supplier_id: str | None = None
    vendor: str | None = None
    address: str | None = None
    tel: str | None = None
    email: str | None = None
    gcp: str | None = None
    gln: str | None = None
    vendor_number: str | None = None
    preferred_currency_uom_id: str | None = None


class WarehouseRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.WAREHOUSES

    facility_id: str | None = None
    warehouse: str | None = None
    address: str | None = None
    warehouse_number: str | None = None
    business_contacts: list[BusinessContact] = Field(default_factory=list)


class LocationRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.LOCATIONS

    facility_id: str | None = None
    location_seq_id: str | None = None
    location: str | None = None
    location_number: str | None = None
    warehouse: str | None = None


class PurchaseOrderRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.PROCUREMENTS

    order_id: str | None = None
    po_number: str | None = None
    order_date: IsoDate = None
    order_status: str | None = None
    vendor: str | None = None


class ReceivingRecord(EntityRecord):
    kind: ClassVar[DataType] = DataType.RECEIVINGS

    document_id: str | None = None
    receiving_number: str | None = None
    po: str | None = Field(default=None, alias='PO')
    receiving_date: NormalizedIsoDate = None
    vendor: str | None = None


class UserRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.USERS

    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    user_number: str | None = None
    roles: str | None = None


class RoleRecord(AuditedRecord):
    kind: ClassVar[DataType] = DataType.ROLES

    role: str | None = None
    description: str | None = None
    permissions: str | None = None
    permission_list: list[str] = Field(default_factory=list)


RECORD_TYPES: dict[DataType, type[EntityRecord]] = {
    DataType.ITEMS: ItemRecord,
    DataType.VENDORS: VendorRecord,
    DataType.WAREHOUSES: WarehouseRecord,
    DataType.LOCATIONS: LocationRecord,
    DataType.PROCUREMENTS: PurchaseOrderRecord,
    DataType.RECEIVINGS: ReceivingRecord,
    DataType.USERS: UserRecord,
    DataType.ROLES: RoleRecord,
}

_ADAPTERS: dict[DataType, TypeAdapter] = {
    data_type: TypeAdapter(list[model]) for data_type, model in RECORD_TYPES.items()
}


def validate_collection(data_type: DataType | str, raw: Any) -> list[EntityRecord]:
    data_type = DataType(data_type)
    try:
        return _ADAPTERS[data_type].validate_python(raw)
    except ValidationError as exc:
        raise SchemaValidationError(data_type.value, str(exc)) from exc


def validate_record(data_type: DataType | str, raw: Any) -> EntityRecord:
    data_type = DataType(data_type)
    try:
        return RECORD_TYPES[data_type].model_validate(raw)
    except ValidationError as exc:
        raise SchemaValidationError(data_type.value, str(exc)) from exc
