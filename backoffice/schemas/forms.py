"""Edit-form schemas.

These mirror the backend's write payloads (camelCase on the wire) and carry
the validation rules the side panel enforces before anything is sent.
``parse_form`` is the only entry point the panel uses; it turns pydantic
failures into a flat field -> message mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from backoffice.errors import FormValidationError
from backoffice.schemas.patterns import EMAIL_PATTERN, GLN_PATTERN
from backoffice.schemas.records import BusinessContact, DataType


class EntityForm(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )

    # field name -> message shown when the field is blank
    required_messages: ClassVar[dict[str, str]] = {}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


def _check_gln(value: str | None) -> str | None:
    if value and not GLN_PATTERN.match(value):
        raise ValueError('Invalid GLN format')
    return value


class ItemForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {
        'product_name': 'Item name is required',
        'supplier_id': 'Vendor is required',
        'internal_id': 'Item number is required',
        'case_uom_id': 'Packaging type is required',
        'quantity_included': 'Gross weight is required',
        'quantity_uom_id': 'Weight units is required',
    }

    product_id: str | None = None
    product_name: str
    gtin: str | None = None
    supplier_id: str
    supplier_name: str | None = None
    internal_id: str
    case_uom_id: str
    quantity_included: float
    quantity_uom_id: str
    individuals_per_package: float | None = None
    product_weight: float | None = None
    brand_name: str | None = None
    produce_variety: str | None = None
    hs_code: str | None = None
    organic_certifications: str | None = None
    description: str | None = None
    dimensions_description: str | None = None
    material_composition_description: str | None = None
    country_of_origin: str | None = None
    certification_codes: str | None = None
    shelf_life_description: str | None = None
    handling_instructions: str | None = None
    storage_conditions: str | None = None
    active: str | None = None
    small_image_url: str | None = None

    @field_validator('quantity_included')
    @classmethod
    def _positive_gross_weight(cls, value: float) -> float:
        if value <= 0:
            raise ValueError('Gross weight must be greater than 0')
        return value


class VendorForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {
        'supplier_short_name': 'Vendor name is required',
        'supplier_name': 'Full name is required',
        'telephone': 'Tel is required',
    }

    supplier_id: str | None = None
    supplier_short_name: str
    supplier_name: str
    address: str | None = None
    telephone: str
    email: str | None = None
    gs1_company_prefix: str | None = None
    gln: str | None = None
    internal_id: str | None = None
    active: str | None = None
    preferred_currency_uom_id: str | None = None
    tax_id: str | None = None
    supplier_type_enum_id: str | None = None
    bank_account_information: str | None = None
    certification_codes: str | None = None
    supplier_product_type_description: str | None = None
    tpa_number: str | None = None
    web_site: str | None = None
    business_contacts: list[BusinessContact] = Field(default_factory=list)


class WarehouseForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {'facility_name': 'Warehouse name is required'}

    owner_party_id: str | None = None
    facility_id: str | None = None
    facility_name: str
    gln: str | None = None
    internal_id: str | None = None
    facility_size: float | None = None
    active: str | None = None
    business_contacts: list[BusinessContact] = Field(default_factory=list)

    @field_validator('gln')
    @classmethod
    def _valid_gln(cls, value: str | None) -> str | None:
        return _check_gln(value)


class LocationForm(EntityForm):
    facility_id: str | None = None
    location_seq_id: str | None = None
    location_name: str | None = None
    gln: str | None = None
    location_code: str | None = None
    active: str | None = None
    facility_name: str | None = None
    area_id: str | None = None
    description: str | None = None


class PurchaseOrderForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {
        'order_id': 'PO Number is required',
        'supplier_id': 'Vendor is required',
    }

    order_id: str
    order_date: str | None = None
    status_id: str | None = None
    vendor_gcp: str | None = None
    supplier_id: str
    supplier_name: str | None = None
    total_quantity: float | None = None
    total_weight: float | None = Field(default=None, alias='totalweight')
    memo: str | None = None
    contact_description: str | None = None


class ReceivingForm(EntityForm):
    document_id: str | None = None
    primary_order_id: str | None = None
    party_id_from: str | None = None
    party_name_from: str | None = None
    destination_facility_id: str | None = None
    destination_facility_name: str | None = None
    status_id: str | None = None
    received_quantity: float | None = None
    received_weight: float | None = None
    received_at: str | None = None


class UserForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {
        'username': 'Email is required',
        'first_name': 'First name is required',
        'last_name': 'Last name is required',
        'roles': 'Roles is required',
    }

    id: str | None = None
    username: str
    first_name: str
    last_name: str
    email: str | None = None
    status: str | None = None
    employee_number: str | None = None
    roles: list[str]
    group_ids: list[int] | None = None
    department_id: str | None = None
    direct_manager_name: str | None = None
    telephone_number: str | None = None
    mobile_number: str | None = None
    employee_type: str | None = None
    from_date: str | None = None
    employee_contract_number: str | None = None
    certification_description: str | None = None
    skill_set_description: str | None = None
    language_skills: str | None = None
    associated_gln: str | None = None
    profile_image_url: str | None = None

    @field_validator('associated_gln')
    @classmethod
    def _valid_associated_gln(cls, value: str | None) -> str | None:
        return _check_gln(value)

    @field_validator('username')
    @classmethod
    def _username_is_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError('Invalid email format')
        return value


class RoleForm(EntityForm):
    required_messages: ClassVar[dict[str, str]] = {
        'group_name': 'Role is required',
        'permissions': 'Permissions is required',
    }

    id: str | None = None
    group_name: str
    description: str | None = None
    permissions: list[str]
    status: str | None = None


FORM_TYPES: dict[DataType, type[EntityForm]] = {
    DataType.ITEMS: ItemForm,
    DataType.VENDORS: VendorForm,
    DataType.WAREHOUSES: WarehouseForm,
    DataType.LOCATIONS: LocationForm,
    DataType.PROCUREMENTS: PurchaseOrderForm,
    DataType.RECEIVINGS: ReceivingForm,
    DataType.USERS: UserForm,
    DataType.ROLES: RoleForm,
}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _clean(form_cls: type[EntityForm], data: Mapping[str, Any]) -> dict[str, Any]:
    by_alias = {field.alias or name: name for name, field in form_cls.model_fields.items()}
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        name = by_alias.get(key, key)
        if name not in form_cls.model_fields:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == '':
                value = None
        cleaned[name] = value
    return cleaned


def parse_form(form_cls: type[EntityForm], data: Mapping[str, Any]) -> EntityForm:
    cleaned = _clean(form_cls, data)
    field_errors: dict[str, str] = {}
    for name, message in form_cls.required_messages.items():
        if _is_blank(cleaned.get(name)):
            field_errors[name] = message

    names_by_alias = {field.alias or name: name for name, field in form_cls.model_fields.items()}
    try:
        parsed = form_cls.model_validate(cleaned)
    except ValidationError as exc:
        for error in exc.errors():
            name = str(error['loc'][0]) if error['loc'] else '__root__'
            name = names_by_alias.get(name, name)
            if name in field_errors:
                continue
            message = error['msg']
            if message.startswith('Value error, '):
                message = message[len('Value error, ') :]
            field_errors[name] = message
        raise FormValidationError(field_errors) from exc

    if field_errors:
        raise FormValidationError(field_errors)
    return parsed
