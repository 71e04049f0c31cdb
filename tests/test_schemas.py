from __future__ import annotations

import unittest

from backoffice.errors import FormValidationError, SchemaValidationError
from backoffice.schemas.forms import ItemForm, RoleForm, UserForm, WarehouseForm, parse_form
from backoffice.schemas.records import DataType, ItemRecord, ReceivingRecord, validate_collection, validate_record


class ParseFormTests(unittest.TestCase):
    def test_blank_required_fields_use_field_messages(self) -> None:
        with self.assertRaises(FormValidationError) as ctx:
            parse_form(RoleForm, {'groupName': '   ', 'permissions': []})

        self.assertEqual(
            ctx.exception.field_errors,
            {'group_name': 'Role is required', 'permissions': 'Permissions is required'},
        )

    def test_validator_messages_drop_pydantic_prefix(self) -> None:
        with self.assertRaises(FormValidationError) as ctx:
            parse_form(WarehouseForm, {'facilityName': 'North DC', 'gln': '12345'})

        self.assertEqual(ctx.exception.field_errors, {'gln': 'Invalid GLN format'})

    def test_user_name_must_be_an_email(self) -> None:
        data = {'username': 'jane', 'firstName': 'Jane', 'lastName': 'Doe', 'roles': ['3']}

        with self.assertRaises(FormValidationError) as ctx:
            parse_form(UserForm, data)

        self.assertEqual(ctx.exception.field_errors, {'username': 'Invalid email format'})

    def test_gross_weight_must_be_positive(self) -> None:
        data = {
            'productName': 'Carrots',
            'supplierId': 'S1',
            'internalId': 'IT-1',
            'caseUomId': 'BOX',
            'quantityIncluded': '0',
            'quantityUomId': 'LB',
        }

        with self.assertRaises(FormValidationError) as ctx:
            parse_form(ItemForm, data)

        self.assertEqual(ctx.exception.field_errors, {'quantity_included': 'Gross weight must be greater than 0'})

    def test_valid_form_serializes_to_camel_case_payload(self) -> None:
        parsed = parse_form(
            WarehouseForm,
            {'facility_name': ' North DC ', 'gln': '1234567890123', 'unknown': 'dropped', 'internalId': ''},
        )

        self.assertEqual(
            parsed.to_payload(),
            {'facilityName': 'North DC', 'gln': '1234567890123', 'internalId': None},
        )


class RecordValidationTests(unittest.TestCase):
    def test_collection_accepts_projected_rows(self) -> None:
        records = validate_collection(
            DataType.ITEMS,
            [{'id': 42, 'item': 'Carrots', 'itemNumber': 'IT-1', 'status': 'Activated', 'extra': {'a': 1}}],
        )

        self.assertIsInstance(records[0], ItemRecord)
        self.assertEqual(records[0].id, '42')
        self.assertEqual(records[0].item_number, 'IT-1')

    def test_wrong_shape_is_rejected_at_the_boundary(self) -> None:
        with self.assertRaises(SchemaValidationError) as ctx:
            validate_collection('items', {'content': []})

        self.assertEqual(ctx.exception.kind, 'items')

        with self.assertRaises(SchemaValidationError):
            validate_collection(DataType.VENDORS, [{'vendor': {'nested': True}}])

    def test_dates_are_normalized_to_iso_strings(self) -> None:
        record = validate_record(
            DataType.RECEIVINGS,
            {'PO': 'PO-7', 'receivingDate': 0},
        )

        self.assertIsInstance(record, ReceivingRecord)
        self.assertEqual(record.po, 'PO-7')
        self.assertEqual(record.receiving_date, '1970-01-01T00:00:00+00:00')

    def test_unparseable_receiving_date_is_kept(self) -> None:
        record = validate_record(DataType.RECEIVINGS, {'receivingDate': 'yesterday'})

        self.assertEqual(record.receiving_date, 'yesterday')


if __name__ == '__main__':
    unittest.main()
