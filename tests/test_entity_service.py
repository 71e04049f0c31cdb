from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from backoffice.config import settings
from backoffice.errors import SchemaValidationError
from backoffice.services.entity_service import (
    EntityService,
    join_address,
    project_item,
    project_role,
    project_user,
    project_warehouse,
)
from backoffice.services.upstream_client import AUTH


class ProjectionTests(unittest.TestCase):
    def test_item_projection_keeps_raw_fields(self) -> None:
        row = project_item({'productId': 'P1', 'productName': 'Kale', 'supplierName': 'Acme', 'internalId': 'K-1', 'active': 'Y'})

        self.assertEqual(row['id'], 'P1')
        self.assertEqual(row['item'], 'Kale')
        self.assertEqual(row['itemNumber'], 'K-1')
        self.assertEqual(row['status'], 'Activated')
        self.assertEqual(row['productName'], 'Kale')

    def test_raw_fields_win_on_collision(self) -> None:
        row = project_item({'productId': 'P1', 'status': 'Pending'})

        self.assertEqual(row['status'], 'Pending')

    def test_warehouse_address_comes_from_first_contact(self) -> None:
        row = project_warehouse(
            {
                'facilityId': 'F1',
                'facilityName': 'North DC',
                'active': 'N',
                'businessContacts': [{'physicalLocationAddress': '1 Main St', 'city': 'Salinas', 'state': 'CA', 'zipCode': '93901'}],
            }
        )

        self.assertEqual(row['address'], '1 Main St, Salinas, CA, 93901')
        self.assertEqual(row['status'], 'Disabled')

    def test_join_address_tolerates_missing_contacts(self) -> None:
        self.assertEqual(join_address(None), '')
        self.assertEqual(join_address([None]), '')
        self.assertEqual(join_address('1 Main St'), '')

    def test_user_projection_joins_group_names(self) -> None:
        row = project_user(
            {
                'username': 'jane@example.com',
                'email': 'old@example.com',
                'employeeNumber': 'E7',
                'enabled': True,
                'groups': [{'groupName': 'Buyers'}, {'groupName': 'QA'}],
            }
        )

        self.assertEqual(row['id'], 'jane@example.com')
        self.assertEqual(row['email'], 'jane@example.com')
        self.assertEqual(row['roles'], 'Buyers, QA')
        self.assertEqual(row['status'], 'Active')

    def test_user_projection_skips_groups_that_are_not_objects(self) -> None:
        row = project_user({'username': 'jane@example.com', 'groups': ['Buyers', {'groupName': 'QA'}, 7]})

        self.assertEqual(row['roles'], 'QA')

    def test_role_projection_lists_leaf_permissions(self) -> None:
        row = project_role({'id': 5, 'groupName': 'Buyers', 'enabled': False, 'permissions': ['Items', 'Items_Read', 'Items_Update']})

        self.assertEqual(row['id'], '5')
        self.assertEqual(row['role'], 'Buyers')
        self.assertEqual(row['permissions'], 'Items_Read, Items_Update')
        self.assertEqual(row['permissionList'], ['Items', 'Items_Read', 'Items_Update'])
        self.assertEqual(row['status'], 'Disabled')


class EntityServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.service = EntityService(self.client)

    def test_items_are_read_from_paged_content(self) -> None:
        self.client.get.return_value = {'content': [{'productId': 'P1'}, {'productId': 'P2'}]}

        rows = self.service.get_items()

        self.client.get.assert_called_once_with('/BffRawItems', params={'size': settings.fetch_page_size})
        self.assertEqual([row['id'] for row in rows], ['P1', 'P2'])

    def test_warehouses_are_scoped_to_owner(self) -> None:
        self.client.get.return_value = {'content': []}

        self.service.get_warehouses()

        params = self.client.get.call_args.kwargs['params']
        self.assertEqual(params['ownerPartyId'], settings.owner_party_id)

    def test_locations_accept_a_bare_list(self) -> None:
        self.client.get.return_value = [{'locationSeqId': 'L1', 'facilityName': 'North DC'}]

        rows = self.service.get_locations()

        self.assertEqual(rows[0]['warehouse'], 'North DC')

    def test_enabled_roles_filter_is_sent_as_lowercase_flag(self) -> None:
        self.client.get.return_value = []

        self.service.get_roles(enabled=True)

        self.client.get.assert_called_once_with('/api/groups', base=AUTH, params={'enabled': 'true'})

    def test_role_members_are_usernames(self) -> None:
        self.client.get.return_value = [{'username': 'a@example.com'}, {'email': 'no-name'}]

        self.assertEqual(self.service.get_role_members('5'), ['a@example.com'])

    def test_entries_that_are_not_objects_are_rejected(self) -> None:
        self.client.get.return_value = {'content': ['not-a-record']}

        with self.assertRaises(SchemaValidationError) as caught:
            self.service.get_items()

        self.assertEqual(caught.exception.kind, 'items')

    def test_scalar_response_is_rejected(self) -> None:
        self.client.get.return_value = 42

        with self.assertRaises(SchemaValidationError):
            self.service.get_users()

    def test_role_detail_with_scalar_permissions_is_rejected(self) -> None:
        self.client.get.return_value = {'id': 5, 'groupName': 'Buyers', 'permissions': 'Items_Read'}

        with self.assertRaises(SchemaValidationError):
            self.service.get_role('5')


if __name__ == '__main__':
    unittest.main()
