from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, call

from backoffice.errors import CsrfTokenError
from backoffice.schemas.records import DataType
from backoffice.services.mutation_service import CSRF_SCOPE, MutationService
from backoffice.services.upstream_client import AUTH


class MutationServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.service = MutationService(self.client)

    def test_bulk_vendor_status_posts_ids(self) -> None:
        records = [SimpleNamespace(supplier_id='S1'), SimpleNamespace(supplier_id=None), SimpleNamespace(supplier_id='S2')]

        changed = self.service.bulk_set_status(DataType.VENDORS, records, active=False)

        self.assertEqual(changed, 2)
        self.client.request.assert_called_once_with('POST', '/BffSuppliers/batchDeactivateSuppliers', payload=['S1', 'S2'])

    def test_bulk_location_status_is_grouped_by_facility(self) -> None:
        records = [
            SimpleNamespace(facility_id='F1', location_seq_id='A'),
            SimpleNamespace(facility_id='F2', location_seq_id='B'),
            SimpleNamespace(facility_id='F1', location_seq_id='C'),
        ]

        changed = self.service.bulk_set_status('locations', records, active=True)

        self.assertEqual(changed, 3)
        self.assertEqual(
            self.client.put.call_args_list,
            [
                call('/BffFacilities/F1/Locations/batchActivateLocations', ['A', 'C']),
                call('/BffFacilities/F2/Locations/batchActivateLocations', ['B']),
            ],
        )

    def test_empty_selection_sends_nothing(self) -> None:
        self.assertEqual(self.service.set_status(DataType.ITEMS, [], active=True), 0)
        self.client.request.assert_not_called()

    def test_unsupported_types_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.service.bulk_set_status(DataType.ROLES, [], active=True)

    def test_auth_writes_refresh_csrf_first(self) -> None:
        self.service.add_role({'groupName': 'Buyers', 'permissions': ['Items_Read']})

        self.assertEqual(
            self.client.mock_calls[:2],
            [
                call.refresh_csrf(CSRF_SCOPE),
                call.request('POST', '/api/auth-srv/groups', base=AUTH, payload={'groupName': 'Buyers', 'permissions': ['Items_Read']}),
            ],
        )

    def test_missing_csrf_token_aborts_the_write(self) -> None:
        self.client.refresh_csrf.side_effect = CsrfTokenError('CSRF token input field not found')

        with self.assertRaises(CsrfTokenError):
            self.service.user_to_role('5', ['a@example.com'])

        self.client.request.assert_not_called()


if __name__ == '__main__':
    unittest.main()
