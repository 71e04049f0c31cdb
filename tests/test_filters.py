from __future__ import annotations

import unittest
from datetime import date

from backoffice.tables.columns import column
from backoffice.tables.filters import (
    DateRange,
    column_passes,
    default_compare,
    is_empty_filter,
    matches_filter,
    sort_records,
)


class FilterMatchingTests(unittest.TestCase):
    def test_text_filter_is_case_insensitive_substring(self) -> None:
        self.assertTrue(matches_filter('Frozen Peas', 'peas'))
        self.assertFalse(matches_filter('Frozen Peas', 'corn'))
        self.assertFalse(matches_filter(None, 'x'))

    def test_collection_filter_matches_any_value(self) -> None:
        self.assertTrue(matches_filter('Active', ['Active', 'Disabled']))
        self.assertTrue(matches_filter(12, ['12']))
        self.assertFalse(matches_filter('Pending', ('Active',)))

    def test_date_range_is_inclusive(self) -> None:
        window = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))

        self.assertTrue(matches_filter('2024-03-01T08:00:00Z', window))
        self.assertTrue(matches_filter(date(2024, 3, 31), window))
        self.assertFalse(matches_filter('2024-04-01', window))
        self.assertFalse(matches_filter('not a date', window))

    def test_empty_filter_values(self) -> None:
        self.assertTrue(is_empty_filter(None))
        self.assertTrue(is_empty_filter(''))
        self.assertTrue(is_empty_filter([]))
        self.assertTrue(is_empty_filter(DateRange()))
        self.assertFalse(is_empty_filter(0))
        self.assertFalse(is_empty_filter(['Active']))

    def test_custom_filter_function_wins(self) -> None:
        descriptor = column('qty', 'Qty', filter_fn=lambda value, minimum: value >= minimum)

        self.assertTrue(column_passes({'qty': 5}, descriptor, 3))
        self.assertFalse(column_passes({'qty': 1}, descriptor, 3))
        # None >= int raises, which counts as a miss
        self.assertFalse(column_passes({}, descriptor, 3))


class SortRecordsTests(unittest.TestCase):
    def test_numbers_compare_numerically(self) -> None:
        self.assertLess(default_compare(2, 10), 0)
        self.assertGreater(default_compare('2', '10'), 0)

    def test_custom_comparator_is_used(self) -> None:
        by_length = column('name', 'Name', comparator=lambda a, b: len(a) - len(b))
        records = [{'name': 'ccc'}, {'name': 'a'}, {'name': 'bb'}]

        ordered = sort_records(records, by_length, descending=False)

        self.assertEqual([record['name'] for record in ordered], ['a', 'bb', 'ccc'])

    def test_key_of_sorts_wrapped_records(self) -> None:
        wrapped = [('x', {'qty': 3}), ('y', {'qty': None}), ('z', {'qty': 1})]

        ordered = sort_records(wrapped, column('qty', 'Qty'), descending=True, key_of=lambda item: item[1])

        self.assertEqual([name for name, _record in ordered], ['x', 'z', 'y'])


if __name__ == '__main__':
    unittest.main()
