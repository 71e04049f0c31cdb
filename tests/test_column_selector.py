from __future__ import annotations

import unittest

from backoffice.tables.column_selector import ColumnSelector, FilterColumnChooser
from backoffice.tables.columns import column
from backoffice.tables.engine import DataTable


def _table() -> DataTable:
    rows = [
        {'id': '1', 'vendor': 'Acme', 'status': 'Active'},
        {'id': '2', 'vendor': 'Borealis', 'status': 'Disabled'},
        {'id': '3', 'vendor': 'Acme', 'status': ''},
    ]
    columns = [
        column('select', '', hideable=False, sortable=False),
        column('vendor', 'Vendor'),
        column('status', 'Status'),
        column('status', 'Status (again)'),
    ]
    return DataTable(rows, columns, get_row_id=lambda record: record['id'])


class ColumnSelectorTests(unittest.TestCase):
    def test_lists_each_hideable_column_once(self) -> None:
        selector = ColumnSelector(_table())

        self.assertEqual([option.value for option in selector.options()], ['vendor', 'status'])

    def test_query_narrows_options_by_header(self) -> None:
        selector = ColumnSelector(_table())

        self.assertEqual([option.value for option in selector.options('  VEND ')], ['vendor'])

    def test_toggle_hides_and_shows_column(self) -> None:
        table = _table()
        selector = ColumnSelector(table)

        selector.toggle('vendor')
        self.assertFalse(table.is_column_visible('vendor'))
        self.assertFalse(selector.options()[0].checked)

        selector.set_visible('vendor', True)
        self.assertTrue(table.is_column_visible('vendor'))

    def test_non_hideable_columns_stay_visible(self) -> None:
        table = _table()

        ColumnSelector(table).set_visible('select', False)

        self.assertTrue(table.is_column_visible('select'))


class FilterColumnChooserTests(unittest.TestCase):
    def test_active_filters_are_checked_and_locked(self) -> None:
        table = _table()
        chooser = FilterColumnChooser(table, ['vendor', 'status', 'unknown'])

        table.set_filter('status', ['Active'])
        options = {option.value: option for option in chooser.options()}

        self.assertEqual(sorted(options), ['status', 'vendor'])
        self.assertTrue(options['status'].checked)
        self.assertTrue(options['status'].disabled)
        self.assertFalse(options['vendor'].disabled)

    def test_facets_are_distinct_non_empty_values(self) -> None:
        chooser = FilterColumnChooser(_table(), ['vendor', 'status'])

        self.assertEqual(chooser.facets('vendor'), ['Acme', 'Borealis'])
        self.assertEqual(chooser.facets('status'), ['Active', 'Disabled'])
        with self.assertRaises(KeyError):
            chooser.facets('id')


if __name__ == '__main__':
    unittest.main()
