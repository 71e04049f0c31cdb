from __future__ import annotations

import unittest
from types import SimpleNamespace

from backoffice.tables.columns import column
from backoffice.tables.engine import DataTable, SortDirection


def _numbered_rows(count: int) -> list[dict]:
    return [{'id': str(index), 'name': f'Row {index:02d}', 'status': 'Active'} for index in range(1, count + 1)]


def _table(rows, **kwargs) -> DataTable:
    columns = kwargs.pop(
        'columns',
        [
            column('name', 'Name'),
            column('status', 'Status'),
            column('qty', 'Qty'),
        ],
    )
    return DataTable(rows, columns, get_row_id=lambda record: record.get('id'), **kwargs)


class DataTableFilterTests(unittest.TestCase):
    def test_status_filter_keeps_only_matching_rows(self) -> None:
        table = _table([{'id': '1', 'status': 'Active'}, {'id': '2', 'status': 'Disabled'}])

        table.set_filter('status', 'Active')

        self.assertEqual([row.original for row in table.page_rows()], [{'id': '1', 'status': 'Active'}])

    def test_adding_filters_never_grows_the_result(self) -> None:
        rows = [
            {'id': '1', 'name': 'Apples', 'status': 'Active'},
            {'id': '2', 'name': 'Apricots', 'status': 'Disabled'},
            {'id': '3', 'name': 'Bananas', 'status': 'Active'},
        ]
        table = _table(rows)

        table.set_filter('name', 'ap')
        first = len(table.filtered_rows())
        table.set_filter('status', ['Active'])
        second = len(table.filtered_rows())

        self.assertEqual(first, 2)
        self.assertLessEqual(second, first)
        self.assertEqual([row.id for row in table.filtered_rows()], ['1'])

    def test_empty_filter_value_clears_the_filter(self) -> None:
        table = _table(_numbered_rows(3))
        table.set_filter('status', ['Disabled'])
        self.assertEqual(table.filtered_rows(), [])

        table.set_filter('status', [])

        self.assertEqual(len(table.filtered_rows()), 3)
        self.assertFalse(table.is_filtered())

    def test_failing_filter_predicate_is_a_non_match(self) -> None:
        def explode(_value, _filter):
            raise RuntimeError('bad predicate')

        table = _table(
            _numbered_rows(2),
            columns=[column('name', 'Name', filter_fn=explode)],
        )

        table.set_filter('name', 'Row')

        self.assertEqual(table.filtered_rows(), [])

    def test_filter_on_unknown_column_matches_nothing(self) -> None:
        table = _table(_numbered_rows(2))

        table.set_filter('missing', 'x')

        self.assertEqual(table.filtered_rows(), [])

    def test_global_search_spans_visible_columns(self) -> None:
        table = _table(
            [
                {'id': '1', 'name': 'Flour', 'status': 'Active'},
                {'id': '2', 'name': 'Sugar', 'status': 'Disabled'},
            ]
        )

        table.set_global_filter('disab')
        self.assertEqual([row.id for row in table.filtered_rows()], ['2'])

        table.set_column_visibility('status', False)
        self.assertEqual(table.filtered_rows(), [])

    def test_filter_change_returns_to_first_page(self) -> None:
        table = _table(_numbered_rows(30), page_size=10)
        table.set_page(2)

        table.set_filter('name', 'Row')

        self.assertEqual(table.state.page_index, 0)


class DataTablePaginationTests(unittest.TestCase):
    def test_page_shows_filtered_and_sorted_rows(self) -> None:
        rows = [{'id': str(index), 'qty': index, 'status': 'Active' if index % 2 else 'Disabled'} for index in range(1, 13)]
        table = _table(rows, page_size=3)

        table.set_filter('status', ['Active'])
        table.set_sort('qty', SortDirection.DESC)

        self.assertEqual([row.original['qty'] for row in table.page_rows()], [11, 9, 7])
        self.assertEqual(table.page_count(), 2)
        table.set_page(1)
        self.assertEqual([row.original['qty'] for row in table.page_rows()], [5, 3, 1])

    def test_last_page_may_be_short(self) -> None:
        table = _table(_numbered_rows(12), page_size=5)

        table.set_page(2)

        self.assertEqual(len(table.page_rows()), 2)
        self.assertFalse(table.can_next_page())
        self.assertTrue(table.can_previous_page())

    def test_changing_page_size_resets_page_index(self) -> None:
        table = _table(_numbered_rows(20), page_size=10)
        table.set_page(1)
        self.assertEqual(table.page_rows()[0].id, '11')

        table.set_page_size(5)

        self.assertEqual(table.state.page_index, 0)
        self.assertEqual(table.state.page_size, 5)
        self.assertEqual([row.id for row in table.page_rows()], ['1', '2', '3', '4', '5'])

    def test_page_size_must_be_positive(self) -> None:
        table = _table(_numbered_rows(2))

        with self.assertRaises(ValueError):
            table.set_page_size(0)

    def test_set_page_clamps_to_available_pages(self) -> None:
        table = _table(_numbered_rows(7), page_size=5)

        table.set_page(9)
        self.assertEqual(table.state.page_index, 1)
        table.set_page(-3)
        self.assertEqual(table.state.page_index, 0)


class DataTableSortTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rows = [
            {'id': 'a', 'name': 'Pear', 'qty': 3},
            {'id': 'b', 'name': 'Apple', 'qty': 1},
            {'id': 'c', 'name': 'Fig', 'qty': 3},
            {'id': 'd', 'name': 'Kiwi', 'qty': None},
            {'id': 'e', 'name': 'Date', 'qty': 2},
        ]

    def test_cycling_three_times_returns_to_unsorted(self) -> None:
        table = _table(self.rows)
        original = [row.id for row in table.sorted_rows()]

        table.set_sort('qty')
        self.assertEqual(table.current_sort('qty'), SortDirection.ASC)
        table.set_sort('qty')
        self.assertEqual(table.current_sort('qty'), SortDirection.DESC)
        table.set_sort('qty')

        self.assertIsNone(table.current_sort('qty'))
        self.assertEqual([row.id for row in table.sorted_rows()], original)

    def test_sort_is_stable_and_missing_values_go_last(self) -> None:
        table = _table(self.rows)

        table.set_sort('qty', SortDirection.ASC)
        self.assertEqual([row.id for row in table.sorted_rows()], ['b', 'e', 'a', 'c', 'd'])

        table.set_sort('qty', SortDirection.DESC)
        self.assertEqual([row.id for row in table.sorted_rows()], ['a', 'c', 'e', 'b', 'd'])

    def test_applying_the_same_sort_twice_is_idempotent(self) -> None:
        table = _table(self.rows)

        table.set_sort('name', SortDirection.ASC)
        once = [row.id for row in table.sorted_rows()]
        table.set_sort('name', SortDirection.ASC)

        self.assertEqual([row.id for row in table.sorted_rows()], once)
        self.assertEqual(once, ['b', 'e', 'c', 'd', 'a'])

    def test_comparator_errors_leave_rows_in_place(self) -> None:
        def broken(_left, _right):
            raise TypeError('cannot compare')

        table = _table(self.rows, columns=[column('qty', 'Qty', comparator=broken)])

        table.set_sort('qty', SortDirection.ASC)

        self.assertEqual([row.id for row in table.sorted_rows()], ['a', 'b', 'c', 'e', 'd'])

    def test_non_sortable_columns_ignore_sort_requests(self) -> None:
        table = _table(self.rows, columns=[column('qty', 'Qty', sortable=False)])

        table.set_sort('qty')

        self.assertEqual(table.state.sorting, ())


class DataTableSelectionTests(unittest.TestCase):
    def test_toggle_twice_restores_selection(self) -> None:
        table = _table(_numbered_rows(3))
        table.set_row_selected('2', True)
        before = dict(table.state.row_selection)

        table.toggle_row_selection('3')
        table.toggle_row_selection('3')

        self.assertEqual(table.state.row_selection, before)

    def test_selection_listener_fires_only_on_change(self) -> None:
        table = _table(_numbered_rows(3))
        changes = []
        table.on_selection_change(changes.append)

        table.set_row_selected('1', True)
        table.set_row_selected('1', True)
        table.set_row_selected('1', False)

        self.assertEqual(changes, [{'1': True}, {}])

    def test_select_all_on_page_only_touches_current_page(self) -> None:
        table = _table(_numbered_rows(8), page_size=5)

        table.toggle_all_on_page(True)

        self.assertTrue(table.is_all_page_selected())
        self.assertEqual(sorted(table.state.row_selection), ['1', '2', '3', '4', '5'])
        table.set_page(1)
        self.assertFalse(table.is_some_page_selected())

    def test_refresh_keeps_selection_for_surviving_ids(self) -> None:
        table = _table(_numbered_rows(3))
        table.set_row_selected('1', True)
        table.set_row_selected('3', True)

        table.sync_rows([{'id': '3', 'name': 'Row 03'}, {'id': '4', 'name': 'Row 04'}])

        self.assertEqual(table.state.row_selection, {'3': True})
        self.assertEqual([row.id for row in table.selected_rows()], ['3'])

    def test_rows_without_id_fall_back_to_index(self) -> None:
        table = _table([{'name': 'first'}, {'id': '', 'name': 'second'}])

        self.assertEqual([row.id for row in table.rows], ['0', '1'])


class DataTableEventTests(unittest.TestCase):
    def test_activate_row_notifies_listeners_with_snapshot(self) -> None:
        table = _table(_numbered_rows(2), data_type='items')
        events = []
        table.on_activate(events.append)

        event = table.activate_row('2')

        self.assertEqual(events, [event])
        self.assertEqual(event.snapshot, {'id': '2', 'name': 'Row 02', 'status': 'Active'})
        self.assertEqual(event.data_type, 'items')

    def test_activate_unknown_row_is_ignored(self) -> None:
        table = _table(_numbered_rows(2))
        events = []
        table.on_activate(events.append)

        self.assertIsNone(table.activate_row('99'))
        self.assertEqual(events, [])

    def test_refresh_returns_callback_result(self) -> None:
        marker = SimpleNamespace()
        table = _table([], on_refresh=lambda: marker)

        self.assertIs(table.refresh(), marker)

    def test_cell_errors_render_as_empty_text(self) -> None:
        def explode(_record):
            raise KeyError('missing')

        table = _table([])
        descriptor = column('name', 'Name', cell=explode)

        self.assertEqual(table.cell_text({'name': 'x'}, descriptor), '')
        self.assertEqual(table.cell_text({}, column('name', 'Name')), '')

    def test_hidden_columns_are_not_rendered(self) -> None:
        table = _table(_numbered_rows(1))

        table.toggle_column_visibility('status')

        self.assertEqual([descriptor.key for descriptor in table.visible_columns()], ['name', 'qty'])


if __name__ == '__main__':
    unittest.main()
