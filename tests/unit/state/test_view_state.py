from __future__ import annotations

import unittest

from smartsearch.state import IndexedItem, ViewState, group_items, resolve_view_state


class ViewStateTests(unittest.TestCase):
    def test_loading_without_items(self) -> None:
        self.assertIs(resolve_view_state([], True, None, False, ""), ViewState.LOADING)

    def test_loading_with_stale_items_keeps_results(self) -> None:
        self.assertIs(resolve_view_state(["a"], True, None, True, "a"), ViewState.RESULTS)

    def test_error_wins_over_empty(self) -> None:
        self.assertIs(resolve_view_state([], False, RuntimeError("x"), True, "q"), ViewState.ERROR)
        self.assertIs(resolve_view_state(["a"], False, RuntimeError("x"), True, "q"), ViewState.ERROR)

    def test_empty_search_needs_a_query(self) -> None:
        self.assertIs(resolve_view_state([], False, None, True, "zzz"), ViewState.EMPTY_SEARCH)
        self.assertIs(resolve_view_state([], False, None, True, ""), ViewState.EMPTY)
        self.assertIs(resolve_view_state([], False, None, False, ""), ViewState.EMPTY)


class GroupItemsTests(unittest.TestCase):
    def test_groups_in_first_appearance_order_with_flat_indices(self) -> None:
        groups = group_items(["Apple", "Banana", "Avocado", "Blueberry", "Cherry"], lambda item: item[0])
        self.assertEqual([group.key for group in groups], ["A", "B", "C"])
        self.assertEqual(groups[0].entries, [IndexedItem(0, "Apple"), IndexedItem(2, "Avocado")])
        self.assertEqual(groups[1].items, ["Banana", "Blueberry"])

    def test_group_comparator_orders_keys(self) -> None:
        groups = group_items(
            ["Cherry", "Apple", "Banana"],
            lambda item: item[0],
            group_comparator=lambda a, b: (a > b) - (a < b),
        )
        self.assertEqual([group.key for group in groups], ["A", "B", "C"])
        self.assertEqual(groups[0].entries, [IndexedItem(1, "Apple")])

    def test_empty_input(self) -> None:
        self.assertEqual(group_items([], lambda item: item), [])


if __name__ == "__main__":
    unittest.main()
