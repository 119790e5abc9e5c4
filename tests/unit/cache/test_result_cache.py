"""Tests for FIFO result cache eviction and key construction."""

from __future__ import annotations

import unittest

from smartsearch.cache import CacheKey, ResultCache


def _key(query: str, page: int = 0, filters: tuple[str, ...] = (), generation: int = 0) -> CacheKey:
    return CacheKey.build(query, page, filters, generation)


class ResultCacheTests(unittest.TestCase):
    def test_get_returns_none_on_miss(self) -> None:
        cache: ResultCache[str] = ResultCache(2)
        self.assertIsNone(cache.get(_key("a")))

    def test_evicts_oldest_inserted_entry_even_after_reads(self) -> None:
        cache: ResultCache[str] = ResultCache(2)
        cache.put(_key("a"), ["A"])
        cache.put(_key("b"), ["B"])
        self.assertEqual(cache.get(_key("a")), ["A"])

        cache.put(_key("c"), ["C"])

        self.assertNotIn(_key("a"), cache)
        self.assertIn(_key("b"), cache)
        self.assertEqual(cache.keys(), [_key("b"), _key("c")])

    def test_replacing_existing_key_keeps_its_insertion_slot(self) -> None:
        cache: ResultCache[str] = ResultCache(2)
        cache.put(_key("a"), ["A"])
        cache.put(_key("b"), ["B"])
        cache.put(_key("a"), ["A2"])
        cache.put(_key("c"), ["C"])

        self.assertIsNone(cache.get(_key("a")))
        self.assertEqual(cache.get(_key("b")), ["B"])
        self.assertEqual(cache.get(_key("c")), ["C"])

    def test_zero_capacity_disables_caching(self) -> None:
        cache: ResultCache[str] = ResultCache(0)
        cache.put(_key("a"), ["A"])
        self.assertEqual(len(cache), 0)
        self.assertIsNone(cache.get(_key("a")))

    def test_negative_capacity_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ResultCache(-1)

    def test_stored_and_returned_lists_are_copies(self) -> None:
        cache: ResultCache[str] = ResultCache(2)
        source = ["A"]
        cache.put(_key("a"), source)
        source.append("mutated")
        returned = cache.get(_key("a"))
        returned.append("also mutated")
        self.assertEqual(cache.get(_key("a")), ["A"])

    def test_clear_drops_everything(self) -> None:
        cache: ResultCache[str] = ResultCache(3)
        cache.put(_key("a"), ["A"])
        cache.put(_key("b"), ["B"])
        cache.clear()
        self.assertEqual(len(cache), 0)


class CacheKeyTests(unittest.TestCase):
    def test_filter_keys_are_sorted(self) -> None:
        self.assertEqual(_key("q", filters=("b", "a")), _key("q", filters=("a", "b")))
        self.assertEqual(_key("q", filters=("b", "a")).filter_keys, ("a", "b"))

    def test_generation_distinguishes_same_filter_membership(self) -> None:
        self.assertNotEqual(_key("q", filters=("k",), generation=1), _key("q", filters=("k",), generation=3))

    def test_separator_characters_cannot_collide(self) -> None:
        self.assertNotEqual(_key("a_1", page=0), _key("a", page=1))
        self.assertNotEqual(_key("x", filters=("a,b",)), _key("x", filters=("a", "b")))


if __name__ == "__main__":
    unittest.main()
