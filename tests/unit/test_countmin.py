"""
Unit tests for the Count-Min Sketch engine.
"""

import math
import random
import unittest
from collections import Counter

from probkit.algorithms.countmin import MAX_COUNTER, CountMinSketch
from probkit.core.errors import HashCatalogMiss, InvalidConfig
from probkit.core.hash import COUNTMIN_HASHES, HashName

THREE_ROWS = ["xxh3", "murmur2", "city"]


class TestCountMinSketch(unittest.TestCase):
    """Test cases for Count-Min Sketch."""

    def test_init(self):
        """Test initialization with valid and invalid parameters."""
        cms = CountMinSketch()
        self.assertEqual(cms.width, 8)
        self.assertEqual(cms.depth, len(COUNTMIN_HASHES))
        self.assertEqual(cms.hash_names, COUNTMIN_HASHES)

        cms = CountMinSketch(width=10, hash_names=THREE_ROWS)
        self.assertEqual(cms.depth, 3)
        self.assertEqual(len(cms.counters), 3)
        self.assertTrue(all(len(row) == 10 for row in cms.counters))

        with self.assertRaises(InvalidConfig):
            CountMinSketch(width=0)
        with self.assertRaises(InvalidConfig):
            CountMinSketch(width=8, hash_names=[])
        with self.assertRaises(HashCatalogMiss):
            CountMinSketch(width=8, hash_names=["xxh3", "missing"])

    def test_empty_sketch(self):
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        for item in ["x", "y", "", "anything at all"]:
            self.assertEqual(cms.estimate_frequency(item), 0)
            self.assertEqual(cms.query(item), 0)

    def test_every_row_touched(self):
        """One insertion increments exactly one counter in each row."""
        cms = CountMinSketch(width=8)
        cms.insert("hello")
        for row in cms.counters:
            self.assertEqual(sum(row), 1)

    def test_x_three_times(self):
        """Width 8, 3 rows: "x" inserted three times alone is counted exactly."""
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        for _ in range(3):
            cms.insert("x")
        self.assertEqual(cms.estimate_frequency("x"), 3)

    def test_x_three_times_with_others(self):
        """The estimate is >= 3, and == 3 if some row has no collision."""
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        others = [f"other-{i}" for i in range(5)]
        for _ in range(3):
            cms.insert("x")
        cms.insert_many(others)

        estimate = cms.estimate_frequency("x")
        self.assertGreaterEqual(estimate, 3)

        x_cells = [cell[:2] for cell in cms.probe("x").cells]
        clean_row = False
        for row, column in x_cells:
            colliders = [
                o for o in others if cms.probe(o).cells[row][1] == column
            ]
            if not colliders:
                clean_row = True
        if clean_row:
            self.assertEqual(estimate, 3)

    def test_never_underestimates(self):
        """Estimates are at least the true count for every element."""
        rng = random.Random(42)
        cms = CountMinSketch(width=16, hash_names=THREE_ROWS)
        true_counts = Counter()
        for _ in range(2000):
            item = f"item-{rng.randint(0, 199)}"
            cms.insert(item)
            true_counts[item] += 1

        for item, count in true_counts.items():
            self.assertGreaterEqual(cms.estimate_frequency(item), count)

        error_bound = cms.error_bounds()["max_error"]
        within = sum(
            1
            for item, count in true_counts.items()
            if cms.estimate_frequency(item) - count <= error_bound
        )
        # With probability 1 - e**-3 per item
        self.assertGreaterEqual(within / len(true_counts), 0.85)

    def test_batch_count(self):
        cms = CountMinSketch(width=100, hash_names=THREE_ROWS)
        cms.insert("A", count=5)
        cms.insert("B", count=3)
        cms.insert("A", count=2)
        self.assertGreaterEqual(cms.estimate_frequency("A"), 7)
        self.assertGreaterEqual(cms.estimate_frequency("B"), 3)
        self.assertEqual(cms.total_frequency, 10)
        self.assertEqual(cms.items_processed, 3)

        before = cms.counters
        with self.assertRaises(ValueError):
            cms.insert("D", count=-1)
        for bad_count in (1.5, "2", True):
            with self.assertRaises(TypeError):
                cms.insert("D", count=bad_count)
        # Rejected inserts leave every total untouched
        self.assertEqual(cms.counters, before)
        self.assertEqual(cms.total_frequency, 10)
        self.assertEqual(cms.items_processed, 3)

        cms.insert("E", count=0)
        self.assertEqual(cms.counters, before)
        self.assertEqual(cms.items_processed, 3)

    def test_empty_string(self):
        cms = CountMinSketch(width=16)
        cms.insert("")
        cms.insert("")
        self.assertGreaterEqual(cms.estimate_frequency(""), 2)
        self.assertEqual(cms.total_frequency, 2)

    def test_order_independence(self):
        items = [f"w{i % 30}" for i in range(150)]
        reference = CountMinSketch(width=12, hash_names=THREE_ROWS)
        reference.insert_many(items)

        rng = random.Random(3)
        for _ in range(5):
            shuffled = items[:]
            rng.shuffle(shuffled)
            cms = CountMinSketch(width=12, hash_names=THREE_ROWS)
            cms.insert_many(shuffled)
            self.assertEqual(cms.counters, reference.counters)

    def test_counters_monotone(self):
        cms = CountMinSketch(width=4, hash_names=THREE_ROWS)
        previous = cms.counters
        for i in range(50):
            cms.insert(f"k{i}")
            current = cms.counters
            for old_row, new_row in zip(previous, current):
                for old, new in zip(old_row, new_row):
                    self.assertGreaterEqual(new, old)
            previous = current

    def test_saturation(self):
        """Counters cap at MAX_COUNTER instead of wrapping around."""
        cms = CountMinSketch(width=4, hash_names=["xxh3", "city"])
        cms.insert("big", count=MAX_COUNTER)
        self.assertEqual(cms.estimate_frequency("big"), MAX_COUNTER)

        with self.assertLogs("probkit.algorithms.countmin", level="WARNING"):
            cms.insert("big")
        self.assertEqual(cms.estimate_frequency("big"), MAX_COUNTER)

        stats = cms.get_stats()
        self.assertEqual(stats["saturated_counters"], 2)
        self.assertEqual(stats["max_counter"], MAX_COUNTER)

    def test_probe(self):
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        cms.insert_many(["a", "b", "c", "a"])
        probe = cms.probe("a")
        self.assertEqual(len(probe.cells), 3)
        self.assertEqual(probe.estimate, cms.estimate_frequency("a"))
        self.assertEqual(probe.estimate, min(cell[2] for cell in probe.cells))

        min_row, min_column = probe.min_cell
        self.assertEqual(cms.counters[min_row][min_column], probe.estimate)
        # The first row achieving the minimum is reported
        first = next(cell for cell in probe.cells if cell[2] == probe.estimate)
        self.assertEqual(probe.min_cell, first[:2])

    def test_reconfigure(self):
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        cms.insert_many(["x", "y", "z"])

        cms.configure(width=16)
        self.assertEqual(cms.width, 16)
        self.assertEqual(cms.depth, 3)
        self.assertEqual(cms.estimate_frequency("x"), 0)
        self.assertEqual(cms.total_frequency, 0)

        cms.configure(hash_names=["farm"])
        self.assertEqual(cms.depth, 1)
        self.assertEqual(cms.hash_names, (HashName.FARM,))

        cms.insert("x")
        with self.assertRaises(InvalidConfig):
            cms.configure(width=0)
        self.assertEqual(cms.estimate_frequency("x"), 1)

        cms.clear()
        self.assertEqual(cms.estimate_frequency("x"), 0)
        self.assertEqual(cms.width, 16)

    def test_error_bounds(self):
        cms = CountMinSketch(width=1000, hash_names=COUNTMIN_HASHES[:5])
        bounds = cms.error_bounds()
        self.assertAlmostEqual(bounds["epsilon"], math.e / 1000, places=10)
        self.assertAlmostEqual(bounds["delta"], math.exp(-5), places=10)

        cms.insert("q", count=100)
        estimate, max_error = cms.estimate_frequency_error("q")
        self.assertGreaterEqual(estimate, 100)
        self.assertAlmostEqual(max_error, math.e / 1000 * 100)

    def test_heavy_hitters(self):
        cms = CountMinSketch(width=64, hash_names=THREE_ROWS)
        cms.insert("hot", count=50)
        for i in range(50):
            cms.insert(f"cold-{i}")

        hitters = cms.heavy_hitters(["hot", "cold-1", "cold-2"], threshold=0.3)
        self.assertIn("hot", hitters)
        self.assertNotIn("cold-1", hitters)

        with self.assertRaises(ValueError):
            cms.heavy_hitters(["hot"], threshold=1.5)

    def test_stats(self):
        cms = CountMinSketch(width=8, hash_names=THREE_ROWS)
        cms.insert("x")
        cms.insert("x")
        stats = cms.get_stats()
        self.assertEqual(stats["type"], "CountMinSketch")
        self.assertEqual(stats["width"], 8)
        self.assertEqual(stats["depth"], 3)
        self.assertEqual(stats["hash_names"], THREE_ROWS)
        self.assertEqual(stats["total_frequency"], 2)
        self.assertEqual(stats["items_processed"], 2)
        self.assertEqual(stats["nonzero_counters"], 3)
        self.assertEqual(stats["max_counter"], 2)
        self.assertEqual(stats["saturated_counters"], 0)
        self.assertIn("epsilon", stats)


if __name__ == "__main__":
    unittest.main()
