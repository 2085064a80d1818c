"""
Unit tests for the exact tracking wrapper.
"""

import random
import unittest

from probkit.algorithms.bloom import BloomFilter
from probkit.algorithms.countmin import CountMinSketch
from probkit.algorithms.hyperloglog import HyperLogLog
from probkit.algorithms.tracking import ExactTracker, MembershipVerdict
from probkit.workloads import random_strings


class TestExactTrackerBloom(unittest.TestCase):
    """Bloom filter wrapped in an exact tracker."""

    def test_duplicates_skipped_by_default(self):
        tracker = ExactTracker(BloomFilter(size=32))
        self.assertTrue(tracker.skip_duplicates)
        self.assertTrue(tracker.insert("apple"))
        self.assertFalse(tracker.insert("apple"))
        self.assertTrue(tracker.insert("banana"))

        self.assertEqual(tracker.engine.inserted_count, 2)
        self.assertEqual(tracker.true_cardinality, 2)
        self.assertEqual(tracker.true_frequency("apple"), 2)
        self.assertIn("apple", tracker)
        self.assertNotIn("cherry", tracker)

    def test_duplicates_forwarded_when_requested(self):
        tracker = ExactTracker(BloomFilter(size=32), skip_duplicates=False)
        tracker.insert("apple")
        tracker.insert("apple")
        self.assertEqual(tracker.engine.inserted_count, 2)

    def test_classify(self):
        bloom = BloomFilter(size=16, hash_names=["murmur3"])
        tracker = ExactTracker(bloom)
        words = ["apple", "banana", "cherry", "date", "fig"]
        tracker.insert_many(words)

        for word in words:
            self.assertEqual(tracker.classify(word), MembershipVerdict.CONFIRMED)

        seen = set()
        for i in range(200):
            candidate = f"probe-{i}"
            verdict = tracker.classify(candidate)
            seen.add(verdict)
            if bloom.might_contain(candidate):
                self.assertEqual(verdict, MembershipVerdict.FALSE_POSITIVE)
            else:
                self.assertEqual(verdict, MembershipVerdict.ABSENT)
        # A 16-bit filter with five elements produces both outcomes
        self.assertEqual(
            seen, {MembershipVerdict.ABSENT, MembershipVerdict.FALSE_POSITIVE}
        )

    def test_classify_requires_bloom(self):
        tracker = ExactTracker(CountMinSketch())
        with self.assertRaises(TypeError):
            tracker.classify("x")

    def test_configure_forgets(self):
        tracker = ExactTracker(BloomFilter(size=32))
        tracker.insert("apple")
        tracker.configure(size=64)
        self.assertEqual(tracker.engine.size, 64)
        self.assertEqual(tracker.true_cardinality, 0)
        self.assertEqual(tracker.recent(), [])
        self.assertEqual(tracker.classify("apple"), MembershipVerdict.ABSENT)

        tracker.insert("kiwi")
        tracker.clear()
        self.assertEqual(tracker.true_cardinality, 0)
        self.assertEqual(tracker.engine.set_bits, 0)

    def test_recent(self):
        tracker = ExactTracker(BloomFilter(size=32), recent_limit=3)
        tracker.insert_many(["a", "b", "c", "d"])
        self.assertEqual(tracker.recent(), ["d", "c", "b"])

        with self.assertRaises(ValueError):
            ExactTracker(BloomFilter(), recent_limit=-1)


class TestExactTrackerCountMin(unittest.TestCase):
    """Count-Min Sketch wrapped in an exact tracker."""

    def test_duplicates_forwarded(self):
        tracker = ExactTracker(CountMinSketch(width=64))
        self.assertFalse(tracker.skip_duplicates)
        for _ in range(3):
            tracker.insert("x")
        self.assertEqual(tracker.true_frequency("x"), 3)
        self.assertEqual(tracker.total_inserted, 3)
        self.assertGreaterEqual(tracker.engine.estimate_frequency("x"), 3)

    def test_frequency_error_non_negative(self):
        rng = random.Random(1)
        tracker = ExactTracker(CountMinSketch(width=8))
        for _ in range(300):
            tracker.insert(f"w{rng.randint(0, 40)}")
        for i in range(41):
            self.assertGreaterEqual(tracker.frequency_error(f"w{i}"), 0)

        with self.assertRaises(TypeError):
            ExactTracker(HyperLogLog()).frequency_error("w1")


class TestExactTrackerHyperLogLog(unittest.TestCase):
    """HyperLogLog wrapped in an exact tracker."""

    def test_cardinality_error(self):
        tracker = ExactTracker(HyperLogLog(bucket_count=256))
        self.assertEqual(tracker.cardinality_error(), 0.0)

        tracker.insert_many(random_strings(2000, rng=random.Random(8)))
        self.assertLessEqual(tracker.cardinality_error(), 0.25)

        with self.assertRaises(TypeError):
            ExactTracker(BloomFilter()).cardinality_error()


if __name__ == "__main__":
    unittest.main()
