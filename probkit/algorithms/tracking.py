"""
Exact-set tracking around a probabilistic engine.

``ExactTracker`` keeps an exact count of everything inserted alongside the
wrapped engine, so estimates can be compared with the truth: Bloom filter
answers classified as confirmed or false positive, Count-Min overestimates
measured, HyperLogLog error computed. The exact bookkeeping lives only in the
tracker and never leaks into the engine's own state.
"""

import logging
from collections import Counter, deque
from enum import Enum
from typing import Any, Deque, Generic, List, Optional, TypeVar

from probkit.algorithms.bloom import BloomFilter
from probkit.algorithms.countmin import CountMinSketch
from probkit.algorithms.hyperloglog import HyperLogLog
from probkit.core.base import ProbabilisticEngine

log = logging.getLogger(__name__)

E = TypeVar("E", bound=ProbabilisticEngine)


class MembershipVerdict(str, Enum):
    """Outcome of a Bloom filter query checked against the exact set."""

    CONFIRMED = "confirmed"
    FALSE_POSITIVE = "false_positive"
    ABSENT = "absent"


class ExactTracker(Generic[E]):
    """
    Wrap an engine and track exactly which elements were inserted.

    By default re-inserting an element already tracked is skipped for Bloom
    filters (the bits would not change, and the inserted count then reflects
    distinct elements) and forwarded for every other engine.

    Example:
        tracker = ExactTracker(BloomFilter(size=32))
        tracker.insert("apple")      # True, newly tracked
        tracker.insert("apple")      # False, duplicate skipped
        tracker.classify("apple")    # MembershipVerdict.CONFIRMED
    """

    def __init__(
        self,
        engine: E,
        skip_duplicates: Optional[bool] = None,
        recent_limit: int = 5,
    ):
        """
        Args:
            engine: The engine to wrap.
            skip_duplicates: Whether tracked elements are kept away from the
                             engine on re-insertion. None picks the default
                             for the engine type.
            recent_limit: How many recent insertions to remember.
        """
        if recent_limit < 0:
            raise ValueError("recent_limit must be non-negative")
        if skip_duplicates is None:
            skip_duplicates = isinstance(engine, BloomFilter)

        self._engine = engine
        self._skip_duplicates = skip_duplicates
        self._exact: Counter = Counter()
        self._recent: Deque[Any] = deque(maxlen=recent_limit)

    @property
    def engine(self) -> E:
        return self._engine

    @property
    def skip_duplicates(self) -> bool:
        return self._skip_duplicates

    def insert(self, item: Any) -> bool:
        """
        Insert an item into the engine and the exact set.

        Returns:
            True if the item had not been tracked before.
        """
        is_new = item not in self._exact
        self._exact[item] += 1
        self._recent.appendleft(item)

        if is_new or not self._skip_duplicates:
            self._engine.insert(item)
        else:
            log.debug("Skipping duplicate insertion of %r", item)
        return is_new

    def insert_many(self, items: Any) -> int:
        """Insert each item; returns how many were newly tracked."""
        return sum(1 for item in items if self.insert(item))

    def configure(self, *args: Any, **kwargs: Any) -> None:
        """Reconfigure the wrapped engine and forget every tracked element."""
        self._engine.configure(*args, **kwargs)
        self._forget()

    def clear(self) -> None:
        """Clear the wrapped engine and forget every tracked element."""
        self._engine.clear()
        self._forget()

    def _forget(self) -> None:
        self._exact.clear()
        self._recent.clear()

    def __contains__(self, item: Any) -> bool:
        return item in self._exact

    def recent(self) -> List[Any]:
        """Most recent insertions, newest first."""
        return list(self._recent)

    def true_frequency(self, item: Any) -> int:
        return self._exact[item]

    @property
    def true_cardinality(self) -> int:
        return len(self._exact)

    @property
    def total_inserted(self) -> int:
        return sum(self._exact.values())

    def classify(self, item: Any) -> MembershipVerdict:
        """
        Classify a Bloom filter answer against the exact set.

        Raises:
            TypeError: If the wrapped engine is not a Bloom filter.
            RuntimeError: If a tracked element is reported absent.
        """
        if not isinstance(self._engine, BloomFilter):
            raise TypeError("classify() requires a wrapped BloomFilter")

        in_filter = self._engine.might_contain(item)
        in_set = item in self._exact
        if in_set and not in_filter:
            raise RuntimeError(f"Bloom filter reported a false negative for {item!r}")
        if in_set:
            return MembershipVerdict.CONFIRMED
        if in_filter:
            return MembershipVerdict.FALSE_POSITIVE
        return MembershipVerdict.ABSENT

    def frequency_error(self, item: Any) -> int:
        """
        Overestimate of a Count-Min query (estimate minus true frequency).

        Raises:
            TypeError: If the wrapped engine is not a Count-Min Sketch.
        """
        if not isinstance(self._engine, CountMinSketch):
            raise TypeError("frequency_error() requires a wrapped CountMinSketch")
        return self._engine.estimate_frequency(item) - self._exact[item]

    def cardinality_error(self) -> float:
        """
        Relative error of the HyperLogLog estimate against the exact count.

        Returns 0.0 when nothing has been tracked and the estimate is 0.

        Raises:
            TypeError: If the wrapped engine is not a HyperLogLog.
        """
        if not isinstance(self._engine, HyperLogLog):
            raise TypeError("cardinality_error() requires a wrapped HyperLogLog")
        estimate = self._engine.estimate_cardinality()
        actual = len(self._exact)
        if actual == 0:
            return 0.0 if estimate == 0 else float("inf")
        return abs(estimate - actual) / actual
