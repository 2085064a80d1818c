"""
Count-Min Sketch implementation for probkit.

This module provides the Count-Min Sketch, a probabilistic data structure for
frequency estimation with bounded memory.

The sketch keeps one row of ``width`` counters per configured hash function.
Inserting an element increments exactly one counter in every row; the
estimate for an element is the minimum of its counters across rows. Hash
collisions can only inflate counters, so the estimate never falls below the
true frequency.

The Count-Min Sketch provides the following guarantees:
1. Space Complexity: O(width * depth)
2. Update Time: O(depth)
3. Query Time: O(depth)
4. Error Bound: With probability at least 1-delta, the overestimate is at most
   epsilon * N, where N is the total inserted count, epsilon = e / width and
   delta = e ** -depth.

Counters are unsigned 64-bit values. A counter that would exceed
``MAX_COUNTER`` stays at ``MAX_COUNTER`` instead of wrapping around; the
number of saturated counters is reported by ``get_stats()``.

References:
    - Cormode, G., & Muthukrishnan, S. (2005). An improved data stream summary:
      The count-min sketch and its applications. Journal of Algorithms, 55(1), 58-75.
"""

import array
import logging
import math
import numbers
import sys
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, TypeVar

from probkit.core.base import FrequencyEstimator
from probkit.core.config import CountMinSketchConfig, HashSelection
from probkit.core.hash import COUNTMIN_HASHES, HashName, get_hash_function

log = logging.getLogger(__name__)

T = TypeVar("T")

MAX_COUNTER = 2**64 - 1


class FrequencyProbe(NamedTuple):
    """Diagnostic view of a frequency query."""

    element: Any
    cells: Tuple[Tuple[int, int, int], ...]  # (row, column, value) per row
    min_cell: Tuple[int, int]
    estimate: int


class CountMinSketch(FrequencyEstimator[T]):
    """
    Count-Min Sketch for frequency estimation in data streams.

    Each row is driven by its own catalog hash function, so the number of rows
    (the depth) equals the number of configured hash names.

    Example:
        cms = CountMinSketch(width=8, hash_names=["xxh3", "murmur2", "city"])
        for _ in range(3):
            cms.insert("x")
        cms.estimate_frequency("x")  # >= 3
    """

    def __init__(
        self,
        width: int = 8,
        hash_names: HashSelection = COUNTMIN_HASHES,
    ):
        """
        Initialize a new Count-Min Sketch.

        Args:
            width: The number of counters per row. Larger widths reduce
                   collisions and the expected overestimate.
            hash_names: Ordered, non-empty selection of catalog hash names,
                        one row per name.

        Raises:
            InvalidConfig: If width is less than 1 or hash_names is empty.
            HashCatalogMiss: If a hash name is not in the catalog.
        """
        super().__init__()
        self._config: Optional[CountMinSketchConfig] = None
        self.configure(width, hash_names)

    @classmethod
    def from_config(cls, config: CountMinSketchConfig) -> "CountMinSketch[T]":
        """Create a sketch from a ``CountMinSketchConfig``."""
        return cls(width=config.width, hash_names=config.hash_names)

    def configure(
        self,
        width: Optional[int] = None,
        hash_names: Optional[HashSelection] = None,
    ) -> None:
        """
        Discard the counter matrix and rebuild it with new dimensions.

        Parameters left as None keep their current value.

        Raises:
            InvalidConfig: If width is less than 1 or hash_names is empty.
            HashCatalogMiss: If a hash name is not in the catalog.
        """
        if self._config is not None:
            if width is None:
                width = self._config.width
            if hash_names is None:
                hash_names = self._config.hash_names

        row_width, names = CountMinSketchConfig(width, hash_names).validate()

        self._config = CountMinSketchConfig(row_width, names)
        self._width = row_width
        self._depth = len(names)
        self._hash_names = names
        self._hash_functions = [get_hash_function(name) for name in names]
        self._counters = [array.array("Q", bytes(8 * row_width)) for _ in names]
        self._total_frequency = 0
        self._items_processed = 0
        self._saturation_logged = False

        # epsilon: overestimate factor relative to the total frequency
        # delta: probability of exceeding that overestimate
        self._epsilon = math.e / row_width
        self._delta = math.exp(-self._depth)

        log.debug(
            "Configured Count-Min sketch: width=%d depth=%d hashes=%s",
            row_width,
            self._depth,
            ",".join(name.value for name in names),
        )

    @property
    def config(self) -> CountMinSketchConfig:
        return self._config

    def _indices(self, item: T) -> List[int]:
        return [fn(item) % self._width for fn in self._hash_functions]

    def insert(self, item: T, count: int = 1) -> None:
        """
        Add occurrences of an item to the sketch.

        Every row is incremented; a counter that would overflow saturates at
        ``MAX_COUNTER``.

        Args:
            item: The item to add.
            count: How many occurrences to add (default is 1).

        Raises:
            TypeError: If count is not an integer.
            ValueError: If count is negative.
        """
        if isinstance(count, bool) or not isinstance(count, numbers.Integral):
            raise TypeError(f"Count must be an integer, got {count!r}")
        if count < 0:
            raise ValueError("Count must be non-negative")
        if count == 0:
            return

        super().insert(item)
        self._total_frequency += count

        for row, index in zip(self._counters, self._indices(item)):
            value = row[index] + count
            if value > MAX_COUNTER:
                value = MAX_COUNTER
                if not self._saturation_logged:
                    log.warning(
                        "Count-Min counter saturated at %d; estimates for "
                        "affected elements are capped",
                        MAX_COUNTER,
                    )
                    self._saturation_logged = True
            row[index] = value

    def estimate_frequency(self, item: T) -> int:
        """
        Estimate the frequency of an item in the stream.

        Returns:
            The minimum counter across rows. This is never less than the true
            frequency of the item.
        """
        return min(
            row[index] for row, index in zip(self._counters, self._indices(item))
        )

    def query(self, item: T) -> int:
        """Convenience alias for ``estimate_frequency``."""
        return self.estimate_frequency(item)

    def probe(self, item: T) -> FrequencyProbe:
        """
        Explain a frequency query.

        Returns:
            The counter read in each row, the first cell holding the minimum
            and the resulting estimate.
        """
        cells = tuple(
            (row_index, column, self._counters[row_index][column])
            for row_index, column in enumerate(self._indices(item))
        )
        min_row, min_column, estimate = min(cells, key=lambda cell: cell[2])
        return FrequencyProbe(item, cells, (min_row, min_column), estimate)

    def estimate_frequency_error(self, item: T) -> Tuple[int, float]:
        """
        Estimate frequency together with the expected maximum overestimate.

        Returns:
            A tuple of (estimated_frequency, max_error) where max_error is
            epsilon * total_frequency.
        """
        return self.estimate_frequency(item), self._epsilon * self._total_frequency

    def heavy_hitters(self, candidates: Iterable[T], threshold: float) -> Dict[T, int]:
        """
        Get the candidates whose estimated frequency reaches a share of the stream.

        The sketch does not remember which elements it has seen, so the
        caller supplies the candidates to check.

        Args:
            candidates: Items to check.
            threshold: Minimum frequency ratio (0.0 to 1.0).

        Returns:
            A dictionary mapping heavy hitters to their estimated frequencies.

        Raises:
            ValueError: If threshold is not between 0 and 1.
        """
        if not 0 <= threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")

        min_count = threshold * self._total_frequency
        hitters = {}
        for item in candidates:
            freq = self.estimate_frequency(item)
            if freq >= min_count:
                hitters[item] = freq
        return hitters

    @property
    def width(self) -> int:
        return self._width

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def hash_names(self) -> Tuple[HashName, ...]:
        return self._hash_names

    @property
    def total_frequency(self) -> int:
        return self._total_frequency

    @property
    def counters(self) -> Tuple[Tuple[int, ...], ...]:
        """Snapshot of the counter matrix, one tuple per row."""
        return tuple(tuple(row) for row in self._counters)

    def clear(self) -> None:
        """Zero every counter, keeping the current dimensions."""
        self.configure()

    def error_bounds(self) -> Dict[str, float]:
        bounds = super().error_bounds()
        bounds.update(
            {
                "epsilon": self._epsilon,
                "delta": self._delta,
                "confidence": 1.0 - self._delta,
                "max_error": self._epsilon * self._total_frequency,
            }
        )
        return bounds

    def estimate_size(self) -> int:
        size = super().estimate_size()
        size += sys.getsizeof(self._counters)
        for row in self._counters:
            size += sys.getsizeof(row)
        return size

    def get_stats(self) -> Dict[str, Any]:
        """
        Get the structural summary of the sketch.

        Returns:
            A dictionary with the dimensions, hash selection, total inserted
            frequency, counter occupancy, saturation count and error bounds.
        """
        stats = super().get_stats()
        nonzero = 0
        saturated = 0
        max_counter = 0
        for row in self._counters:
            for value in row:
                if value:
                    nonzero += 1
                    if value > max_counter:
                        max_counter = value
                    if value == MAX_COUNTER:
                        saturated += 1

        stats.update(
            {
                "width": self._width,
                "depth": self._depth,
                "hash_names": [name.value for name in self._hash_names],
                "total_frequency": self._total_frequency,
                "nonzero_counters": nonzero,
                "max_counter": max_counter,
                "saturated_counters": saturated,
            }
        )
        return stats
