"""
Bloom Filter implementation for probkit.

A Bloom filter is a fixed-size bit vector probed by k hash functions. It
answers membership queries with "possibly present" or "definitely absent":
false positives are possible, false negatives are not.

Unlike a capacity-planned filter, this engine is configured with an explicit
bit count and an explicit selection of catalog hash functions. Each
configured function contributes one bit position, ``hash(element) mod size``.

References:
    - Bloom, B. H. (1970). Space/time trade-offs in hash coding with allowable errors.
      Communications of the ACM, 13(7), 422-426.
"""

import array
import logging
import math
import sys
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, TypeVar

from probkit.core.base import MembershipTester
from probkit.core.config import BloomFilterConfig, HashSelection
from probkit.core.hash import HashName, get_hash_function

log = logging.getLogger(__name__)

T = TypeVar("T")

# The hash pairs offered by the interactive demo
BLOOM_HASH_PRESETS: Dict[str, Tuple[HashName, ...]] = {
    "murmur3+fnv1a": (HashName.MURMUR3, HashName.FNV1A),
    "murmur3+djb2": (HashName.MURMUR3, HashName.DJB2),
    "fnv1a+djb2": (HashName.FNV1A, HashName.DJB2),
}


class MembershipProbe(NamedTuple):
    """Diagnostic view of a single membership query."""

    element: Any
    positions: Tuple[int, ...]
    unset_positions: Tuple[int, ...]
    might_contain: bool


class BloomFilter(MembershipTester[T]):
    """
    Bloom Filter for approximate set membership testing.

    Example:
        bloom = BloomFilter(size=32, hash_names=["murmur3", "fnv1a"])
        bloom.insert("apple")

        bloom.might_contain("apple")   # True
        bloom.might_contain("orange")  # False, or True on a false positive

        bloom.estimate_false_positive_rate()
    """

    def __init__(
        self,
        size: int = 32,
        hash_names: HashSelection = (HashName.MURMUR3, HashName.FNV1A),
    ):
        """
        Initialize a new Bloom filter.

        Args:
            size: Number of bits in the filter.
            hash_names: Ordered, non-empty selection of catalog hash names.
                        Each name contributes one bit position per element.

        Raises:
            InvalidConfig: If size is less than 1 or hash_names is empty.
            HashCatalogMiss: If a hash name is not in the catalog.
        """
        super().__init__()
        self._config: Optional[BloomFilterConfig] = None
        self.configure(size, hash_names)

    @classmethod
    def from_config(cls, config: BloomFilterConfig) -> "BloomFilter[T]":
        """Create a filter from a ``BloomFilterConfig``."""
        return cls(size=config.size, hash_names=config.hash_names)

    def configure(
        self,
        size: Optional[int] = None,
        hash_names: Optional[HashSelection] = None,
    ) -> None:
        """
        Reinitialize the filter with a new size and/or hash selection.

        All bits are cleared and the inserted count is reset; existing
        elements are never rehashed into the new layout. Parameters left as
        None keep their current value.

        Raises:
            InvalidConfig: If size is less than 1 or hash_names is empty.
            HashCatalogMiss: If a hash name is not in the catalog.
        """
        if self._config is not None:
            if size is None:
                size = self._config.size
            if hash_names is None:
                hash_names = self._config.hash_names

        # Validate everything before touching state
        bit_size, names = BloomFilterConfig(size, hash_names).validate()

        self._config = BloomFilterConfig(bit_size, names)
        self._size = bit_size
        self._hash_names = names
        self._hash_functions = [get_hash_function(name) for name in names]
        self._bytes = array.array("B", bytes((bit_size + 7) // 8))
        self._set_bits = 0
        self._items_processed = 0

        log.debug(
            "Configured Bloom filter: size=%d hashes=%s",
            bit_size,
            ",".join(name.value for name in names),
        )

    @property
    def config(self) -> BloomFilterConfig:
        return self._config

    def _test_bit(self, position: int) -> bool:
        return bool(self._bytes[position >> 3] & (1 << (position & 7)))

    def _set_bit(self, position: int) -> bool:
        """Set a bit; return True if it was previously unset."""
        byte_index = position >> 3
        mask = 1 << (position & 7)
        if self._bytes[byte_index] & mask:
            return False
        self._bytes[byte_index] |= mask
        return True

    def bit_positions(self, item: T) -> List[int]:
        """
        Get the bit positions for an item, one per configured hash function.

        Positions may repeat when two hash functions collide.
        """
        return [fn(item) % self._size for fn in self._hash_functions]

    def insert(self, item: T) -> None:
        """
        Add an item to the Bloom filter.

        Sets the bit chosen by every configured hash function. Bits are never
        cleared afterwards.

        Args:
            item: The item to add.
        """
        super().insert(item)
        for position in self.bit_positions(item):
            if self._set_bit(position):
                self._set_bits += 1

    def might_contain(self, item: T) -> bool:
        """
        Test if an item might be in the set.

        Returns:
            True if the item might be in the set, False if definitely not.
        """
        for fn in self._hash_functions:
            if not self._test_bit(fn(item) % self._size):
                return False
        return True

    def query(self, item: T, *args: Any, **kwargs: Any) -> bool:
        """Convenience alias for ``might_contain``."""
        return self.might_contain(item)

    def probe(self, item: T) -> MembershipProbe:
        """
        Explain a membership query.

        Returns:
            The hashed positions, the positions that are still unset and the
            resulting answer. The answer is True exactly when no position is
            unset.
        """
        positions = tuple(self.bit_positions(item))
        unset = tuple(p for p in positions if not self._test_bit(p))
        return MembershipProbe(item, positions, unset, not unset)

    def estimate_false_positive_rate(self) -> float:
        """
        Approximate the false positive probability from the current bit fill.

        Uses ``1 - (1 - set_bits / size) ** k`` where k is the number of
        configured hash functions.
        """
        if self._set_bits == 0:
            return 0.0
        fill = self._set_bits / self._size
        return 1.0 - math.pow(1.0 - fill, len(self._hash_functions))

    @property
    def size(self) -> int:
        return self._size

    @property
    def hash_names(self) -> Tuple[HashName, ...]:
        return self._hash_names

    @property
    def hash_count(self) -> int:
        return len(self._hash_names)

    @property
    def set_bits(self) -> int:
        """Number of bits currently set."""
        return self._set_bits

    @property
    def inserted_count(self) -> int:
        """Number of insert calls since the last reconfiguration."""
        return self._items_processed

    @property
    def bits(self) -> Tuple[bool, ...]:
        """Snapshot of the bit vector."""
        return tuple(self._test_bit(i) for i in range(self._size))

    def clear(self) -> None:
        """Clear every bit, keeping the current size and hash selection."""
        self.configure()

    def error_bounds(self) -> Dict[str, float]:
        bounds = super().error_bounds()
        bounds["false_positive_rate"] = self.estimate_false_positive_rate()
        return bounds

    def estimate_size(self) -> int:
        size = super().estimate_size()
        size += sys.getsizeof(self._bytes)
        size += sys.getsizeof(self._hash_functions)
        return size

    def get_stats(self) -> Dict[str, Any]:
        """
        Get the structural summary and false positive estimate of the filter.

        Returns:
            A dictionary with the size, hash selection, inserted count, number
            of set bits, fill ratio and estimated false positive rate.
        """
        stats = super().get_stats()
        stats.update(
            {
                "size": self._size,
                "hash_count": self.hash_count,
                "hash_names": [name.value for name in self._hash_names],
                "inserted_count": self.inserted_count,
                "set_bits": self._set_bits,
                "fill_ratio": self._set_bits / self._size,
            }
        )
        return stats
