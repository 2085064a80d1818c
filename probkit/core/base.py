"""
Base classes and interfaces for probkit engines.

This module defines the abstract base classes shared by the three engines so
that callers (and wrappers such as the exact tracker or the synchronized
engine) can treat them uniformly: insert elements, query, read statistics and
reset.
"""

import abc
import sys
from typing import Any, Dict, Generic, Iterable, TypeVar

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries


class ProbabilisticEngine(Generic[T, R], abc.ABC):
    """
    Abstract base class for all probkit engines.

    An engine is created with an explicit configuration, mutated only through
    ``insert`` and read through ``query`` and ``get_stats``. Reconfiguring or
    clearing discards all accumulated state at once; individual elements can
    never be removed.
    """

    def __init__(self) -> None:
        self._items_processed = 0

    @abc.abstractmethod
    def insert(self, item: T) -> None:
        """
        Add an item to the engine.

        Derived classes call ``super().insert(item)`` to keep the processed
        item counter up to date.

        Args:
            item: The item to add.
        """
        self._items_processed += 1

    def insert_many(self, items: Iterable[T]) -> int:
        """
        Insert every item of an iterable as independent insertions.

        The final state does not depend on the order of the items.

        Args:
            items: The items to insert.

        Returns:
            The number of items inserted.
        """
        inserted = 0
        for item in items:
            self.insert(item)
            inserted += 1
        return inserted

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """
        Query the current state of the engine.

        The parameters and return value depend on the specific engine.
        """
        pass

    @property
    @abc.abstractmethod
    def config(self) -> Any:
        """The configuration object describing the current state layout."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """
        Reset the engine to an empty state with its current configuration.

        Derived classes rebuild their own structures and call
        ``super().clear()`` to reset the base counters.
        """
        self._items_processed = 0

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this engine in bytes.

        Derived classes add the size of their own arrays.

        Returns:
            Estimated memory usage in bytes.
        """
        size = sys.getsizeof(self)
        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)
        return size

    def error_bounds(self) -> Dict[str, float]:
        """
        Get the theoretical error characteristics of the current state.

        The base implementation returns an empty dictionary.
        """
        return {}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get a structural summary of the engine together with its derived estimate.

        Derived classes extend this dictionary with their own fields.

        Returns:
            A dictionary of statistics.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }
        stats.update(self.error_bounds())
        return stats

    @property
    def items_processed(self) -> int:
        """Get the total number of insert calls since the last reset."""
        return self._items_processed


class MembershipTester(ProbabilisticEngine[T, bool], abc.ABC):
    """
    Abstract base class for approximate set membership structures.

    Examples include the Bloom filter.
    """

    @abc.abstractmethod
    def might_contain(self, item: T) -> bool:
        """Return False if the item was definitely never inserted."""
        pass

    @abc.abstractmethod
    def estimate_false_positive_rate(self) -> float:
        """Approximate probability that an absent item is reported present."""
        pass

    def __contains__(self, item: T) -> bool:
        return self.might_contain(item)


class FrequencyEstimator(ProbabilisticEngine[T, int], abc.ABC):
    """
    Abstract base class for frequency estimation algorithms.

    Examples include the Count-Min Sketch.
    """

    @abc.abstractmethod
    def estimate_frequency(self, item: T) -> int:
        """
        Estimate the frequency of an item in the stream.

        Args:
            item: The item to estimate the frequency for.

        Returns:
            The estimated frequency of the item.
        """
        pass


class CardinalityEstimator(ProbabilisticEngine[T, int], abc.ABC):
    """
    Abstract base class for cardinality estimation algorithms.

    Examples include HyperLogLog.
    """

    @abc.abstractmethod
    def estimate_cardinality(self) -> int:
        """
        Estimate the number of unique items in the stream.

        Returns:
            The estimated cardinality.
        """
        pass

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats["estimated_cardinality"] = self.estimate_cardinality()
        return stats
