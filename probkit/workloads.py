"""
Element generators for exercising the engines.

These reproduce the bulk-add modes of the interactive demo: a batch of random
alphanumeric strings, or one element repeated.
"""

import random
import string
from typing import Any, Iterable, Iterator, List, Optional

from probkit.core.base import ProbabilisticEngine

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def random_strings(
    count: int, length: int = 8, rng: Optional[random.Random] = None
) -> List[str]:
    """
    Generate random alphanumeric strings.

    Args:
        count: How many strings to generate.
        length: Length of each string.
        rng: Random source; pass a seeded ``random.Random`` for reproducible runs.

    Returns:
        A list of ``count`` strings (duplicates are possible but unlikely).
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if length < 0:
        raise ValueError("length must be non-negative")
    rng = rng or random.Random()
    return ["".join(rng.choices(ALPHABET, k=length)) for _ in range(count)]


def repeated(element: Any, count: int) -> Iterator[Any]:
    """Yield the same element ``count`` times."""
    if count < 0:
        raise ValueError("count must be non-negative")
    for _ in range(count):
        yield element


def insert_all(engine: ProbabilisticEngine, elements: Iterable[Any]) -> int:
    """Insert every element as an independent insertion; returns the count."""
    return engine.insert_many(elements)
