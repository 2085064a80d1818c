"""
Core functionality for probkit.
"""

from probkit.core.base import (
    CardinalityEstimator,
    FrequencyEstimator,
    MembershipTester,
    ProbabilisticEngine,
)
from probkit.core.hash import (
    HashName,
    available_hashes,
    fnv1a_32,
    get_hash_function,
    hash64_lanes,
    murmurhash3_32,
)

__all__ = [
    # Base classes
    "ProbabilisticEngine",
    "MembershipTester",
    "FrequencyEstimator",
    "CardinalityEstimator",
    # Hash catalog
    "HashName",
    "available_hashes",
    "get_hash_function",
    "hash64_lanes",
    "murmurhash3_32",
    "fnv1a_32",
]
