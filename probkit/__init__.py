"""
probkit - Probabilistic data-structure engines

probkit provides three independent engines for approximate answers over large
or streaming data: a Bloom filter for membership, a Count-Min Sketch for
frequencies and a HyperLogLog estimator for distinct counts.
"""

__version__ = "0.1.0"

# Import main classes to make them available at the top level
from probkit.algorithms.bloom import BloomFilter
from probkit.algorithms.countmin import CountMinSketch
from probkit.algorithms.hyperloglog import HyperLogLog
from probkit.algorithms.tracking import ExactTracker, MembershipVerdict
from probkit.core.config import (
    BloomFilterConfig,
    CountMinSketchConfig,
    HyperLogLogConfig,
)
from probkit.core.errors import HashCatalogMiss, InvalidConfig, ProbkitError
from probkit.core.hash import HashName
from probkit.core.locking import SynchronizedEngine

__all__ = [
    # Engines
    "BloomFilter",
    "CountMinSketch",
    "HyperLogLog",
    # Wrappers
    "ExactTracker",
    "MembershipVerdict",
    "SynchronizedEngine",
    # Configuration
    "BloomFilterConfig",
    "CountMinSketchConfig",
    "HyperLogLogConfig",
    "HashName",
    # Errors
    "ProbkitError",
    "InvalidConfig",
    "HashCatalogMiss",
]
