"""
Engine implementations for probkit.
"""

from probkit.algorithms.bloom import BloomFilter
from probkit.algorithms.countmin import CountMinSketch
from probkit.algorithms.hyperloglog import HyperLogLog
from probkit.algorithms.tracking import ExactTracker

__all__ = [
    "BloomFilter",
    "CountMinSketch",
    "HyperLogLog",
    "ExactTracker",
]
