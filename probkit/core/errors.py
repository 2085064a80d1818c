"""
Exception types raised by probkit engines.

Configuration problems are reported as soon as an engine is constructed or
reconfigured. Insertions and queries never raise for any element once the
engine holds a valid configuration.
"""

from typing import Any


class ProbkitError(Exception):
    """Base class for all probkit errors."""


class InvalidConfig(ProbkitError, ValueError):
    """
    Raised when an engine configuration is rejected.

    Covers non-positive (or non-integer) sizes, widths and bucket counts as
    well as an empty hash selection. Values are never silently clamped.
    """


class HashCatalogMiss(ProbkitError, LookupError):
    """Raised when a requested hash function is not in the catalog."""

    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"Unknown hash function: {name!r}")
