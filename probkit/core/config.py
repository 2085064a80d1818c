"""
Configuration objects for the probkit engines.

Each engine can be built directly from keyword arguments or from one of these
frozen dataclasses via ``Engine.from_config(config)``. Validation happens
before any engine state is touched, so a rejected configuration never leaves
an engine half-reset.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Sequence, Tuple, Union

from probkit.core.errors import InvalidConfig
from probkit.core.hash import COUNTMIN_HASHES, HashName, resolve_hash_names

HashSelection = Sequence[Union[str, HashName]]


def check_positive_int(value: Any, label: str) -> int:
    """
    Validate a size-like parameter.

    Args:
        value: The value to check.
        label: Parameter name used in the error message.

    Returns:
        The value as an int.

    Raises:
        InvalidConfig: If the value is not an integer or is less than 1.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfig(f"{label} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidConfig(f"{label} must be at least 1, got {value}")
    return int(value)


def check_hash_selection(hash_names: HashSelection) -> Tuple[HashName, ...]:
    """
    Resolve and validate an ordered hash selection.

    Raises:
        HashCatalogMiss: If any name is unknown.
        InvalidConfig: If the selection is empty.
    """
    resolved = resolve_hash_names(hash_names)
    if not resolved:
        raise InvalidConfig("At least one hash function must be selected")
    return resolved


@dataclass(frozen=True)
class BloomFilterConfig:
    """Bit-vector size and hash selection for a Bloom filter."""

    size: int = 32
    hash_names: HashSelection = (HashName.MURMUR3, HashName.FNV1A)

    def validate(self) -> Tuple[int, Tuple[HashName, ...]]:
        return check_positive_int(self.size, "size"), check_hash_selection(
            self.hash_names
        )


@dataclass(frozen=True)
class CountMinSketchConfig:
    """Row width and per-row hash selection for a Count-Min Sketch."""

    width: int = 8
    hash_names: HashSelection = field(default=COUNTMIN_HASHES)

    def validate(self) -> Tuple[int, Tuple[HashName, ...]]:
        return check_positive_int(self.width, "width"), check_hash_selection(
            self.hash_names
        )


@dataclass(frozen=True)
class HyperLogLogConfig:
    """Register count for a HyperLogLog estimator."""

    bucket_count: int = 64

    def validate(self) -> int:
        return check_positive_int(self.bucket_count, "bucket_count")
