"""
Hash function catalog for probkit.

Every entry maps an element to an unsigned 32-bit integer and is identified by
a name from the closed ``HashName`` enumeration. The HyperLogLog engine uses a
separate hasher, ``hash64_lanes``, which produces two 32-bit lanes.

None of these functions are cryptographically secure. They are chosen for
speed, determinism and reasonable distribution, and each uses its own seed or
constants so that a selection of several behaves as independent enough for
probabilistic estimates.
"""

from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Tuple, Union

from probkit.core.errors import HashCatalogMiss

MASK_32 = 0xFFFFFFFF

HashFunction = Callable[[Any], int]


class HashName(str, Enum):
    """Names of the hash functions available to the Bloom and Count-Min engines."""

    MURMUR3 = "murmur3"
    FNV1A = "fnv1a"
    DJB2 = "djb2"
    XXH3 = "xxh3"
    MURMUR2 = "murmur2"
    CITY = "city"
    FARM = "farm"
    POLY31 = "poly31"
    MIX_5A827999 = "mix-5a827999"
    MIX_1B873593 = "mix-1b873593"

    def __str__(self) -> str:
        return self.value


def _to_bytes(key: Any) -> bytes:
    """Encode an element for hashing; non-string values go through repr()."""
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, bytes):
        return key
    return repr(key).encode("utf-8")


def _fmix32(h: int) -> int:
    """MurmurHash3 32-bit finalizer (a bijection on 32-bit values)."""
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK_32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK_32
    h ^= h >> 16
    return h


def murmurhash3_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of MurmurHash3 (x86, 32-bit variant).

    Args:
        key: The element to hash. Strings are UTF-8 encoded, bytes are used
             as-is, anything else is hashed through its repr().
        seed: Optional seed for the hash.

    Returns:
        32-bit hash value
    """
    data = _to_bytes(key)
    length = len(data)

    c1 = 0xCC9E2D51
    c2 = 0x1B873593
    h = seed & MASK_32

    nblocks = length // 4
    for i in range(nblocks):
        k = int.from_bytes(data[i * 4 : i * 4 + 4], "little")
        k = (k * c1) & MASK_32
        k = ((k << 15) | (k >> 17)) & MASK_32
        k = (k * c2) & MASK_32

        h ^= k
        h = ((h << 13) | (h >> 19)) & MASK_32
        h = (h * 5 + 0xE6546B64) & MASK_32

    # Tail (0-3 bytes)
    tail = data[nblocks * 4 :]
    k = 0
    if len(tail) >= 3:
        k ^= tail[2] << 16
    if len(tail) >= 2:
        k ^= tail[1] << 8
    if len(tail) >= 1:
        k ^= tail[0]
        k = (k * c1) & MASK_32
        k = ((k << 15) | (k >> 17)) & MASK_32
        k = (k * c2) & MASK_32
        h ^= k

    h ^= length
    return _fmix32(h)


def fnv1a_32(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of FNV-1a (32-bit variant).

    Args:
        key: The element to hash.
        seed: Optional seed, XORed into the offset basis.

    Returns:
        32-bit hash value
    """
    h = (0x811C9DC5 ^ seed) & MASK_32
    for byte in _to_bytes(key):
        h ^= byte
        h = (h * 0x01000193) & MASK_32
    return h


def fnv1a_mixed_32(key: Any) -> int:
    """FNV-1a followed by a 32-bit avalanche; plain FNV-1a has weak low bits."""
    return _fmix32(fnv1a_32(key))


def djb2_32(key: Any) -> int:
    """DJB2 (``h * 33 + c``) followed by a 32-bit avalanche."""
    h = 5381
    for byte in _to_bytes(key):
        h = ((h << 5) + h + byte) & MASK_32
    return _fmix32(h)


def poly31_32(key: Any) -> int:
    """Polynomial string hash (``h * 31 + c``) followed by a 32-bit avalanche."""
    h = 0
    for byte in _to_bytes(key):
        h = ((h << 5) - h + byte) & MASK_32
    return _fmix32(h)


def xor_multiply_32(key: Any, seed: int, multiplier: int, shift: int = 0) -> int:
    """
    Byte-wise xor-then-multiply mixer.

    Each byte is XORed into the state, which is then multiplied by
    ``multiplier`` modulo 2**32. When ``shift`` is non-zero the state is also
    folded with itself shifted right by that many bits after every byte. The
    result goes through the MurmurHash3 finalizer so that the low bits are
    usable for ``mod width`` indexing.

    Args:
        key: The element to hash.
        seed: Initial 32-bit state.
        multiplier: Odd 32-bit multiplier.
        shift: Optional per-byte xor-shift.

    Returns:
        32-bit hash value
    """
    h = seed & MASK_32
    for byte in _to_bytes(key):
        h = ((h ^ byte) * multiplier) & MASK_32
        if shift:
            h ^= h >> shift
    return _fmix32(h)


_CATALOG: Dict[HashName, HashFunction] = {
    HashName.MURMUR3: murmurhash3_32,
    HashName.FNV1A: fnv1a_mixed_32,
    HashName.DJB2: djb2_32,
    HashName.XXH3: partial(xor_multiply_32, seed=0xDEADBEEF, multiplier=0x9E3779B1),
    HashName.MURMUR2: partial(
        xor_multiply_32, seed=0xDEADBEEF, multiplier=0x5BD1E995, shift=13
    ),
    HashName.CITY: partial(xor_multiply_32, seed=0x2F90404F, multiplier=0xEB382D69),
    HashName.FARM: partial(xor_multiply_32, seed=0x97CB3127, multiplier=0xED558CCD),
    HashName.POLY31: poly31_32,
    HashName.MIX_5A827999: partial(
        xor_multiply_32, seed=0x67452301, multiplier=0x5A827999
    ),
    HashName.MIX_1B873593: partial(
        xor_multiply_32, seed=0xC1059ED8, multiplier=0x1B873593
    ),
}

# Default selections used by the engines
BLOOM_HASHES: Tuple[HashName, ...] = (HashName.MURMUR3, HashName.FNV1A, HashName.DJB2)
COUNTMIN_HASHES: Tuple[HashName, ...] = (
    HashName.XXH3,
    HashName.MURMUR2,
    HashName.CITY,
    HashName.FARM,
    HashName.POLY31,
    HashName.MIX_5A827999,
    HashName.MIX_1B873593,
)


def resolve_hash_name(name: Union[str, HashName]) -> HashName:
    """
    Resolve a catalog identifier.

    Args:
        name: A ``HashName`` member or its string value.

    Returns:
        The matching ``HashName``.

    Raises:
        HashCatalogMiss: If the name is not in the catalog.
    """
    if isinstance(name, HashName):
        return name
    try:
        return HashName(name)
    except ValueError:
        raise HashCatalogMiss(name) from None


def resolve_hash_names(names: Iterable[Union[str, HashName]]) -> Tuple[HashName, ...]:
    """Resolve an ordered selection of hash names, preserving order."""
    if isinstance(names, (str, HashName)):
        names = [names]
    return tuple(resolve_hash_name(name) for name in names)


def get_hash_function(name: Union[str, HashName]) -> HashFunction:
    """
    Look up a hash function by name.

    Raises:
        HashCatalogMiss: If the name is not in the catalog.
    """
    return _CATALOG[resolve_hash_name(name)]


def hash_value(name: Union[str, HashName], element: Any) -> int:
    """Hash a single element with the named function."""
    return get_hash_function(name)(element)


def available_hashes() -> List[str]:
    """List the catalog names in declaration order."""
    return [member.value for member in HashName]


# Lane width of the HyperLogLog hasher; estimator thresholds derive from it.
LANE_BITS = 32


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK_32


def hash64_lanes(key: Any) -> Tuple[int, int]:
    """
    Two-lane 64-bit hash used by the HyperLogLog engine.

    Both lanes absorb every byte with different multipliers and are then
    cross-mixed so that each lane depends on the full input.

    Args:
        key: The element to hash.

    Returns:
        A pair ``(h1, h2)`` of unsigned 32-bit integers.
    """
    h1 = 0xDEADBEEF
    h2 = 0x41C6CE57
    for byte in _to_bytes(key):
        h1 = _imul(h1 ^ byte, 2654435761)
        h2 = _imul(h2 ^ byte, 1597334677)

    h1 = _imul(h1 ^ (h1 >> 16), 2246822507)
    h1 ^= _imul(h2 ^ (h2 >> 13), 3266489909)
    h2 = _imul(h2 ^ (h2 >> 16), 2246822507)
    h2 ^= _imul(h1 ^ (h1 >> 13), 3266489909)

    return h1 & MASK_32, h2 & MASK_32
