"""Deterministic hashing and pseudo-random helpers.

Every random decision in sprite derivation goes through these helpers so that
the same input string produces the same sprite on every run and platform.
All arithmetic is kept in unsigned 32-bit space.
"""

import math

UINT32_MASK = 0xFFFFFFFF

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_MULBERRY_INCREMENT = 0x6D2B79F5


def hash_string_to_uint32(text: str) -> int:
    """FNV-1a hash of a string's code points, as an unsigned 32-bit integer."""
    value = _FNV_OFFSET_BASIS
    for char in text:
        value ^= ord(char)
        value = (value * _FNV_PRIME) & UINT32_MASK
    return value & UINT32_MASK


def to_hex8(value: int) -> str:
    """Render an unsigned 32-bit value as 8 lowercase hex digits."""
    return f"{value & UINT32_MASK:08x}"


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


class Mulberry32:
    """Mulberry32 generator yielding floats in [0, 1).

    Instances are callable so they can be handed around as plain
    ``() -> float`` sources.
    """

    def __init__(self, seed: int):
        self.state = seed & UINT32_MASK

    def random(self) -> float:
        self.state = (self.state + _MULBERRY_INCREMENT) & UINT32_MASK
        t = _imul(self.state ^ (self.state >> 15), 1 | self.state)
        t ^= (t + _imul(t ^ (t >> 7), 61 | t)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296

    __call__ = random


def create_seeded_rng(seed: int) -> Mulberry32:
    return Mulberry32(seed)


def random_int(rng: Mulberry32, min_inclusive: int, max_exclusive: int) -> int:
    """Integer in [min_inclusive, max_exclusive)."""
    return math.floor(rng() * (max_exclusive - min_inclusive)) + min_inclusive


def random_between(rng: Mulberry32, low: float, high: float) -> float:
    return low + (high - low) * rng()


def js_round(value: float) -> int:
    """Round half up, matching the rounding used when the seeds were defined.

    Python's ``round`` rounds half to even, which would shift geometry by a
    pixel on exact halves.
    """
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    return js_round(value * 100) / 100


def clamp(value: float, low: float, high: float):
    return min(high, max(low, value))
