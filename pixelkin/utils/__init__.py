"""Shared utilities: deterministic hashing/PRNG and lenient JSON text handling."""

from .seed import (
    Mulberry32,
    clamp,
    create_seeded_rng,
    hash_string_to_uint32,
    js_round,
    random_between,
    random_int,
    round2,
    to_hex8,
)
from .json_text import parse_json_lenient, strip_code_fence

__all__ = [
    "Mulberry32",
    "clamp",
    "create_seeded_rng",
    "hash_string_to_uint32",
    "js_round",
    "random_between",
    "random_int",
    "round2",
    "to_hex8",
    "parse_json_lenient",
    "strip_code_fence",
]
