"""Procedural pixel pipeline: genome, VisualSpec handling, palette, rendering,
and the alternate asset/DSL ingestion paths.

Everything here is pure and synchronous; design resolution and batch
hydration live in ``pixelkin.design`` and ``pixelkin.hydration``.
"""

from .animation import generate_idle_frames, get_current_frame
from .genome import (
    build_visual_genome,
    build_visual_seed_input,
    get_visual_profile_hash,
)
from .palette import PixelIndex, contrast_ratio, generate_sprite_palette
from .parts import build_sprite_layers
from .sprite_asset import evaluate_sprite_asset_quality, validate_sprite_asset
from .sprite_dsl import compile_sprite_dsl
from .visual_spec import (
    hash_visual_spec,
    merge_visual_spec_into_genome,
    validate_visual_spec,
)

__all__ = [
    "generate_idle_frames",
    "get_current_frame",
    "build_visual_genome",
    "build_visual_seed_input",
    "get_visual_profile_hash",
    "PixelIndex",
    "contrast_ratio",
    "generate_sprite_palette",
    "build_sprite_layers",
    "evaluate_sprite_asset_quality",
    "validate_sprite_asset",
    "compile_sprite_dsl",
    "hash_visual_spec",
    "merge_visual_spec_into_genome",
    "validate_visual_spec",
]
