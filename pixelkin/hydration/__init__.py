"""Batch hydration of profiles from design providers, with on-disk caches."""

from .designer import hydrate_profiles_with_designer
from .sprites import (
    build_sprite_prompt,
    decode_sprite_payload,
    get_sprite_cache_key,
    hydrate_profiles_with_sprites,
)

__all__ = [
    "hydrate_profiles_with_designer",
    "hydrate_profiles_with_sprites",
    "build_sprite_prompt",
    "decode_sprite_payload",
    "get_sprite_cache_key",
]
