"""Pixelkin: deterministic pixel-art creature sprites from entity profiles."""

__version__ = "0.4.0"

from .config import PixelkinConfig, configure, get_config, reset_config
from .core.models import EntityProfile, SpriteDefinition, VisualSpec, load_profiles
from .design import InMemoryDesignCache, diversify_spec_for_portfolio, resolve_designed_genome
from .generator import generate_mini_sprite, generate_procedural_sprite, generate_sprite
from .hydration import hydrate_profiles_with_designer, hydrate_profiles_with_sprites

__all__ = [
    "__version__",
    "PixelkinConfig",
    "configure",
    "get_config",
    "reset_config",
    "EntityProfile",
    "SpriteDefinition",
    "VisualSpec",
    "load_profiles",
    "InMemoryDesignCache",
    "diversify_spec_for_portfolio",
    "resolve_designed_genome",
    "generate_mini_sprite",
    "generate_procedural_sprite",
    "generate_sprite",
    "hydrate_profiles_with_designer",
    "hydrate_profiles_with_sprites",
]
