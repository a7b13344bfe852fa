"""Sprite generation entry points.

Same profile in, same sprite out. A valid pre-supplied sprite asset on the
profile wins; otherwise the sprite is drawn procedurally from the designed
genome.
"""

import logging
import math

from .core.models import EntityProfile, SpriteDefinition, SpriteLayer
from .design.agent import DesignerAgent, resolve_designed_genome
from .design.cache import DesignCache
from .pixel.genome import build_visual_genome
from .pixel.palette import generate_sprite_palette
from .pixel.parts import build_sprite_layers
from .pixel.sprite_asset import validate_sprite_asset

logger = logging.getLogger(__name__)

MINI_SPRITE_SIZE = 8


def generate_sprite(
    profile: EntityProfile,
    agent: DesignerAgent | None = None,
    cache: DesignCache | None = None,
) -> SpriteDefinition:
    """Sprite for a profile: its embedded asset if valid, else procedural."""
    if profile.sprite_asset is not None:
        validation = validate_sprite_asset(profile.sprite_asset, profile.sprite_size)
        if validation.ok and validation.asset is not None:
            return validation.asset
        logger.debug(
            "Ignoring invalid sprite asset on %s: %s", profile.id, validation.errors[:3]
        )

    return generate_procedural_sprite(profile, agent, cache)


def generate_procedural_sprite(
    profile: EntityProfile,
    agent: DesignerAgent | None = None,
    cache: DesignCache | None = None,
) -> SpriteDefinition:
    size = profile.sprite_size
    base_genome = build_visual_genome(profile)
    designed = resolve_designed_genome(profile, base_genome, agent, cache)
    return SpriteDefinition(
        width=size,
        height=size,
        layers=build_sprite_layers(profile, designed.genome),
        palette=generate_sprite_palette(profile.types, designed.genome),
    )


def generate_mini_sprite(
    profile: EntityProfile,
    agent: DesignerAgent | None = None,
    cache: DesignCache | None = None,
) -> SpriteDefinition:
    """8x8 nearest-neighbour thumbnail sharing the full sprite's palette."""
    sprite = generate_sprite(profile, agent, cache)
    scale = sprite.width / MINI_SPRITE_SIZE
    composite = sprite.composite()

    pixels = [
        [
            composite[math.floor(y * scale)][math.floor(x * scale)]
            for x in range(MINI_SPRITE_SIZE)
        ]
        for y in range(MINI_SPRITE_SIZE)
    ]
    return SpriteDefinition(
        width=MINI_SPRITE_SIZE,
        height=MINI_SPRITE_SIZE,
        layers=[SpriteLayer(name="mini", pixels=pixels)],
        palette=sprite.palette,
    )
