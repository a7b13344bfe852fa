"""Deterministic visual genome derivation.

The genome is a pure function of a profile's identity, progression, traits,
capabilities and equipment. Capability and equipment names are sorted before
hashing so their input order never changes the result.
"""

import math

from ..core.models import BODY_ARCHETYPES, EntityProfile, VisualGenome
from ..utils.seed import (
    clamp,
    create_seeded_rng,
    hash_string_to_uint32,
    js_round,
    random_int,
    to_hex8,
)


def normalize_stat(value: float) -> int:
    return clamp(js_round(value), 0, 100)


def stat_bias(value: float) -> int:
    """Coarse 0-2 bucket of a trait, used to nudge style choices."""
    return math.floor(normalize_stat(value) / 34)


def build_visual_seed_input(profile: EntityProfile) -> str:
    """Canonical ``::``-joined string that seeds the genome."""
    stats = profile.stats
    stat_text = ",".join(
        str(normalize_stat(v))
        for v in (
            stats.knowledge,
            stats.arsenal,
            stats.reflex,
            stats.mastery,
            stats.guard,
            stats.synergy,
        )
    )
    parts = [
        profile.id,
        profile.name,
        profile.display_name,
        profile.source,
        profile.scope,
        ",".join(profile.types),
        str(profile.level),
        str(profile.xp),
        stat_text,
        "|".join(sorted(profile.moves)),
        "|".join(sorted(profile.equipment)),
    ]
    return "::".join(parts)


def get_visual_profile_hash(profile: EntityProfile) -> str:
    return to_hex8(hash_string_to_uint32(build_visual_seed_input(profile)))


def build_visual_genome(profile: EntityProfile) -> VisualGenome:
    """Derive the baseline genome for a profile.

    Draw order from the seeded generator is fixed; changing it would change
    every sprite.
    """
    seed = hash_string_to_uint32(build_visual_seed_input(profile))
    rng = create_seeded_rng(seed)
    stats = profile.stats

    knowledge_bias = stat_bias(stats.knowledge)
    arsenal_bias = stat_bias(stats.arsenal)
    reflex_bias = stat_bias(stats.reflex)
    mastery_bias = stat_bias(stats.mastery)
    guard_bias = stat_bias(stats.guard)
    synergy_bias = stat_bias(stats.synergy)

    archetype = BODY_ARCHETYPES[random_int(rng, 0, len(BODY_ARCHETYPES))]
    silhouette = (random_int(rng, 0, 3) + guard_bias) % 3
    eye_style = (random_int(rng, 0, 4) + reflex_bias) % 4
    mouth_style = (random_int(rng, 0, 4) + mastery_bias) % 4
    horn_style = (random_int(rng, 0, 4) + knowledge_bias + guard_bias) % 4
    pattern_style = (random_int(rng, 0, 5) + mastery_bias) % 5
    weapon_style = (random_int(rng, 0, 4) + arsenal_bias) % 4
    aura_style = (random_int(rng, 0, 4) + synergy_bias) % 4
    pose_offset = random_int(rng, 0, 3) - 1
    handedness = -1 if random_int(rng, 0, 2) == 0 else 1

    return VisualGenome(
        seed=seed,
        archetype=archetype,
        silhouette=silhouette,
        eye_style=eye_style,
        mouth_style=mouth_style,
        horn_style=horn_style,
        pattern_style=pattern_style,
        weapon_style=weapon_style,
        aura_style=aura_style,
        pose_offset=pose_offset,
        handedness=handedness,
        armor_level=clamp(math.floor(normalize_stat(stats.guard) / 20), 0, 5),
        pattern_density=clamp(
            1 + math.floor(normalize_stat(stats.mastery) / 25), 1, 4
        ),
    )
