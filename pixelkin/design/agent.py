"""Designer agents and design resolution.

A designer agent proposes a VisualSpec for a profile. The local agent is a
deterministic function of the profile's traits and baseline genome; the
provider agent asks a remote model and normalizes its reply. Whatever an
agent returns is validated before it is merged, and any failure resolves
to the fallback design for the baseline genome.
"""

import json
import logging
from typing import Any, Protocol, runtime_checkable

from ..core.models import (
    BODY_PLANS,
    DESIGNER_AGENT_MODEL_VERSION,
    MOTIF_PARTS,
    VISUAL_SPEC_VERSION,
    DesignResolution,
    EntityProfile,
    EntityStats,
    PromptBundle,
    VisualGenome,
    VisualSpec,
)
from ..core.providers.base import DesignProvider
from ..pixel.genome import build_visual_seed_input, get_visual_profile_hash
from ..pixel.visual_spec import merge_visual_spec_into_genome, validate_visual_spec
from ..utils.seed import (
    Mulberry32,
    clamp,
    create_seeded_rng,
    hash_string_to_uint32,
    js_round,
    random_between,
    random_int,
    round2,
)
from .cache import DesignCache
from .normalize import normalize_remote_visual_spec

logger = logging.getLogger(__name__)

DESIGN_QUALITY_RULES = (
    "Design original retro monster sprites only.",
    "Use a readable 3/4 composition and asymmetry.",
    "Keep silhouette clarity at 24px and 48px scales.",
    "Use coherent pixel clusters and avoid noisy single-pixel dithering.",
    "Favor 30-45 degree contour diagonals for lively stance.",
    "Favor 2-3 dominant masses with accent landmarks.",
    "Use contrast-driven color accents, not flat monochrome.",
)

DESIGNER_TEMPERATURE = 0.2


# =============================================================================
# Per-trait design tables
# =============================================================================

ARCHETYPE_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("avian", "slender", "biped"),
    "arsenal": ("brute", "biped", "quadruped"),
    "reflex": ("avian", "quadruped", "slender"),
    "mastery": ("serpent", "slender", "avian"),
    "guard": ("brute", "quadruped", "biped"),
    "synergy": ("serpent", "avian", "quadruped"),
}

BODY_PLAN_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("mystic", "trickster", "sprinter"),
    "arsenal": ("bulwark", "colossus", "prowler"),
    "reflex": ("sprinter", "prowler", "trickster"),
    "mastery": ("mystic", "trickster", "prowler"),
    "guard": ("bulwark", "colossus", "prowler"),
    "synergy": ("trickster", "sprinter", "mystic"),
}

MOTIF_POOL_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("orb", "antenna", "crest"),
    "arsenal": ("pack", "claws", "mantle"),
    "reflex": ("fins", "scarf", "tailSpike"),
    "mastery": ("crest", "orb", "mantle"),
    "guard": ("mantle", "pack", "claws"),
    "synergy": ("tailSpike", "antenna", "fins"),
}

BRIEF_CORE_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("archive drake", "astral familiar", "cipher owl"),
    "arsenal": ("forge beast", "siege chimera", "iron marauder"),
    "reflex": ("wind raptor", "razor lynx", "flash serpent"),
    "mastery": ("rune artisan", "echo chimera", "ritual hunter"),
    "guard": ("aegis golem", "ward sentinel", "bastion wolf"),
    "synergy": ("pulse spirit", "aether runner", "phase basilisk"),
}

BRIEF_ROLE_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("ranged controller", "analysis caster", "tactical support"),
    "arsenal": ("frontline breaker", "weapon specialist", "siege vanguard"),
    "reflex": ("hit-and-run striker", "counter skirmisher", "flank punisher"),
    "mastery": ("pattern manipulator", "hybrid tactician", "setup specialist"),
    "guard": ("zone defender", "shield anchor", "formation tank"),
    "synergy": ("tempo disruptor", "combo enabler", "field coordinator"),
}

BRIEF_TEMPERAMENT_BY_STAT: dict[str, tuple[str, ...]] = {
    "knowledge": ("composed", "calculating", "reserved"),
    "arsenal": ("aggressive", "unyielding", "driven"),
    "reflex": ("restless", "focused", "predatory"),
    "mastery": ("curious", "methodical", "crafty"),
    "guard": ("stoic", "protective", "disciplined"),
    "synergy": ("adaptive", "playful", "opportunistic"),
}

STYLE_KEYS = ("silhouette", "eye", "mouth", "horn", "pattern", "weapon", "aura", "pose")

STYLE_VECTOR_BY_STAT: dict[str, dict[str, int]] = {
    "knowledge": dict(zip(STYLE_KEYS, (-1, 1, 0, 2, 1, 0, 1, 0))),
    "arsenal": dict(zip(STYLE_KEYS, (1, 0, 1, 0, 1, 2, 0, 1))),
    "reflex": dict(zip(STYLE_KEYS, (-1, 2, 0, 0, 1, 1, 1, 1))),
    "mastery": dict(zip(STYLE_KEYS, (0, 0, 1, 1, 2, 0, 0, 0))),
    "guard": dict(zip(STYLE_KEYS, (1, 0, -1, 1, 0, 1, 0, -1))),
    "synergy": dict(zip(STYLE_KEYS, (0, 1, 1, 0, 1, 0, 2, 0))),
}


# =============================================================================
# Local spec generation
# =============================================================================


def rank_stats(stats: EntityStats) -> list[str]:
    """Trait names by descending value, ties broken alphabetically."""
    return [name for name, _ in sorted(stats.as_dict().items(), key=lambda kv: (-kv[1], kv[0]))]


def _merge_style_vectors(primary: str, secondary: str) -> dict[str, int]:
    p = STYLE_VECTOR_BY_STAT[primary]
    s = STYLE_VECTOR_BY_STAT[secondary]
    return {key: js_round(p[key] * 0.7 + s[key] * 0.3) for key in STYLE_KEYS}


def _pick_motif_parts(primary: str, secondary: str, rng: Mulberry32) -> list[str]:
    pool = [*MOTIF_POOL_BY_STAT[primary], *MOTIF_POOL_BY_STAT[secondary], *MOTIF_PARTS]
    result: list[str] = []
    target_count = random_int(rng, 2, 4)

    while len(result) < target_count and pool:
        pick = pool.pop(random_int(rng, 0, len(pool)))
        if pick not in result:
            result.append(pick)

    return result[:3] or ["crest", "tailSpike"]


def _pick_by_stat(
    primary: str, secondary: str, source: dict[str, tuple[str, ...]], rng: Mulberry32
) -> str:
    candidates = [*source[primary], *source[secondary]]
    return candidates[random_int(rng, 0, len(candidates))]


def _wrap(value: int, modulo: int) -> int:
    return value % modulo


def generate_local_visual_spec(
    profile: EntityProfile,
    base_genome: VisualGenome,
    model_version: str = DESIGNER_AGENT_MODEL_VERSION,
) -> VisualSpec:
    """Deterministic VisualSpec driven by the profile's two strongest traits.

    The seeded draw order is fixed: archetype, body plan, motifs, brief,
    style jitter, pose, handedness, armor, density, palette bias and then
    composition.
    """
    seed = hash_string_to_uint32(
        f"{model_version}:{build_visual_seed_input(profile)}:{base_genome.seed}"
    )
    rng = create_seeded_rng(seed)
    stats = profile.stats
    ranked = rank_stats(stats)
    primary, secondary = ranked[0], ranked[1]

    archetypes = ARCHETYPE_BY_STAT[primary]
    archetype = archetypes[random_int(rng, 0, len(archetypes))]
    body_plans = BODY_PLAN_BY_STAT[primary]
    body_plan = body_plans[random_int(rng, 0, len(body_plans))]

    motif_parts = _pick_motif_parts(primary, secondary, rng)
    brief = {
        "creatureCore": _pick_by_stat(primary, secondary, BRIEF_CORE_BY_STAT, rng),
        "combatRole": _pick_by_stat(primary, secondary, BRIEF_ROLE_BY_STAT, rng),
        "temperament": _pick_by_stat(primary, secondary, BRIEF_TEMPERAMENT_BY_STAT, rng),
        "signatureFeature": " + ".join(motif_parts),
    }

    vector = _merge_style_vectors(primary, secondary)
    jitter = random_int(rng, -1, 2)
    pose_offset = clamp(base_genome.pose_offset + vector["pose"] + random_int(rng, -1, 2), -1, 1)
    handedness = 1 if rng() > (0.42 if stats.reflex >= stats.guard else 0.58) else -1
    armor_level = clamp(
        js_round(base_genome.armor_level + (stats.guard - 50) / 25 + (rng() - 0.5)), 0, 5
    )
    pattern_density = clamp(
        js_round(base_genome.pattern_density + (stats.mastery - 50) / 30 + (rng() - 0.5)),
        1,
        4,
    )

    palette_bias = {
        "baseHueShift": clamp(
            js_round((stats.mastery - stats.guard) / 7) + random_int(rng, -9, 10), -45, 45
        ),
        "baseSatShift": clamp(
            js_round((stats.synergy - stats.knowledge) / 8) + random_int(rng, -6, 7), -24, 24
        ),
        "accentHueShift": clamp(
            js_round((stats.reflex - stats.knowledge) / 5) + random_int(rng, -18, 19), -90, 90
        ),
        "accentSatShift": clamp(
            js_round((stats.arsenal - 50) / 4) + random_int(rng, -8, 9), -28, 28
        ),
        "accentLightShift": clamp(
            js_round((stats.knowledge - stats.mastery) / 10) + random_int(rng, -4, 5), -16, 16
        ),
        "contrastBoost": clamp(
            js_round((stats.reflex + stats.guard) / 14) + random_int(rng, -2, 3), 0, 24
        ),
    }

    composition = {
        "headScale": clamp(
            round2(
                1 + (stats.knowledge - stats.arsenal) / 260 + random_between(rng, -0.08, 0.09)
            ),
            0.82,
            1.35,
        ),
        "bodyScale": clamp(
            round2(1 + (stats.guard - stats.reflex) / 260 + random_between(rng, -0.08, 0.09)),
            0.82,
            1.35,
        ),
        "limbLengthBias": clamp(
            js_round((stats.reflex - stats.guard) / 28 + random_between(rng, -0.9, 1)), -2, 2
        ),
        "tailLengthBias": clamp(
            js_round((stats.synergy - stats.knowledge) / 24 + random_between(rng, -1, 2)),
            -2,
            4,
        ),
    }

    return VisualSpec.model_validate(
        {
            "version": VISUAL_SPEC_VERSION,
            "modelVersion": model_version,
            "designSeed": seed,
            "bodyPlan": body_plan,
            "motifParts": motif_parts,
            "brief": brief,
            "archetype": archetype,
            "silhouette": _wrap(base_genome.silhouette + vector["silhouette"] + jitter, 3),
            "eyeStyle": _wrap(base_genome.eye_style + vector["eye"] + jitter, 4),
            "mouthStyle": _wrap(base_genome.mouth_style + vector["mouth"], 4),
            "hornStyle": _wrap(base_genome.horn_style + vector["horn"], 4),
            "patternStyle": _wrap(base_genome.pattern_style + vector["pattern"], 5),
            "weaponStyle": _wrap(base_genome.weapon_style + vector["weapon"], 4),
            "auraStyle": _wrap(base_genome.aura_style + vector["aura"], 4),
            "poseOffset": pose_offset,
            "handedness": handedness,
            "armorLevel": armor_level,
            "patternDensity": pattern_density,
            "paletteBias": palette_bias,
            "composition": composition,
        }
    )


# =============================================================================
# Prompt
# =============================================================================


def get_visual_design_cache_key(
    profile: EntityProfile, base_genome: VisualGenome, model_version: str
) -> str:
    return f"{get_visual_profile_hash(profile)}:{base_genome.seed}:{model_version}"


def _sanitize_role_hint(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if len(trimmed) < 3:
        return None
    return trimmed[:160]


def _output_schema(model_version: str) -> str:
    schema = {
        "version": VISUAL_SPEC_VERSION,
        "modelVersion": model_version,
        "designSeed": "uint32",
        "bodyPlan": "|".join(BODY_PLANS),
        "motifParts": "1..3 items from motif catalog",
        "brief": {
            "creatureCore": "string",
            "combatRole": "string",
            "temperament": "string",
            "signatureFeature": "string",
        },
        "archetype": "biped|quadruped|serpent|avian|brute|slender?",
        "silhouette": "0|1|2?",
        "eyeStyle": "0|1|2|3?",
        "mouthStyle": "0|1|2|3?",
        "hornStyle": "0|1|2|3?",
        "patternStyle": "0|1|2|3|4?",
        "weaponStyle": "0|1|2|3?",
        "auraStyle": "0|1|2|3?",
        "poseOffset": "-1|0|1?",
        "handedness": "-1|1?",
        "armorLevel": "0..5?",
        "patternDensity": "1..4?",
        "paletteBias": {
            "baseHueShift": "-45..45?",
            "baseSatShift": "-24..24?",
            "accentHueShift": "-90..90?",
            "accentSatShift": "-28..28?",
            "accentLightShift": "-16..16?",
            "contrastBoost": "0..24?",
        },
        "composition": {
            "headScale": "0.82..1.35?",
            "bodyScale": "0.82..1.35?",
            "limbLengthBias": "-2..2?",
            "tailLengthBias": "-2..4?",
        },
    }
    return json.dumps(schema, indent=2)


def build_designer_prompt(
    profile: EntityProfile,
    base_genome: VisualGenome,
    model_version: str = DESIGNER_AGENT_MODEL_VERSION,
    role_hint: str | None = None,
) -> PromptBundle:
    """Build the designer prompt for one profile.

    Args:
        profile: Entity being designed
        base_genome: Its baseline genome; the seed is quoted to the model
        model_version: Provenance tag the reply should carry
        role_hint: Optional user-supplied art direction, trimmed to 160 chars

    Returns:
        PromptBundle with system, user and output_schema text
    """
    system_lines = [
        "You are the Pixelkin design agent.",
        "Role: Retro Monster Pixel Art Director.",
        "Never mimic named IP characters or trademarked designs.",
    ]
    hint = _sanitize_role_hint(role_hint)
    if hint:
        system_lines.append(
            f"Experimental role hint (user-specified): {hint}. "
            "Use only for quality direction, keep design original."
        )
    system_lines.extend(f"- {rule}" for rule in DESIGN_QUALITY_RULES)

    stats = profile.stats
    stat_text = ", ".join(
        f"{name}={js_round(value)}" for name, value in stats.as_dict().items()
    )
    user_lines = [
        f"Target: {profile.display_name} ({profile.id})",
        f"Source: {profile.source}/{profile.scope}",
        f"Stage: {profile.stage.value} Lv.{profile.level}",
        f"Types: {', '.join(profile.types)}",
        f"Stats: {stat_text}",
        f"BaseGenomeSeed: {base_genome.seed}",
        f"ModelVersion: {model_version}",
        f"BodyPlanCatalog: {', '.join(BODY_PLANS)}",
        f"MotifCatalog: {', '.join(MOTIF_PARTS)}",
        "Return only JSON that matches VisualSpec schema.",
    ]

    return PromptBundle(
        system="\n".join(system_lines),
        user="\n".join(user_lines),
        output_schema=_output_schema(model_version),
    )


# =============================================================================
# Agents
# =============================================================================


@runtime_checkable
class DesignerAgent(Protocol):
    """Anything that can propose a VisualSpec payload for a profile."""

    model_version: str

    def design(
        self, profile: EntityProfile, base_genome: VisualGenome, prompt: PromptBundle
    ) -> Any: ...


class LocalDesignerAgent:
    """Deterministic in-process designer. Ignores the prompt."""

    model_version = DESIGNER_AGENT_MODEL_VERSION

    def design(
        self, profile: EntityProfile, base_genome: VisualGenome, prompt: PromptBundle
    ) -> VisualSpec:
        return generate_local_visual_spec(profile, base_genome, self.model_version)


class ProviderDesignerAgent:
    """Designer backed by a remote DesignProvider.

    The reply is coerced by ``normalize_remote_visual_spec`` but not
    validated here; callers validate every agent result.
    """

    def __init__(self, provider: DesignProvider, role_hint: str | None = None) -> None:
        self.provider = provider
        self.role_hint = role_hint
        self.model_version = provider.model_version

    def build_prompt(self, profile: EntityProfile, base_genome: VisualGenome) -> PromptBundle:
        return build_designer_prompt(profile, base_genome, self.model_version, self.role_hint)

    def design(
        self, profile: EntityProfile, base_genome: VisualGenome, prompt: PromptBundle
    ) -> dict[str, Any]:
        raw = self.provider.complete_json(prompt, temperature=DESIGNER_TEMPERATURE)
        return normalize_remote_visual_spec(raw, profile, base_genome.seed, self.model_version)


# =============================================================================
# Resolution
# =============================================================================


def resolve_embedded_visual_spec(profile: EntityProfile) -> VisualSpec | None:
    if not isinstance(profile.visual_spec, dict):
        return None
    validation = validate_visual_spec(profile.visual_spec)
    return validation.spec if validation.ok else None


def resolve_designed_genome(
    profile: EntityProfile,
    base_genome: VisualGenome,
    agent: DesignerAgent | None = None,
    cache: DesignCache | None = None,
) -> DesignResolution:
    """Resolve the designed genome for a profile.

    Order: a valid spec embedded on the profile, then a memoized result in
    ``cache``, then a fresh ``agent.design`` call. A cached ``None`` and
    any agent failure both resolve to the fallback design. Agent
    exceptions are logged and never propagate.
    """
    embedded = resolve_embedded_visual_spec(profile)
    if embedded is not None:
        key = get_visual_design_cache_key(profile, base_genome, embedded.model_version)
        if cache is not None and key not in cache:
            cache.set(key, embedded)
        return DesignResolution(
            genome=merge_visual_spec_into_genome(base_genome, embedded),
            used_fallback=False,
            cache_key=key,
        )

    agent = agent or LocalDesignerAgent()
    key = get_visual_design_cache_key(profile, base_genome, agent.model_version)
    if cache is not None and key in cache:
        cached = cache.get(key)
        return DesignResolution(
            genome=merge_visual_spec_into_genome(base_genome, cached),
            used_fallback=cached is None,
            cache_key=key,
            validation_errors=["cached fallback"] if cached is None else [],
        )

    prompt = build_designer_prompt(profile, base_genome, agent.model_version)
    try:
        raw = agent.design(profile, base_genome, prompt)
    except Exception as exc:
        logger.warning("Designer agent failed for %s: %s", profile.id, exc)
        if cache is not None:
            cache.set(key, None)
        return DesignResolution(
            genome=merge_visual_spec_into_genome(base_genome, None),
            used_fallback=True,
            cache_key=key,
            validation_errors=[f"designer agent exception: {exc}"],
        )

    validation = validate_visual_spec(raw)
    if not validation.ok or validation.spec is None:
        logger.info(
            "Designer output rejected for %s: %s", profile.id, "; ".join(validation.errors[:3])
        )
        if cache is not None:
            cache.set(key, None)
        return DesignResolution(
            genome=merge_visual_spec_into_genome(base_genome, None),
            used_fallback=True,
            cache_key=key,
            validation_errors=validation.errors,
        )

    spec = validation.spec
    if spec.model_version != agent.model_version:
        spec = spec.model_copy(update={"model_version": agent.model_version})
    if cache is not None:
        cache.set(key, spec)
    return DesignResolution(
        genome=merge_visual_spec_into_genome(base_genome, spec),
        used_fallback=False,
        cache_key=key,
    )
