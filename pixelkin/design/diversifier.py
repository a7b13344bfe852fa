"""Portfolio diversification of VisualSpecs across a batch.

Specs are diversified one at a time, in batch order, against the specs
already accepted for that batch. Each call runs a bounded mutate-and-score
search for a spec that is both far enough from its siblings and rich
enough to look designed. The search is best effort: after
``MAX_DIVERSIFY_ATTEMPTS`` mutations the best candidate seen is returned
whether or not it clears the thresholds.
"""

import logging
import math
from collections.abc import Sequence

from ..core.models import BODY_PLANS, MOTIF_PARTS, VisualDesignBrief, VisualSpec
from ..pixel.visual_spec import validate_visual_spec
from ..utils.seed import (
    clamp,
    create_seeded_rng,
    hash_string_to_uint32,
    random_between,
    random_int,
    round2,
)

logger = logging.getLogger(__name__)

MIN_SPEC_DISTANCE = 0.38
MIN_QUALITY_SCORE = 0.55
MAX_DIVERSIFY_ATTEMPTS = 6

# Acceptance weights for candidates whose shortfall ties the current best.
DISTANCE_GAIN_WEIGHT = 0.72
QUALITY_GAIN_WEIGHT = 0.28
MIN_WEIGHTED_GAIN = 0.015

DISCRETE_FIELDS = (
    "body_plan",
    "archetype",
    "silhouette",
    "eye_style",
    "mouth_style",
    "horn_style",
    "pattern_style",
    "weapon_style",
    "aura_style",
    "pose_offset",
    "handedness",
)

# (section, field, default, range)
NUMERIC_FIELDS: tuple[tuple[str, str, float, float], ...] = (
    ("palette_bias", "base_hue_shift", 0, 90),
    ("palette_bias", "accent_hue_shift", 0, 180),
    ("palette_bias", "accent_sat_shift", 0, 56),
    ("palette_bias", "contrast_boost", 0, 24),
    ("composition", "head_scale", 1, 0.53),
    ("composition", "body_scale", 1, 0.53),
    ("composition", "limb_length_bias", 0, 4),
    ("composition", "tail_length_bias", 0, 6),
)


# =============================================================================
# Scoring
# =============================================================================


def _nested(spec: VisualSpec, section: str, field: str, default: float) -> float:
    group = getattr(spec, section)
    if group is None:
        return default
    value = getattr(group, field)
    return default if value is None else value


def jaccard_distance(a: set[str], b: set[str]) -> float:
    if not a and not b:
        return 0.0
    return 1 - len(a & b) / len(a | b)


def spec_distance(a: VisualSpec, b: VisualSpec) -> float:
    """Weighted distance in [0, 1] between two specs.

    60% discrete style fields, 25% motif-set Jaccard distance, 15% mean
    normalized difference of palette and composition numbers.
    """
    discrete = sum(
        1 for name in DISCRETE_FIELDS if getattr(a, name) != getattr(b, name)
    ) / len(DISCRETE_FIELDS)

    motifs = jaccard_distance(set(a.motif_parts or []), set(b.motif_parts or []))

    numeric = sum(
        min(
            1,
            abs(_nested(a, section, field, default) - _nested(b, section, field, default))
            / max(0.001, span),
        )
        for section, field, default, span in NUMERIC_FIELDS
    ) / len(NUMERIC_FIELDS)

    return discrete * 0.6 + motifs * 0.25 + numeric * 0.15


def min_spec_distance(spec: VisualSpec, accepted: Sequence[VisualSpec]) -> float:
    """Distance to the nearest accepted spec; 1 when nothing is accepted yet."""
    return min([1.0, *(spec_distance(spec, other) for other in accepted)])


def spec_quality(spec: VisualSpec) -> float:
    """Heuristic richness score in [0, 1]."""
    motif_score = clamp(len(spec.motif_parts or []) / 3, 0, 1)
    body_plan_score = 1 if spec.body_plan else 0

    brief_score = 0.0
    if spec.brief is not None:
        fields = (
            spec.brief.creature_core,
            spec.brief.combat_role,
            spec.brief.temperament,
            spec.brief.signature_feature,
        )
        brief_score = sum(1 for text in fields if len(text.strip()) >= 4) / 4

    accent_hue = _nested(spec, "palette_bias", "accent_hue_shift", 0)
    contrast = _nested(spec, "palette_bias", "contrast_boost", 0)
    palette_score = clamp((abs(accent_hue) / 90 + contrast / 24) / 2, 0, 1)

    head = _nested(spec, "composition", "head_scale", 1)
    body = _nested(spec, "composition", "body_scale", 1)
    tail = _nested(spec, "composition", "tail_length_bias", 0)
    composition_score = clamp((abs(head - body) / 0.35 + abs(tail) / 4) / 2, 0, 1)

    return (
        motif_score * 0.25
        + body_plan_score * 0.2
        + brief_score * 0.2
        + palette_score * 0.2
        + composition_score * 0.15
    )


def shortfall(distance: float, quality: float) -> float:
    """Combined amount by which a candidate misses both thresholds."""
    return max(0.0, MIN_SPEC_DISTANCE - distance) + max(0.0, MIN_QUALITY_SCORE - quality)


def is_candidate_better(
    distance: float, quality: float, best_distance: float, best_quality: float
) -> bool:
    """Accept a candidate that lowers the shortfall, or ties it with a real gain."""
    candidate = shortfall(distance, quality)
    current = shortfall(best_distance, best_quality)
    if math.isclose(candidate, current, abs_tol=1e-9):
        gain = (
            DISTANCE_GAIN_WEIGHT * (distance - best_distance)
            + QUALITY_GAIN_WEIGHT * (quality - best_quality)
        )
        return gain > MIN_WEIGHTED_GAIN
    return candidate < current


# =============================================================================
# Normalization and mutation
# =============================================================================


def dedupe_motifs(parts: Sequence[str]) -> list[str]:
    unique: list[str] = []
    for part in parts:
        if part in MOTIF_PARTS and part not in unique:
            unique.append(part)
    return unique[:3] or ["crest"]


def normalize_spec_for_portfolio(spec: VisualSpec) -> VisualSpec:
    """Fill the fields scoring depends on: body plan, motifs and brief."""
    motifs = dedupe_motifs(spec.motif_parts or [])
    body_plan = spec.body_plan if spec.body_plan in BODY_PLANS else BODY_PLANS[0]
    if spec.brief is not None:
        core, role, temperament, signature = (
            spec.brief.creature_core,
            spec.brief.combat_role,
            spec.brief.temperament,
            spec.brief.signature_feature,
        )
    else:
        core, role, temperament = "adaptive beast", "balanced skirmisher", "calm"
        signature = " + ".join(motifs)
    brief = VisualDesignBrief(
        creature_core=core.strip()[:80],
        combat_role=role.strip()[:80],
        temperament=temperament.strip()[:80],
        signature_feature=signature.strip()[:80],
    )
    return spec.model_copy(
        update={"body_plan": body_plan, "motif_parts": motifs, "brief": brief}
    )


def _rotate(value: int, modulo: int, delta: int) -> int:
    return (value + delta) % modulo


def mutate_spec(spec: VisualSpec, entity_id: str, attempt: int) -> dict:
    """One seeded mutation of ``spec``, as an unvalidated camelCase payload.

    The mutation family cycles with ``attempt``: body plan, one motif,
    face and silhouette styles, then palette and composition.
    """
    seed = hash_string_to_uint32(
        f"{entity_id}:{spec.design_seed}:{attempt}:{spec.model_version}"
    )
    rng = create_seeded_rng(seed)
    payload = spec.to_payload()
    motifs = list(spec.motif_parts) if spec.motif_parts is not None else ["crest", "tailSpike"]

    kind = attempt % 4
    if kind == 0:
        current = spec.body_plan or BODY_PLANS[0]
        index = BODY_PLANS.index(current) if current in BODY_PLANS else 0
        step = 1 + random_int(rng, 0, 3)
        payload["bodyPlan"] = BODY_PLANS[(index + step) % len(BODY_PLANS)]
    elif kind == 1:
        replace_index = random_int(rng, 0, len(motifs)) if motifs else 0
        replacement = MOTIF_PARTS[random_int(rng, 0, len(MOTIF_PARTS))]
        if motifs:
            motifs[replace_index] = replacement
        else:
            motifs.append(replacement)
        payload["motifParts"] = dedupe_motifs(motifs)
    elif kind == 2:
        payload["silhouette"] = _rotate(spec.silhouette or 0, 3, random_int(rng, 1, 3))
        payload["eyeStyle"] = _rotate(spec.eye_style or 0, 4, random_int(rng, 1, 3))
        payload["mouthStyle"] = _rotate(spec.mouth_style or 0, 4, random_int(rng, 1, 3))
        payload["hornStyle"] = _rotate(spec.horn_style or 0, 4, random_int(rng, 1, 3))
    else:
        bias = dict(payload.get("paletteBias", {}))
        bias["accentHueShift"] = clamp(
            bias.get("accentHueShift", 0) + random_int(rng, -28, 29), -90, 90
        )
        bias["accentSatShift"] = clamp(
            bias.get("accentSatShift", 0) + random_int(rng, -10, 11), -28, 28
        )
        bias["contrastBoost"] = clamp(
            bias.get("contrastBoost", 0) + random_int(rng, 1, 7), 0, 24
        )
        composition = dict(payload.get("composition", {}))
        composition["headScale"] = round2(
            clamp(composition.get("headScale", 1) + random_between(rng, -0.1, 0.12), 0.82, 1.35)
        )
        composition["bodyScale"] = round2(
            clamp(composition.get("bodyScale", 1) + random_between(rng, -0.12, 0.1), 0.82, 1.35)
        )
        payload["paletteBias"] = bias
        payload["composition"] = composition

    payload["designSeed"] = hash_string_to_uint32(f"{seed}:mutated")
    return payload


# =============================================================================
# Search
# =============================================================================


def diversify_spec_for_portfolio(
    entity_id: str, spec: VisualSpec, accepted: Sequence[VisualSpec]
) -> VisualSpec:
    """Best-effort search for a spec distinct from ``accepted`` and rich enough.

    Must be called sequentially in stable batch order, with ``accepted``
    holding the already-finalized results, for batch output to be
    reproducible.
    """
    best = normalize_spec_for_portfolio(spec)
    best_distance = min_spec_distance(best, accepted)
    best_quality = spec_quality(best)

    for attempt in range(MAX_DIVERSIFY_ATTEMPTS):
        if best_distance >= MIN_SPEC_DISTANCE and best_quality >= MIN_QUALITY_SCORE:
            break

        validation = validate_visual_spec(mutate_spec(best, entity_id, attempt))
        if not validation.ok or validation.spec is None:
            logger.debug(
                "Discarding invalid mutation %d for %s: %s",
                attempt,
                entity_id,
                validation.errors[:3],
            )
            continue

        candidate = normalize_spec_for_portfolio(validation.spec)
        distance = min_spec_distance(candidate, accepted)
        quality = spec_quality(candidate)
        if is_candidate_better(distance, quality, best_distance, best_quality):
            best, best_distance, best_quality = candidate, distance, quality

    logger.debug(
        "Diversified %s: distance=%.3f quality=%.3f", entity_id, best_distance, best_quality
    )
    return best
