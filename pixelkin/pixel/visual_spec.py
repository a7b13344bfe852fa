"""VisualSpec validation, hashing, and merging into a genome.

Validation is all-or-nothing: any present field that is out of range or of
the wrong type rejects the whole spec with a list of messages. It never
raises. Merging layers a sanitized spec (or nothing) over a baseline genome
and re-clamps every numeric field.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..core.models import (
    BASELINE_DESIGN_MODEL_VERSION,
    DEFAULT_BODY_PLAN_BY_ARCHETYPE,
    DEFAULT_BRIEF,
    DEFAULT_MOTIFS_BY_BODY_PLAN,
    MOTIF_PARTS,
    Composition,
    DesignExtension,
    DesignedVisualGenome,
    PaletteBias,
    VisualGenome,
    VisualSpec,
    VisualSpecValidation,
)
from ..utils.seed import clamp, hash_string_to_uint32, js_round, to_hex8

logger = logging.getLogger(__name__)


def get_default_body_plan(archetype: str) -> str:
    return DEFAULT_BODY_PLAN_BY_ARCHETYPE.get(archetype, "sprinter")


def get_default_motifs_for_body_plan(body_plan: str) -> list[str]:
    return list(DEFAULT_MOTIFS_BY_BODY_PLAN.get(body_plan, ("crest",)))


def sanitize_motif_parts(parts: list[str]) -> list[str]:
    """Drop unknown and duplicate motifs, keep at most three, never empty."""
    result: list[str] = []
    for part in parts:
        if part in MOTIF_PARTS and part not in result:
            result.append(part)
    return result[:3] or ["crest"]


# =============================================================================
# Validation
# =============================================================================


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error["loc"])
    message = error["msg"]
    if location:
        return f"{location}: {message}"
    return message


def validate_visual_spec(payload: Any) -> VisualSpecValidation:
    """Validate an untrusted VisualSpec payload.

    Returns a VisualSpecValidation with ``ok``, the sanitized spec (enum
    strings canonicalized, motifs deduplicated, brief text trimmed) and the
    error list. Messages are prefixed with the offending field path.
    """
    if isinstance(payload, VisualSpec):
        payload = payload.to_payload()
    if not isinstance(payload, dict):
        return VisualSpecValidation(ok=False, errors=["VisualSpec must be an object"])

    try:
        spec = VisualSpec.model_validate(payload)
    except ValidationError as exc:
        errors = [_format_error(error) for error in exc.errors()]
        logger.debug("Rejected VisualSpec: %s", "; ".join(errors))
        return VisualSpecValidation(ok=False, errors=errors)

    return VisualSpecValidation(ok=True, spec=spec)


def hash_visual_spec(spec: VisualSpec) -> str:
    """Stable 8-hex-digit hash of the spec's compact serialized form."""
    text = json.dumps(spec.to_payload(), separators=(",", ":"), ensure_ascii=False)
    return to_hex8(hash_string_to_uint32(text))


# =============================================================================
# Merge
# =============================================================================


def _merge_palette_bias(spec: VisualSpec | None) -> PaletteBias:
    override = (
        spec.palette_bias.model_dump(exclude_none=True)
        if spec and spec.palette_bias
        else {}
    )
    merged = {**PaletteBias().model_dump(), **override}
    return PaletteBias(
        base_hue_shift=clamp(merged["base_hue_shift"], -45, 45),
        base_sat_shift=clamp(merged["base_sat_shift"], -24, 24),
        accent_hue_shift=clamp(merged["accent_hue_shift"], -90, 90),
        accent_sat_shift=clamp(merged["accent_sat_shift"], -28, 28),
        accent_light_shift=clamp(merged["accent_light_shift"], -16, 16),
        contrast_boost=clamp(merged["contrast_boost"], 0, 24),
    )


def _merge_composition(spec: VisualSpec | None) -> Composition:
    override = (
        spec.composition.model_dump(exclude_none=True)
        if spec and spec.composition
        else {}
    )
    merged = {**Composition().model_dump(), **override}
    return Composition(
        head_scale=clamp(merged["head_scale"], 0.82, 1.35),
        body_scale=clamp(merged["body_scale"], 0.82, 1.35),
        limb_length_bias=clamp(js_round(merged["limb_length_bias"]), -2, 2),
        tail_length_bias=clamp(js_round(merged["tail_length_bias"]), -2, 4),
    )


def _pick(spec: VisualSpec | None, base: VisualGenome, field: str):
    value = getattr(spec, field) if spec is not None else None
    return getattr(base, field) if value is None else value


def merge_visual_spec_into_genome(
    base_genome: VisualGenome, spec: VisualSpec | None
) -> DesignedVisualGenome:
    """Overlay a sanitized spec onto a baseline genome.

    Each field takes the spec's value when present, else the genome's, else
    a default. With ``spec=None`` the result is the deterministic fallback
    design for the genome's archetype.
    """
    archetype = _pick(spec, base_genome, "archetype")
    body_plan = (
        spec.body_plan
        if spec and spec.body_plan
        else get_default_body_plan(base_genome.archetype)
    )
    motif_parts = sanitize_motif_parts(
        spec.motif_parts
        if spec and spec.motif_parts
        else get_default_motifs_for_body_plan(body_plan)
    )
    brief = spec.brief if spec and spec.brief else DEFAULT_BRIEF

    design = DesignExtension(
        body_plan=body_plan,
        motif_parts=motif_parts,
        brief=brief.model_copy(),
        palette_bias=_merge_palette_bias(spec),
        composition=_merge_composition(spec),
        designer_model_version=(
            spec.model_version if spec else BASELINE_DESIGN_MODEL_VERSION
        ),
        designer_spec_hash=hash_visual_spec(spec) if spec else "fallback",
    )

    return DesignedVisualGenome(
        seed=base_genome.seed,
        archetype=archetype,
        silhouette=_pick(spec, base_genome, "silhouette"),
        eye_style=_pick(spec, base_genome, "eye_style"),
        mouth_style=_pick(spec, base_genome, "mouth_style"),
        horn_style=_pick(spec, base_genome, "horn_style"),
        pattern_style=_pick(spec, base_genome, "pattern_style"),
        weapon_style=_pick(spec, base_genome, "weapon_style"),
        aura_style=_pick(spec, base_genome, "aura_style"),
        pose_offset=_pick(spec, base_genome, "pose_offset"),
        handedness=_pick(spec, base_genome, "handedness"),
        armor_level=clamp(_pick(spec, base_genome, "armor_level"), 0, 5),
        pattern_density=clamp(_pick(spec, base_genome, "pattern_density"), 1, 4),
        design=design,
    )
