"""Lenient coercion of provider output into a VisualSpec-shaped payload.

Remote models return approximately-right JSON: numbers as strings, enum
names in odd casing, motif lists as comma-separated text, out-of-range
values. This module salvages what it can (clamping numbers, matching enums
case-insensitively, dropping unusable fields) and always emits the three
required fields. The result is still untrusted and goes through
``validate_visual_spec`` like any other payload.
"""

import math
import re
from typing import Any

from ..core.models import (
    BODY_ARCHETYPES,
    BODY_PLANS,
    MOTIF_PARTS,
    VISUAL_SPEC_VERSION,
    EntityProfile,
    match_catalog,
)
from ..utils.seed import UINT32_MASK, clamp, hash_string_to_uint32, js_round

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_MOTIF_SEPARATORS = re.compile(r"[,\n|/]+")
_WHITESPACE = re.compile(r"\s+")

# field -> (min, max)
STYLE_BOUNDS: dict[str, tuple[int, int]] = {
    "silhouette": (0, 2),
    "eyeStyle": (0, 3),
    "mouthStyle": (0, 3),
    "hornStyle": (0, 3),
    "patternStyle": (0, 4),
    "weaponStyle": (0, 3),
    "auraStyle": (0, 3),
    "poseOffset": (-1, 1),
    "armorLevel": (0, 5),
    "patternDensity": (1, 4),
}
PALETTE_BIAS_BOUNDS: dict[str, tuple[float, float]] = {
    "baseHueShift": (-45, 45),
    "baseSatShift": (-24, 24),
    "accentHueShift": (-90, 90),
    "accentSatShift": (-28, 28),
    "accentLightShift": (-16, 16),
    "contrastBoost": (0, 24),
}
COMPOSITION_FLOAT_BOUNDS: dict[str, tuple[float, float]] = {
    "headScale": (0.82, 1.35),
    "bodyScale": (0.82, 1.35),
}
COMPOSITION_INT_BOUNDS: dict[str, tuple[int, int]] = {
    "limbLengthBias": (-2, 2),
    "tailLengthBias": (-2, 4),
}
BRIEF_FIELDS = ("creatureCore", "combatRole", "temperament", "signatureFeature")
HANDEDNESS_WORDS = {"left": -1, "l": -1, "right": 1, "r": 1}


def read_number(value: Any) -> float | None:
    """Finite number from a JSON number or the numeric prefix of a string.

    Integers too large to represent as a float are unusable.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if match:
            parsed = float(match.group(0))
            return parsed if math.isfinite(parsed) else None
    return None


def _read_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def _read_enum(value: Any, catalog: tuple[str, ...]) -> str | None:
    matched = match_catalog(value, catalog)
    return matched if isinstance(matched, str) and matched in catalog else None


def read_motif_parts(value: Any) -> list[str]:
    if isinstance(value, list):
        raw = [item for item in value if isinstance(item, str)]
    elif isinstance(value, str):
        raw = _MOTIF_SEPARATORS.split(value)
    else:
        raw = []

    motifs: list[str] = []
    for item in raw:
        token = _WHITESPACE.sub("", item)
        motif = _read_enum(token, MOTIF_PARTS) if token else None
        if motif and motif not in motifs:
            motifs.append(motif)
    return motifs[:3]


def read_brief(value: Any) -> dict[str, str] | None:
    """All four brief fields of at least 3 characters, or nothing."""
    if not isinstance(value, dict):
        return None
    brief = {}
    for name in BRIEF_FIELDS:
        text = _read_text(value.get(name))
        if text is None or len(text) < 3:
            return None
        brief[name] = text[:80]
    return brief


def _read_bounded(
    value: Any, bounds: dict[str, tuple[float, float]], round_values: bool = False
) -> dict[str, float]:
    if not isinstance(value, dict):
        return {}
    out = {}
    for key, (low, high) in bounds.items():
        parsed = read_number(value.get(key))
        if parsed is None:
            continue
        out[key] = clamp(js_round(parsed) if round_values else parsed, low, high)
    return out


def _read_handedness(value: Any) -> int | None:
    if isinstance(value, str):
        word = value.strip().lower()
        if word in HANDEDNESS_WORDS:
            return HANDEDNESS_WORDS[word]
    parsed = read_number(value)
    if parsed is None:
        return None
    return js_round(clamp(parsed, -1, 1))


def normalize_design_seed(value: Any, fallback_text: str) -> int:
    parsed = read_number(value)
    if parsed is not None:
        return js_round(parsed) & UINT32_MASK
    text = _read_text(value)
    if text is not None:
        return hash_string_to_uint32(text)
    return hash_string_to_uint32(fallback_text)


def normalize_remote_visual_spec(
    raw: Any, profile: EntityProfile, base_seed: int, model_version: str
) -> dict[str, Any]:
    """Coerce raw provider JSON into a camelCase VisualSpec payload."""
    source = raw if isinstance(raw, dict) else {}
    fallback_seed_text = ":".join(
        [model_version, profile.id, profile.name, profile.display_name, str(base_seed)]
    )
    payload: dict[str, Any] = {
        "version": VISUAL_SPEC_VERSION,
        "modelVersion": _read_text(source.get("modelVersion")) or model_version,
        "designSeed": normalize_design_seed(source.get("designSeed"), fallback_seed_text),
    }

    if body_plan := _read_enum(source.get("bodyPlan"), BODY_PLANS):
        payload["bodyPlan"] = body_plan
    if motifs := read_motif_parts(source.get("motifParts")):
        payload["motifParts"] = motifs
    if brief := read_brief(source.get("brief")):
        payload["brief"] = brief
    if archetype := _read_enum(source.get("archetype"), BODY_ARCHETYPES):
        payload["archetype"] = archetype

    for key, (low, high) in STYLE_BOUNDS.items():
        parsed = read_number(source.get(key))
        if parsed is not None:
            payload[key] = js_round(clamp(parsed, low, high))
    handedness = _read_handedness(source.get("handedness"))
    if handedness is not None:
        payload["handedness"] = handedness

    if palette_bias := _read_bounded(source.get("paletteBias"), PALETTE_BIAS_BOUNDS):
        payload["paletteBias"] = palette_bias
    composition = {
        **_read_bounded(source.get("composition"), COMPOSITION_FLOAT_BOUNDS),
        **_read_bounded(source.get("composition"), COMPOSITION_INT_BOUNDS, True),
    }
    if composition:
        payload["composition"] = composition

    return payload
