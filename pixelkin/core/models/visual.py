"""Visual genome and VisualSpec models.

A VisualGenome is the deterministic trait vector derived from a profile.
A VisualSpec is an optional, externally supplied design override; it is
validated and sanitized before it can influence a genome. Merging the two
yields a DesignedVisualGenome, which carries an explicit DesignExtension
record (body plan, motifs, brief, palette bias, composition, provenance).
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator

from .base import CamelModel


# =============================================================================
# Catalogs
# =============================================================================

VISUAL_SPEC_VERSION = "visual-spec-v1"
BASELINE_DESIGN_MODEL_VERSION = "deterministic-baseline-v1"
DESIGNER_AGENT_MODEL_VERSION = "designer-local-v1"

BodyArchetype = Literal["biped", "quadruped", "serpent", "avian", "brute", "slender"]
BodyPlan = Literal["sprinter", "bulwark", "mystic", "prowler", "colossus", "trickster"]
MotifPart = Literal[
    "crest",
    "antenna",
    "mantle",
    "fins",
    "claws",
    "tailSpike",
    "orb",
    "pack",
    "scarf",
]

BODY_ARCHETYPES: tuple[str, ...] = (
    "biped",
    "quadruped",
    "serpent",
    "avian",
    "brute",
    "slender",
)
BODY_PLANS: tuple[str, ...] = (
    "sprinter",
    "bulwark",
    "mystic",
    "prowler",
    "colossus",
    "trickster",
)
MOTIF_PARTS: tuple[str, ...] = (
    "crest",
    "antenna",
    "mantle",
    "fins",
    "claws",
    "tailSpike",
    "orb",
    "pack",
    "scarf",
)

DEFAULT_BODY_PLAN_BY_ARCHETYPE: dict[str, str] = {
    "brute": "colossus",
    "serpent": "trickster",
    "avian": "sprinter",
    "quadruped": "prowler",
    "slender": "mystic",
    "biped": "bulwark",
}

DEFAULT_MOTIFS_BY_BODY_PLAN: dict[str, tuple[str, ...]] = {
    "sprinter": ("fins", "scarf"),
    "bulwark": ("mantle", "claws"),
    "mystic": ("orb", "antenna"),
    "prowler": ("claws", "tailSpike"),
    "colossus": ("pack", "crest"),
    "trickster": ("tailSpike", "antenna"),
}


def match_catalog(value: Any, catalog: tuple[str, ...]) -> Any:
    """Return the canonical catalog entry for a case-insensitive match.

    Non-matching values are returned unchanged so the field's own type
    check reports them.
    """
    if not isinstance(value, str):
        return value
    needle = value.strip()
    if needle in catalog:
        return needle
    folded = needle.casefold()
    for entry in catalog:
        if entry.casefold() == folded:
            return entry
    return value


# =============================================================================
# Bounded field types
# =============================================================================

# Strict numbers reject bools and numeric strings.
StyleInt = Annotated[int, Field(strict=True)]
BoundedFloat = Annotated[float, Field(strict=True)]
NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# =============================================================================
# Design sub-records
# =============================================================================


class PaletteBias(CamelModel):
    """Resolved palette shifts applied on top of the seed-derived palette."""

    base_hue_shift: float = Field(default=0, ge=-45, le=45)
    base_sat_shift: float = Field(default=0, ge=-24, le=24)
    accent_hue_shift: float = Field(default=0, ge=-90, le=90)
    accent_sat_shift: float = Field(default=0, ge=-28, le=28)
    accent_light_shift: float = Field(default=0, ge=-16, le=16)
    contrast_boost: float = Field(default=0, ge=0, le=24)


class Composition(CamelModel):
    """Resolved proportions; scales multiply head/body radii."""

    head_scale: float = Field(default=1, ge=0.82, le=1.35)
    body_scale: float = Field(default=1, ge=0.82, le=1.35)
    limb_length_bias: int = Field(default=0, ge=-2, le=2)
    tail_length_bias: int = Field(default=0, ge=-2, le=4)


class VisualDesignBrief(CamelModel):
    """Short free-text design intent, four fields of 3-80 characters."""

    creature_core: str
    combat_role: str
    temperament: str
    signature_feature: str

    @field_validator(
        "creature_core", "combat_role", "temperament", "signature_feature", mode="before"
    )
    @classmethod
    def _sanitize_text(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("must be a string")
        text = value.strip()
        if len(text) < 3:
            raise ValueError("must contain at least 3 characters")
        return text[:80]


DEFAULT_PALETTE_BIAS = PaletteBias()
DEFAULT_COMPOSITION = Composition()
DEFAULT_BRIEF = VisualDesignBrief(
    creature_core="adaptive beast",
    combat_role="balanced skirmisher",
    temperament="calm",
    signature_feature="asymmetric crest",
)


class PaletteBiasOverride(CamelModel):
    """Optional palette shifts as supplied in a VisualSpec."""

    base_hue_shift: Annotated[BoundedFloat, Field(ge=-45, le=45)] | None = None
    base_sat_shift: Annotated[BoundedFloat, Field(ge=-24, le=24)] | None = None
    accent_hue_shift: Annotated[BoundedFloat, Field(ge=-90, le=90)] | None = None
    accent_sat_shift: Annotated[BoundedFloat, Field(ge=-28, le=28)] | None = None
    accent_light_shift: Annotated[BoundedFloat, Field(ge=-16, le=16)] | None = None
    contrast_boost: Annotated[BoundedFloat, Field(ge=0, le=24)] | None = None


class CompositionOverride(CamelModel):
    """Optional proportions as supplied in a VisualSpec."""

    head_scale: Annotated[BoundedFloat, Field(ge=0.82, le=1.35)] | None = None
    body_scale: Annotated[BoundedFloat, Field(ge=0.82, le=1.35)] | None = None
    limb_length_bias: Annotated[StyleInt, Field(ge=-2, le=2)] | None = None
    tail_length_bias: Annotated[StyleInt, Field(ge=-2, le=4)] | None = None


# =============================================================================
# VisualSpec
# =============================================================================


class VisualSpec(CamelModel):
    """Sanitized design override.

    Only ``version``, ``model_version`` and ``design_seed`` are required.
    Every other field is optional and falls back to the genome when merged.
    Field order is significant: it fixes the serialized form that is hashed.
    """

    version: Literal["visual-spec-v1"]
    model_version: NonEmptyText
    design_seed: Annotated[StyleInt, Field(ge=0, le=0xFFFFFFFF)]
    body_plan: BodyPlan | None = None
    motif_parts: list[MotifPart] | None = None
    brief: VisualDesignBrief | None = None
    archetype: BodyArchetype | None = None
    silhouette: Annotated[StyleInt, Field(ge=0, le=2)] | None = None
    eye_style: Annotated[StyleInt, Field(ge=0, le=3)] | None = None
    mouth_style: Annotated[StyleInt, Field(ge=0, le=3)] | None = None
    horn_style: Annotated[StyleInt, Field(ge=0, le=3)] | None = None
    pattern_style: Annotated[StyleInt, Field(ge=0, le=4)] | None = None
    weapon_style: Annotated[StyleInt, Field(ge=0, le=3)] | None = None
    aura_style: Annotated[StyleInt, Field(ge=0, le=3)] | None = None
    pose_offset: Annotated[StyleInt, Field(ge=-1, le=1)] | None = None
    handedness: Annotated[StyleInt, Field(ge=-1, le=1)] | None = None
    armor_level: Annotated[StyleInt, Field(ge=0, le=5)] | None = None
    pattern_density: Annotated[StyleInt, Field(ge=1, le=4)] | None = None
    palette_bias: PaletteBiasOverride | None = None
    composition: CompositionOverride | None = None

    @field_validator("body_plan", mode="before")
    @classmethod
    def _match_body_plan(cls, value: Any) -> Any:
        return match_catalog(value, BODY_PLANS)

    @field_validator("archetype", mode="before")
    @classmethod
    def _match_archetype(cls, value: Any) -> Any:
        return match_catalog(value, BODY_ARCHETYPES)

    @field_validator("motif_parts", mode="before")
    @classmethod
    def _sanitize_motifs(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("motifParts must be an array")
        if not 1 <= len(value) <= 3:
            raise ValueError("motifParts must contain 1..3 items")
        parsed: list[str] = []
        for item in value:
            motif = match_catalog(item, MOTIF_PARTS)
            if motif in MOTIF_PARTS and motif not in parsed:
                parsed.append(motif)
        if not parsed:
            raise ValueError("motifParts must include at least one supported motif")
        return parsed

    @field_validator("palette_bias", "composition")
    @classmethod
    def _drop_empty_override(cls, value: Any) -> Any:
        # An override with no fields set is the same as no override.
        if value is not None and not value.model_dump(exclude_none=True):
            return None
        return value


class VisualSpecValidation(BaseModel):
    """Outcome of validating an untrusted VisualSpec payload."""

    ok: bool
    spec: VisualSpec | None = None
    errors: list[str] = Field(default_factory=list)


# =============================================================================
# Genome
# =============================================================================


class DesignExtension(CamelModel):
    """Design decisions resolved by merging a VisualSpec into a genome."""

    body_plan: BodyPlan
    motif_parts: list[MotifPart]
    brief: VisualDesignBrief
    palette_bias: PaletteBias
    composition: Composition
    designer_model_version: str
    designer_spec_hash: str


class VisualGenome(CamelModel):
    """Deterministic trait vector that fully determines a procedural sprite."""

    seed: int = Field(ge=0, le=0xFFFFFFFF)
    archetype: BodyArchetype
    silhouette: int = Field(ge=0, le=2)
    eye_style: int = Field(ge=0, le=3)
    mouth_style: int = Field(ge=0, le=3)
    horn_style: int = Field(ge=0, le=3)
    pattern_style: int = Field(ge=0, le=4)
    weapon_style: int = Field(ge=0, le=3)
    aura_style: int = Field(ge=0, le=3)
    pose_offset: int = Field(ge=-1, le=1)
    handedness: int = Field(ge=-1, le=1)
    armor_level: int = Field(ge=0, le=5)
    pattern_density: int = Field(ge=1, le=4)
    design: DesignExtension | None = None


class DesignedVisualGenome(VisualGenome):
    """A genome whose design extension has been resolved."""

    design: DesignExtension


class DesignResolution(BaseModel):
    """Result of resolving the designed genome for one profile."""

    genome: DesignedVisualGenome
    used_fallback: bool
    cache_key: str
    validation_errors: list[str] = Field(default_factory=list)
