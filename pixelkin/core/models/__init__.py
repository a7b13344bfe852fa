"""All Pydantic models for Pixelkin, organized by domain.

This package centralizes all model definitions:
- profile.py: Entity profiles, stats, evolution stages
- visual.py: Visual genomes, VisualSpecs, design extensions, catalogs
- sprite.py: Sprite layers/definitions and asset validation/quality results
- design.py: Provider prompt bundles and batch hydration results
"""

from .base import CamelModel

# Profile models
from .profile import (
    EvolutionStage,
    EntityType,
    EntityStats,
    EntityProfile,
    ENTITY_TYPES,
    STAT_NAMES,
    STAGE_SIZES,
    WEAPON_STAGES,
    sprite_size_for_stage,
    load_profiles,
)

# Visual design models
from .visual import (
    # Catalogs
    VISUAL_SPEC_VERSION,
    BASELINE_DESIGN_MODEL_VERSION,
    DESIGNER_AGENT_MODEL_VERSION,
    BodyArchetype,
    BodyPlan,
    MotifPart,
    BODY_ARCHETYPES,
    BODY_PLANS,
    MOTIF_PARTS,
    DEFAULT_BODY_PLAN_BY_ARCHETYPE,
    DEFAULT_MOTIFS_BY_BODY_PLAN,
    match_catalog,
    # Design records
    PaletteBias,
    Composition,
    VisualDesignBrief,
    DEFAULT_PALETTE_BIAS,
    DEFAULT_COMPOSITION,
    DEFAULT_BRIEF,
    PaletteBiasOverride,
    CompositionOverride,
    # Spec
    VisualSpec,
    VisualSpecValidation,
    # Genome
    DesignExtension,
    VisualGenome,
    DesignedVisualGenome,
    DesignResolution,
)

# Sprite models
from .sprite import (
    PALETTE_SIZE,
    TRANSPARENT,
    SpriteLayer,
    SpriteDefinition,
    SpriteAssetValidation,
    SpriteAssetQuality,
    StoredSpriteAsset,
)

# Design provider and hydration models
from .design import (
    PromptBundle,
    DesignerHydrationResult,
    SpriteHydrationResult,
)

__all__ = [
    "CamelModel",
    # Profile
    "EvolutionStage",
    "EntityType",
    "EntityStats",
    "EntityProfile",
    "ENTITY_TYPES",
    "STAT_NAMES",
    "STAGE_SIZES",
    "WEAPON_STAGES",
    "sprite_size_for_stage",
    "load_profiles",
    # Catalogs
    "VISUAL_SPEC_VERSION",
    "BASELINE_DESIGN_MODEL_VERSION",
    "DESIGNER_AGENT_MODEL_VERSION",
    "BodyArchetype",
    "BodyPlan",
    "MotifPart",
    "BODY_ARCHETYPES",
    "BODY_PLANS",
    "MOTIF_PARTS",
    "DEFAULT_BODY_PLAN_BY_ARCHETYPE",
    "DEFAULT_MOTIFS_BY_BODY_PLAN",
    "match_catalog",
    # Design records
    "PaletteBias",
    "Composition",
    "VisualDesignBrief",
    "DEFAULT_PALETTE_BIAS",
    "DEFAULT_COMPOSITION",
    "DEFAULT_BRIEF",
    "PaletteBiasOverride",
    "CompositionOverride",
    # Spec
    "VisualSpec",
    "VisualSpecValidation",
    # Genome
    "DesignExtension",
    "VisualGenome",
    "DesignedVisualGenome",
    "DesignResolution",
    # Sprite
    "PALETTE_SIZE",
    "TRANSPARENT",
    "SpriteLayer",
    "SpriteDefinition",
    "SpriteAssetValidation",
    "SpriteAssetQuality",
    "StoredSpriteAsset",
    # Design
    "PromptBundle",
    "DesignerHydrationResult",
    "SpriteHydrationResult",
]
