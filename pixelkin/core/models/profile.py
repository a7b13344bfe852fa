"""Entity profile models and YAML/JSON I/O.

An EntityProfile is the read-only input to sprite derivation: identity,
progression, six 0-100 traits, an evolution stage, and optional pre-supplied
design payloads (a VisualSpec or a raw sprite asset) that are validated when
they are used.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field

from .base import CamelModel


# =============================================================================
# Stage and type enumerations
# =============================================================================


class EvolutionStage(str, Enum):
    BABY = "baby"
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
    ULTIMATE = "ultimate"


STAGE_SIZES: dict[EvolutionStage, int] = {
    EvolutionStage.BABY: 24,
    EvolutionStage.CHILD: 32,
    EvolutionStage.TEEN: 32,
    EvolutionStage.ADULT: 48,
    EvolutionStage.ULTIMATE: 48,
}

# Stages at which the weapon layer may appear.
WEAPON_STAGES = frozenset(
    {EvolutionStage.TEEN, EvolutionStage.ADULT, EvolutionStage.ULTIMATE}
)

EntityType = Literal["scholar", "arsenal", "sentinel", "artisan", "guardian", "catalyst"]

ENTITY_TYPES: tuple[str, ...] = (
    "scholar",
    "arsenal",
    "sentinel",
    "artisan",
    "guardian",
    "catalyst",
)

STAT_NAMES: tuple[str, ...] = (
    "knowledge",
    "arsenal",
    "reflex",
    "mastery",
    "guard",
    "synergy",
)


def sprite_size_for_stage(stage: EvolutionStage | str) -> int:
    return STAGE_SIZES[EvolutionStage(stage)]


# =============================================================================
# Profile models
# =============================================================================


class EntityStats(CamelModel):
    """Six traits, each on a 0-100 scale."""

    knowledge: float = Field(default=0, ge=0, le=100)
    arsenal: float = Field(default=0, ge=0, le=100)
    reflex: float = Field(default=0, ge=0, le=100)
    mastery: float = Field(default=0, ge=0, le=100)
    guard: float = Field(default=0, ge=0, le=100)
    synergy: float = Field(default=0, ge=0, le=100)

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in STAT_NAMES}


class EntityProfile(CamelModel):
    """Everything the sprite pipeline knows about one entity."""

    id: str
    name: str
    display_name: str = ""
    source: str = "command"
    scope: Literal["global", "project"] = "project"
    level: int = Field(default=1, ge=0)
    xp: int = Field(default=0, ge=0)
    types: list[EntityType] = Field(default_factory=list, max_length=2)
    stats: EntityStats = Field(default_factory=EntityStats)
    stage: EvolutionStage = EvolutionStage.BABY
    moves: list[str] = Field(
        default_factory=list, description="Names of capabilities the entity has"
    )
    equipment: list[str] = Field(default_factory=list)
    visual_spec: dict[str, Any] | None = Field(
        default=None, description="Untrusted VisualSpec payload, validated on use"
    )
    sprite_asset: dict[str, Any] | None = Field(
        default=None, description="Untrusted sprite asset payload, validated on use"
    )

    @property
    def sprite_size(self) -> int:
        return STAGE_SIZES[self.stage]

    def to_yaml(self, path: Path | str) -> None:
        """Save profile to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        with open(path, "w") as f:
            yaml.dump(
                data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "EntityProfile":
        """Load profile from YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)


def load_profiles(path: Path | str) -> list[EntityProfile]:
    """Load a list of profiles from a YAML or JSON file.

    The file may hold a bare list or a mapping with a ``profiles`` key.
    """
    path = Path(path)
    with open(path) as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("profiles", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of profiles in {path}")
    return [EntityProfile.model_validate(item) for item in data]
