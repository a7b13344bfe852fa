"""Body geometry for the procedural renderer.

Stage base proportions are adjusted additively per archetype, scaled by the
composition and body plan, jittered per silhouette style, then clamped to
canvas-relative bounds. Creatures always face left (three-quarter view).
"""

import math
from dataclasses import dataclass

from ..core.models import (
    DEFAULT_COMPOSITION,
    Composition,
    EvolutionStage,
    VisualGenome,
)
from ..utils.seed import clamp, js_round


@dataclass(frozen=True)
class StageBase:
    head_center_y: int
    head_rx: int
    head_ry: int
    body_center_y: int
    body_rx: int
    body_ry: int


@dataclass(frozen=True)
class ArchetypeAdjust:
    head_dx: int
    body_dx: int
    head_rx: int
    head_ry: int
    body_rx: int
    body_ry: int
    head_dy: int
    body_dy: int


@dataclass(frozen=True)
class BodyPlanAdjust:
    head_scale: float
    body_scale: float
    limb_bias: int
    tail_bias: int
    pose_shift: int
    forward_bias: int


@dataclass(frozen=True)
class BodyGeometry:
    archetype: str
    body_plan: str
    motif_parts: tuple[str, ...]
    facing: int
    shadow_side: int
    limb_length_bias: int
    tail_length_bias: int
    center_x: int
    head_center_x: int
    head_center_y: int
    head_rx: int
    head_ry: int
    body_center_x: int
    body_center_y: int
    body_rx: int
    body_ry: int


_SMALL = StageBase(8, 5, 5, 16, 4, 5)
_MEDIUM = StageBase(9, 7, 7, 21, 7, 8)
_LARGE = StageBase(12, 10, 9, 30, 10, 12)

STAGE_BASE: dict[EvolutionStage, StageBase] = {
    EvolutionStage.BABY: _SMALL,
    EvolutionStage.CHILD: _MEDIUM,
    EvolutionStage.TEEN: _MEDIUM,
    EvolutionStage.ADULT: _LARGE,
    EvolutionStage.ULTIMATE: _LARGE,
}

ARCHETYPE_ADJUST: dict[str, ArchetypeAdjust] = {
    "biped": ArchetypeAdjust(1, 0, 0, 0, 0, 0, 0, 0),
    "brute": ArchetypeAdjust(0, 0, 1, 1, 2, 1, 0, 1),
    "slender": ArchetypeAdjust(1, 0, -1, 0, -2, 0, 0, 0),
    "quadruped": ArchetypeAdjust(3, -1, -1, -1, 2, -2, 1, 2),
    "avian": ArchetypeAdjust(1, 0, -1, -1, -1, -1, -1, 0),
    "serpent": ArchetypeAdjust(2, 0, -1, -1, 3, -3, 1, 1),
}

BODY_PLAN_ADJUST: dict[str, BodyPlanAdjust] = {
    "sprinter": BodyPlanAdjust(0.93, 0.92, 1, 1, 1, 2),
    "bulwark": BodyPlanAdjust(1.02, 1.16, -1, -1, 0, 1),
    "mystic": BodyPlanAdjust(1.14, 0.94, 0, 1, -1, 2),
    "prowler": BodyPlanAdjust(0.98, 1.02, 1, 2, 1, 2),
    "colossus": BodyPlanAdjust(0.9, 1.22, -2, -1, 0, 1),
    "trickster": BodyPlanAdjust(1.08, 0.9, 0, 2, -1, 2),
}

# silhouette style -> (dx, dy) radius jitter
SILHOUETTE_HEAD_ADJUST: dict[int, tuple[int, int]] = {0: (0, 0), 1: (1, -1), 2: (-1, 1)}
SILHOUETTE_BODY_ADJUST: dict[int, tuple[int, int]] = {0: (0, 0), 1: (2, -1), 2: (-1, 2)}

FACING_LEFT = -1


def _resolve_composition(genome: VisualGenome) -> Composition:
    return genome.design.composition if genome.design else DEFAULT_COMPOSITION


def _resolve_design(genome: VisualGenome) -> tuple[str, tuple[str, ...]]:
    if genome.design is None:
        return "sprinter", ()
    return genome.design.body_plan, tuple(genome.design.motif_parts[:3])


def _scaled(value: int, composition_scale: float, plan_scale: float) -> int:
    return js_round(value * composition_scale * plan_scale)


def shadow_side_for(handedness: int) -> int:
    """Shading falls on the side opposite the creature's handedness."""
    return 1 if handedness < 0 else -1


def compute_geometry(
    size: int, stage: EvolutionStage, genome: VisualGenome
) -> BodyGeometry:
    base = STAGE_BASE[stage]
    adjust = ARCHETYPE_ADJUST[genome.archetype]
    composition = _resolve_composition(genome)
    body_plan, motif_parts = _resolve_design(genome)
    plan = BODY_PLAN_ADJUST[body_plan]
    head_jx, head_jy = SILHOUETTE_HEAD_ADJUST[genome.silhouette]
    body_jx, body_jy = SILHOUETTE_BODY_ADJUST[genome.silhouette]
    facing = FACING_LEFT

    center_x = clamp(
        size // 2 + genome.pose_offset + plan.pose_shift + plan.forward_bias * facing,
        4,
        size - 5,
    )
    head_center_x = clamp(
        center_x
        + (
            adjust.head_dx
            + (1 if genome.silhouette == 1 else 0)
            + js_round(plan.forward_bias * 0.8)
        )
        * facing,
        3,
        size - 4,
    )
    body_center_x = clamp(
        center_x + (adjust.body_dx + js_round(plan.forward_bias * 0.35)) * facing,
        3,
        size - 4,
    )

    head_rx = clamp(
        _scaled(
            base.head_rx + adjust.head_rx + head_jx,
            composition.head_scale,
            plan.head_scale,
        ),
        3,
        math.floor(size * 0.32),
    )
    head_ry = clamp(
        _scaled(
            base.head_ry + adjust.head_ry + head_jy,
            composition.head_scale,
            plan.head_scale,
        ),
        3,
        math.floor(size * 0.28),
    )
    body_rx = clamp(
        _scaled(
            base.body_rx + adjust.body_rx + body_jx,
            composition.body_scale,
            plan.body_scale,
        ),
        3,
        math.floor(size * 0.36),
    )
    body_ry = clamp(
        _scaled(
            base.body_ry + adjust.body_ry + body_jy,
            composition.body_scale,
            plan.body_scale,
        ),
        4,
        math.floor(size * 0.36),
    )

    return BodyGeometry(
        archetype=genome.archetype,
        body_plan=body_plan,
        motif_parts=motif_parts,
        facing=facing,
        shadow_side=shadow_side_for(genome.handedness),
        limb_length_bias=clamp(composition.limb_length_bias + plan.limb_bias, -2, 3),
        tail_length_bias=clamp(composition.tail_length_bias + plan.tail_bias, -2, 5),
        center_x=center_x,
        head_center_x=head_center_x,
        head_center_y=clamp(
            base.head_center_y
            + adjust.head_dy
            - js_round((composition.head_scale - 1) * 2),
            3,
            size - 6,
        ),
        head_rx=head_rx,
        head_ry=head_ry,
        body_center_x=body_center_x,
        body_center_y=clamp(
            base.body_center_y
            + adjust.body_dy
            + js_round((composition.body_scale - 1) * 3),
            5,
            size - 5,
        ),
        body_rx=body_rx,
        body_ry=body_ry,
    )
