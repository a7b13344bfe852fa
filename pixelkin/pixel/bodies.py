"""Body layer rendering, dispatched on body archetype.

Biped, brute and slender share one limbed routine parametrized by limb
bonuses; quadruped, avian and serpent each have their own. After drawing,
the far side of head and body is trimmed for a three-quarter look, armor is
plated on, and the layer is outlined.
"""

import math
from dataclasses import dataclass
from functools import partial
from typing import Callable

from ..core.models import EntityStats, SpriteLayer, VisualGenome
from ..utils.seed import clamp, js_round
from .canvas import (
    Grid,
    apply_outline,
    create_grid,
    draw_ellipse,
    draw_line,
    draw_rect,
    draw_shadow_half,
    set_pixel,
)
from .geometry import BodyGeometry
from .palette import PixelIndex


@dataclass(frozen=True)
class BodyColors:
    dark: int = PixelIndex.BASE_DARK
    mid: int = PixelIndex.BASE_MID
    light: int = PixelIndex.BASE_LIGHT


@dataclass(frozen=True)
class LimbOptions:
    arm_length_bonus: int
    leg_length_bonus: int
    arm_thickness_bonus: int
    leg_width: int


BodyDrawer = Callable[[Grid, BodyGeometry, EntityStats, BodyColors, VisualGenome], None]

FORESHORTENING_DEPTH: dict[str, int] = {
    "sprinter": 2,
    "mystic": 2,
    "prowler": 2,
    "trickster": 2,
    "bulwark": 1,
    "colossus": 1,
}


# =============================================================================
# Archetype routines
# =============================================================================


def draw_limbed_body(
    pixels: Grid,
    geo: BodyGeometry,
    stats: EntityStats,
    colors: BodyColors,
    genome: VisualGenome,
    *,
    limbs: Callable[[int], LimbOptions],
) -> None:
    size = len(pixels)
    opts = limbs(size)
    f = geo.facing

    head = (geo.head_center_x, geo.head_center_y, geo.head_rx, geo.head_ry)
    body = (geo.body_center_x, geo.body_center_y, geo.body_rx, geo.body_ry)
    draw_ellipse(pixels, *head, colors.mid)
    draw_ellipse(pixels, *body, colors.light)
    draw_shadow_half(pixels, *head, colors.dark, geo.shadow_side)
    draw_shadow_half(pixels, *body, colors.mid, geo.shadow_side)

    shoulder_y = geo.body_center_y - geo.body_ry + 2
    arm_length = clamp(
        math.floor(geo.body_ry * 0.8)
        + math.floor(stats.arsenal / 34)
        + opts.arm_length_bonus
        + geo.limb_length_bias,
        2,
        math.floor(size * 0.3),
    )
    arm_thickness = clamp(
        1 + math.floor(stats.guard / 45) + opts.arm_thickness_bonus, 1, 4
    )
    near_arm_x = geo.body_center_x + f * (geo.body_rx + 1)
    far_arm_x = geo.body_center_x - f * (geo.body_rx + 1)

    for t in range(arm_thickness):
        for i in range(arm_length):
            set_pixel(pixels, near_arm_x + t * f, shoulder_y + i, colors.dark)
            if t < max(1, arm_thickness - 1):
                set_pixel(pixels, far_arm_x - t * f, shoulder_y + i, colors.mid)

    leg_length = clamp(
        math.floor(geo.body_ry * 0.55)
        + 1
        + opts.leg_length_bonus
        + geo.limb_length_bias,
        2,
        math.floor(size * 0.24),
    )
    leg_gap = max(2, geo.body_rx // 2)
    leg_y_start = geo.body_center_y + math.floor(geo.body_ry * 0.45)
    near_leg_x = geo.body_center_x + f * leg_gap
    far_leg_x = geo.body_center_x - f * leg_gap

    for y in range(leg_y_start, leg_y_start + leg_length):
        for dx in range(opts.leg_width):
            set_pixel(pixels, near_leg_x + dx * f, y, colors.dark)
            set_pixel(pixels, far_leg_x - dx * f, y, colors.mid)

    foot_y = leg_y_start + leg_length
    for dx in range(-1, opts.leg_width + 2):
        set_pixel(pixels, near_leg_x + dx * f, foot_y, colors.dark)
        set_pixel(pixels, far_leg_x - dx * f, foot_y, colors.mid)

    if geo.archetype == "slender":
        draw_line(
            pixels,
            geo.body_center_x - 2,
            geo.body_center_y,
            geo.body_center_x + 2,
            geo.body_center_y + 1,
            colors.dark,
        )


def draw_quadruped_body(
    pixels: Grid,
    geo: BodyGeometry,
    stats: EntityStats,
    colors: BodyColors,
    genome: VisualGenome,
) -> None:
    f = geo.facing
    body = (
        geo.body_center_x,
        geo.body_center_y,
        max(3, geo.body_rx + 1),
        max(3, geo.body_ry - 2),
    )

    draw_ellipse(pixels, *body, colors.light)
    draw_ellipse(
        pixels,
        geo.head_center_x,
        geo.head_center_y,
        max(3, geo.head_rx - 1),
        max(3, geo.head_ry - 1),
        colors.mid,
    )
    draw_line(
        pixels,
        geo.head_center_x - f,
        geo.head_center_y + geo.head_ry - 1,
        geo.body_center_x + f,
        geo.body_center_y - geo.body_ry + 1,
        colors.mid,
    )
    draw_shadow_half(pixels, *body, colors.mid, geo.shadow_side)

    leg_y = geo.body_center_y + math.floor((geo.body_ry - 1) * 0.5)
    front_x = geo.body_center_x + f * (geo.body_rx - 1)
    back_x = geo.body_center_x - f * (geo.body_rx - 2)
    leg_length = clamp(4 + geo.limb_length_bias, 2, 7)

    for i in range(leg_length):
        near_color = colors.dark if i % 2 == 0 else colors.mid
        set_pixel(pixels, front_x, leg_y + i, near_color)
        set_pixel(pixels, front_x - f, leg_y + i, colors.mid)
        set_pixel(pixels, back_x, leg_y + i, near_color)
        set_pixel(pixels, back_x - f, leg_y + i, colors.mid)

    tail_x = geo.body_center_x - f * (geo.body_rx + 1)
    tail_y = geo.body_center_y - 1
    tail_length = max(2, geo.body_rx // 2 + geo.tail_length_bias)
    for i in range(tail_length):
        set_pixel(pixels, tail_x - f * i, tail_y - i // 2, colors.dark)

    if genome.armor_level >= 2:
        draw_line(
            pixels,
            geo.body_center_x - geo.body_rx + 1,
            geo.body_center_y,
            geo.body_center_x + geo.body_rx - 1,
            geo.body_center_y - 1,
            colors.dark,
        )


def draw_avian_body(
    pixels: Grid,
    geo: BodyGeometry,
    stats: EntityStats,
    colors: BodyColors,
    genome: VisualGenome,
) -> None:
    f = geo.facing
    body = (
        geo.body_center_x,
        geo.body_center_y,
        max(3, geo.body_rx - 1),
        max(3, geo.body_ry - 1),
    )

    draw_ellipse(pixels, *body, colors.light)
    draw_ellipse(
        pixels,
        geo.head_center_x,
        geo.head_center_y,
        max(3, geo.head_rx - 1),
        max(3, geo.head_ry - 2),
        colors.mid,
    )
    draw_shadow_half(pixels, *body, colors.mid, geo.shadow_side)

    wing_y = geo.body_center_y - 1
    near_wing_x = geo.body_center_x + f * (geo.body_rx - 1)
    far_wing_x = geo.body_center_x - f * (geo.body_rx - 1)
    wing_span = max(
        3, math.floor(geo.body_rx * 1.1) + max(0, geo.tail_length_bias)
    )
    for i in range(wing_span):
        set_pixel(pixels, near_wing_x + f * i, wing_y + i // 2, colors.dark)
        set_pixel(pixels, far_wing_x - f * i, wing_y + i // 3, colors.mid)

    beak_x = geo.head_center_x + f * (geo.head_rx + 1)
    beak_y = geo.head_center_y + 1
    set_pixel(pixels, beak_x, beak_y, colors.dark)
    set_pixel(pixels, beak_x + f, beak_y, colors.dark)

    leg_y_start = geo.body_center_y + math.floor(geo.body_ry * 0.5)
    leg_gap = max(1, geo.body_rx // 3)
    leg_length = clamp(3 + geo.limb_length_bias, 2, 6)
    for i in range(leg_length):
        set_pixel(pixels, geo.body_center_x - leg_gap, leg_y_start + i, colors.dark)
        set_pixel(pixels, geo.body_center_x + leg_gap, leg_y_start + i, colors.mid)

    if genome.armor_level >= 3:
        draw_ellipse(
            pixels,
            geo.body_center_x,
            geo.body_center_y,
            max(2, geo.body_rx // 2),
            2,
            colors.dark,
        )


def draw_serpent_body(
    pixels: Grid,
    geo: BodyGeometry,
    stats: EntityStats,
    colors: BodyColors,
    genome: VisualGenome,
) -> None:
    """Sinusoidal chain of small segments instead of a single body ellipse."""
    f = geo.facing
    segments = clamp(11 + geo.tail_length_bias, 8, 17)
    wave = max(2, (geo.body_ry + geo.head_ry) // 3)
    body_length = max(8, math.floor(geo.body_rx * 2.3) + geo.tail_length_bias * 2)

    for i in range(segments):
        t = i / (segments - 1)
        x = js_round(geo.body_center_x + (t - 0.5) * body_length * f)
        y = js_round(
            geo.body_center_y
            + math.sin((t + genome.pose_offset * 0.12) * math.pi * 2) * wave
        )
        draw_ellipse(pixels, x, y, 2, 1, colors.light if i % 2 == 0 else colors.mid)

    head = (
        geo.head_center_x,
        geo.head_center_y,
        max(3, geo.head_rx),
        max(3, geo.head_ry - 1),
    )
    draw_ellipse(pixels, *head, colors.mid)
    draw_shadow_half(pixels, *head, colors.dark, geo.shadow_side)

    tail_x = geo.body_center_x - f * (body_length // 2) - f
    tail_y = geo.body_center_y + 1
    set_pixel(pixels, tail_x, tail_y, colors.dark)
    set_pixel(pixels, tail_x - f, tail_y, PixelIndex.SHADOW)


BODY_DRAWERS: dict[str, BodyDrawer] = {
    "biped": partial(
        draw_limbed_body,
        limbs=lambda size: LimbOptions(0, 0, 0, 1 if size <= 24 else 2),
    ),
    "brute": partial(
        draw_limbed_body,
        limbs=lambda size: LimbOptions(-1, -1, 2, 2 if size <= 24 else 3),
    ),
    "slender": partial(
        draw_limbed_body,
        limbs=lambda size: LimbOptions(1, 2, -1, 1),
    ),
    "quadruped": draw_quadruped_body,
    "avian": draw_avian_body,
    "serpent": draw_serpent_body,
}


# =============================================================================
# Post-processing
# =============================================================================


def trim_far_side(
    pixels: Grid, cx: int, cy: int, rx: int, ry: int, facing: int, depth: int
) -> None:
    """Zero up to ``depth`` pixels at the far edge of each wide enough row."""
    width = len(pixels[0]) if pixels else 0
    trim = clamp(depth, 0, 3)
    if trim <= 0:
        return

    left = clamp(cx - rx - 1, 0, width - 1)
    right = clamp(cx + rx + 1, 0, width - 1)
    for y in range(cy - ry - 1, cy + ry + 2):
        if not 0 <= y < len(pixels):
            continue
        row = pixels[y]
        filled = [x for x in range(left, right + 1) if row[x] != 0]
        if not filled:
            continue
        near, far = filled[0], filled[-1]
        if far - near < 6:
            continue

        for i in range(trim):
            if facing == -1:
                x = far - i
                if x > near + 2:
                    row[x] = 0
            else:
                x = near + i
                if x < far - 2:
                    row[x] = 0


def apply_foreshortening(pixels: Grid, geo: BodyGeometry) -> None:
    depth = FORESHORTENING_DEPTH.get(geo.body_plan, 1)
    head = (geo.head_center_x, geo.head_center_y, geo.head_rx, geo.head_ry)
    body = (geo.body_center_x, geo.body_center_y, geo.body_rx, geo.body_ry)
    trim_far_side(pixels, *head, geo.facing, depth)
    trim_far_side(pixels, *body, geo.facing, depth + 1)


def draw_armor_plate(
    pixels: Grid, geo: BodyGeometry, color: int, armor_level: int
) -> None:
    plate_height = 1 + armor_level // 2
    plate_width = max(3, math.floor(geo.body_rx * 1.2))
    plate_x = geo.body_center_x - plate_width // 2
    plate_y = geo.body_center_y - plate_height // 2

    draw_rect(pixels, plate_x, plate_y, plate_width, plate_height, color)
    if armor_level >= 3:
        top = plate_y - 1
        draw_line(pixels, plate_x, top, plate_x + plate_width, top, color)


def generate_body_layer(
    size: int,
    geo: BodyGeometry,
    stats: EntityStats,
    genome: VisualGenome,
    colors: BodyColors = BodyColors(),
) -> SpriteLayer:
    pixels = create_grid(size)
    BODY_DRAWERS[geo.archetype](pixels, geo, stats, colors, genome)
    apply_foreshortening(pixels, geo)

    if genome.armor_level > 0 and geo.archetype != "serpent":
        draw_armor_plate(pixels, geo, colors.dark, genome.armor_level)

    return SpriteLayer(name="body", pixels=apply_outline(pixels, PixelIndex.OUTLINE))
