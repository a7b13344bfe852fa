"""Secondary sprite layers and layer assembly.

Each layer kind is a dispatch table keyed by its style value, so adding a
style means adding one drawing function. Layers are emitted bottom to top:
body, pattern, face, horn, motif, then the stage-gated weapon and aura.
Empty secondary layers are dropped.
"""

import math
from typing import Callable

from ..core.models import (
    EntityProfile,
    EvolutionStage,
    SpriteLayer,
    VisualGenome,
    WEAPON_STAGES,
)
from ..utils.seed import clamp, js_round
from .bodies import generate_body_layer
from .canvas import (
    Grid,
    apply_outline,
    create_grid,
    draw_ellipse,
    draw_line,
    draw_rect,
    has_visible_pixels,
    set_pixel,
)
from .geometry import BodyGeometry, compute_geometry
from .palette import PixelIndex as P

WEAPON_ARSENAL_THRESHOLD = 30


# =============================================================================
# Pattern
# =============================================================================


def _pattern_blot(pixels: Grid, geo: BodyGeometry, density: int, main: int, alt: int):
    cx, cy = geo.body_center_x, geo.body_center_y
    draw_ellipse(pixels, cx, cy, 2 + density // 2, 2, main)
    if density >= 3:
        draw_ellipse(pixels, cx, cy, 4, 1, alt)


def _pattern_stripes(pixels: Grid, geo: BodyGeometry, density: int, main: int, alt: int):
    left, right, top, bottom = _pattern_bounds(geo)
    stripe_count = density + 1
    for i in range(1, stripe_count + 1):
        x = left + (i * (right - left)) // (stripe_count + 1)
        for y in range(top, bottom + 1):
            set_pixel(pixels, x, y, main)


def _pattern_lanes(pixels: Grid, geo: BodyGeometry, density: int, main: int, alt: int):
    left, right, top, bottom = _pattern_bounds(geo)
    span = max(1, right - left + 1)
    for lane in range(density):
        for y in range(top, bottom + 1):
            set_pixel(pixels, left + ((y - top + lane * 2) % span), y, main)


def _pattern_cross(pixels: Grid, geo: BodyGeometry, density: int, main: int, alt: int):
    left, right, top, bottom = _pattern_bounds(geo)
    draw_line(pixels, left, top, right, bottom, main)
    draw_line(pixels, right, top, left, bottom, main)
    if density >= 3:
        draw_line(pixels, geo.body_center_x, top, geo.body_center_x, bottom, alt)


def _pattern_dots(pixels: Grid, geo: BodyGeometry, density: int, main: int, alt: int):
    left, right, _, _ = _pattern_bounds(geo)
    cx, cy = geo.body_center_x, geo.body_center_y
    radius = max(2, (right - left) // 3)
    count = 4 + density
    for i in range(count):
        angle = (i * math.pi * 2) / count
        x = js_round(cx + radius * math.cos(angle))
        y = js_round(cy + radius * math.sin(angle))
        set_pixel(pixels, x, y, main)
    set_pixel(pixels, cx, cy, alt)


PatternDrawer = Callable[[Grid, BodyGeometry, int, int, int], None]

PATTERN_STYLES: dict[int, PatternDrawer] = {
    0: _pattern_blot,
    1: _pattern_stripes,
    2: _pattern_lanes,
    3: _pattern_cross,
    4: _pattern_dots,
}


def _pattern_bounds(geo: BodyGeometry) -> tuple[int, int, int, int]:
    return (
        geo.body_center_x - geo.body_rx + 2,
        geo.body_center_x + geo.body_rx - 2,
        geo.body_center_y - geo.body_ry + 2,
        geo.body_center_y + geo.body_ry - 2,
    )


def generate_pattern_layer(size: int, geo: BodyGeometry, genome: VisualGenome) -> SpriteLayer:
    pixels = create_grid(size)
    main = P.ACCENT_LIGHT if genome.pattern_style % 2 == 0 else P.ACCENT
    alt = P.RUNE if genome.pattern_style % 3 == 0 else P.SPOT
    PATTERN_STYLES[genome.pattern_style](
        pixels, geo, genome.pattern_density, main, alt
    )
    return SpriteLayer(name="pattern", pixels=pixels)


# =============================================================================
# Face
# =============================================================================


def _eyes_round(pixels: Grid, near_x: int, far_x: int, y: int) -> None:
    draw_rect(pixels, near_x - 1, y - 1, 2, 2, P.HIGHLIGHT)
    draw_rect(pixels, far_x, y - 1, 1, 2, P.HIGHLIGHT)
    set_pixel(pixels, near_x, y, P.SPOT)
    set_pixel(pixels, far_x, y, P.SPOT)
    set_pixel(pixels, near_x - 1, y - 1, P.SPOT_LIGHT)


def _eyes_narrow(pixels: Grid, near_x: int, far_x: int, y: int) -> None:
    draw_line(pixels, near_x - 2, y, near_x + 1, y, P.HIGHLIGHT)
    draw_line(pixels, far_x - 1, y, far_x + 1, y, P.HIGHLIGHT)
    set_pixel(pixels, near_x, y, P.SPOT)
    set_pixel(pixels, far_x, y, P.SPOT)


def _eyes_visor(pixels: Grid, near_x: int, far_x: int, y: int) -> None:
    draw_line(pixels, far_x - 1, y, near_x + 2, y, P.HIGHLIGHT)
    set_pixel(pixels, near_x, y, P.SPOT)
    set_pixel(pixels, far_x, y, P.SPOT)


def _eyes_tall(pixels: Grid, near_x: int, far_x: int, y: int) -> None:
    draw_line(pixels, near_x, y - 1, near_x, y + 1, P.HIGHLIGHT)
    draw_line(pixels, far_x, y - 1, far_x, y + 1, P.HIGHLIGHT)
    set_pixel(pixels, near_x, y, P.SPOT)
    set_pixel(pixels, far_x, y, P.SPOT)


def _mouth_fangs(pixels: Grid, x: int, y: int) -> None:
    draw_line(pixels, x - 2, y, x + 2, y, P.OUTLINE)
    set_pixel(pixels, x - 2, y + 1, P.OUTLINE)
    set_pixel(pixels, x + 2, y + 1, P.OUTLINE)


def _mouth_flat(pixels: Grid, x: int, y: int) -> None:
    draw_line(pixels, x - 2, y, x + 2, y, P.OUTLINE)


def _mouth_teeth(pixels: Grid, x: int, y: int) -> None:
    draw_line(pixels, x - 2, y, x + 2, y, P.OUTLINE)
    set_pixel(pixels, x - 1, y + 1, P.HIGHLIGHT)
    set_pixel(pixels, x + 1, y + 1, P.HIGHLIGHT)


def _mouth_open(pixels: Grid, x: int, y: int) -> None:
    draw_rect(pixels, x - 1, y, 3, 2, P.OUTLINE)
    set_pixel(pixels, x, y + 1, P.TRANSPARENT)


EYE_STYLES: dict[int, Callable[[Grid, int, int, int], None]] = {
    0: _eyes_round,
    1: _eyes_narrow,
    2: _eyes_visor,
    3: _eyes_tall,
}
MOUTH_STYLES: dict[int, Callable[[Grid, int, int], None]] = {
    0: _mouth_fangs,
    1: _mouth_flat,
    2: _mouth_teeth,
    3: _mouth_open,
}


def generate_face_layer(size: int, geo: BodyGeometry, genome: VisualGenome) -> SpriteLayer:
    pixels = create_grid(size)
    near = geo.facing
    near_eye_x = geo.head_center_x + near * max(1, math.floor(geo.head_rx * 0.3))
    far_eye_x = geo.head_center_x - near * max(2, math.floor(geo.head_rx * 0.55))
    eye_y = geo.head_center_y - max(1, math.floor(geo.head_ry * 0.18))
    EYE_STYLES[genome.eye_style](pixels, near_eye_x, far_eye_x, eye_y)

    mouth_x = geo.head_center_x + near
    mouth_y = geo.head_center_y + max(1, math.floor(geo.head_ry * 0.45))
    MOUTH_STYLES[genome.mouth_style](pixels, mouth_x, mouth_y)

    if geo.archetype == "avian":
        beak_x = geo.head_center_x + near * (geo.head_rx + 1)
        set_pixel(pixels, beak_x, geo.head_center_y + 1, P.OUTLINE)

    return SpriteLayer(name="face", pixels=pixels)


# =============================================================================
# Horns
# =============================================================================


def _horn_nub(pixels: Grid, geo: BodyGeometry, base_y: int) -> None:
    set_pixel(pixels, geo.head_center_x, base_y, P.ACCENT_LIGHT)
    set_pixel(pixels, geo.head_center_x, base_y - 1, P.ACCENT)


def _horn_pair(pixels: Grid, geo: BodyGeometry, base_y: int) -> None:
    cx = geo.head_center_x
    offset = max(2, math.floor(geo.head_rx * 0.5))
    draw_line(pixels, cx - offset, base_y, cx - offset - 1, base_y - 2, P.ACCENT)
    draw_line(pixels, cx + offset, base_y, cx + offset + 1, base_y - 2, P.ACCENT)
    set_pixel(pixels, cx - offset - 1, base_y - 2, P.ACCENT_LIGHT)
    set_pixel(pixels, cx + offset + 1, base_y - 2, P.ACCENT_LIGHT)


def _horn_wings(pixels: Grid, geo: BodyGeometry, base_y: int) -> None:
    wing_y = base_y + 1
    wing_size = max(2, math.floor(geo.head_rx * 0.5))
    for i in range(wing_size):
        set_pixel(pixels, geo.head_center_x - geo.head_rx - i, wing_y + i, P.ACCENT_LIGHT)
        set_pixel(pixels, geo.head_center_x + geo.head_rx + i, wing_y + i, P.ACCENT_LIGHT)


def _horn_crest(pixels: Grid, geo: BodyGeometry, base_y: int) -> None:
    crest_width = max(4, math.floor(geo.head_rx * 1.4))
    start_x = geo.head_center_x - crest_width // 2
    draw_line(pixels, start_x, base_y, start_x + crest_width, base_y, P.ACCENT_LIGHT)
    set_pixel(pixels, geo.head_center_x, base_y - 1, P.ACCENT)
    set_pixel(pixels, geo.head_center_x, base_y - 2, P.ACCENT_DARK)


HORN_STYLES: dict[int, Callable[[Grid, BodyGeometry, int], None]] = {
    0: _horn_nub,
    1: _horn_pair,
    2: _horn_wings,
    3: _horn_crest,
}


def generate_horn_layer(size: int, geo: BodyGeometry, genome: VisualGenome) -> SpriteLayer:
    pixels = create_grid(size)
    HORN_STYLES[genome.horn_style](pixels, geo, geo.head_center_y - geo.head_ry - 1)

    if geo.archetype == "serpent":
        set_pixel(
            pixels,
            geo.head_center_x + geo.facing * (geo.head_rx + 1),
            geo.head_center_y - 1,
            P.ACCENT_LIGHT,
        )
    return SpriteLayer(name="horn", pixels=pixels)


# =============================================================================
# Motifs
# =============================================================================


def _motif_crest(pixels: Grid, geo: BodyGeometry) -> None:
    cx = geo.head_center_x
    y = geo.head_center_y - geo.head_ry - 2
    draw_line(pixels, cx - 2, y + 1, cx, y - 1, P.ACCENT_LIGHT)
    draw_line(pixels, cx, y - 1, cx + 2, y + 1, P.ACCENT)


def _motif_antenna(pixels: Grid, geo: BodyGeometry) -> None:
    f = geo.facing
    x = geo.head_center_x + f
    y = geo.head_center_y - geo.head_ry
    draw_line(pixels, x, y, x + f * 2, y - 3, P.RUNE)
    set_pixel(pixels, x + f * 2, y - 4, P.RUNE_LIGHT)


def _motif_mantle(pixels: Grid, geo: BodyGeometry) -> None:
    cx, rx = geo.body_center_x, geo.body_rx
    y = geo.body_center_y - 1
    draw_line(pixels, cx - rx, y, cx + rx, y, P.ACCENT_DARK)
    draw_line(pixels, cx - rx + 1, y + 1, cx + rx - 1, y + 1, P.ACCENT)


def _motif_fins(pixels: Grid, geo: BodyGeometry) -> None:
    f, cx, rx = geo.facing, geo.body_center_x, geo.body_rx
    y = geo.body_center_y - 1
    for i in range(3):
        set_pixel(pixels, cx + f * (rx + i), y + i, P.ACCENT_LIGHT)
        set_pixel(pixels, cx - f * (rx + i), y + i + 1, P.ACCENT)


def _motif_claws(pixels: Grid, geo: BodyGeometry) -> None:
    f, cx, rx = geo.facing, geo.body_center_x, geo.body_rx
    y = geo.body_center_y + geo.body_ry + 1
    set_pixel(pixels, cx + f * max(1, rx - 1), y, P.ACCENT_LIGHT)
    set_pixel(pixels, cx + f * max(1, rx), y, P.ACCENT_LIGHT)
    set_pixel(pixels, cx - f * max(1, rx - 1), y, P.ACCENT)


def _motif_tail_spike(pixels: Grid, geo: BodyGeometry) -> None:
    f = geo.facing
    x = geo.body_center_x - f * (geo.body_rx + 1)
    y = geo.body_center_y + 1
    draw_line(pixels, x, y, x - f * 4, y + 1, P.ACCENT_DARK)
    set_pixel(pixels, x - f * 4, y + 1, P.ACCENT_LIGHT)


def _motif_orb(pixels: Grid, geo: BodyGeometry) -> None:
    x = geo.head_center_x + geo.facing * (geo.head_rx + 2)
    y = geo.head_center_y - 1
    draw_ellipse(pixels, x, y, 1, 1, P.RUNE)
    set_pixel(pixels, x, y, P.RUNE_LIGHT)


def _motif_pack(pixels: Grid, geo: BodyGeometry) -> None:
    x = geo.body_center_x - geo.facing * (geo.body_rx - 1)
    y = geo.body_center_y
    draw_rect(pixels, x - 1, y - 1, 3, 3, P.ACCENT_DARK)
    set_pixel(pixels, x, y, P.ACCENT_LIGHT)


def _motif_scarf(pixels: Grid, geo: BodyGeometry) -> None:
    f, cx = geo.facing, geo.head_center_x
    y = geo.head_center_y + geo.head_ry - 1
    draw_line(pixels, cx - 3, y, cx + 3, y, P.ACCENT)
    draw_line(pixels, cx + f * 2, y + 1, cx + f * 4, y + 3, P.ACCENT_LIGHT)


MOTIF_DRAWERS: dict[str, Callable[[Grid, BodyGeometry], None]] = {
    "crest": _motif_crest,
    "antenna": _motif_antenna,
    "mantle": _motif_mantle,
    "fins": _motif_fins,
    "claws": _motif_claws,
    "tailSpike": _motif_tail_spike,
    "orb": _motif_orb,
    "pack": _motif_pack,
    "scarf": _motif_scarf,
}


def generate_motif_layer(size: int, geo: BodyGeometry) -> SpriteLayer:
    pixels = create_grid(size)
    for motif in geo.motif_parts:
        MOTIF_DRAWERS[motif](pixels, geo)
    return SpriteLayer(name="motif", pixels=pixels)


# =============================================================================
# Weapon
# =============================================================================


def _weapon_shaft(pixels: Grid, cx: int, cy: int, d: int, length: int, thick: int):
    for i in range(length):
        set_pixel(pixels, cx, cy - i, P.ACCENT_DARK)
        set_pixel(pixels, cx - d, cy - i, P.ACCENT)
        if thick > 1:
            set_pixel(pixels, cx - d * 2, cy - i, P.ACCENT)


def _weapon_blade(pixels: Grid, cx: int, cy: int, d: int, length: int, thick: int):
    _weapon_shaft(pixels, cx, cy, d, length, thick)
    set_pixel(pixels, cx - d, cy - length, P.SPOT_LIGHT)
    set_pixel(pixels, cx - d * 2, cy - length + 1, P.SPOT_LIGHT)
    set_pixel(pixels, cx, cy - length + 1, P.HIGHLIGHT)
    for i in range(4):
        set_pixel(pixels, cx, cy + i, P.ACCENT_DARK)
        set_pixel(pixels, cx - d, cy + i, P.ACCENT)
    draw_line(pixels, cx, cy + 1, cx - d * 3, cy + 2, P.ACCENT)


def _weapon_staff(pixels: Grid, cx: int, cy: int, d: int, length: int, thick: int):
    _weapon_shaft(pixels, cx, cy, d, length + 3, thick)
    head_y = cy - length - 2
    draw_ellipse(pixels, cx - d, head_y, 2, 2, P.SPOT)
    set_pixel(pixels, cx - d, head_y, P.SPOT_LIGHT)
    set_pixel(pixels, cx - d * 2, head_y, P.SPOT_LIGHT)
    draw_line(pixels, cx, cy + 1, cx - d * 3, cy + 2, P.ACCENT)


def _weapon_cannon(pixels: Grid, cx: int, cy: int, d: int, length: int, thick: int):
    barrel = max(5, math.floor(length * 0.9))
    for i in range(barrel):
        x = cx + i * d
        draw_rect(pixels, x, cy - 2, 1 if d == 1 else -1, 4 + thick, P.ACCENT_DARK)
        set_pixel(pixels, x, cy - 1, P.ACCENT)
    muzzle_x = cx + (barrel - 1) * d
    draw_ellipse(pixels, muzzle_x, cy, 1, 1, P.SPOT)
    set_pixel(pixels, muzzle_x, cy, P.SPOT_LIGHT)
    for i in range(4):
        set_pixel(pixels, cx - d * i, cy + 3, P.ACCENT)


def _weapon_shield(pixels: Grid, cx: int, cy: int, d: int, length: int, thick: int):
    shield_x = cx + d * 2
    draw_ellipse(pixels, shield_x, cy, 3, 4, P.ACCENT_DARK)
    draw_ellipse(pixels, shield_x, cy, 2, 3, P.ACCENT)
    draw_line(pixels, shield_x - 1, cy, shield_x + 1, cy, P.SPOT)
    set_pixel(pixels, shield_x, cy, P.SPOT_LIGHT)
    set_pixel(pixels, cx, cy + 1, P.ACCENT)


WEAPON_STYLES: dict[int, Callable[[Grid, int, int, int, int, int], None]] = {
    0: _weapon_blade,
    1: _weapon_staff,
    2: _weapon_cannon,
    3: _weapon_shield,
}


def generate_weapon_layer(
    size: int, facing: int, arsenal: float, genome: VisualGenome
) -> SpriteLayer:
    pixels = create_grid(size)
    center_x = math.floor(size * 0.8) if facing == 1 else math.floor(size * 0.2)
    center_y = math.floor(size * 0.5)
    length = clamp(5 + math.floor(arsenal / 10), 5, math.floor(size * 0.48))
    thickness = 2 if size >= 48 else 1

    WEAPON_STYLES[genome.weapon_style](
        pixels, center_x, center_y, facing, length, thickness
    )
    return SpriteLayer(name="weapon", pixels=apply_outline(pixels, P.OUTLINE))


# =============================================================================
# Aura
# =============================================================================


def _ring_points(center: int, radius: float, count: int, phase: float = 0.0):
    for i in range(count):
        angle = (i * math.pi * 2) / count + phase
        yield (
            js_round(center + radius * math.cos(angle)),
            js_round(center + radius * math.sin(angle)),
        )


def _aura_ring(pixels: Grid, size: int, radius: int, count: int) -> None:
    for x, y in _ring_points(size // 2, radius, count):
        set_pixel(pixels, x, y, P.AURA)


def _aura_sparkles(pixels: Grid, size: int, radius: int, count: int) -> None:
    center = size // 2
    points = (
        (2, 2),
        (size - 3, 2),
        (2, size - 3),
        (size - 3, size - 3),
        (center, 1),
        (center, size - 2),
        (1, center),
        (size - 2, center),
    )
    for x, y in points:
        set_pixel(pixels, x, y, P.SPOT_LIGHT)


def _aura_cross(pixels: Grid, size: int, radius: int, count: int) -> None:
    center = size // 2
    for x, y in _ring_points(center, radius, count):
        set_pixel(pixels, x, y, P.AURA)
        set_pixel(pixels, x + 1, y, P.SPOT_LIGHT)
    draw_line(pixels, center, center - radius, center, center + radius, P.AURA)
    draw_line(pixels, center - radius, center, center + radius, center, P.AURA)


def _aura_double_ring(pixels: Grid, size: int, radius: int, count: int) -> None:
    center = size // 2
    inner_radius = max(2, radius - 3)
    outer = _ring_points(center, radius, count)
    inner = _ring_points(center, inner_radius, count, phase=0.4)
    for (x, y), (x2, y2) in zip(outer, inner):
        set_pixel(pixels, x, y, P.AURA)
        set_pixel(pixels, x2, y2, P.SPOT_LIGHT)


AURA_STYLES: dict[int, Callable[[Grid, int, int, int], None]] = {
    0: _aura_ring,
    1: _aura_sparkles,
    2: _aura_cross,
    3: _aura_double_ring,
}


def generate_aura_layer(size: int, genome: VisualGenome, synergy: float) -> SpriteLayer:
    pixels = create_grid(size)
    radius = math.floor(size * 0.44)
    count = clamp(8 + math.floor(synergy / 12), 8, 16)
    AURA_STYLES[genome.aura_style](pixels, size, radius, count)
    return SpriteLayer(name="aura", pixels=pixels)


# =============================================================================
# Assembly
# =============================================================================


def build_sprite_layers(profile: EntityProfile, genome: VisualGenome) -> list[SpriteLayer]:
    """Render every layer for a profile's stage, bottom to top."""
    stage = profile.stage
    stats = profile.stats
    size = profile.sprite_size
    geo = compute_geometry(size, stage, genome)

    layers = [generate_body_layer(size, geo, stats, genome)]
    for layer in (
        generate_pattern_layer(size, geo, genome),
        generate_face_layer(size, geo, genome),
        generate_horn_layer(size, geo, genome),
        generate_motif_layer(size, geo),
    ):
        if has_visible_pixels(layer.pixels):
            layers.append(layer)

    if stage in WEAPON_STAGES and stats.arsenal > WEAPON_ARSENAL_THRESHOLD:
        layers.append(generate_weapon_layer(size, geo.facing, stats.arsenal, genome))

    if stage == EvolutionStage.ULTIMATE:
        layers.append(generate_aura_layer(size, genome, stats.synergy))

    return layers
