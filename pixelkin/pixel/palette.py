"""Seed- and type-driven 16-slot sprite palette.

Slot roles are fixed (see PixelIndex) and shared with the renderer, which
only ever writes palette indices. Slot 0 is the literal "transparent"; every
other slot is a lowercase ``#rrggbb`` color.
"""

import colorsys
from enum import IntEnum
from typing import Sequence

from ..core.models import DEFAULT_PALETTE_BIAS, TRANSPARENT, PaletteBias, VisualGenome
from ..utils.seed import clamp


class PixelIndex(IntEnum):
    TRANSPARENT = 0
    OUTLINE = 1
    HIGHLIGHT = 2
    BASE_LIGHT = 3
    BASE_MID = 4
    BASE_DARK = 5
    ACCENT = 6
    ACCENT_LIGHT = 7
    ACCENT_DARK = 8
    SPOT = 9
    SPOT_LIGHT = 10
    RUNE = 11
    RUNE_LIGHT = 12
    SHADOW = 13
    ACCENT_MUTED = 14
    AURA = 15


TYPE_HUE_ANCHORS: dict[str, float] = {
    "scholar": 210,
    "arsenal": 4,
    "sentinel": 36,
    "artisan": 280,
    "guardian": 140,
    "catalyst": 172,
}

SECONDARY_BLEND = 0.28
MIN_HUE_DISTANCE = 24
HUE_SEPARATION_ROTATION = 96
CONTRAST_RETRY_ROTATION = 110
BASE_MIN_CONTRAST = 1.35
CONTRAST_PER_BOOST = 0.02


# =============================================================================
# Color math
# =============================================================================


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """Convert HSL (degrees, percent, percent) to ``#rrggbb``."""
    h = (hue % 360) / 360
    s = clamp(saturation, 0, 100) / 100
    lum = clamp(lightness, 0, 100) / 100
    r, g, b = colorsys.hls_to_rgb(h, lum, s)
    return "#{:02x}{:02x}{:02x}".format(
        round(r * 255), round(g * 255), round(b * 255)
    )


def _channel_to_linear(channel: int) -> float:
    c = channel / 255
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    value = hex_color.lstrip("#")
    r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    return (
        0.2126 * _channel_to_linear(r)
        + 0.7152 * _channel_to_linear(g)
        + 0.0722 * _channel_to_linear(b)
    )


def contrast_ratio(color_a: str, color_b: str) -> float:
    """WCAG contrast ratio between two hex colors, in [1, 21]."""
    la = relative_luminance(color_a)
    lb = relative_luminance(color_b)
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)


def hue_distance(a: float, b: float) -> float:
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


def blend_hue(from_hue: float, to_hue: float, weight: float) -> float:
    """Move ``from_hue`` toward ``to_hue`` along the shorter arc."""
    delta = ((to_hue - from_hue + 540) % 360) - 180
    return (from_hue + delta * weight) % 360


# =============================================================================
# Palette
# =============================================================================


def _resolve_bias(genome: VisualGenome) -> PaletteBias:
    return genome.design.palette_bias if genome.design else DEFAULT_PALETTE_BIAS


def minimum_accent_contrast(bias: PaletteBias) -> float:
    return BASE_MIN_CONTRAST + bias.contrast_boost * CONTRAST_PER_BOOST


def generate_sprite_palette(
    types: Sequence[str], genome: VisualGenome
) -> list[str]:
    """Build the 16-color palette for a genome and its entity's types.

    Guarantees hue separation of at least 24 degrees between base and accent
    (before the contrast retry) and a base-mid/accent contrast ratio of at
    least ``1.35 + contrastBoost * 0.02``.
    """
    bias = _resolve_bias(genome)
    seed = genome.seed

    base_hue = (seed % 360 + genome.pose_offset * 7 + bias.base_hue_shift) % 360
    base_sat = clamp(38 + ((seed >> 8) & 0x1F) + bias.base_sat_shift, 18, 80)
    base_light = clamp(44 + ((seed >> 13) & 0x0F), 40, 62)

    primary = types[0] if types else "scholar"
    secondary = types[1] if len(types) > 1 else primary
    primary_anchor = TYPE_HUE_ANCHORS.get(primary, TYPE_HUE_ANCHORS["scholar"])
    secondary_anchor = TYPE_HUE_ANCHORS.get(secondary, primary_anchor)
    jitter = ((seed >> 18) % 25) - 12

    accent_hue = (
        blend_hue(primary_anchor, secondary_anchor, SECONDARY_BLEND)
        + jitter
        + bias.accent_hue_shift
    ) % 360
    accent_sat = clamp(70 + ((seed >> 23) & 0x0F) + bias.accent_sat_shift, 30, 96)
    accent_light = clamp(54 + bias.accent_light_shift, 30, 74)

    if hue_distance(base_hue, accent_hue) < MIN_HUE_DISTANCE:
        accent_hue = (accent_hue + HUE_SEPARATION_ROTATION) % 360

    base_mid = hsl_to_hex(base_hue, base_sat, base_light)
    accent = hsl_to_hex(accent_hue, accent_sat, accent_light)
    min_contrast = minimum_accent_contrast(bias)

    if contrast_ratio(base_mid, accent) < min_contrast:
        accent_hue = (accent_hue + CONTRAST_RETRY_ROTATION) % 360
        accent_sat = clamp(accent_sat + 12, 0, 100)
        accent_light = clamp(accent_light + (-18 if base_light >= 50 else 18), 8, 92)
        accent = hsl_to_hex(accent_hue, accent_sat, accent_light)

    # Walk lightness toward whichever extreme contrasts more with base-mid;
    # black or white always clears the floor.
    base_lum = relative_luminance(base_mid)
    step = -4 if (base_lum + 0.05) / 0.05 >= 1.05 / (base_lum + 0.05) else 4
    while contrast_ratio(base_mid, accent) < min_contrast:
        accent_light = clamp(accent_light + step, 0, 100)
        accent = hsl_to_hex(accent_hue, accent_sat, accent_light)
        if accent_light in (0, 100):
            break

    spot_hue = (accent_hue + 48) % 360
    rune_hue = (base_hue + 200) % 360

    palette = [""] * len(PixelIndex)
    palette[PixelIndex.TRANSPARENT] = TRANSPARENT
    palette[PixelIndex.OUTLINE] = hsl_to_hex(base_hue, base_sat * 0.6, 12)
    palette[PixelIndex.HIGHLIGHT] = hsl_to_hex(base_hue, 20, 95)
    palette[PixelIndex.BASE_LIGHT] = hsl_to_hex(
        base_hue, base_sat - 4, clamp(base_light + 16, 0, 90)
    )
    palette[PixelIndex.BASE_MID] = base_mid
    palette[PixelIndex.BASE_DARK] = hsl_to_hex(
        base_hue, base_sat + 6, clamp(base_light - 18, 8, 100)
    )
    palette[PixelIndex.ACCENT] = accent
    palette[PixelIndex.ACCENT_LIGHT] = hsl_to_hex(
        accent_hue, accent_sat - 8, clamp(accent_light + 18, 0, 92)
    )
    palette[PixelIndex.ACCENT_DARK] = hsl_to_hex(
        accent_hue, accent_sat + 4, clamp(accent_light - 20, 8, 100)
    )
    palette[PixelIndex.SPOT] = hsl_to_hex(spot_hue, 80, 56)
    palette[PixelIndex.SPOT_LIGHT] = hsl_to_hex(spot_hue, 86, 76)
    palette[PixelIndex.RUNE] = hsl_to_hex(rune_hue, 64, 46)
    palette[PixelIndex.RUNE_LIGHT] = hsl_to_hex(rune_hue, 70, 70)
    palette[PixelIndex.SHADOW] = hsl_to_hex(
        base_hue, base_sat * 0.5, clamp(base_light - 30, 6, 100)
    )
    palette[PixelIndex.ACCENT_MUTED] = hsl_to_hex(
        accent_hue, accent_sat * 0.45, accent_light
    )
    palette[PixelIndex.AURA] = hsl_to_hex((accent_hue + 30) % 360, 88, 70)
    return palette
