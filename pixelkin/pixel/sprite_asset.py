"""Structural validation and readability scoring for sprite assets.

Assets arrive as untrusted JSON-shaped payloads (hand-authored, cached, or
returned by a sprite provider). Validation never raises: it reports every
structural problem it can reach as a human-readable error string.
"""

import logging
import re
from collections import deque
from typing import Any

from ..core.models import (
    PALETTE_SIZE,
    TRANSPARENT,
    SpriteAssetQuality,
    SpriteAssetValidation,
    SpriteDefinition,
    SpriteLayer,
)
from ..utils.seed import clamp

logger = logging.getLogger(__name__)

SUPPORTED_SIZES = (24, 32, 48)
MAX_LAYERS = 12
MAX_PIXEL_INDEX = PALETTE_SIZE - 1
HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

# Raw-metric thresholds that produce issue strings
MIN_DENSITY = 0.08
MAX_DENSITY = 0.45
MAX_ISOLATED_RATIO = 0.22
MIN_LARGEST_COMPONENT = 0.65
MIN_ASYMMETRY = 0.08

_EIGHT_NEIGHBORS = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)
_FOUR_NEIGHBORS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class _Invalid(Exception):
    """Aborts a nested read after its error has been recorded."""


def read_integer(value: Any) -> int | None:
    """Return ``value`` as an int if it is an integral JSON number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value))


def is_palette(value: Any) -> bool:
    """True when ``value`` is a well-formed 16-slot palette list."""
    if not isinstance(value, list) or len(value) != PALETTE_SIZE:
        return False
    if value[0] != TRANSPARENT:
        return False
    return all(is_hex_color(color) for color in value[1:])


# =============================================================================
# Validation
# =============================================================================


def _read_palette(raw: Any, errors: list[str]) -> list[str]:
    if not isinstance(raw, list):
        errors.append("palette must be an array")
        raise _Invalid
    if len(raw) != PALETTE_SIZE:
        errors.append(f"palette must have exactly {PALETTE_SIZE} colors")
        raise _Invalid

    palette = []
    for i, value in enumerate(raw):
        if not isinstance(value, str):
            errors.append(f"palette[{i}] must be a string")
            raise _Invalid
        if i == 0:
            if value != TRANSPARENT:
                errors.append(f"palette[0] must be '{TRANSPARENT}'")
                raise _Invalid
            palette.append(TRANSPARENT)
        elif not is_hex_color(value):
            errors.append(f"palette[{i}] must be a hex color")
            raise _Invalid
        else:
            palette.append(value.lower())
    return palette


def _read_pixels(raw: Any, index: int, width: int, height: int, errors: list[str]):
    if not isinstance(raw, list) or len(raw) != height:
        errors.append(f"layers[{index}].pixels must be a {height}x{width} 2D array")
        raise _Invalid

    pixels = []
    for y, row in enumerate(raw):
        if not isinstance(row, list) or len(row) != width:
            errors.append(f"layers[{index}].pixels[{y}] must have width {width}")
            raise _Invalid
        normalized = []
        for x, cell in enumerate(row):
            value = read_integer(cell)
            if value is None or not 0 <= value <= MAX_PIXEL_INDEX:
                errors.append(
                    f"layers[{index}].pixels[{y}][{x}] must be 0..{MAX_PIXEL_INDEX}"
                )
                raise _Invalid
            normalized.append(value)
        pixels.append(normalized)
    return pixels


def _read_layers(raw: Any, width: int, height: int, errors: list[str]) -> list[SpriteLayer]:
    if not isinstance(raw, list):
        errors.append("layers must be an array")
        raise _Invalid
    if not 1 <= len(raw) <= MAX_LAYERS:
        errors.append(f"layers must contain 1..{MAX_LAYERS} items")
        raise _Invalid

    layers = []
    for i, layer in enumerate(raw):
        if not isinstance(layer, dict):
            errors.append(f"layers[{i}] must be an object")
            raise _Invalid
        name = layer.get("name")
        layers.append(
            SpriteLayer(
                name=name if isinstance(name, str) else f"layer-{i}",
                pixels=_read_pixels(layer.get("pixels"), i, width, height, errors),
                offset_x=read_integer(layer.get("offsetX")) or 0,
                offset_y=read_integer(layer.get("offsetY")) or 0,
            )
        )
    return layers


def validate_sprite_asset(
    payload: Any, expected_size: int | None = None
) -> SpriteAssetValidation:
    """Validate an untrusted sprite asset payload.

    Args:
        payload: Decoded JSON object (camelCase keys) or a SpriteDefinition
        expected_size: Required square size; when omitted any of 24/32/48
            is accepted

    Returns:
        SpriteAssetValidation with the normalized asset when ok
    """
    if isinstance(payload, SpriteDefinition):
        payload = payload.to_payload()
    if not isinstance(payload, dict):
        return SpriteAssetValidation(ok=False, errors=["sprite asset must be an object"])

    errors: list[str] = []
    width = read_integer(payload.get("width"))
    height = read_integer(payload.get("height"))
    if width is None or height is None:
        errors.append("width and height must be integers")

    if expected_size is not None:
        if width != expected_size or height != expected_size:
            errors.append(
                f"sprite size must match stage size {expected_size}x{expected_size}"
            )
    elif width is not None and height is not None:
        if width != height or width not in SUPPORTED_SIZES:
            errors.append("sprite size must be one of 24x24, 32x32, 48x48")

    palette = layers = None
    try:
        palette = _read_palette(payload.get("palette"), errors)
    except _Invalid:
        pass
    try:
        layers = _read_layers(payload.get("layers"), width or 0, height or 0, errors)
    except _Invalid:
        pass

    if errors or palette is None or layers is None:
        logger.debug("Sprite asset rejected: %s", "; ".join(errors))
        return SpriteAssetValidation(ok=False, errors=errors)

    return SpriteAssetValidation(
        ok=True,
        asset=SpriteDefinition(width=width, height=height, layers=layers, palette=palette),
    )


# =============================================================================
# Quality
# =============================================================================


def _count_opaque(pixels: list[list[int]]) -> int:
    return sum(1 for row in pixels for px in row if px != 0)


def _count_isolated(pixels: list[list[int]]) -> int:
    """Opaque pixels with at most one opaque 8-neighbor."""
    height = len(pixels)
    width = len(pixels[0]) if pixels else 0
    isolated = 0
    for y in range(height):
        for x in range(width):
            if pixels[y][x] == 0:
                continue
            neighbors = 0
            for dx, dy in _EIGHT_NEIGHBORS:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height and pixels[ny][nx] != 0:
                    neighbors += 1
            if neighbors <= 1:
                isolated += 1
    return isolated


def _largest_component_ratio(pixels: list[list[int]]) -> float:
    """Size of the largest 4-connected opaque region over all opaque pixels."""
    height = len(pixels)
    width = len(pixels[0]) if pixels else 0
    visited = [[False] * width for _ in range(height)]
    largest = 0
    total = 0

    for y in range(height):
        for x in range(width):
            if pixels[y][x] == 0:
                continue
            total += 1
            if visited[y][x]:
                continue
            visited[y][x] = True
            queue = deque([(x, y)])
            size = 0
            while queue:
                cx, cy = queue.popleft()
                size += 1
                for dx, dy in _FOUR_NEIGHBORS:
                    nx, ny = cx + dx, cy + dy
                    if not (0 <= nx < width and 0 <= ny < height):
                        continue
                    if pixels[ny][nx] == 0 or visited[ny][nx]:
                        continue
                    visited[ny][nx] = True
                    queue.append((nx, ny))
            largest = max(largest, size)

    return largest / total if total else 0.0


def _mirror_asymmetry(pixels: list[list[int]]) -> float:
    width = len(pixels[0]) if pixels else 0
    diff = 0
    total = 0
    for row in pixels:
        for x in range(width // 2):
            left, right = row[x], row[width - 1 - x]
            if left != 0 or right != 0:
                total += 1
                if left != right:
                    diff += 1
    return diff / total if total else 0.0


def score_range(value: float, low: float, high: float) -> float:
    """1.0 inside ``[low, high]``, falling off linearly toward 0 and 1."""
    if value < low:
        return clamp(value / max(0.0001, low), 0, 1)
    if value > high:
        return clamp(1 - (value - high) / max(0.0001, 1 - high), 0, 1)
    return 1.0


def evaluate_sprite_asset_quality(asset: SpriteDefinition) -> SpriteAssetQuality:
    """Score silhouette readability of a composited sprite in [0, 1]."""
    composite = asset.composite()
    area = asset.width * asset.height
    opaque = _count_opaque(composite)
    density = opaque / max(1, area)
    isolated_ratio = _count_isolated(composite) / max(1, opaque)
    largest_ratio = _largest_component_ratio(composite)
    asymmetry = _mirror_asymmetry(composite)

    density_score = score_range(density, 0.1, 0.38)
    noise_score = 1 - clamp(isolated_ratio / 0.32, 0, 1)
    connectivity_score = clamp((largest_ratio - 0.4) / 0.55, 0, 1)
    asymmetry_score = clamp(asymmetry / 0.38, 0, 1)

    issues = []
    if density < MIN_DENSITY or density > MAX_DENSITY:
        issues.append("silhouette density out of range")
    if isolated_ratio > MAX_ISOLATED_RATIO:
        issues.append("too many isolated pixels")
    if largest_ratio < MIN_LARGEST_COMPONENT:
        issues.append("silhouette fragmentation detected")
    if asymmetry < MIN_ASYMMETRY:
        issues.append("pose asymmetry too weak")

    score = (
        density_score * 0.2
        + noise_score * 0.25
        + connectivity_score * 0.35
        + asymmetry_score * 0.2
    )
    return SpriteAssetQuality(
        score=score,
        density=density,
        isolated_pixel_ratio=isolated_ratio,
        largest_component_ratio=largest_ratio,
        asymmetry=asymmetry,
        issues=issues,
    )
