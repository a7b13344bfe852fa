"""Compiler for the compact symbolic sprite format.

A DSL payload maps single-character symbols to palette indices and draws
each scanline as a string::

    {
        "symbols": {".": 0, "o": 1, "b": 4},
        "rows": ["..oo..", ".obbo.", ...],
        "overlays": [{"x": 3, "y": 2, "ch": "o", "layer": "body"}]
    }

``layers`` (each with its own ``rows``) may replace the top-level ``rows``.
Row text is cleaned of stray quotes, trailing commas and whitespace, then
padded or truncated to the canvas. The result is an ordinary
SpriteDefinition, so callers validate and score it like any other asset.
"""

import logging
import re
from typing import Any

from ..core.models import SpriteAssetValidation, SpriteDefinition, SpriteLayer
from .sprite_asset import MAX_PIXEL_INDEX, is_palette, read_integer

logger = logging.getLogger(__name__)

TRANSPARENT_SYMBOL = "."

_EDGE_QUOTES = re.compile(r"^[`\"']+|[`\"']+$")
_TRAILING_COMMAS = re.compile(r"[,、]+$")
_WHITESPACE = re.compile(r"\s+")


def clean_row(raw: str, width: int, pad: str = TRANSPARENT_SYMBOL) -> str:
    """Strip formatting noise from a row and fit it to ``width``."""
    cleaned = _WHITESPACE.sub("", raw)
    cleaned = _TRAILING_COMMAS.sub("", cleaned)
    cleaned = _EDGE_QUOTES.sub("", cleaned)
    return cleaned[:width].ljust(width, pad)


def _coerce_rows(raw: Any) -> list[str] | None:
    if isinstance(raw, list):
        return [row for row in raw if isinstance(row, str)]
    if isinstance(raw, str):
        return [line.strip() for line in raw.split("\n") if line.strip()]
    return None


def _read_rows(raw: Any, width: int, height: int, label: str, errors: list[str]):
    rows = _coerce_rows(raw)
    if rows is None:
        errors.append(f"{label} must be a string[] or multiline string")
        return None
    rows = rows[:height]
    rows.extend(TRANSPARENT_SYMBOL * width for _ in range(height - len(rows)))
    return [clean_row(row, width) for row in rows]


def _read_symbols(raw: Any, errors: list[str]) -> dict[str, int] | None:
    if not isinstance(raw, dict):
        errors.append("symbols must be an object")
        return None

    symbols: dict[str, int] = {}
    for key, value in raw.items():
        if len(key) != 1:
            errors.append(f"symbols key '{key}' must be a single character")
            return None
        index = read_integer(value)
        if index is None or not 0 <= index <= MAX_PIXEL_INDEX:
            errors.append(f"symbols['{key}'] must map to 0..{MAX_PIXEL_INDEX}")
            return None
        symbols[key] = index

    if not symbols:
        errors.append("symbols must not be empty")
        return None
    if symbols.get(TRANSPARENT_SYMBOL) != 0:
        errors.append("symbols['.'] must be 0 for transparency")
        return None
    return symbols


def _read_palette(
    raw: Any, fallback: list[str] | None, errors: list[str]
) -> list[str] | None:
    if is_palette(raw):
        return [color.lower() for color in raw]
    if fallback is not None and is_palette(fallback):
        return list(fallback)
    errors.append("palette must be an array of 16 colors")
    return None


def _compile_rows(rows: list[str], symbols: dict[str, int]) -> list[list[int]]:
    transparent = symbols[TRANSPARENT_SYMBOL]
    return [[symbols.get(ch, transparent) for ch in row] for row in rows]


def _read_layers(
    payload: dict, width: int, height: int, symbols: dict[str, int], errors: list[str]
) -> list[SpriteLayer] | None:
    raw_layers = payload.get("layers")
    if isinstance(raw_layers, list):
        if not raw_layers:
            errors.append("dsl layers must contain at least one layer")
            return None
        layers = []
        for i, layer in enumerate(raw_layers):
            if not isinstance(layer, dict):
                errors.append(f"layers[{i}] must be an object")
                return None
            rows = _read_rows(layer.get("rows"), width, height, f"layers[{i}].rows", errors)
            if rows is None:
                return None
            name = layer.get("name")
            layers.append(
                SpriteLayer(
                    name=name if isinstance(name, str) else f"layer-{i}",
                    pixels=_compile_rows(rows, symbols),
                    offset_x=read_integer(layer.get("offsetX")) or 0,
                    offset_y=read_integer(layer.get("offsetY")) or 0,
                )
            )
        return layers

    rows = _read_rows(payload.get("rows"), width, height, "rows", errors)
    if rows is None:
        errors.append("dsl requires either rows[] or layers[]")
        return None
    return [SpriteLayer(name="body", pixels=_compile_rows(rows, symbols))]


def _apply_overlays(
    raw: Any,
    layers: list[SpriteLayer],
    symbols: dict[str, int],
    width: int,
    height: int,
    errors: list[str],
) -> None:
    if not isinstance(raw, list):
        return

    by_name = {}
    for layer in layers:
        by_name.setdefault(layer.name, layer)

    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.append(f"overlays[{i}] must be an object")
            continue
        x = read_integer(item.get("x"))
        y = read_integer(item.get("y"))
        ch = item.get("ch")
        if x is None or y is None or not isinstance(ch, str) or len(ch) != 1:
            errors.append(f"overlays[{i}] must include integer x/y and single-char ch")
            continue
        if not (0 <= x < width and 0 <= y < height):
            errors.append(f"overlays[{i}] is out of bounds")
            continue
        if ch not in symbols:
            errors.append(f"overlays[{i}] uses unknown symbol '{ch}'")
            continue

        layer_name = item.get("layer")
        target = layers[0]
        if isinstance(layer_name, str):
            target = by_name.get(layer_name, layers[0])
        target.pixels[y][x] = symbols[ch]


def compile_sprite_dsl(
    payload: Any,
    expected_size: int,
    fallback_palette: list[str] | None = None,
) -> SpriteAssetValidation:
    """Compile a DSL payload into a sprite of ``expected_size`` squared.

    Missing ``width``/``height`` default to ``expected_size``; a palette in
    the payload wins over ``fallback_palette``. Never raises.
    """
    if not isinstance(payload, dict):
        return SpriteAssetValidation(ok=False, errors=["dsl payload must be an object"])

    width = read_integer(payload.get("width"))
    height = read_integer(payload.get("height"))
    width = expected_size if width is None else width
    height = expected_size if height is None else height
    if width != expected_size or height != expected_size:
        return SpriteAssetValidation(
            ok=False,
            errors=[f"dsl width/height must match {expected_size}x{expected_size}"],
        )

    errors: list[str] = []
    symbols = _read_symbols(payload.get("symbols"), errors)
    palette = _read_palette(payload.get("palette"), fallback_palette, errors)

    layers = None
    if symbols is not None:
        layers = _read_layers(payload, width, height, symbols, errors)
    if layers is not None and symbols is not None:
        _apply_overlays(payload.get("overlays"), layers, symbols, width, height, errors)

    if errors or palette is None or layers is None:
        logger.debug("Sprite DSL rejected: %s", "; ".join(errors))
        return SpriteAssetValidation(ok=False, errors=errors)

    return SpriteAssetValidation(
        ok=True,
        asset=SpriteDefinition(width=width, height=height, layers=layers, palette=palette),
    )
