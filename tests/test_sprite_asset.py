"""Tests for sprite asset validation and quality scoring."""

import pytest

from pixelkin.core.models import SpriteDefinition, SpriteLayer
from pixelkin.generator import generate_sprite
from pixelkin.pixel.sprite_asset import (
    evaluate_sprite_asset_quality,
    read_integer,
    score_range,
    validate_sprite_asset,
)

PALETTE = ["transparent"] + [f"#{i:02x}{i:02x}{i:02x}" for i in range(1, 16)]


def _asset(size=24, pixels=None, **overrides):
    data = {
        "width": size,
        "height": size,
        "palette": list(PALETTE),
        "layers": [{"name": "body", "pixels": pixels or [[0] * size for _ in range(size)]}],
    }
    data.update(overrides)
    return data


def _sprite(pixels) -> SpriteDefinition:
    size = len(pixels)
    return SpriteDefinition(
        width=size,
        height=size,
        palette=list(PALETTE),
        layers=[SpriteLayer(name="body", pixels=pixels)],
    )


class TestValidateSpriteAsset:
    """Structural checks with exact error messages."""

    def test_valid_asset(self):
        result = validate_sprite_asset(_asset(), expected_size=24)
        assert result.ok
        assert result.asset.width == 24
        assert result.errors == []

    def test_non_object(self):
        result = validate_sprite_asset("nope")
        assert not result.ok
        assert result.errors == ["sprite asset must be an object"]

    def test_size_must_match_expected(self):
        result = validate_sprite_asset(_asset(size=24), expected_size=32)
        assert "sprite size must match stage size 32x32" in result.errors

    def test_size_must_be_canonical_without_expected(self):
        result = validate_sprite_asset(_asset(size=20))
        assert "sprite size must be one of 24x24, 32x32, 48x48" in result.errors

    def test_palette_slot_zero_must_be_transparent(self):
        palette = ["#000000"] + PALETTE[1:]
        result = validate_sprite_asset(_asset(palette=palette))
        assert "palette[0] must be 'transparent'" in result.errors

    def test_palette_length(self):
        result = validate_sprite_asset(_asset(palette=PALETTE[:8]))
        assert "palette must have exactly 16 colors" in result.errors

    def test_palette_colors_must_be_hex(self):
        palette = list(PALETTE)
        palette[3] = "red"
        result = validate_sprite_asset(_asset(palette=palette))
        assert "palette[3] must be a hex color" in result.errors

    def test_pixel_values_bounded(self):
        pixels = [[0] * 24 for _ in range(24)]
        pixels[2][5] = 16
        result = validate_sprite_asset(_asset(pixels=pixels))
        assert not result.ok
        assert "layers[0].pixels[2][5] must be 0..15" in result.errors

    def test_row_width_checked(self):
        pixels = [[0] * 24 for _ in range(24)]
        pixels[4] = [0] * 23
        result = validate_sprite_asset(_asset(pixels=pixels))
        assert "layers[0].pixels[4] must have width 24" in result.errors

    def test_layer_count_bounded(self):
        result = validate_sprite_asset(_asset(layers=[]))
        assert "layers must contain 1..12 items" in result.errors

    def test_accepts_sprite_definition(self, profile):
        sprite = generate_sprite(profile)
        assert validate_sprite_asset(sprite, expected_size=48).ok


class TestEvaluateSpriteAssetQuality:
    def test_dense_fill_flags_density(self):
        quality = evaluate_sprite_asset_quality(_sprite([[4] * 24 for _ in range(24)]))
        assert quality.density == pytest.approx(1.0)
        assert "silhouette density out of range" in quality.issues
        assert "pose asymmetry too weak" in quality.issues

    def test_scattered_dots_flag_noise_and_fragmentation(self):
        pixels = [[0] * 24 for _ in range(24)]
        for y in range(0, 24, 3):
            for x in range(0, 24, 3):
                pixels[y][x] = 4
        quality = evaluate_sprite_asset_quality(_sprite(pixels))
        assert quality.isolated_pixel_ratio == pytest.approx(1.0)
        assert "too many isolated pixels" in quality.issues
        assert "silhouette fragmentation detected" in quality.issues

    def test_single_blob_is_connected(self):
        pixels = [[0] * 24 for _ in range(24)]
        for y in range(6, 18):
            for x in range(4, 14):
                pixels[y][x] = 4
        quality = evaluate_sprite_asset_quality(_sprite(pixels))
        assert quality.largest_component_ratio == pytest.approx(1.0)
        assert quality.asymmetry > 0.5
        assert "silhouette fragmentation detected" not in quality.issues
        assert 0 <= quality.score <= 1

    def test_empty_sprite_scores_low(self):
        quality = evaluate_sprite_asset_quality(_sprite([[0] * 24 for _ in range(24)]))
        assert quality.density == 0
        assert quality.score < 0.5


def test_read_integer():
    assert read_integer(3) == 3
    assert read_integer(3.0) == 3
    assert read_integer(3.5) is None
    assert read_integer(True) is None
    assert read_integer("3") is None


def test_score_range():
    assert score_range(0.2, 0.1, 0.38) == 1.0
    assert score_range(0.05, 0.1, 0.38) == pytest.approx(0.5)
    assert score_range(1.0, 0.1, 0.38) == 0.0
