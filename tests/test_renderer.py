"""Tests for layer rendering and the sprite generator."""

import math

import pytest

from pixelkin.core.models import (
    BODY_ARCHETYPES,
    STAGE_SIZES,
    VISUAL_SPEC_VERSION,
    EvolutionStage,
    VisualSpec,
)
from pixelkin.design.cache import InMemoryDesignCache
from pixelkin.generator import (
    generate_mini_sprite,
    generate_procedural_sprite,
    generate_sprite,
)
from pixelkin.pixel.animation import generate_idle_frames, get_current_frame
from pixelkin.pixel.genome import build_visual_genome
from pixelkin.pixel.geometry import compute_geometry
from pixelkin.pixel.visual_spec import merge_visual_spec_into_genome


def _layer_names(sprite):
    return [layer.name for layer in sprite.layers]


def _spec(**fields) -> dict:
    data = {"version": VISUAL_SPEC_VERSION, "modelVersion": "test-v1", "designSeed": 7}
    data.update(fields)
    return data


def _designed_genome(profile, **fields):
    spec = VisualSpec.model_validate(_spec(**fields))
    return merge_visual_spec_into_genome(build_visual_genome(profile), spec)


class TestGenerateSprite:
    """Procedural sprites are deterministic, in-bounds and stage-sized."""

    def test_deterministic(self, make_profile):
        assert generate_sprite(make_profile()) == generate_sprite(make_profile())

    @pytest.mark.parametrize("stage", list(EvolutionStage))
    def test_canvas_matches_stage(self, make_profile, stage):
        sprite = generate_sprite(make_profile(stage=stage.value))
        size = STAGE_SIZES[stage]
        assert sprite.width == sprite.height == size
        for layer in sprite.layers:
            assert len(layer.pixels) == size
            assert all(len(row) == size for row in layer.pixels)
            assert all(0 <= px <= 15 for row in layer.pixels for px in row)

    def test_body_layer_first_and_visible(self, profile):
        sprite = generate_sprite(profile)
        assert sprite.layers[0].name == "body"
        assert any(px for row in sprite.layers[0].pixels for px in row)

    def test_weapon_gated_on_stage_and_arsenal(self, make_profile):
        stats = {"knowledge": 40, "arsenal": 80, "reflex": 40, "mastery": 40, "guard": 40, "synergy": 40}
        assert "weapon" in _layer_names(generate_sprite(make_profile(stage="adult", stats=stats)))
        assert "weapon" not in _layer_names(generate_sprite(make_profile(stage="baby", stats=stats)))
        weak = dict(stats, arsenal=20)
        assert "weapon" not in _layer_names(generate_sprite(make_profile(stage="adult", stats=weak)))

    def test_aura_only_at_ultimate(self, make_profile):
        assert _layer_names(generate_sprite(make_profile(stage="ultimate")))[-1] == "aura"
        assert "aura" not in _layer_names(generate_sprite(make_profile(stage="adult")))

    def test_different_profiles_differ(self, make_profile):
        a = generate_sprite(make_profile(id="a"))
        b = generate_sprite(make_profile(id="b"))
        assert a != b

    def test_valid_embedded_asset_wins(self, make_profile):
        pixels = [[0] * 24 for _ in range(24)]
        pixels[10][10] = 4
        asset = {
            "width": 24,
            "height": 24,
            "palette": ["transparent"] + ["#123456"] * 15,
            "layers": [{"name": "custom", "pixels": pixels}],
        }
        sprite = generate_sprite(make_profile(stage="baby", spriteAsset=asset))
        assert _layer_names(sprite) == ["custom"]

    def test_wrong_size_embedded_asset_ignored(self, make_profile):
        asset = {
            "width": 24,
            "height": 24,
            "palette": ["transparent"] + ["#123456"] * 15,
            "layers": [{"name": "custom", "pixels": [[1] * 24 for _ in range(24)]}],
        }
        sprite = generate_sprite(make_profile(stage="adult", spriteAsset=asset))
        assert sprite.width == 48
        assert "custom" not in _layer_names(sprite)

    def test_shared_cache_memoizes_design(self, profile):
        cache = InMemoryDesignCache()
        first = generate_procedural_sprite(profile, cache=cache)
        assert len(cache) == 1
        assert generate_procedural_sprite(profile, cache=cache) == first
        cache.clear()
        assert len(cache) == 0


def test_mini_sprite_is_eight_by_eight(profile):
    full = generate_sprite(profile)
    mini = generate_mini_sprite(profile)
    assert (mini.width, mini.height) == (8, 8)
    assert _layer_names(mini) == ["mini"]
    assert mini.palette == full.palette
    composite = full.composite()
    assert mini.layers[0].pixels[0][0] == composite[0][0]
    assert mini.layers[0].pixels[4][4] == composite[24][24]


def test_idle_frames_bounce(profile):
    sprite = generate_sprite(profile)
    frames = generate_idle_frames(sprite)
    assert len(frames) == 3
    assert frames[0] is sprite and frames[2] is sprite
    assert all(layer.offset_y == -1 for layer in frames[1].layers)


def test_current_frame_cycles():
    assert get_current_frame(3, fps=2, now=0.0) == 0
    assert get_current_frame(3, fps=2, now=0.5) == 1
    assert get_current_frame(3, fps=2, now=1.5) == 0
    with pytest.raises(ValueError):
        get_current_frame(0)


class TestComputeGeometry:
    """Radii and centers are clamped to canvas-relative bounds."""

    def test_oversized_body_clamped(self, make_profile):
        profile = make_profile(stage="baby")
        genome = _designed_genome(
            profile,
            archetype="brute",
            bodyPlan="colossus",
            silhouette=0,
            composition={"bodyScale": 1.35},
        )
        geo = compute_geometry(24, EvolutionStage.BABY, genome)
        assert geo.body_rx == 8
        assert geo.body_ry == 8

    def test_undersized_head_clamped(self, make_profile):
        profile = make_profile(stage="baby")
        genome = _designed_genome(
            profile,
            archetype="slender",
            bodyPlan="sprinter",
            silhouette=2,
            composition={"headScale": 0.82},
        )
        geo = compute_geometry(24, EvolutionStage.BABY, genome)
        assert geo.head_rx == 3

    @pytest.mark.parametrize("stage", list(EvolutionStage))
    @pytest.mark.parametrize("archetype", BODY_ARCHETYPES)
    def test_bounds_hold_for_every_archetype(self, make_profile, stage, archetype):
        size = STAGE_SIZES[stage]
        genome = _designed_genome(
            make_profile(stage=stage.value),
            archetype=archetype,
            composition={"headScale": 1.35, "bodyScale": 1.35},
        )
        geo = compute_geometry(size, stage, genome)

        assert geo.archetype == archetype
        assert geo.facing == -1
        assert 4 <= geo.center_x <= size - 5
        assert 3 <= geo.head_center_x <= size - 4
        assert 3 <= geo.body_center_x <= size - 4
        assert 3 <= geo.head_center_y <= size - 6
        assert 5 <= geo.body_center_y <= size - 5
        assert 3 <= geo.head_rx <= math.floor(size * 0.32)
        assert 3 <= geo.head_ry <= math.floor(size * 0.28)
        assert 3 <= geo.body_rx <= math.floor(size * 0.36)
        assert 4 <= geo.body_ry <= math.floor(size * 0.36)


class TestArchetypeBodies:
    """Every archetype routine draws a valid body at every stage."""

    @pytest.mark.parametrize("stage", list(EvolutionStage))
    @pytest.mark.parametrize("archetype", BODY_ARCHETYPES)
    def test_renders_visible_body(self, make_profile, stage, archetype):
        profile = make_profile(stage=stage.value, visualSpec=_spec(archetype=archetype))
        sprite = generate_procedural_sprite(profile)
        size = STAGE_SIZES[stage]

        assert len(sprite.palette) == 16
        assert sprite.layers[0].name == "body"
        assert any(px for row in sprite.layers[0].pixels for px in row)
        for layer in sprite.layers:
            assert len(layer.pixels) == size
            assert all(0 <= px <= 15 for row in layer.pixels for px in row)

    @pytest.mark.parametrize("stage", [EvolutionStage.BABY, EvolutionStage.ADULT])
    def test_archetypes_draw_distinct_bodies(self, make_profile, stage):
        bodies = set()
        for archetype in BODY_ARCHETYPES:
            profile = make_profile(stage=stage.value, visualSpec=_spec(archetype=archetype))
            body = generate_procedural_sprite(profile).layers[0]
            bodies.add(tuple(tuple(row) for row in body.pixels))
        assert len(bodies) == len(BODY_ARCHETYPES)
