"""Tests for VisualSpec validation and merging."""

import pytest

from pixelkin.core.models import (
    BASELINE_DESIGN_MODEL_VERSION,
    VISUAL_SPEC_VERSION,
    VisualSpec,
)
from pixelkin.pixel.genome import build_visual_genome
from pixelkin.pixel.visual_spec import (
    hash_visual_spec,
    merge_visual_spec_into_genome,
    sanitize_motif_parts,
    validate_visual_spec,
)


def _spec(**fields) -> dict:
    data = {"version": VISUAL_SPEC_VERSION, "modelVersion": "test-v1", "designSeed": 42}
    data.update(fields)
    return data


class TestValidateVisualSpec:
    """Validation is all-or-nothing and never raises."""

    def test_minimal_spec_is_valid(self):
        result = validate_visual_spec(_spec())
        assert result.ok
        assert result.spec.design_seed == 42

    def test_out_of_range_palette_bias_rejected(self):
        result = validate_visual_spec(_spec(paletteBias={"accentHueShift": 999}))
        assert not result.ok
        assert result.spec is None
        assert any("accentHueShift" in error for error in result.errors)

    def test_non_object_rejected(self):
        result = validate_visual_spec(["not", "a", "spec"])
        assert not result.ok
        assert result.errors

    @pytest.mark.parametrize("seed", [-1, 2**32, True, 1.5, "42"])
    def test_bad_design_seed_rejected(self, seed):
        assert not validate_visual_spec(_spec(designSeed=seed)).ok

    def test_enums_match_case_insensitively(self):
        result = validate_visual_spec(_spec(archetype="AVIAN", bodyPlan="Mystic"))
        assert result.ok
        assert result.spec.archetype == "avian"
        assert result.spec.body_plan == "mystic"

    def test_unknown_archetype_rejected(self):
        assert not validate_visual_spec(_spec(archetype="dragon")).ok

    def test_motifs_deduplicated_and_unknown_dropped(self):
        result = validate_visual_spec(_spec(motifParts=["crest", "crest", "wings"]))
        assert result.ok
        assert result.spec.motif_parts == ["crest"]

    def test_motifs_with_no_known_member_rejected(self):
        assert not validate_visual_spec(_spec(motifParts=["wings", "laser"])).ok

    def test_too_many_motifs_rejected(self):
        assert not validate_visual_spec(
            _spec(motifParts=["crest", "orb", "fins", "pack"])
        ).ok

    def test_brief_trimmed_and_truncated(self):
        brief = {
            "creatureCore": "  " + "x" * 100,
            "combatRole": "tank",
            "temperament": "calm",
            "signatureFeature": "big crest",
        }
        result = validate_visual_spec(_spec(brief=brief))
        assert result.ok
        assert result.spec.brief.creature_core == "x" * 80

    def test_short_brief_field_rejected(self):
        brief = {
            "creatureCore": "ox",
            "combatRole": "tank",
            "temperament": "calm",
            "signatureFeature": "big crest",
        }
        assert not validate_visual_spec(_spec(brief=brief)).ok

    def test_style_values_must_be_integers(self):
        assert not validate_visual_spec(_spec(eyeStyle=1.5)).ok
        assert not validate_visual_spec(_spec(eyeStyle=4)).ok

    def test_accepts_visual_spec_instance(self):
        spec = validate_visual_spec(_spec(bodyPlan="bulwark")).spec
        assert validate_visual_spec(spec).ok


class TestMergeVisualSpecIntoGenome:
    def test_without_spec_uses_fallback_design(self, profile):
        base = build_visual_genome(profile)
        merged = merge_visual_spec_into_genome(base, None)
        assert merged.design.designer_spec_hash == "fallback"
        assert merged.design.designer_model_version == BASELINE_DESIGN_MODEL_VERSION
        assert merged.silhouette == base.silhouette
        assert 1 <= len(merged.design.motif_parts) <= 3

    def test_avian_archetype_survives_merge(self, profile):
        base = build_visual_genome(profile)
        spec = validate_visual_spec(_spec(archetype="avian")).spec
        merged = merge_visual_spec_into_genome(base, spec)
        assert merged.archetype == "avian"
        assert merged.design.designer_model_version == "test-v1"
        assert merged.design.designer_spec_hash == hash_visual_spec(spec)

    def test_spec_fields_override_genome(self, profile):
        base = build_visual_genome(profile)
        spec = validate_visual_spec(
            _spec(
                bodyPlan="colossus",
                motifParts=["pack"],
                hornStyle=3,
                paletteBias={"contrastBoost": 12},
                composition={"headScale": 1.2},
            )
        ).spec
        merged = merge_visual_spec_into_genome(base, spec)
        assert merged.horn_style == 3
        assert merged.design.body_plan == "colossus"
        assert merged.design.motif_parts == ["pack"]
        assert merged.design.palette_bias.contrast_boost == 12
        assert merged.design.palette_bias.accent_hue_shift == 0
        assert merged.design.composition.head_scale == 1.2
        assert merged.design.composition.body_scale == 1

    def test_default_motifs_follow_body_plan(self, profile):
        base = build_visual_genome(profile)
        spec = validate_visual_spec(_spec(bodyPlan="mystic")).spec
        merged = merge_visual_spec_into_genome(base, spec)
        assert merged.design.motif_parts == ["orb", "antenna"]


def test_hash_visual_spec_is_stable():
    spec = VisualSpec.model_validate(_spec(bodyPlan="sprinter"))
    other = VisualSpec.model_validate(_spec(bodyPlan="sprinter"))
    assert hash_visual_spec(spec) == hash_visual_spec(other)
    assert hash_visual_spec(spec) != hash_visual_spec(
        VisualSpec.model_validate(_spec(bodyPlan="bulwark"))
    )



def test_empty_override_records_are_dropped():
    spec = VisualSpec.model_validate(_spec(paletteBias={}, composition={"unknown": 1}))
    assert spec.palette_bias is None
    assert spec.composition is None
    assert "paletteBias" not in spec.to_payload()
    assert hash_visual_spec(spec) == hash_visual_spec(VisualSpec.model_validate(_spec()))

    kept = VisualSpec.model_validate(_spec(composition={"headScale": 1.0}))
    assert kept.to_payload()["composition"] == {"headScale": 1.0}


def test_sanitize_motif_parts_never_empty():
    assert sanitize_motif_parts([]) == ["crest"]
    assert sanitize_motif_parts(["orb", "orb", "fins", "pack", "crest"]) == ["orb", "fins", "pack"]
