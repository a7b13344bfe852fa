"""Tests for designer agents, prompts and design resolution."""

import json
from unittest.mock import MagicMock

from pixelkin.core.models import DESIGNER_AGENT_MODEL_VERSION, VISUAL_SPEC_VERSION
from pixelkin.core.providers import DesignProvider
from pixelkin.design.agent import (
    ARCHETYPE_BY_STAT,
    BODY_PLAN_BY_STAT,
    LocalDesignerAgent,
    ProviderDesignerAgent,
    build_designer_prompt,
    generate_local_visual_spec,
    get_visual_design_cache_key,
    rank_stats,
    resolve_designed_genome,
)
from pixelkin.design.cache import InMemoryDesignCache
from pixelkin.pixel.genome import (
    build_visual_genome,
    build_visual_seed_input,
    get_visual_profile_hash,
)
from pixelkin.pixel.visual_spec import validate_visual_spec
from pixelkin.utils.seed import hash_string_to_uint32


def _mock_agent(model_version: str = "mock-v1") -> MagicMock:
    agent = MagicMock()
    agent.model_version = model_version
    return agent


class TestLocalVisualSpec:
    def test_deterministic_and_valid(self, profile):
        genome = build_visual_genome(profile)
        first = generate_local_visual_spec(profile, genome)
        second = generate_local_visual_spec(profile, genome)
        assert first == second
        assert validate_visual_spec(first.to_payload()).ok

    def test_seed_and_provenance(self, profile):
        genome = build_visual_genome(profile)
        spec = generate_local_visual_spec(profile, genome, "local-test")
        expected = hash_string_to_uint32(
            f"local-test:{build_visual_seed_input(profile)}:{genome.seed}"
        )
        assert spec.design_seed == expected
        assert spec.model_version == "local-test"
        assert spec.version == VISUAL_SPEC_VERSION

    def test_driven_by_strongest_trait(self, profile):
        spec = generate_local_visual_spec(profile, build_visual_genome(profile))
        assert spec.archetype in ARCHETYPE_BY_STAT["knowledge"]
        assert spec.body_plan in BODY_PLAN_BY_STAT["knowledge"]
        assert 2 <= len(spec.motif_parts) <= 3
        assert spec.brief.signature_feature == " + ".join(spec.motif_parts)

    def test_local_agent_delegates(self, profile):
        genome = build_visual_genome(profile)
        prompt = build_designer_prompt(profile, genome)
        assert LocalDesignerAgent().design(profile, genome, prompt) == (
            generate_local_visual_spec(profile, genome)
        )


def test_rank_stats_breaks_ties_alphabetically(make_profile):
    flat = make_profile(stats={name: 50 for name in ("knowledge", "arsenal", "reflex",
                                                      "mastery", "guard", "synergy")})
    assert rank_stats(flat.stats) == [
        "arsenal",
        "guard",
        "knowledge",
        "mastery",
        "reflex",
        "synergy",
    ]


def test_rank_stats_orders_descending(profile):
    assert rank_stats(profile.stats)[:2] == ["knowledge", "mastery"]


class TestBuildDesignerPrompt:
    def test_content(self, profile):
        genome = build_visual_genome(profile)
        prompt = build_designer_prompt(profile, genome, "m-v1")
        assert prompt.system.startswith("You are the Pixelkin design agent.")
        assert "Never mimic named IP characters or trademarked designs." in prompt.system
        assert "Target: Reviewer (command:review)" in prompt.user
        assert f"BaseGenomeSeed: {genome.seed}" in prompt.user
        assert "ModelVersion: m-v1" in prompt.user
        assert json.loads(prompt.output_schema)["modelVersion"] == "m-v1"
        assert prompt.output_schema in prompt.user_message()

    def test_short_role_hint_ignored(self, profile):
        prompt = build_designer_prompt(profile, build_visual_genome(profile), role_hint=" ab ")
        assert "role hint" not in prompt.system

    def test_role_hint_truncated(self, profile):
        hint = "x" * 300
        prompt = build_designer_prompt(profile, build_visual_genome(profile), role_hint=hint)
        assert "x" * 160 in prompt.system
        assert "x" * 161 not in prompt.system


def test_cache_key_format(profile):
    genome = build_visual_genome(profile)
    key = get_visual_design_cache_key(profile, genome, "m-v1")
    assert key == f"{get_visual_profile_hash(profile)}:{genome.seed}:m-v1"


class TestResolveDesignedGenome:
    """Embedded spec, then cache, then agent; failures fall back."""

    def test_default_agent_is_local(self, profile):
        resolution = resolve_designed_genome(profile, build_visual_genome(profile))
        assert not resolution.used_fallback
        assert resolution.genome.design.designer_model_version == DESIGNER_AGENT_MODEL_VERSION

    def test_embedded_spec_wins(self, make_profile):
        spec = {
            "version": VISUAL_SPEC_VERSION,
            "modelVersion": "embedded-v1",
            "designSeed": 7,
            "bodyPlan": "colossus",
        }
        profile = make_profile(visualSpec=spec)
        agent = _mock_agent()
        resolution = resolve_designed_genome(profile, build_visual_genome(profile), agent)
        agent.design.assert_not_called()
        assert resolution.genome.design.body_plan == "colossus"
        assert resolution.genome.design.designer_model_version == "embedded-v1"

    def test_invalid_embedded_spec_ignored(self, make_profile):
        profile = make_profile(visualSpec={"version": "bogus"})
        resolution = resolve_designed_genome(profile, build_visual_genome(profile))
        assert resolution.genome.design.designer_model_version == DESIGNER_AGENT_MODEL_VERSION

    def test_cache_hit_skips_agent(self, profile):
        genome = build_visual_genome(profile)
        cache = InMemoryDesignCache()
        first = resolve_designed_genome(profile, genome, cache=cache)

        agent = _mock_agent(DESIGNER_AGENT_MODEL_VERSION)
        second = resolve_designed_genome(profile, genome, agent, cache)
        agent.design.assert_not_called()
        assert second.genome == first.genome

    def test_agent_exception_falls_back(self, profile, caplog):
        genome = build_visual_genome(profile)
        cache = InMemoryDesignCache()
        agent = _mock_agent()
        agent.design.side_effect = RuntimeError("boom")

        with caplog.at_level("WARNING"):
            resolution = resolve_designed_genome(profile, genome, agent, cache)

        assert resolution.used_fallback
        assert resolution.validation_errors == ["designer agent exception: boom"]
        assert resolution.genome.design.designer_spec_hash == "fallback"
        assert "boom" in caplog.text
        assert cache.get(resolution.cache_key) is None
        assert resolution.cache_key in cache

    def test_cached_fallback(self, profile):
        genome = build_visual_genome(profile)
        cache = InMemoryDesignCache()
        agent = _mock_agent()
        agent.design.side_effect = RuntimeError("boom")
        resolve_designed_genome(profile, genome, agent, cache)

        again = resolve_designed_genome(profile, genome, agent, cache)
        assert again.used_fallback
        assert again.validation_errors == ["cached fallback"]
        assert agent.design.call_count == 1

    def test_invalid_output_falls_back(self, profile):
        agent = _mock_agent()
        agent.design.return_value = {"version": "nope"}
        resolution = resolve_designed_genome(profile, build_visual_genome(profile), agent)
        assert resolution.used_fallback
        assert resolution.validation_errors

    def test_agent_model_version_wins(self, profile):
        agent = _mock_agent("agent-v2")
        agent.design.return_value = {
            "version": VISUAL_SPEC_VERSION,
            "modelVersion": "claimed-v9",
            "designSeed": 11,
        }
        resolution = resolve_designed_genome(profile, build_visual_genome(profile), agent)
        assert not resolution.used_fallback
        assert resolution.genome.design.designer_model_version == "agent-v2"
        assert resolution.cache_key.endswith(":agent-v2")


class TestProviderDesignerAgent:
    def test_design_normalizes_provider_output(self, profile):
        provider = MagicMock(spec=DesignProvider)
        provider.model_version = "openai:test-model"
        provider.complete_json.return_value = {"bodyPlan": "MYSTIC", "designSeed": "17"}

        agent = ProviderDesignerAgent(provider, role_hint="moody gothic lighting")
        genome = build_visual_genome(profile)
        prompt = agent.build_prompt(profile, genome)
        payload = agent.design(profile, genome, prompt)

        provider.complete_json.assert_called_once_with(prompt, temperature=0.2)
        assert "moody gothic lighting" in prompt.system
        assert payload["bodyPlan"] == "mystic"
        assert payload["designSeed"] == 17
        assert payload["modelVersion"] == "openai:test-model"
        assert validate_visual_spec(payload).ok
