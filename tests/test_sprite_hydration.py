"""Tests for batch sprite hydration."""

import json

import pytest

from pixelkin.config import PixelkinConfig
from pixelkin.core.models import PromptBundle
from pixelkin.core.providers import DesignProvider, DesignProviderError
from pixelkin.generator import generate_procedural_sprite
from pixelkin.hydration import (
    build_sprite_prompt,
    decode_sprite_payload,
    get_sprite_cache_key,
    hydrate_profiles_with_sprites,
)
from pixelkin.storage import SPRITE_CACHE_FILENAME

# A 10x10 block with an offset notch: connected and asymmetric.
GOOD_DSL = {
    "symbols": {".": 0, "b": 4, "o": 1},
    "rows": ["." * 8 + "o" * 14] * 4 + ["." * 8 + "b" * 20] * 16,
}


class FakeProvider(DesignProvider):
    provider_name = "fake"

    def __init__(self, replies, model="pix-1"):
        super().__init__(model)
        self.replies = list(replies)
        self.prompts: list[PromptBundle] = []
        self.calls: list[dict] = []

    def complete_json(self, prompt, *, temperature=0.2, max_tokens=None, log=True):
        self.prompts.append(prompt)
        self.calls.append({"temperature": temperature, "max_tokens": max_tokens})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def provider_config() -> PixelkinConfig:
    config = PixelkinConfig()
    config.sprite.mode = "provider"
    config.sprite.min_quality = 0.0
    return config


def test_procedural_mode_is_disabled(profile, tmp_path):
    result = hydrate_profiles_with_sprites([profile], tmp_path, PixelkinConfig())
    assert not result.enabled
    assert result.mode == "procedural"
    assert result.requested == 0
    assert profile.sprite_asset is None


def test_missing_key_skips(make_profile, provider_config, tmp_path):
    profiles = [make_profile(), make_profile(id="skill:x", name="x")]
    result = hydrate_profiles_with_sprites(profiles, tmp_path, provider_config)
    assert result.enabled
    assert result.skipped == 2
    assert result.requested == 0


class TestProviderSprites:
    def test_accepted_asset_stored_and_cached(self, profile, provider_config, tmp_path):
        provider = FakeProvider([GOOD_DSL])
        result = hydrate_profiles_with_sprites(
            [profile], tmp_path, provider_config, provider=provider
        )

        assert (result.requested, result.applied, result.failed) == (1, 1, 0)
        assert provider.calls[0] == {"temperature": 0.45, "max_tokens": 4096}
        asset = profile.sprite_asset
        assert asset["width"] == 48
        assert asset["modelVersion"] == "fake:pix-1"
        assert asset["palette"] == generate_procedural_sprite(profile).palette
        assert 0 <= asset["qualityScore"] <= 1

        cache = json.loads((tmp_path / ".pixelkin" / SPRITE_CACHE_FILENAME).read_text())
        assert list(cache["entries"].values()) == [asset]

    def test_second_run_uses_cache(self, make_profile, provider_config, tmp_path):
        hydrate_profiles_with_sprites(
            [make_profile()], tmp_path, provider_config, provider=FakeProvider([GOOD_DSL])
        )

        provider = FakeProvider([DesignProviderError("should not be called")])
        profile = make_profile()
        result = hydrate_profiles_with_sprites(
            [profile], tmp_path, provider_config, provider=provider
        )

        assert result.cached == 1
        assert result.applied == 1
        assert result.requested == 0
        assert provider.prompts == []
        assert profile.sprite_asset["width"] == 48

    def test_rejection_feedback_reaches_next_attempt(self, profile, provider_config, tmp_path):
        provider = FakeProvider([{"symbols": {".": 3}}, GOOD_DSL])
        result = hydrate_profiles_with_sprites(
            [profile], tmp_path, provider_config, provider=provider
        )

        assert result.requested == 2
        assert result.applied == 1
        assert "No previous issues." in provider.prompts[0].user
        assert "Fix previous issues:" in provider.prompts[1].user
        assert "Attempt: 2" in provider.prompts[1].user

    def test_exhausted_retries_fail(self, profile, provider_config, tmp_path):
        provider_config.sprite.max_retries = 1
        provider = FakeProvider([DesignProviderError("HTTP 503")])
        result = hydrate_profiles_with_sprites(
            [profile], tmp_path, provider_config, provider=provider
        )

        assert result.requested == 2
        assert result.failed == 1
        assert result.applied == 0
        assert profile.sprite_asset is None
        assert "HTTP 503" in provider.prompts[1].user
        assert not (tmp_path / ".pixelkin" / SPRITE_CACHE_FILENAME).exists()

    def test_low_quality_rejected(self, profile, provider_config, tmp_path):
        provider_config.sprite.min_quality = 1.0
        provider_config.sprite.max_retries = 0
        provider = FakeProvider([GOOD_DSL])
        result = hydrate_profiles_with_sprites(
            [profile], tmp_path, provider_config, provider=provider
        )
        assert result.failed == 1


def test_cache_key_format(profile):
    key = get_sprite_cache_key(profile, "fake:pix-1")
    assert key == (
        "fake:pix-1|command:review|review|Reviewer|adult|7|scholar,sentinel|"
        "72:48:35:60:41:55|no-visual-spec"
    )


def test_cache_key_includes_visual_spec(make_profile):
    profile = make_profile(
        visualSpec={"version": "visual-spec-v1", "modelVersion": "m", "designSeed": 9}
    )
    assert get_sprite_cache_key(profile, "x").endswith("|m:9")


def test_prompt_lists_palette_and_role_hint(profile):
    palette = generate_procedural_sprite(profile).palette
    prompt = build_sprite_prompt(
        profile,
        expected_size=48,
        palette=palette,
        model_version="fake:pix-1",
        role_hint="chunky outlines",
    )
    assert "Target sprite size: 48x48" in prompt.user
    assert json.dumps(palette) in prompt.user
    assert "Experimental role hint: chunky outlines" in prompt.system
    assert "rows: string[48]" in prompt.output_schema


class TestDecodeSpritePayload:
    def test_direct_asset_accepted(self, profile):
        sprite = generate_procedural_sprite(profile)
        result = decode_sprite_payload(sprite.to_payload(), 48, sprite.palette)
        assert result.ok
        assert result.asset == sprite

    def test_dsl_accepted(self, profile):
        palette = generate_procedural_sprite(profile).palette
        result = decode_sprite_payload(GOOD_DSL, 48, palette)
        assert result.ok
        assert result.asset.layers[0].pixels[0][8] == 1

    def test_errors_deduplicated(self):
        result = decode_sprite_payload({}, 24, [])
        assert not result.ok
        assert len(result.errors) == len(set(result.errors))
