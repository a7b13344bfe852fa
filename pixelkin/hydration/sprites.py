"""Batch sprite hydration from a design provider.

Only active when ``sprite.mode`` is "provider". For each targeted profile
a cached asset is reused when it still validates and meets the quality
bar; otherwise the provider is asked for a DSL sprite up to
``1 + max_retries`` times, feeding each rejection reason back into the
next prompt. Accepted assets are stored on the profile and in
``<cache_dir>/sprite-cache.json``. Profiles that never get an acceptable
asset keep their procedural sprite.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..config import PixelkinConfig, get_api_key_for_provider, get_config
from ..core.models import (
    EntityProfile,
    PromptBundle,
    SpriteAssetValidation,
    SpriteDefinition,
    SpriteHydrationResult,
    StoredSpriteAsset,
)
from ..core.providers import DesignProvider, DesignProviderError, get_design_provider
from ..generator import generate_procedural_sprite
from ..pixel.sprite_asset import evaluate_sprite_asset_quality, validate_sprite_asset
from ..pixel.sprite_dsl import compile_sprite_dsl
from ..storage import SPRITE_CACHE_FILENAME, load_cache_file, save_cache_file

logger = logging.getLogger(__name__)

SPRITE_TEMPERATURE = 0.45
SPRITE_MAX_TOKENS = 4096


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def get_sprite_cache_key(profile: EntityProfile, model_version: str) -> str:
    """Key covering everything the prompt depends on."""
    stats = profile.stats.as_dict()
    stat_signature = ":".join(_format_number(v) for v in stats.values())
    spec = profile.visual_spec
    visual_signature = (
        f"{spec.get('modelVersion')}:{spec.get('designSeed')}"
        if isinstance(spec, dict)
        else "no-visual-spec"
    )
    return "|".join(
        [
            model_version,
            profile.id,
            profile.name,
            profile.display_name,
            profile.stage.value,
            str(profile.level),
            ",".join(profile.types),
            stat_signature,
            visual_signature,
        ]
    )


def _output_schema(size: int) -> str:
    return "\n".join(
        [
            "Return JSON object with fields:",
            f"- width: {size}",
            f"- height: {size}",
            "- palette: string[16]",
            "- symbols: object mapping one-char symbol -> palette index (0..15), "
            "must contain '.' as 0",
            f"- rows: string[{size}] where each string length is {size}",
            "- overlays (optional): array of { x: number, y: number, ch: string, layer?: string }",
            "- or, instead of rows, layers: [{ name, offsetX, offsetY, rows: string[size] }]",
        ]
    )


def build_sprite_prompt(
    profile: EntityProfile,
    *,
    expected_size: int,
    palette: Sequence[str],
    model_version: str,
    attempt: int = 0,
    feedback: Sequence[str] = (),
    role_hint: str | None = None,
) -> PromptBundle:
    spec = profile.visual_spec if isinstance(profile.visual_spec, dict) else {}
    brief = spec.get("brief") if isinstance(spec.get("brief"), dict) else {}
    motifs = spec.get("motifParts")
    motif_text = ", ".join(motifs) if isinstance(motifs, list) and motifs else "none"
    feedback_line = (
        f"Fix previous issues: {'; '.join(feedback[:5])}" if feedback else "No previous issues."
    )
    stats = ", ".join(
        f"{name}={_format_number(value)}" for name, value in profile.stats.as_dict().items()
    )

    system = " ".join(
        [
            "You generate original pixel-art monster sprites for a game.",
            "Output strict JSON only. No markdown or explanations.",
            "Keep a clear silhouette and contiguous pixel clusters.",
            "Use a left-facing 3/4 pose with strong asymmetry.",
            "Avoid one-pixel noise and avoid mirrored full-front poses.",
        ]
    )
    if role_hint:
        system = f"{system}\n\nExperimental role hint: {role_hint}"

    user = "\n".join(
        [
            f"Model version: {model_version}",
            f"Target sprite size: {expected_size}x{expected_size}",
            f"Creature: {profile.display_name} ({profile.source.upper()} / {profile.name})",
            f"Evolution: {profile.stage.value}, Level {profile.level}",
            f"Types: {', '.join(profile.types)}",
            f"Stats: {stats}",
            "Design brief: "
            f"core={brief.get('creatureCore', 'adaptive monster')}, "
            f"role={brief.get('combatRole', 'balanced skirmisher')}, "
            f"temperament={brief.get('temperament', 'focused')}, "
            f"signature={brief.get('signatureFeature', motif_text)}",
            f"Motifs: {motif_text}",
            f"Attempt: {attempt + 1}",
            feedback_line,
            "Palette rule: use exactly this palette array as-is (same order, same values).",
            json.dumps(list(palette)),
            "Sprite constraints:",
            "- width and height must match target size",
            "- return DSL format (symbols + rows), not numeric pixel matrix",
            "- symbols must include '.' => 0",
            "- rows must be string[] with exactly target size rows and width",
            "- overlays optional for local edits: [{ x, y, ch, layer? }]",
            "- include readable head/body/limb separation",
            "- if arsenal >= 55, include a clearly visible held tool or weapon silhouette",
        ]
    )
    return PromptBundle(system=system, user=user, output_schema=_output_schema(expected_size))


def _dedupe(errors: list[str]) -> list[str]:
    return list(dict.fromkeys(errors))


def decode_sprite_payload(
    raw: Any, expected_size: int, fallback_palette: Sequence[str]
) -> SpriteAssetValidation:
    """Accept a full pixel-matrix asset, else compile the payload as DSL."""
    direct = validate_sprite_asset(raw, expected_size)
    if direct.ok:
        return direct

    compiled = compile_sprite_dsl(raw, expected_size, list(fallback_palette))
    if not compiled.ok or compiled.asset is None:
        return SpriteAssetValidation(ok=False, errors=_dedupe(direct.errors + compiled.errors))

    validation = validate_sprite_asset(compiled.asset, expected_size)
    if not validation.ok:
        return SpriteAssetValidation(ok=False, errors=_dedupe(direct.errors + validation.errors))
    return validation


def _store(asset: SpriteDefinition, model_version: str, quality: float) -> StoredSpriteAsset:
    return StoredSpriteAsset.model_validate(
        {**asset.model_dump(), "model_version": model_version, "quality_score": quality}
    )


def _resolve_provider(
    config: PixelkinConfig, provider: DesignProvider | None
) -> tuple[DesignProvider | None, bool]:
    if provider is not None:
        return provider, False
    name = config.sprite.provider
    if not get_api_key_for_provider(name):
        return None, False
    try:
        return get_design_provider(name, config, section="sprite"), True
    except ValueError as exc:
        logger.warning("Sprite provider %s unavailable: %s", name, exc)
        return None, False


def _reuse_cached(
    cached: Any, expected_size: int, model_version: str, min_quality: float
) -> StoredSpriteAsset | None:
    validation = validate_sprite_asset(cached, expected_size)
    if not validation.ok or validation.asset is None:
        return None
    stored_quality = cached.get("qualityScore")
    quality = (
        stored_quality
        if isinstance(stored_quality, (int, float)) and not isinstance(stored_quality, bool)
        else evaluate_sprite_asset_quality(validation.asset).score
    )
    if quality < min_quality:
        return None
    return _store(validation.asset, cached.get("modelVersion") or model_version, quality)


def hydrate_profiles_with_sprites(
    profiles: list[EntityProfile],
    project_path: str | Path,
    config: PixelkinConfig | None = None,
    provider: DesignProvider | None = None,
) -> SpriteHydrationResult:
    """Attach provider-authored sprite assets to targeted profiles in place."""
    config = config or get_config()
    settings = config.sprite
    remote, owns_provider = (
        _resolve_provider(config, provider) if settings.mode == "provider" else (None, False)
    )

    result = SpriteHydrationResult(
        enabled=settings.mode == "provider",
        mode=settings.mode,
        provider=remote.provider_name if remote else settings.provider,
        model=remote.model if remote else config.resolve_sprite_model(),
    )
    if settings.mode != "provider":
        return result

    targets = profiles[: settings.max_profiles]
    if remote is None:
        result.skipped = len(targets)
        logger.info("[sprite] no API key for %s, skipped %d", settings.provider, len(targets))
        return result

    model_version = remote.model_version
    cache_path = config.cache_path(project_path, SPRITE_CACHE_FILENAME)
    cache = load_cache_file(cache_path)
    cache_dirty = False
    role_hint = config.designer.role_hint.strip() or None

    try:
        for profile in targets:
            expected_size = profile.sprite_size
            palette = generate_procedural_sprite(profile).palette
            cache_key = get_sprite_cache_key(profile, model_version)

            cached = cache.entries.get(cache_key)
            if isinstance(cached, dict):
                reused = _reuse_cached(cached, expected_size, model_version, settings.min_quality)
                if reused is not None:
                    payload = reused.to_payload()
                    profile.sprite_asset = payload
                    result.cached += 1
                    result.applied += 1
                    if (
                        cached.get("qualityScore") != reused.quality_score
                        or cached.get("modelVersion") != reused.model_version
                    ):
                        cache.entries[cache_key] = payload
                        cache_dirty = True
                    continue

            accepted: StoredSpriteAsset | None = None
            feedback: list[str] = []
            for attempt in range(settings.max_retries + 1):
                result.requested += 1
                prompt = build_sprite_prompt(
                    profile,
                    expected_size=expected_size,
                    palette=palette,
                    model_version=model_version,
                    attempt=attempt,
                    feedback=feedback,
                    role_hint=role_hint,
                )
                try:
                    raw = remote.complete_json(
                        prompt, temperature=SPRITE_TEMPERATURE, max_tokens=SPRITE_MAX_TOKENS
                    )
                except DesignProviderError as exc:
                    feedback = [str(exc)]
                    logger.warning(
                        "[sprite] %s attempt=%d request failed: %s",
                        profile.display_name,
                        attempt + 1,
                        exc,
                    )
                    continue

                decoded = decode_sprite_payload(raw, expected_size, palette)
                if not decoded.ok or decoded.asset is None:
                    feedback = decoded.errors
                    logger.info(
                        "[sprite] %s attempt=%d decode failed: %s",
                        profile.display_name,
                        attempt + 1,
                        " | ".join(feedback[:3]),
                    )
                    continue

                quality = evaluate_sprite_asset_quality(decoded.asset)
                if quality.score < settings.min_quality:
                    feedback = quality.issues
                    logger.info(
                        "[sprite] %s attempt=%d quality low (%.2f): %s",
                        profile.display_name,
                        attempt + 1,
                        quality.score,
                        " | ".join(feedback[:3]),
                    )
                    continue

                accepted = _store(decoded.asset, model_version, quality.score)
                break

            if accepted is None:
                result.failed += 1
                continue

            payload = accepted.to_payload()
            profile.sprite_asset = payload
            cache.entries[cache_key] = payload
            cache_dirty = True
            result.applied += 1
    finally:
        if owns_provider:
            remote.close()

    if cache_dirty:
        save_cache_file(cache_path, cache)

    logger.info(
        "[sprite] provider=%s requested=%d applied=%d cached=%d failed=%d",
        result.provider,
        result.requested,
        result.applied,
        result.cached,
        result.failed,
    )
    return result
