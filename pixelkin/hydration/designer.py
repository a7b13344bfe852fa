"""Batch VisualSpec hydration with portfolio diversification.

For the first ``max_profiles`` profiles of a batch: reuse a valid cached
spec, else ask the remote designer (when configured), else design
locally. Every remote failure degrades to the local designer. The
resulting specs are then diversified in batch order and written back onto
the profiles and into ``<cache_dir>/designer-spec-cache.json``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config import PixelkinConfig, get_api_key_for_provider, get_config
from ..core.models import (
    DESIGNER_AGENT_MODEL_VERSION,
    DesignerHydrationResult,
    EntityProfile,
    VisualGenome,
    VisualSpec,
)
from ..core.providers import DesignProvider, get_design_provider
from ..design.agent import (
    ProviderDesignerAgent,
    generate_local_visual_spec,
    get_visual_design_cache_key,
)
from ..design.diversifier import diversify_spec_for_portfolio
from ..pixel.genome import build_visual_genome
from ..pixel.visual_spec import validate_visual_spec
from ..storage import DESIGNER_CACHE_FILENAME, load_cache_file, save_cache_file

logger = logging.getLogger(__name__)


@dataclass
class _Candidate:
    profile: EntityProfile
    cache_key: str
    spec: VisualSpec


def _resolve_provider(
    config: PixelkinConfig, provider: DesignProvider | None
) -> tuple[DesignProvider | None, bool]:
    """Return the remote provider to use, and whether this call owns it."""
    if provider is not None:
        return provider, False
    name = config.designer.provider
    if name == "local" or not get_api_key_for_provider(name):
        return None, False
    try:
        return get_design_provider(name, config, section="designer"), True
    except ValueError as exc:
        logger.warning("Designer provider %s unavailable, designing locally: %s", name, exc)
        return None, False


def _local_spec(
    profile: EntityProfile, base_genome: VisualGenome, model_version: str
) -> VisualSpec | None:
    validation = validate_visual_spec(
        generate_local_visual_spec(profile, base_genome, model_version)
    )
    return validation.spec if validation.ok else None


def hydrate_profiles_with_designer(
    profiles: list[EntityProfile],
    project_path: str | Path,
    config: PixelkinConfig | None = None,
    provider: DesignProvider | None = None,
) -> DesignerHydrationResult:
    """Attach a diversified VisualSpec to each targeted profile in place.

    Args:
        profiles: Batch in stable order; only the first ``max_profiles`` are touched
        project_path: Directory holding the cache directory
        config: Settings; defaults to the global config
        provider: Remote provider to use instead of the configured one

    Returns:
        DesignerHydrationResult counters
    """
    config = config or get_config()
    remote, owns_provider = _resolve_provider(config, provider)
    model_version = remote.model_version if remote else DESIGNER_AGENT_MODEL_VERSION
    agent = (
        ProviderDesignerAgent(remote, role_hint=config.designer.role_hint or None)
        if remote
        else None
    )

    result = DesignerHydrationResult(
        provider=remote.provider_name if remote else "local",
        model=remote.model if remote else DESIGNER_AGENT_MODEL_VERSION,
    )

    cache_path = config.cache_path(project_path, DESIGNER_CACHE_FILENAME)
    cache = load_cache_file(cache_path)
    cache_dirty = False
    candidates: list[_Candidate] = []

    try:
        for profile in profiles[: config.designer.max_profiles]:
            base_genome = build_visual_genome(profile)
            cache_key = get_visual_design_cache_key(profile, base_genome, model_version)

            cached = cache.entries.get(cache_key)
            if cached is not None:
                validation = validate_visual_spec(cached)
                if validation.ok and validation.spec is not None:
                    result.cached += 1
                    candidates.append(_Candidate(profile, cache_key, validation.spec))
                    continue

            spec: VisualSpec | None
            if agent is None:
                spec = _local_spec(profile, base_genome, model_version)
            else:
                result.requested += 1
                try:
                    raw = agent.design(
                        profile, base_genome, agent.build_prompt(profile, base_genome)
                    )
                    validation = validate_visual_spec(raw)
                except Exception as exc:
                    logger.warning(
                        "[designer] %s request failed: %s", profile.display_name, exc
                    )
                    result.failed += 1
                    spec = _local_spec(profile, base_genome, model_version)
                else:
                    if validation.ok and validation.spec is not None:
                        spec = validation.spec
                    else:
                        logger.warning(
                            "[designer] %s remote output invalid: %s",
                            profile.display_name,
                            " | ".join(validation.errors[:3]),
                        )
                        result.failed += 1
                        spec = _local_spec(profile, base_genome, model_version)

            if spec is None:
                result.failed += 1
                continue
            if spec.model_version != model_version:
                spec = spec.model_copy(update={"model_version": model_version})
            candidates.append(_Candidate(profile, cache_key, spec))
    finally:
        if owns_provider and remote is not None:
            remote.close()

    accepted: list[VisualSpec] = []
    for candidate in candidates:
        diversified = diversify_spec_for_portfolio(
            candidate.profile.id, candidate.spec, accepted
        )
        accepted.append(diversified)
        payload = diversified.to_payload()
        candidate.profile.visual_spec = payload

        if cache.entries.get(candidate.cache_key) != payload:
            cache.entries[candidate.cache_key] = payload
            cache_dirty = True
        result.applied += 1

    if cache_dirty:
        save_cache_file(cache_path, cache)

    logger.info(
        "[designer] provider=%s requested=%d applied=%d cached=%d failed=%d",
        result.provider,
        result.requested,
        result.applied,
        result.cached,
        result.failed,
    )
    return result
