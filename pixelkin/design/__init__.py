"""Design layer: designer agents, spec normalization, memo cache and
portfolio diversification."""

from .agent import (
    DesignerAgent,
    LocalDesignerAgent,
    ProviderDesignerAgent,
    build_designer_prompt,
    generate_local_visual_spec,
    get_visual_design_cache_key,
    rank_stats,
    resolve_designed_genome,
)
from .cache import DesignCache, InMemoryDesignCache
from .diversifier import (
    MAX_DIVERSIFY_ATTEMPTS,
    MIN_QUALITY_SCORE,
    MIN_SPEC_DISTANCE,
    diversify_spec_for_portfolio,
    min_spec_distance,
    spec_distance,
    spec_quality,
)
from .normalize import normalize_remote_visual_spec

__all__ = [
    "DesignerAgent",
    "LocalDesignerAgent",
    "ProviderDesignerAgent",
    "build_designer_prompt",
    "generate_local_visual_spec",
    "get_visual_design_cache_key",
    "rank_stats",
    "resolve_designed_genome",
    "DesignCache",
    "InMemoryDesignCache",
    "MAX_DIVERSIFY_ATTEMPTS",
    "MIN_QUALITY_SCORE",
    "MIN_SPEC_DISTANCE",
    "diversify_spec_for_portfolio",
    "min_spec_distance",
    "spec_distance",
    "spec_quality",
    "normalize_remote_visual_spec",
]
