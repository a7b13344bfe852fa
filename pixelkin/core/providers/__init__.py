"""Design provider registry and factory.

Provides:
- DesignProvider / DesignProviderError: the provider boundary
- get_design_provider(): Create a provider for the designer or sprite section

Providers are lazy-imported so the openai SDK loads only when a remote
provider is actually requested.
"""

import importlib
from typing import Literal

from .base import DesignProvider, DesignProviderError
from ...config import (
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    PixelkinConfig,
    get_api_key_for_provider,
    get_config,
)


# =============================================================================
# Provider Registry
# =============================================================================

# Each entry: module, class_name, default kwargs
_BUILTIN_REGISTRY: dict[str, dict] = {
    "openai": {
        "module": ".openai_compat",
        "class": "OpenAICompatProvider",
        "kwargs": {"provider_label": "openai"},
    },
    "openrouter": {
        "module": ".openai_compat",
        "class": "OpenAICompatProvider",
        "kwargs": {"provider_label": "openrouter"},
    },
}


def get_design_provider(
    provider_name: str,
    config: PixelkinConfig | None = None,
    section: Literal["designer", "sprite"] = "designer",
) -> DesignProvider:
    """Create a provider instance by name.

    Model, base URL, timeout and OpenRouter attribution come from the given
    config section; the API key always comes from the environment.

    Raises:
        ValueError: If the provider is unknown or has no API key
    """
    if provider_name not in _BUILTIN_REGISTRY:
        available = ", ".join(sorted(_BUILTIN_REGISTRY))
        raise ValueError(
            f"Unknown design provider: {provider_name!r}. Available: {available}"
        )

    config = config or get_config()
    settings = config.designer if section == "designer" else config.sprite
    entry = _BUILTIN_REGISTRY[provider_name]

    module = importlib.import_module(entry["module"], package=__package__)
    cls = getattr(module, entry["class"])

    kwargs = dict(entry.get("kwargs", {}))
    kwargs.update(
        api_key=get_api_key_for_provider(provider_name),
        model=settings.model or DEFAULT_MODELS[provider_name],
        base_url=settings.base_url or DEFAULT_BASE_URLS[provider_name],
        timeout_seconds=settings.timeout_seconds,
        site_url=config.designer.site_url,
        app_name=config.designer.app_name,
        log_requests=config.defaults.log_requests,
        logs_dir=config.defaults.logs_dir,
    )
    return cls(**kwargs)


__all__ = [
    "DesignProvider",
    "DesignProviderError",
    "get_design_provider",
]
