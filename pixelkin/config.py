"""Configuration management for Pixelkin.

Two pipeline sections:
- designer: which design provider proposes VisualSpecs during batch hydration
- sprite: whether sprite assets are procedural or requested from a provider

Config resolution order (highest priority first):
1. Programmatic (PixelkinConfig constructed in code)
2. Environment variables (PIXELKIN_DESIGNER_PROVIDER, PIXELKIN_SPRITE_MODE, etc.)
3. Config file (~/.config/pixelkin/config.json)
4. Hardcoded defaults

API keys are ALWAYS read from env vars and never stored in the config file.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Literal


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "pixelkin"
CONFIG_FILE = CONFIG_DIR / "config.json"

DesignerProviderName = Literal["local", "openai", "openrouter"]
SpriteMode = Literal["procedural", "provider"]

DESIGNER_PROVIDERS: tuple[str, ...] = ("local", "openai", "openrouter")
SPRITE_MODES: tuple[str, ...] = ("procedural", "provider")

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4.1-mini",
    "openrouter": "openai/gpt-4.1-mini",
}
DEFAULT_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "openrouter": "https://openrouter.ai/api/v1",
}


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class DesignerConfig:
    """Design provider configuration for batch VisualSpec hydration.

    - provider: "local" uses the deterministic in-process designer
    - timeout_seconds: per-request budget, clamped to [0, 300]
    - max_profiles: profiles sent to a remote provider per batch, clamped to [1, 200]
    """

    provider: DesignerProviderName = "local"
    model: str = ""  # empty = DEFAULT_MODELS[provider]
    base_url: str = ""  # empty = DEFAULT_BASE_URLS[provider]
    timeout_seconds: float = 120.0
    max_profiles: int = 24
    role_hint: str = ""
    site_url: str = ""
    app_name: str = "pixelkin"


@dataclass
class SpriteConfig:
    """Sprite asset source configuration."""

    mode: SpriteMode = "procedural"
    provider: DesignerProviderName = "openai"
    model: str = ""
    base_url: str = ""
    timeout_seconds: float = 120.0
    max_profiles: int = 12
    max_retries: int = 2
    min_quality: float = 0.65


@dataclass
class DefaultsConfig:
    """Non-provider default settings."""

    cache_dir: str = ".pixelkin"
    log_requests: bool = False  # Write sanitized provider exchanges to ./logs
    logs_dir: str = "./logs"


# =============================================================================
# Main config class
# =============================================================================


@dataclass
class PixelkinConfig:
    """Top-level pixelkin configuration.

    Examples:
        # Package use, no files needed
        config = PixelkinConfig(designer=DesignerConfig(provider="openai"))

        # Load from ~/.config/pixelkin/config.json plus env vars
        config = PixelkinConfig.load()
    """

    designer: DesignerConfig = field(default_factory=DesignerConfig)
    sprite: SpriteConfig = field(default_factory=SpriteConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def load(cls) -> "PixelkinConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: Load from config file if it exists
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: Env var overrides
        _ensure_dotenv()
        _apply_env(config)

        config.normalize()
        return config

    def normalize(self) -> None:
        """Clamp numeric settings and replace unknown names with defaults."""
        if self.designer.provider not in DESIGNER_PROVIDERS:
            logger.warning(
                "Unknown designer provider %r, using local", self.designer.provider
            )
            self.designer.provider = "local"
        if self.sprite.provider not in DESIGNER_PROVIDERS[1:]:
            logger.warning(
                "Unknown sprite provider %r, using openai", self.sprite.provider
            )
            self.sprite.provider = "openai"
        if self.sprite.mode not in SPRITE_MODES:
            logger.warning("Unknown sprite mode %r, using procedural", self.sprite.mode)
            self.sprite.mode = "procedural"

        self.designer.timeout_seconds = _clamp(self.designer.timeout_seconds, 0, 300)
        self.designer.max_profiles = int(_clamp(self.designer.max_profiles, 1, 200))
        self.sprite.timeout_seconds = _clamp(self.sprite.timeout_seconds, 0, 300)
        self.sprite.max_profiles = int(_clamp(self.sprite.max_profiles, 1, 200))
        self.sprite.max_retries = int(_clamp(self.sprite.max_retries, 0, 6))
        self.sprite.min_quality = _clamp(self.sprite.min_quality, 0.0, 1.0)

    def save(self) -> None:
        """Save config to ~/.config/pixelkin/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "designer": asdict(self.designer),
            "sprite": asdict(self.sprite),
            "defaults": asdict(self.defaults),
        }

    # ── Convenience resolution methods ──

    def resolve_designer_model(self) -> str:
        return self.designer.model or DEFAULT_MODELS.get(self.designer.provider, "")

    def resolve_designer_base_url(self) -> str:
        return self.designer.base_url or DEFAULT_BASE_URLS.get(
            self.designer.provider, ""
        )

    def resolve_sprite_model(self) -> str:
        return self.sprite.model or DEFAULT_MODELS.get(self.sprite.provider, "")

    def resolve_sprite_base_url(self) -> str:
        return self.sprite.base_url or DEFAULT_BASE_URLS.get(self.sprite.provider, "")

    def cache_path(self, project_path: str | Path, filename: str) -> Path:
        """Resolve a cache file path under the project's cache directory."""
        return Path(project_path) / self.defaults.cache_dir / filename


# =============================================================================
# Config dict / env application
# =============================================================================


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _apply_dict(config: PixelkinConfig, data: dict) -> None:
    """Apply a dict of values onto a PixelkinConfig."""
    for section_name in ("designer", "sprite", "defaults"):
        section_data = data.get(section_name)
        if not isinstance(section_data, dict):
            continue
        section = getattr(config, section_name)
        for k, v in section_data.items():
            if hasattr(section, k):
                setattr(section, k, v)


def _read_float_env(name: str) -> float | None:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return float(val)
    except ValueError:
        logger.warning("Invalid %s=%r, ignoring", name, val)
        return None


def _read_int_env(name: str) -> int | None:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        logger.warning("Invalid %s=%r, ignoring", name, val)
        return None


def _apply_env(config: PixelkinConfig) -> None:
    if val := os.environ.get("PIXELKIN_DESIGNER_PROVIDER"):
        config.designer.provider = val.strip().lower()  # type: ignore[assignment]
    if val := os.environ.get("PIXELKIN_DESIGNER_MODEL"):
        config.designer.model = val.strip()
    if val := os.environ.get("PIXELKIN_DESIGNER_BASE_URL"):
        config.designer.base_url = val.strip()
    if val := os.environ.get("PIXELKIN_DESIGNER_ROLE_HINT"):
        config.designer.role_hint = val.strip()
    if val := os.environ.get("PIXELKIN_SITE_URL"):
        config.designer.site_url = val.strip()
    if (ms := _read_float_env("PIXELKIN_DESIGNER_TIMEOUT_MS")) is not None:
        config.designer.timeout_seconds = ms / 1000
    if (n := _read_int_env("PIXELKIN_DESIGNER_MAX_PROFILES")) is not None:
        config.designer.max_profiles = n

    if val := os.environ.get("PIXELKIN_SPRITE_MODE"):
        config.sprite.mode = val.strip().lower()  # type: ignore[assignment]
    if val := os.environ.get("PIXELKIN_SPRITE_PROVIDER"):
        config.sprite.provider = val.strip().lower()  # type: ignore[assignment]
    if val := os.environ.get("PIXELKIN_SPRITE_MODEL"):
        config.sprite.model = val.strip()
    if val := os.environ.get("PIXELKIN_SPRITE_BASE_URL"):
        config.sprite.base_url = val.strip()
    if (ms := _read_float_env("PIXELKIN_SPRITE_TIMEOUT_MS")) is not None:
        config.sprite.timeout_seconds = ms / 1000
    if (n := _read_int_env("PIXELKIN_SPRITE_MAX_PROFILES")) is not None:
        config.sprite.max_profiles = n
    if (n := _read_int_env("PIXELKIN_SPRITE_MAX_RETRIES")) is not None:
        config.sprite.max_retries = n
    if (q := _read_float_env("PIXELKIN_SPRITE_MIN_QUALITY")) is not None:
        config.sprite.min_quality = q

    if val := os.environ.get("PIXELKIN_CACHE_DIR"):
        config.defaults.cache_dir = val
    if val := os.environ.get("PIXELKIN_LOG_REQUESTS"):
        config.defaults.log_requests = val.strip().lower() in ("1", "true", "yes")


# =============================================================================
# API key resolution
# =============================================================================

_dotenv_loaded = False


def _ensure_dotenv() -> None:
    """Load .env file into os.environ if not already loaded."""
    global _dotenv_loaded
    if not _dotenv_loaded:
        _dotenv_loaded = True
        from dotenv import find_dotenv, load_dotenv

        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)


def get_api_key_for_provider(provider_name: str) -> str:
    """Get API key for a provider.

    Convention: {PROVIDER_UPPER}_API_KEY, with PIXELKIN_{PROVIDER_UPPER}_API_KEY
    taking precedence when set.

    Returns empty string if not found.
    """
    _ensure_dotenv()
    upper = provider_name.upper()
    return (
        os.environ.get(f"PIXELKIN_{upper}_API_KEY", "").strip()
        or os.environ.get(f"{upper}_API_KEY", "").strip()
    )


# =============================================================================
# Global config singleton
# =============================================================================

_config: PixelkinConfig | None = None


def get_config() -> PixelkinConfig:
    """Get the global PixelkinConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = PixelkinConfig.load()
    return _config


def configure(config: PixelkinConfig) -> None:
    """Set the global PixelkinConfig programmatically."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
