"""Shared fixtures for pixelkin tests."""

import pytest

from pixelkin import config as config_module
from pixelkin.core.models import EntityProfile


def _profile_data(**overrides) -> dict:
    data = {
        "id": "command:review",
        "name": "review",
        "displayName": "Reviewer",
        "source": "command",
        "scope": "project",
        "level": 7,
        "xp": 420,
        "types": ["scholar", "sentinel"],
        "stats": {
            "knowledge": 72,
            "arsenal": 48,
            "reflex": 35,
            "mastery": 60,
            "guard": 41,
            "synergy": 55,
        },
        "stage": "adult",
        "moves": ["inspect", "annotate", "approve"],
        "equipment": ["lens"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_profile():
    """Factory for EntityProfile instances; keyword overrides use camelCase keys."""

    def _make(**overrides) -> EntityProfile:
        return EntityProfile.model_validate(_profile_data(**overrides))

    return _make


@pytest.fixture
def profile(make_profile) -> EntityProfile:
    return make_profile()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep real API keys and .env files out of every test."""
    monkeypatch.setattr(config_module, "_dotenv_loaded", True)
    for name in (
        "OPENAI_API_KEY",
        "OPENROUTER_API_KEY",
        "PIXELKIN_OPENAI_API_KEY",
        "PIXELKIN_OPENROUTER_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    config_module.reset_config()
    yield
    config_module.reset_config()
