"""Load and save the JSON cache files under a project's cache directory."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .schemas import CACHE_FILE_VERSION, CacheFilePayload, _now_iso

logger = logging.getLogger(__name__)

DESIGNER_CACHE_FILENAME = "designer-spec-cache.json"
SPRITE_CACHE_FILENAME = "sprite-cache.json"


def load_cache_file(path: str | Path) -> CacheFilePayload:
    """Read a cache file, returning an empty cache on any problem.

    A missing file, unreadable JSON, a wrong version or a non-object
    ``entries`` all yield an empty cache; the cache is advisory.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return CacheFilePayload()
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
        return CacheFilePayload()

    if not isinstance(data, dict) or data.get("version") != CACHE_FILE_VERSION:
        logger.info("Ignoring cache file %s with unsupported version", path)
        return CacheFilePayload()
    if not isinstance(data.get("entries"), dict):
        return CacheFilePayload()
    if not isinstance(data.get("updatedAt"), str):
        data = {**data, "updatedAt": _now_iso()}

    try:
        return CacheFilePayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring malformed cache file %s: %s", path, exc)
        return CacheFilePayload()


def save_cache_file(path: str | Path, cache: CacheFilePayload) -> None:
    """Stamp ``updatedAt`` and write the cache as indented JSON."""
    path = Path(path)
    cache.updated_at = _now_iso()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cache.to_payload(), indent=2), encoding="utf-8")
