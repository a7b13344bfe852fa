"""Pydantic records for on-disk cache files."""

from datetime import datetime
from typing import Any

from pydantic import Field

from ..core.models import CamelModel

CACHE_FILE_VERSION = 1


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


class CacheFilePayload(CamelModel):
    """Versioned key-to-record map persisted as JSON.

    Entries stay raw JSON objects; readers validate each one before use, so
    a single corrupt entry never invalidates the whole file.
    """

    version: int = CACHE_FILE_VERSION
    updated_at: str = Field(default_factory=_now_iso)
    entries: dict[str, Any] = Field(default_factory=dict)
