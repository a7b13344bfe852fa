"""Storage layer for on-disk design and sprite caches."""

from .cache_file import (
    DESIGNER_CACHE_FILENAME,
    SPRITE_CACHE_FILENAME,
    load_cache_file,
    save_cache_file,
)
from .schemas import CACHE_FILE_VERSION, CacheFilePayload

__all__ = [
    "DESIGNER_CACHE_FILENAME",
    "SPRITE_CACHE_FILENAME",
    "load_cache_file",
    "save_cache_file",
    "CACHE_FILE_VERSION",
    "CacheFilePayload",
]
