"""Memoization of resolved VisualSpecs.

Keys are ``profileHash:baselineSeed:modelVersion``. A cached ``None`` records
that the designer failed for that key, so the fallback design is reused
without asking again. The cache is advisory: dropping it only costs
recomputation.
"""

import threading
from typing import Protocol, runtime_checkable

from ..core.models import VisualSpec


@runtime_checkable
class DesignCache(Protocol):
    """Key-value store consulted by ``resolve_designed_genome``."""

    def __contains__(self, key: str) -> bool: ...

    def get(self, key: str) -> VisualSpec | None: ...

    def set(self, key: str, spec: VisualSpec | None) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class InMemoryDesignCache:
    """Thread-safe in-process DesignCache."""

    def __init__(self) -> None:
        self._entries: dict[str, VisualSpec | None] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> VisualSpec | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, spec: VisualSpec | None) -> None:
        with self._lock:
            self._entries[key] = spec

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
