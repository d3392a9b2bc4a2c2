"""
Per-run in-memory cache keyed by reference URL.

A fresh cache is created for every poll cycle so entries never outlive the run.
"""
from typing import Any, Dict, Optional


class RunCache:
    """Small key/value store with hit/miss counters; None results are not cached"""

    def __init__(self) -> None:
        self._store: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Optional[Any]:
        value = self._store.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        if value is not None:
            self._store[key] = value
