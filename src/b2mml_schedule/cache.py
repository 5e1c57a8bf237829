"""Cache of prepared schema contexts.

Preparing a :class:`~b2mml_schedule.document.SchemaContext` resolves the
types that take part in a document (the schedule root plus at most one
auxiliary payload type) and registers their namespace prefixes. Contexts are
immutable once built, so one instance per distinct type set is shared by all
encode/decode calls.

Design goals:
    1. Deterministic keys: a key is the md5 hash of the canonical type names.
    2. Safe lazy population: lookups and insertion happen under one lock, so
       concurrent first use of a type set builds at most one context.
    3. Injectable: the bridge accepts any :class:`ContextCache`, tests use
       private instances instead of the process-wide default.

Example::

    from b2mml_schedule.cache import ContextCache

    cache = ContextCache()
    context = cache.get_or_create(("b2mml.ProcessProductionSchedule",), build)
    assert cache.get_or_create(("b2mml.ProcessProductionSchedule",), build) is context
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Any, Callable, Dict, Sequence

logger = logging.getLogger(__name__)


class ContextCache:
    """Thread-safe mapping from a type-set key to a prepared context."""

    def __init__(self) -> None:
        self._cache: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "builds": 0}

    @staticmethod
    def _make_key(type_names: Sequence[str]) -> str:
        """Create a cache key from canonical type names (order significant)."""
        key_data = ";".join(type_names).encode()
        return hashlib.md5(key_data).hexdigest()

    def get_or_create(
        self, type_names: Sequence[str], factory: Callable[[], Any]
    ) -> Any:
        """Return the cached context, building it with ``factory`` on first use.

        Args:
            type_names: Canonical names of the types in the context.
            factory: Zero-argument callable producing the context.

        Returns:
            The single context instance stored for ``type_names``.
        """
        key = self._make_key(type_names)
        with self._lock:
            if key in self._cache:
                self._stats["hits"] += 1
                return self._cache[key]

            self._stats["misses"] += 1
            self._stats["builds"] += 1
            logger.debug("Building schema context for %s", ", ".join(type_names))
            context = factory()
            self._cache[key] = context
            return context

    def clear(self) -> None:
        """Drop every cached context."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> Dict[str, int]:
        """Return hit/miss/build counters and the current entry count."""
        with self._lock:
            stats = dict(self._stats)
            stats["entries"] = len(self._cache)
        return stats
