"""
Caller-owned cache of comparison results.

Results are keyed by (property_id, source_data_version), so a caller that
knows its source data has not changed can skip re-fetching every source.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .comparison_models import Property, PropertyComparison
from .comparison_orchestrator import ComparisonOrchestrator

logger = logging.getLogger(__name__)


class ComparisonCache:
    """
    Wraps an orchestrator with an in-memory result cache
    """

    def __init__(self, orchestrator: ComparisonOrchestrator, max_entries: int = 500):
        self.orchestrator = orchestrator
        self.max_entries = max_entries
        self._entries: Dict[Tuple[Any, str], PropertyComparison] = {}
        self.hits = 0
        self.misses = 0

    async def compare(self, reference: Property, source_data_version: str) -> PropertyComparison:
        key = (reference.id, source_data_version)

        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug(f"Comparison cache hit for {key}")
            return cached

        self.misses += 1
        comparison = await self.orchestrator.compare_property_across_sources(reference)

        if len(self._entries) >= self.max_entries:
            # Dicts keep insertion order, so the first key is the oldest entry
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        self._entries[key] = comparison
        return comparison

    def get(self, property_id: Any, source_data_version: str) -> Optional[PropertyComparison]:
        return self._entries.get((property_id, source_data_version))

    def invalidate(self, property_id: Any) -> int:
        """Drop every cached version for a property; returns the number removed"""
        keys = [key for key in self._entries if key[0] == property_id]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
