"""
Comparison Orchestrator

Coordinates a complete property comparison:

1. Mark every source connected (primary), not_configured or pending
2. Fetch candidates from every secondary source concurrently, each with its
   own timeout and failure domain
3. Match the best candidate per source
4. Map candidates onto canonical attributes and compare field by field
5. Aggregate consistency, critical issues and suggestions
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from config.comparison_config import get_config, ComparisonConfig
from .candidate_matcher import CandidateMatcher
from .comparison_models import DataSource, Property, PropertyComparison
from .consistency_aggregator import ConsistencyAggregator
from .field_comparator import FieldComparator
from .field_mapper import FieldMapper
from .source_adapters import SourceAdapter, create_default_adapters

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SourceFetchResult:
    """Settled outcome of one source branch"""
    source_name: str
    status: str
    candidate: Optional[Dict[str, Any]] = None
    candidates_found: int = 0
    error_message: Optional[str] = None
    last_sync: Optional[str] = None


class ComparisonOrchestrator:
    """
    Main orchestrator for multi-source property comparisons
    """

    def __init__(self, adapters: Optional[Dict[str, SourceAdapter]] = None,
                 config: Optional[ComparisonConfig] = None,
                 clock: Optional[Callable[[], str]] = None):
        self.config = config or get_config()
        self.adapters = adapters if adapters is not None else create_default_adapters(self.config)
        self.clock = clock or utc_now_iso

        self.mapper = FieldMapper(self.config)
        self.matcher = CandidateMatcher(self.config, self.mapper)
        self.comparator = FieldComparator(self.config)
        self.aggregator = ConsistencyAggregator(self.config)

    async def compare_property_across_sources(self, reference: Property) -> PropertyComparison:
        """
        Compare one reference property against every configured source.

        Source failures are reported through source statuses; this method
        does not raise for them.

        Args:
            reference: The primary-source property to reconcile

        Returns:
            PropertyComparison with fields, source statuses and aggregates
        """
        logger.info(f"Starting comparison for property {reference.id}")

        primary = self.config.primary_source
        pending = [
            source.name for source in self.config.secondary_sources
            if self._adapter_available(source.name, reference)
        ]

        # One task per source; each returns its own immutable slot
        settled = await asyncio.gather(
            *[self._fetch_source(name, reference) for name in pending]
        )
        results = {result.source_name: result for result in settled}

        candidates: Dict[str, Optional[Dict[str, Any]]] = {
            primary.name: self.mapper.reference_record(reference)
        }
        for source in self.config.secondary_sources:
            result = results.get(source.name)
            candidates[source.name] = result.candidate if result else None

        fields = [
            self.comparator.compare_field(spec, {
                name: self.mapper.map_field(name, candidate, spec.key)
                for name, candidate in candidates.items()
            })
            for spec in self.config.fields
        ]

        sources = self._build_source_statuses(results)
        report = self.aggregator.aggregate(fields, sources)

        connected = len([s for s in sources if s.status == 'connected'])
        logger.info(f"Comparison for property {reference.id} completed: "
                    f"{connected}/{len(sources)} sources connected, "
                    f"consistency {report.overall_consistency}%")

        return PropertyComparison(
            property=reference,
            fields=fields,
            sources=sources,
            last_updated=self.clock(),
            overall_consistency=report.overall_consistency,
            critical_issues=report.critical_issues,
            suggestions=report.suggestions,
        )

    def _adapter_available(self, source_name: str, reference: Property) -> bool:
        adapter = self.adapters.get(source_name)
        if adapter is None:
            return False
        is_available = getattr(adapter, 'is_available_for', None)
        return bool(is_available(reference)) if is_available else True

    async def _fetch_source(self, source_name: str, reference: Property) -> SourceFetchResult:
        """
        Fetch and match candidates from one source.

        Every exception, including timeouts, is converted into an error
        result for this source only.
        """
        adapter = self.adapters[source_name]
        timeout = self.config.get_source(source_name).timeout_seconds

        try:
            candidates = await asyncio.wait_for(self._search(adapter, reference), timeout=timeout)
        except asyncio.TimeoutError:
            message = f"Request timed out after {timeout}s"
            logger.warning(f"{source_name} fetch for property {reference.id} timed out")
            return SourceFetchResult(source_name=source_name, status='error', error_message=message)
        except Exception as e:
            logger.warning(f"{source_name} fetch for property {reference.id} failed: {e}")
            return SourceFetchResult(source_name=source_name, status='error', error_message=str(e))

        if not isinstance(candidates, list) or not all(isinstance(c, dict) for c in candidates):
            message = "Malformed response: expected a list of listing records"
            logger.warning(f"{source_name} fetch for property {reference.id}: {message}")
            return SourceFetchResult(source_name=source_name, status='error', error_message=message)

        best = self.matcher.find_best_match(reference, candidates, source_name)

        return SourceFetchResult(
            source_name=source_name,
            status='connected',
            candidate=best,
            candidates_found=len(candidates),
            error_message=None if best is not None else "No matching listing found",
            last_sync=self.clock(),
        )

    @staticmethod
    async def _search(adapter: SourceAdapter, reference: Property) -> Any:
        """Run an adapter search; blocking adapters run in a worker thread"""
        search = getattr(adapter, 'search_for_property', None)
        if search is None:
            search_by_address = adapter.search_by_address
            if inspect.iscoroutinefunction(search_by_address):
                return await search_by_address(reference.search_text)
            return await asyncio.to_thread(search_by_address, reference.search_text)

        if inspect.iscoroutinefunction(search):
            return await search(reference)
        return await asyncio.to_thread(search, reference)

    def _build_source_statuses(self, results: Dict[str, SourceFetchResult]) -> List[DataSource]:
        sources = []
        for settings in self.config.sources:
            source = DataSource(
                name=settings.name,
                display_name=settings.display_name,
                color=settings.color,
                icon=settings.icon,
                endpoint=settings.endpoint,
            )

            if settings.primary:
                source.status = 'connected'
                source.match_found = True
            elif settings.name in results:
                result = results[settings.name]
                source.status = result.status
                source.last_sync = result.last_sync
                source.error_message = result.error_message
                source.match_found = result.candidate is not None

            sources.append(source)
        return sources

    async def batch_compare(self, references: List[Property],
                            max_concurrent: Optional[int] = None) -> List[PropertyComparison]:
        """
        Compare several properties with a concurrency limit.

        Properties whose comparison raises are logged and skipped.
        """
        limit = max_concurrent or self.config.max_concurrent_comparisons
        logger.info(f"Starting batch comparison for {len(references)} properties")

        semaphore = asyncio.Semaphore(limit)

        async def compare_with_semaphore(reference: Property) -> PropertyComparison:
            async with semaphore:
                return await self.compare_property_across_sources(reference)

        results = await asyncio.gather(
            *[compare_with_semaphore(reference) for reference in references],
            return_exceptions=True
        )

        comparisons = []
        for reference, result in zip(references, results):
            if isinstance(result, Exception):
                logger.error(f"Comparison failed for property {reference.id}: {result}")
                continue
            comparisons.append(result)

        logger.info(f"Batch comparison completed: {len(comparisons)} successful, "
                    f"{len(references) - len(comparisons)} failed")

        return comparisons
