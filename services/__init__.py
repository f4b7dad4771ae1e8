"""
Property Reconciliation Services

This package implements the multi-source property comparison engine:
candidate matching, field comparison, consistency aggregation and the
orchestrator that runs them against every configured listing source.
"""

from .comparison_models import (
    Property,
    DataSource,
    ComparisonField,
    ConsistencyReport,
    PropertyComparison,
)
from .field_mapper import FieldMapper
from .candidate_matcher import CandidateMatcher, ScoredCandidate, address_similarity
from .field_comparator import FieldComparator
from .consistency_aggregator import ConsistencyAggregator
from .source_adapters import (
    SourceAdapter,
    SourceAdapterError,
    DaftAdapter,
    MyHomeAdapter,
    WordPressAdapter,
    create_default_adapters,
)
from .comparison_orchestrator import ComparisonOrchestrator, SourceFetchResult
from .comparison_store import ComparisonStore
from .comparison_cache import ComparisonCache

__all__ = [
    # Data model
    'Property',
    'DataSource',
    'ComparisonField',
    'ConsistencyReport',
    'PropertyComparison',

    # Reconciliation engine
    'FieldMapper',
    'CandidateMatcher',
    'ScoredCandidate',
    'address_similarity',
    'FieldComparator',
    'ConsistencyAggregator',
    'ComparisonOrchestrator',
    'SourceFetchResult',

    # Source adapters
    'SourceAdapter',
    'SourceAdapterError',
    'DaftAdapter',
    'MyHomeAdapter',
    'WordPressAdapter',
    'create_default_adapters',

    # Persistence
    'ComparisonStore',
    'ComparisonCache',
]

__version__ = '1.0.0'
