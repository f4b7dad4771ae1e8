"""
Consistency Aggregator

Rolls per-field comparisons up into an overall consistency percentage,
critical issues and actionable suggestions.
"""

import logging
from typing import List, Optional

from config.comparison_config import get_config, ComparisonConfig
from .comparison_models import ComparisonField, ConsistencyReport, DataSource
from .normalization import round_half_up

logger = logging.getLogger(__name__)


PRICE_ISSUE = "Significant price differences detected across platforms"
ADDRESS_ISSUE = "Address inconsistencies may affect property visibility"
BEDROOM_ISSUE = "Bedroom count discrepancies may mislead buyers"

SYNC_SUGGESTIONS = [
    "Consider implementing automated data synchronization",
    "Review data entry processes across all platforms",
]
CONNECT_SUGGESTION = "Connect additional data sources for better comparison"


class ConsistencyAggregator:
    """
    Combines field comparisons into a ConsistencyReport
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        self.config = config or get_config()
        self.thresholds = self.config.thresholds

    def aggregate(self, fields: List[ComparisonField], sources: List[DataSource]) -> ConsistencyReport:
        report = ConsistencyReport(
            overall_consistency=self.calculate_overall_consistency(fields),
            critical_issues=self.identify_critical_issues(fields),
            suggestions=self.generate_suggestions(fields, sources),
        )

        logger.info(f"Consistency {report.overall_consistency}%, "
                    f"{len(report.critical_issues)} critical issues, "
                    f"{len(report.suggestions)} suggestions")
        return report

    @staticmethod
    def calculate_overall_consistency(fields: List[ComparisonField]) -> int:
        """Percentage of fields without differences; 100 when there are no fields"""
        if not fields:
            return 100
        consistent = len([f for f in fields if not f.has_differences])
        return round_half_up(consistent / len(fields) * 100)

    @staticmethod
    def identify_critical_issues(fields: List[ComparisonField]) -> List[str]:
        by_key = {f.key: f for f in fields}
        issues = []

        price = by_key.get('price')
        if price is not None and price.significant_difference:
            issues.append(PRICE_ISSUE)

        address = by_key.get('address')
        if address is not None and address.has_differences:
            issues.append(ADDRESS_ISSUE)

        bedrooms = by_key.get('bedrooms')
        if bedrooms is not None and bedrooms.has_differences:
            issues.append(BEDROOM_ISSUE)

        return issues

    def generate_suggestions(self, fields: List[ComparisonField],
                             sources: List[DataSource]) -> List[str]:
        suggestions = []

        if fields:
            inconsistent = len([f for f in fields if f.has_differences])
            consistency_ratio = (len(fields) - inconsistent) / len(fields)
            if consistency_ratio < self.thresholds.low_consistency_ratio:
                suggestions.extend(SYNC_SUGGESTIONS)

        connected = [s for s in sources if s.status == 'connected']
        if len(connected) < self.thresholds.min_connected_sources:
            suggestions.append(CONNECT_SUGGESTION)

        for source in sources:
            if source.status == 'error':
                suggestions.append(f"Fix connection issues with: {source.display_name}")

        return suggestions
