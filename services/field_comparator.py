"""
Field Comparator

Compares one canonical attribute across every configured source and
classifies the disagreement:

- has_differences: any detectable disagreement (>1% spread for numbers)
- significant_difference: a disagreement large or important enough to
  warrant attention, judged by magnitude and the field's weight
- confidence_score: 0-100 agreement between the sources that reported a value
"""

import logging
from typing import Any, Dict, List, Optional, Union

from config.comparison_config import get_config, ComparisonConfig, FieldSpec
from .comparison_models import ComparisonField
from .normalization import (
    is_missing,
    normalize_rating,
    normalize_text,
    parse_date,
    round_half_up,
    to_number,
    to_timestamp,
)

logger = logging.getLogger(__name__)


NUMERIC_TYPES = ('currency', 'number')

CONSISTENT_MESSAGE = "Data is consistent across all sources"

FIELD_RECOMMENDATIONS = {
    'price': [
        "Verify current market price with agent",
        "Check recent comparable sales",
    ],
    'bedrooms': [
        "Confirm room count with property inspection",
        "Update listing descriptions for clarity",
    ],
    'bathrooms': [
        "Confirm room count with property inspection",
        "Update listing descriptions for clarity",
    ],
    'ber_rating': [
        "Request latest BER certificate",
        "Update all platforms with correct rating",
    ],
    'address': [
        "Standardize address format across platforms",
        "Verify with official postal service",
    ],
}

DEFAULT_RECOMMENDATIONS = ["Synchronize data across all platforms"]


class FieldComparator:
    """
    Service for comparing a canonical attribute across sources
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        self.config = config or get_config()
        self.thresholds = self.config.thresholds

    def compare_field(self, attribute: Union[str, FieldSpec],
                      values_by_source: Dict[str, Any]) -> ComparisonField:
        """
        Compare one attribute across sources.

        Args:
            attribute: Canonical attribute key or its FieldSpec
            values_by_source: Source name -> raw value (None when absent)

        Returns:
            ComparisonField with one entry per configured source
        """
        spec = attribute if isinstance(attribute, FieldSpec) else self.config.get_field(attribute)

        for source_name in values_by_source:
            self.config.get_source(source_name)

        sources = {
            name: (None if is_missing(values_by_source.get(name)) else values_by_source.get(name))
            for name in self.config.source_names
        }

        normalized = self._normalize_values(list(sources.values()), spec.type)

        has_differences = self.check_for_differences(normalized, spec.type)
        significant = self.check_for_significant_differences(normalized, spec.type, spec.weight)
        confidence = self.calculate_confidence_score(normalized)
        recommendations = self.generate_field_recommendations(spec.key, has_differences)

        if has_differences:
            logger.debug(f"Field '{spec.key}' differs across sources: {sources} "
                         f"(significant={significant}, confidence={confidence})")

        return ComparisonField(
            key=spec.key,
            label=spec.label,
            type=spec.type,
            weight=spec.weight,
            sources=sources,
            display_values={name: self.format_value(value, spec.type) for name, value in sources.items()},
            has_differences=has_differences,
            significant_difference=significant,
            confidence_score=confidence,
            recommendations=recommendations,
        )

    def _normalize_values(self, values: List[Any], field_type: str) -> List[Any]:
        """
        Coerce non-null values to comparable keys for the declared type.

        Values that cannot be coerced (e.g. "POA" for a price) are treated
        as absent.
        """
        normalized = []
        for value in values:
            if is_missing(value):
                continue
            key = self.normalize_value(value, field_type)
            if key is None:
                logger.debug(f"Ignoring value {value!r} that is not a valid {field_type}")
                continue
            normalized.append(key)
        return normalized

    @staticmethod
    def normalize_value(value: Any, field_type: str) -> Any:
        if field_type in NUMERIC_TYPES:
            return to_number(value)
        if field_type == 'rating':
            return normalize_rating(value) or None
        if field_type == 'date':
            return to_timestamp(value)
        return normalize_text(value) or None

    def check_for_differences(self, values: List[Any], field_type: str) -> bool:
        """True when the normalized values disagree"""
        if len(values) < 2:
            return False

        if field_type in NUMERIC_TYPES:
            spread = self._numeric_spread(values)
            if spread is None:
                return len(set(values)) > 1
            return spread > self.thresholds.numeric_difference_ratio

        return len(set(values)) > 1

    def check_for_significant_differences(self, values: List[Any], field_type: str,
                                          weight: float) -> bool:
        """True when a difference matters enough, by magnitude and field weight"""
        if not self.check_for_differences(values, field_type):
            return False

        if field_type == 'currency':
            spread = self._numeric_spread(values)
            if spread is None:
                # Zero minimum: any disagreement is an unbounded spread
                spread = float('inf')
            return (spread > self.thresholds.significant_currency_ratio
                    and weight > self.thresholds.significant_currency_weight)

        if field_type == 'number':
            return len(set(values)) > 1 and weight > self.thresholds.significant_number_weight

        return weight > self.thresholds.significant_other_weight

    @staticmethod
    def _numeric_spread(values: List[float]) -> Optional[float]:
        """(max - min) / min, or None when min is zero"""
        low = min(values)
        high = max(values)
        if low == 0:
            return None
        return (high - low) / abs(low)

    @staticmethod
    def calculate_confidence_score(values: List[Any]) -> int:
        """
        Agreement between reporting sources, from 0 to 100.

        100 when all values agree, lower as more distinct values appear.
        No values at all yields 0.
        """
        total = len(values)
        if total == 0:
            return 0
        unique = len(set(values))
        return round_half_up((total - unique + 1) / total * 100)

    @staticmethod
    def generate_field_recommendations(field_key: str, has_differences: bool) -> List[str]:
        if not has_differences:
            return [CONSISTENT_MESSAGE]
        return list(FIELD_RECOMMENDATIONS.get(field_key, DEFAULT_RECOMMENDATIONS))

    def format_value(self, value: Any, field_type: str) -> str:
        """Format a raw value for display according to its declared type"""
        display = self.config.display

        if is_missing(value):
            return display.placeholder

        if field_type in NUMERIC_TYPES:
            number = to_number(value)
            if number is None:
                return str(value)
            grouped = _group_thousands(number)
            return f"{display.currency_symbol}{grouped}" if field_type == 'currency' else grouped

        if field_type == 'date':
            parsed = parse_date(value)
            return parsed.strftime(display.date_format) if parsed else str(value)

        if field_type == 'rating':
            return str(value).upper()

        return str(value)

    @staticmethod
    def difference_percentage(value1: Any, value2: Any, field_type: str) -> Optional[int]:
        """Signed percentage difference of value1 relative to value2, for numeric fields"""
        if field_type not in NUMERIC_TYPES:
            return None

        num1 = to_number(value1)
        num2 = to_number(value2)
        if num1 is None or num2 is None or num2 == 0:
            return None

        return round_half_up((num1 - num2) / num2 * 100)


def _group_thousands(number: float) -> str:
    if float(number).is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip('0').rstrip('.')
