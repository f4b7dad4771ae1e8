"""
Candidate Matcher

Selects the listing from a secondary source that most likely describes the
same real-world property as the reference, using a weighted similarity of
price, bedroom count and address.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config.comparison_config import get_config, ComparisonConfig
from .comparison_models import Property
from .field_mapper import FieldMapper
from .normalization import normalize_address, to_number

logger = logging.getLogger(__name__)

# Canonical attributes read when scoring candidates
MATCH_ATTRIBUTES = ('price', 'bedrooms')


@dataclass
class ScoredCandidate:
    """A candidate together with its similarity breakdown"""
    candidate: Dict[str, Any]
    price_score: float
    bedroom_score: float
    address_score: float
    total_score: float


def address_similarity(address1: Optional[str], address2: Optional[str],
                       exact_score: float = 100.0, contained_score: float = 80.0) -> float:
    """
    Score two addresses from 0 to 100.

    Exact match after normalization scores exact_score, containment in
    either direction scores contained_score, otherwise the share of words
    in common relative to the longer address.
    """
    norm1 = normalize_address(address1)
    norm2 = normalize_address(address2)

    if not norm1 or not norm2:
        return 0.0

    if norm1 == norm2:
        return exact_score
    if norm1 in norm2 or norm2 in norm1:
        return contained_score

    words1 = norm1.split(' ')
    words2 = norm2.split(' ')
    common_words = [word for word in words1 if word in words2]

    return len(common_words) / max(len(words1), len(words2)) * 100


class CandidateMatcher:
    """
    Picks the best candidate per source, or none when no candidate is a
    confident match.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None,
                 field_mapper: Optional[FieldMapper] = None):
        self.config = config or get_config()
        self.mapper = field_mapper or FieldMapper(self.config)

        for attribute in MATCH_ATTRIBUTES:
            self.config.get_field(attribute)

    def score_candidate(self, reference: Property, candidate: Dict[str, Any],
                        source_name: str) -> ScoredCandidate:
        """Compute the weighted similarity of one candidate to the reference"""
        settings = self.config.matching

        reference_price = to_number(reference.price) or 0.0
        candidate_price = to_number(self.mapper.map_field(source_name, candidate, 'price')) or 0.0
        if reference_price > 0:
            price_diff = abs(candidate_price - reference_price)
            price_score = max(0.0, 100 - price_diff / reference_price * 100)
        else:
            price_score = 0.0

        reference_beds = to_number(reference.bedrooms) or 0.0
        candidate_beds = to_number(self.mapper.map_field(source_name, candidate, 'bedrooms')) or 0.0
        bedroom_diff = abs(candidate_beds - reference_beds)
        bedroom_score = max(0.0, 100 - bedroom_diff * settings.bedroom_penalty)

        address_score = address_similarity(
            reference.search_text,
            self.mapper.candidate_address(source_name, candidate),
            exact_score=settings.exact_address_score,
            contained_score=settings.contained_address_score,
        )

        total = (price_score * settings.price_weight
                 + bedroom_score * settings.bedroom_weight
                 + address_score * settings.address_weight)

        return ScoredCandidate(
            candidate=candidate,
            price_score=price_score,
            bedroom_score=bedroom_score,
            address_score=address_score,
            total_score=total,
        )

    def find_best_match(self, reference: Property, candidates: List[Dict[str, Any]],
                        source_name: str) -> Optional[Dict[str, Any]]:
        """
        Select the single best matching candidate from one source.

        Args:
            reference: The reference property
            candidates: Raw candidates returned by the source adapter
            source_name: Source the candidates came from

        Returns:
            The best candidate, or None when there are no candidates or the
            best score does not exceed the configured minimum
        """
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        best: Optional[ScoredCandidate] = None
        for candidate in candidates:
            scored = self.score_candidate(reference, candidate, source_name)
            # Strict comparison keeps the first of equally scored candidates
            if best is None or scored.total_score > best.total_score:
                best = scored

        min_score = self.config.matching.min_match_score
        if best.total_score > min_score:
            logger.debug(f"Best {source_name} match for property {reference.id} "
                         f"scored {best.total_score:.1f}")
            return best.candidate

        logger.info(f"No confident {source_name} match for property {reference.id} "
                    f"(best score {best.total_score:.1f} <= {min_score})")
        return None
