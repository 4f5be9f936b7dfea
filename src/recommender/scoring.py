"""Score aggregation for related-product candidates.

Merges raw recall rows into one candidate per product and accumulates an
additive relevance score.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from src.catalog.models import Product
from src.recommender.recall import RawCandidate, SignalType

# Configure module logger
logger = logging.getLogger(__name__)

# Quality bonuses, applied once per product
HIGH_RATING_THRESHOLD = 4.5
HIGH_RATING_BONUS = 0.5
MANY_REVIEWS_THRESHOLD = 50
MANY_REVIEWS_BONUS = 0.3


@dataclass
class Candidate:
    """A related-product candidate with its accumulated score."""

    product: Product
    matched_signals: Set[SignalType] = field(default_factory=set)
    score: float = 0.0

    @property
    def product_id(self) -> int:
        return self.product.id


def quality_bonus(product: Product) -> float:
    """Bonus for a well-rated, well-reviewed product; missing data earns nothing."""
    bonus = 0.0
    if product.rating is not None and product.rating >= HIGH_RATING_THRESHOLD:
        bonus += HIGH_RATING_BONUS
    if product.review_count is not None and product.review_count >= MANY_REVIEWS_THRESHOLD:
        bonus += MANY_REVIEWS_BONUS
    return bonus


def aggregate(raw_candidates: Iterable[RawCandidate]) -> List[Candidate]:
    """Group raw recall rows by product and sum their weights.

    A product matched by several signals accumulates every signal's weight.
    The quality bonus is added once per product.

    Args:
        raw_candidates: ``(product, signal, base_weight)`` rows from recall.

    Returns:
        One candidate per product, in the order products were first seen.
    """
    candidates: Dict[int, Candidate] = {}

    for product, signal, weight in raw_candidates:
        candidate = candidates.get(product.id)
        if candidate is None:
            candidate = Candidate(product=product)
            candidates[product.id] = candidate
        candidate.score += weight
        candidate.matched_signals.add(signal)

    for candidate in candidates.values():
        candidate.score += quality_bonus(candidate.product)

    logger.debug(f"Aggregated {len(candidates)} unique candidates")
    return list(candidates.values())
