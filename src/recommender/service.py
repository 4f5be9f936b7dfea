"""Recommendation service.

Combines signal recall, score aggregation and ranking into related-product
and suggested-product lists.
"""

import logging
import time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from src.api.exceptions import StoreError
from src.catalog.models import Product
from src.catalog.store import ProductStore
from src.recommender.ranking import mix_suggestions, mixed_quota, rank_related
from src.recommender.recall import (
    SIGNAL_RECALLS,
    RawCandidate,
    SignalType,
    recall_bestsellers,
    recall_high_rated,
    recall_new,
    recall_trending,
)
from src.recommender.scoring import Candidate, aggregate

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 12


class SuggestionStrategy(str, Enum):
    TRENDING = "trending"
    BESTSELLERS = "bestsellers"
    HIGH_RATED = "high_rated"
    NEW = "new"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: Union[str, "SuggestionStrategy", None]) -> "SuggestionStrategy":
        """Unknown or missing strategies fall back to mixed."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logger.debug(f"Unknown suggestion strategy '{value}', using mixed")
            return cls.MIXED


SINGLE_STRATEGIES = {
    SuggestionStrategy.TRENDING: recall_trending,
    SuggestionStrategy.BESTSELLERS: recall_bestsellers,
    SuggestionStrategy.HIGH_RATED: recall_high_rated,
    SuggestionStrategy.NEW: recall_new,
}

# Priority order of strategies in a mixed request
MIXED_STRATEGIES = (
    SuggestionStrategy.TRENDING,
    SuggestionStrategy.BESTSELLERS,
    SuggestionStrategy.NEW,
)


def _selected_signals(options: Optional[Mapping[str, Any]]) -> List[SignalType]:
    """Signals to recall, in recall order; ``options["signals"]`` narrows them."""
    requested = (options or {}).get("signals")
    if not requested:
        return list(SIGNAL_RECALLS)

    wanted = set()
    for name in requested:
        try:
            wanted.add(SignalType(name))
        except ValueError:
            logger.warning(f"Ignoring unknown signal '{name}'")
    return [signal for signal in SIGNAL_RECALLS if signal in wanted]


class RecommendationService:
    """Related and suggested products over a product store.

    Stateless: every call issues its own store queries, so one instance can
    serve concurrent requests.
    """

    def __init__(self, store: ProductStore):
        self.store = store

    def recall_candidates(
        self,
        source: Product,
        limit: int,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[RawCandidate]:
        """Raw rows from every selected signal, each capped at ``limit``."""
        raw: List[RawCandidate] = []
        for signal in _selected_signals(options):
            raw.extend(SIGNAL_RECALLS[signal](source, limit, self.store))
        return raw

    def get_related_candidates(
        self,
        product_id: int,
        limit: int = DEFAULT_LIMIT,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Candidate]:
        """Ranked candidates for a product.

        Raises:
            StoreError: If the store fails; callers decide how to degrade.
        """
        source = self.store.get_product(product_id)
        if source is None:
            logger.info(f"Product {product_id} not found, no related products")
            return []

        raw = self.recall_candidates(source, limit, options)
        return rank_related(aggregate(raw), limit)

    def get_related_products(
        self,
        product_id: int,
        limit: int = DEFAULT_LIMIT,
        options: Optional[Mapping[str, Any]] = None,
        return_scores: bool = False,
    ) -> Union[List[Product], Tuple[List[Product], Dict[int, Dict[str, Any]]]]:
        """Get related products for a product.

        Candidates are recalled from collection co-membership, tag overlap,
        vendor, price proximity and product type, scored additively and
        ranked by score.

        Args:
            product_id: Source product.
            limit: Maximum number of products to return.
            options: Optional ``{"signals": [...]}`` restricting recall sources.
            return_scores: If True, also return per-product score breakdown.

        Returns:
            Ranked products, or ``(products, scores)`` when ``return_scores``
            is set. Empty when the product does not exist or the store fails.
        """
        start_time = time.time()

        try:
            ranked = self.get_related_candidates(product_id, limit, options)
        except StoreError as e:
            logger.error(
                "Related products lookup failed",
                extra={"product_id": product_id, "error": str(e)},
            )
            ranked = []

        products = [candidate.product for candidate in ranked]

        logger.info(
            "Related products generated",
            extra={
                "product_id": product_id,
                "limit": limit,
                "num_products": len(products),
                "total_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        if return_scores:
            scores = {
                candidate.product_id: {
                    "relevance_score": round(candidate.score, 4),
                    "match_reasons": sorted(s.value for s in candidate.matched_signals),
                }
                for candidate in ranked
            }
            return products, scores
        return products

    def get_suggested_products(
        self,
        limit: int = DEFAULT_LIMIT,
        strategy: Union[str, SuggestionStrategy] = SuggestionStrategy.MIXED,
    ) -> List[Product]:
        """Get suggested products for a strategy.

        ``mixed`` gives trending, bestsellers and new products a
        ``ceil(limit / 3)`` share each, in that priority, without duplicates.

        Returns:
            Up to ``limit`` products; empty when the store fails.
        """
        strategy = SuggestionStrategy.parse(strategy)

        try:
            if strategy is SuggestionStrategy.MIXED:
                quota = mixed_quota(limit)
                streams = [SINGLE_STRATEGIES[s](quota, self.store) for s in MIXED_STRATEGIES]
                products = mix_suggestions(streams, limit)
            else:
                products = SINGLE_STRATEGIES[strategy](limit, self.store)
        except StoreError as e:
            logger.error(
                "Suggested products lookup failed",
                extra={"strategy": strategy.value, "error": str(e)},
            )
            return []

        logger.info(
            "Suggested products generated",
            extra={"strategy": strategy.value, "limit": limit, "num_products": len(products)},
        )
        return products
