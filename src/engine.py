"""Catalog engine facade.

Single entry point used by the API and scripts: smart collection syncing,
collection reads and product recommendations over one product store.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from src.api.exceptions import CollectionNotFoundError
from src.catalog.models import Collection, Product
from src.catalog.store import ProductStore
from src.catalog.sync import CollectionSyncer
from src.recommender.service import DEFAULT_LIMIT, RecommendationService, SuggestionStrategy

# Configure module logger
logger = logging.getLogger(__name__)


class CatalogEngine:
    """Smart collections and recommendations over a product store."""

    def __init__(self, store: ProductStore):
        self.store = store
        self.syncer = CollectionSyncer(store)
        self.recommender = RecommendationService(store)

    # ----- smart collections -----

    def sync_smart_collection(self, collection_id: int) -> int:
        """Sync one smart collection; returns the number of members written."""
        return self.syncer.sync_by_id(collection_id)

    def sync_all(self) -> int:
        """Sync every smart collection; returns the total members written."""
        return self.syncer.sync_all()

    def _require_collection(self, collection_id: int) -> Collection:
        collection = self.store.get_collection(collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return collection

    def get_collection_products(
        self, collection_id: int, page: int = 1, limit: int = 50
    ) -> List[Product]:
        """One page of a collection's members in position order."""
        self._require_collection(collection_id)
        offset = max(page - 1, 0) * limit
        return self.store.collection_products(collection_id, offset=offset, limit=limit)

    def reorder_collection(self, collection_id: int, product_ids: List[int]) -> bool:
        """Reorder a manual collection.

        Returns:
            False for smart collections, whose order comes from their rule.
        """
        collection = self._require_collection(collection_id)
        if collection.is_smart:
            logger.warning(f"Refusing to reorder smart collection {collection_id}")
            return False

        self.store.reorder_collection_membership(collection_id, product_ids)
        logger.info(
            "Reordered collection",
            extra={"collection_id": collection_id, "num_products": len(product_ids)},
        )
        return True

    def get_collection_statistics(self, collection_id: int) -> Dict[str, Any]:
        collection = self._require_collection(collection_id)
        return {
            "collection_id": collection.id,
            "product_count": len(self.store.collection_product_ids(collection_id)),
            "is_smart": collection.is_smart,
        }

    def get_rule_options(self) -> Dict[str, List[str]]:
        """Values available for product type and vendor rules."""
        return {
            "product_types": self.store.distinct_values("product_type"),
            "vendors": self.store.distinct_values("vendor"),
        }

    # ----- recommendations -----

    def get_related_products(
        self,
        product_id: int,
        limit: int = DEFAULT_LIMIT,
        options: Optional[Mapping[str, Any]] = None,
        return_scores: bool = False,
    ):
        return self.recommender.get_related_products(
            product_id, limit=limit, options=options, return_scores=return_scores
        )

    def get_suggested_products(
        self,
        limit: int = DEFAULT_LIMIT,
        strategy: Union[str, SuggestionStrategy] = SuggestionStrategy.MIXED,
    ) -> List[Product]:
        return self.recommender.get_suggested_products(limit=limit, strategy=strategy)
