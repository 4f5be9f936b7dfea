"""Recommendation endpoints for the CatalogRec API.

Related products for a product page and unscored product suggestions.
"""

import logging
import time
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.api.dependencies import get_engine
from src.api.metrics import metrics_service
from src.catalog.models import Product
from src.config import MAX_LIMIT
from src.engine import CatalogEngine
from src.recommender.service import SuggestionStrategy

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/products",
    tags=["recommendations"],
)


class ProductScore(BaseModel):
    relevance_score: float
    match_reasons: List[str]


class RelatedProductsResponse(BaseModel):
    """Response model for related-product requests.

    Attributes:
        product_id: The source product.
        products: Related products, most relevant first.
        scores: Per-product score breakdown, only when ``explain`` is set.
    """

    product_id: int = Field(..., description="Source product ID")
    products: List[Product] = Field(..., description="Related products")
    scores: Optional[Dict[int, ProductScore]] = Field(
        default=None, description="Score breakdown by product ID"
    )


class SuggestedProductsResponse(BaseModel):
    strategy: SuggestionStrategy
    products: List[Product]


@router.get("/suggested", response_model=SuggestedProductsResponse)
def get_suggested_products(
    limit: int = Query(12, ge=1, le=MAX_LIMIT),
    strategy: str = SuggestionStrategy.MIXED.value,
    engine: CatalogEngine = Depends(get_engine),
) -> SuggestedProductsResponse:
    """Get suggested products.

    Unknown strategies fall back to ``mixed``.

    Example:
        GET /products/suggested?strategy=trending&limit=6
    """
    start_time = time.time()
    parsed = SuggestionStrategy.parse(strategy)

    products = engine.get_suggested_products(limit=limit, strategy=parsed)

    metrics_service.record_request("suggested", (time.time() - start_time) * 1000)
    return SuggestedProductsResponse(strategy=parsed, products=products)


@router.get("/{product_id}/related", response_model=RelatedProductsResponse)
def get_related_products(
    product_id: int,
    limit: int = Query(12, ge=1, le=MAX_LIMIT),
    explain: bool = False,
    signals: Optional[List[str]] = Query(default=None),
    engine: CatalogEngine = Depends(get_engine),
) -> RelatedProductsResponse:
    """Get products related to a product.

    An unknown product yields an empty list, not an error.

    Args:
        product_id: Source product.
        limit: Number of products to return (default: 12).
        explain: Include relevance scores and match reasons.
        signals: Restrict recall to these signals (repeatable).

    Example:
        GET /products/42/related?limit=6&explain=true
    """
    logger.info(f"Related products requested for product {product_id}, limit={limit}")
    start_time = time.time()

    options = {"signals": signals} if signals else None
    scores = None
    if explain:
        products, scores = engine.get_related_products(
            product_id, limit=limit, options=options, return_scores=True
        )
    else:
        products = engine.get_related_products(product_id, limit=limit, options=options)

    metrics_service.record_request("related", (time.time() - start_time) * 1000)
    return RelatedProductsResponse(product_id=product_id, products=products, scores=scores)
