"""Collection endpoints for the CatalogRec API.

Smart collection syncing, member listing and manual ordering.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.api.dependencies import get_engine
from src.api.exceptions import SyncFailedError
from src.api.metrics import metrics_service
from src.catalog.models import Product
from src.config import MAX_LIMIT
from src.engine import CatalogEngine

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/collections",
    tags=["collections"],
)


class SyncResponse(BaseModel):
    collection_id: int
    member_count: int


class SyncAllResponse(BaseModel):
    members_written: int


class CollectionProductsResponse(BaseModel):
    collection_id: int
    page: int
    products: List[Product]


class ReorderRequest(BaseModel):
    product_ids: List[int] = Field(..., description="Product IDs in their new order")


class CollectionStatsResponse(BaseModel):
    collection_id: int
    product_count: int
    is_smart: bool


@router.get("/rule-options")
def get_rule_options(engine: CatalogEngine = Depends(get_engine)) -> Dict[str, List[str]]:
    """Product types and vendors available for smart collection rules."""
    return engine.get_rule_options()


@router.post("/sync", response_model=SyncAllResponse)
def sync_all_collections(engine: CatalogEngine = Depends(get_engine)) -> SyncAllResponse:
    """Sync every smart collection."""
    try:
        total = engine.sync_all()
    except SyncFailedError:
        metrics_service.record_sync(0, success=False)
        raise

    metrics_service.record_sync(total, success=True)
    return SyncAllResponse(members_written=total)


@router.post("/{collection_id}/sync", response_model=SyncResponse)
def sync_collection(
    collection_id: int, engine: CatalogEngine = Depends(get_engine)
) -> SyncResponse:
    """Sync one smart collection.

    Manual collections and smart collections without a usable rule report
    0 members and are left untouched.
    """
    logger.info(f"Sync requested for collection {collection_id}")
    try:
        count = engine.sync_smart_collection(collection_id)
    except SyncFailedError:
        metrics_service.record_sync(0, success=False)
        raise

    metrics_service.record_sync(count, success=True)
    return SyncResponse(collection_id=collection_id, member_count=count)


@router.get("/{collection_id}/products", response_model=CollectionProductsResponse)
def get_collection_products(
    collection_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_LIMIT),
    engine: CatalogEngine = Depends(get_engine),
) -> CollectionProductsResponse:
    products = engine.get_collection_products(collection_id, page=page, limit=limit)
    return CollectionProductsResponse(collection_id=collection_id, page=page, products=products)


@router.put("/{collection_id}/order")
def reorder_collection(
    collection_id: int,
    body: ReorderRequest,
    engine: CatalogEngine = Depends(get_engine),
) -> Dict[str, bool]:
    """Reorder a manual collection; smart collections report ``reordered: false``."""
    return {"reordered": engine.reorder_collection(collection_id, body.product_ids)}


@router.get("/{collection_id}/stats", response_model=CollectionStatsResponse)
def get_collection_stats(
    collection_id: int, engine: CatalogEngine = Depends(get_engine)
) -> CollectionStatsResponse:
    return CollectionStatsResponse(**engine.get_collection_statistics(collection_id))
