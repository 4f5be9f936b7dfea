"""Candidate recall for related and suggested products.

Each signal recall issues its own store query and returns up to ``limit``
rows of ``(product, signal, base weight)``. Every recall excludes the source
product and out-of-stock products itself.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Tuple

from src.catalog.models import Product
from src.catalog.predicates import (
    IN_STOCK,
    FieldContains,
    FieldEquals,
    FieldRange,
    MatchAll,
    Not,
    Predicate,
    ProductQuery,
    SharesCollectionWith,
    SortKey,
    all_of,
    any_of,
)
from src.catalog.store import ProductStore

# Configure module logger
logger = logging.getLogger(__name__)


class SignalType(str, Enum):
    COLLECTION = "collection"
    TYPE = "type"
    TAGS = "tags"
    VENDOR = "vendor"
    PRICE = "price"


SIGNAL_WEIGHTS: Dict[SignalType, float] = {
    SignalType.COLLECTION: 3.0,
    SignalType.TYPE: 2.5,
    SignalType.TAGS: 2.0,
    SignalType.VENDOR: 1.5,
    SignalType.PRICE: 1.0,
}

# Price proximity window, relative to the source price
PRICE_LOWER_FACTOR = Decimal("0.7")
PRICE_UPPER_FACTOR = Decimal("1.3")

# Suggestion thresholds
TRENDING_MIN_RATING = 4.5
TRENDING_MIN_REVIEWS = 50
HIGH_RATED_MIN_RATING = 4.0
HIGH_RATED_MIN_REVIEWS = 10

BY_QUALITY = (SortKey("rating", descending=True), SortKey("review_count", descending=True))

RawCandidate = Tuple[Product, SignalType, float]


def _scale(price: float, factor: Decimal) -> float:
    return float(Decimal(str(price)) * factor)


def _recall_signal(
    source: Product,
    signal: SignalType,
    predicate: Predicate,
    limit: int,
    store: ProductStore,
    order_by: Tuple[SortKey, ...] = (),
) -> List[RawCandidate]:
    if limit <= 0:
        return []

    query = ProductQuery(
        predicate=all_of(predicate, IN_STOCK, Not(FieldEquals("id", source.id))),
        order_by=order_by,
        limit=limit,
    )
    products = store.query_products(query)

    logger.debug(
        "Recalled candidates",
        extra={"source_id": source.id, "signal": signal.value, "num_candidates": len(products)},
    )
    weight = SIGNAL_WEIGHTS[signal]
    return [(product, signal, weight) for product in products]


def recall_by_collection(source: Product, limit: int, store: ProductStore) -> List[RawCandidate]:
    """Products sharing at least one collection with the source."""
    return _recall_signal(
        source, SignalType.COLLECTION, SharesCollectionWith(source.id), limit, store
    )


def recall_by_tags(source: Product, limit: int, store: ProductStore) -> List[RawCandidate]:
    """Products whose tag string contains any one of the source's tags."""
    if not source.tags:
        return []
    predicate = any_of(*(FieldContains("tags", tag) for tag in sorted(source.tags)))
    return _recall_signal(source, SignalType.TAGS, predicate, limit, store)


def recall_by_vendor(source: Product, limit: int, store: ProductStore) -> List[RawCandidate]:
    if not source.vendor:
        return []
    return _recall_signal(
        source,
        SignalType.VENDOR,
        FieldEquals("vendor", source.vendor),
        limit,
        store,
        order_by=BY_QUALITY,
    )


def recall_by_price(source: Product, limit: int, store: ProductStore) -> List[RawCandidate]:
    """Products priced within 70%-130% of the source, closest price first."""
    if not source.price:
        return []
    predicate = FieldRange(
        "price",
        minimum=_scale(source.price, PRICE_LOWER_FACTOR),
        maximum=_scale(source.price, PRICE_UPPER_FACTOR),
    )
    return _recall_signal(
        source,
        SignalType.PRICE,
        predicate,
        limit,
        store,
        order_by=(SortKey("price", distance_to=source.price),),
    )


def recall_by_type(source: Product, limit: int, store: ProductStore) -> List[RawCandidate]:
    if not source.product_type:
        return []
    return _recall_signal(
        source,
        SignalType.TYPE,
        FieldEquals("product_type", source.product_type),
        limit,
        store,
        order_by=BY_QUALITY,
    )


# Recall order determines first-discovered order during aggregation
SIGNAL_RECALLS: Dict[SignalType, Callable[[Product, int, ProductStore], List[RawCandidate]]] = {
    SignalType.COLLECTION: recall_by_collection,
    SignalType.TAGS: recall_by_tags,
    SignalType.VENDOR: recall_by_vendor,
    SignalType.PRICE: recall_by_price,
    SignalType.TYPE: recall_by_type,
}


# ----- suggestion strategies -----


def _suggest(
    predicate: Predicate, order_by: Tuple[SortKey, ...], limit: int, store: ProductStore
) -> List[Product]:
    if limit <= 0:
        return []
    return store.query_products(
        ProductQuery(predicate=all_of(predicate, IN_STOCK), order_by=order_by, limit=limit)
    )


def recall_trending(limit: int, store: ProductStore) -> List[Product]:
    predicate = all_of(
        FieldRange("rating", minimum=TRENDING_MIN_RATING),
        FieldRange("review_count", minimum=TRENDING_MIN_REVIEWS),
    )
    return _suggest(predicate, BY_QUALITY, limit, store)


def recall_bestsellers(limit: int, store: ProductStore) -> List[Product]:
    order_by = (
        SortKey("bestseller_score", descending=True),
        SortKey("review_count", descending=True),
    )
    return _suggest(MatchAll(), order_by, limit, store)


def recall_high_rated(limit: int, store: ProductStore) -> List[Product]:
    predicate = all_of(
        FieldRange("rating", minimum=HIGH_RATED_MIN_RATING),
        FieldRange("review_count", minimum=HIGH_RATED_MIN_REVIEWS),
    )
    return _suggest(predicate, BY_QUALITY, limit, store)


def recall_new(limit: int, store: ProductStore) -> List[Product]:
    return _suggest(MatchAll(), (SortKey("created_at", descending=True),), limit, store)
