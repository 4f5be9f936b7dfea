"""Tests for candidate recall and suggestion strategies."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.catalog.models import Product
from src.catalog.store import DataFrameProductStore
from src.recommender.recall import (
    SIGNAL_WEIGHTS,
    SignalType,
    recall_bestsellers,
    recall_by_collection,
    recall_by_price,
    recall_by_tags,
    recall_by_type,
    recall_by_vendor,
    recall_high_rated,
    recall_new,
    recall_trending,
)


def _product(product_id, **overrides):
    row = {
        "id": product_id,
        "title": f"Product {product_id}",
        "tags": "",
        "vendor": None,
        "product_type": None,
        "price": 1000.0,
        "in_stock": True,
    }
    row.update(overrides)
    return row


def _ids(rows):
    return [product.id for product, _, _ in rows]


@pytest.fixture
def source():
    return Product(
        id=1,
        title="Source",
        tags="red, cotton",
        vendor="Acme",
        product_type="Shirt",
        price=100.0,
    )


def test_signal_weights():
    assert SIGNAL_WEIGHTS == {
        SignalType.COLLECTION: 3.0,
        SignalType.TYPE: 2.5,
        SignalType.TAGS: 2.0,
        SignalType.VENDOR: 1.5,
        SignalType.PRICE: 1.0,
    }


def test_price_recall_window_boundaries(source):
    store = DataFrameProductStore.from_products([
        _product(1, price=100.0),
        _product(2, price=69.99),
        _product(3, price=70.00),
        _product(4, price=130.00),
        _product(5, price=130.01),
    ])

    rows = recall_by_price(source, 10, store)

    assert _ids(rows) == [3, 4]
    assert all(signal is SignalType.PRICE and weight == 1.0 for _, signal, weight in rows)


def test_price_recall_orders_by_distance_then_id(source):
    store = DataFrameProductStore.from_products([
        _product(1, price=100.0),
        _product(2, price=120.0),
        _product(3, price=95.0),
        _product(4, price=80.0),
        _product(5, price=105.0),
    ])

    assert _ids(recall_by_price(source, 10, store)) == [3, 5, 2, 4]


def test_price_recall_skipped_for_free_source(source):
    free = source.model_copy(update={"price": 0.0})
    store = DataFrameProductStore.from_products([_product(2, price=0.0)])

    assert recall_by_price(free, 10, store) == []


def test_recall_excludes_source_and_out_of_stock(source):
    store = DataFrameProductStore.from_products([
        _product(1, vendor="Acme"),
        _product(2, vendor="Acme", in_stock=False),
        _product(3, vendor="Acme"),
    ])

    assert _ids(recall_by_vendor(source, 10, store)) == [3]


def test_tag_recall_matches_any_tag_as_substring(source):
    store = DataFrameProductStore.from_products([
        _product(2, tags="bored, linen"),
        _product(3, tags="Cotton"),
        _product(4, tags="blue"),
        _product(5, tags=""),
    ])

    rows = recall_by_tags(source, 10, store)

    # "red" also matches "bored"
    assert _ids(rows) == [2, 3]
    assert {signal for _, signal, _ in rows} == {SignalType.TAGS}


def test_tag_recall_skipped_without_source_tags(source):
    untagged = source.model_copy(update={"tags": frozenset()})
    store = DataFrameProductStore.from_products([_product(2, tags="red")])

    assert recall_by_tags(untagged, 10, store) == []


def test_vendor_recall_orders_by_rating_then_reviews(source):
    store = DataFrameProductStore.from_products([
        _product(2, vendor="Acme", rating=4.0, review_count=10),
        _product(3, vendor="Acme", rating=None, review_count=None),
        _product(4, vendor="Acme", rating=4.8, review_count=5),
        _product(5, vendor="Acme", rating=4.0, review_count=90),
        _product(6, vendor="Globex", rating=5.0, review_count=500),
        _product(7, vendor="Acme", rating=4.0, review_count=10),
    ])

    assert _ids(recall_by_vendor(source, 10, store)) == [4, 5, 2, 7, 3]


def test_type_recall_uses_exact_product_type(source):
    store = DataFrameProductStore.from_products([
        _product(2, product_type="Shirt", rating=3.0),
        _product(3, product_type="shirt"),
        _product(4, product_type="Shirt", rating=4.5),
    ])

    rows = recall_by_type(source, 10, store)

    assert _ids(rows) == [4, 2]
    assert rows[0][1] is SignalType.TYPE
    assert rows[0][2] == 2.5


def test_collection_recall_uses_shared_memberships(source):
    store = DataFrameProductStore.from_products(
        [_product(i) for i in range(1, 7)],
        memberships={10: [4, 1, 2], 20: [1, 5], 30: [3, 6]},
    )

    assert _ids(recall_by_collection(source, 10, store)) == [2, 4, 5]


def test_recall_limit_caps_each_signal(source):
    store = DataFrameProductStore.from_products(
        [_product(i, vendor="Acme") for i in range(1, 20)]
    )

    assert len(recall_by_vendor(source, 5, store)) == 5
    assert recall_by_vendor(source, 0, store) == []


# ----- suggestion strategies -----


@pytest.fixture
def suggestion_store():
    return DataFrameProductStore.from_products([
        _product(1, rating=4.9, review_count=120, bestseller_score=10.0,
                 created_at=datetime(2024, 1, 1)),
        _product(2, rating=4.5, review_count=50, bestseller_score=90.0,
                 created_at=datetime(2024, 6, 1)),
        _product(3, rating=4.2, review_count=15, bestseller_score=90.0,
                 created_at=datetime(2024, 3, 1)),
        _product(4, rating=4.9, review_count=300, bestseller_score=50.0, in_stock=False,
                 created_at=datetime(2024, 12, 1)),
        _product(5, rating=3.0, review_count=2, bestseller_score=None, created_at=None),
    ])


def test_trending_requires_high_rating_and_reviews(suggestion_store):
    assert [p.id for p in recall_trending(10, suggestion_store)] == [1, 2]


def test_high_rated_uses_lower_thresholds(suggestion_store):
    assert [p.id for p in recall_high_rated(10, suggestion_store)] == [1, 2, 3]


def test_bestsellers_order_by_score_then_reviews(suggestion_store):
    assert [p.id for p in recall_bestsellers(10, suggestion_store)] == [2, 3, 1, 5]


def test_new_orders_by_creation_date(suggestion_store):
    assert [p.id for p in recall_new(10, suggestion_store)] == [2, 3, 1, 5]


def test_suggestions_respect_limit(suggestion_store):
    assert len(recall_bestsellers(2, suggestion_store)) == 2
    assert recall_new(0, suggestion_store) == []
