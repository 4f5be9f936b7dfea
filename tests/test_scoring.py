"""Tests for score aggregation, ranking and suggestion mixing."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.catalog.models import Product
from src.recommender.ranking import mix_suggestions, mixed_quota, rank_related
from src.recommender.recall import SIGNAL_WEIGHTS, SignalType
from src.recommender.scoring import aggregate, quality_bonus


def _product(product_id, rating=None, review_count=None):
    return Product(id=product_id, price=10.0, rating=rating, review_count=review_count)


def _row(product, signal):
    return (product, signal, SIGNAL_WEIGHTS[signal])


def test_quality_bonus():
    assert quality_bonus(_product(1)) == 0.0
    assert quality_bonus(_product(1, rating=4.5)) == 0.5
    assert quality_bonus(_product(1, review_count=50)) == pytest.approx(0.3)
    assert quality_bonus(_product(1, rating=4.9, review_count=200)) == pytest.approx(0.8)
    assert quality_bonus(_product(1, rating=4.49, review_count=49)) == 0.0


def test_vendor_and_price_scores_are_additive():
    product = _product(7)

    candidates = aggregate([_row(product, SignalType.VENDOR), _row(product, SignalType.PRICE)])

    assert len(candidates) == 1
    assert candidates[0].score == pytest.approx(1.5 + 1.0)
    assert candidates[0].matched_signals == {SignalType.VENDOR, SignalType.PRICE}


def test_tags_only_score():
    candidates = aggregate([_row(_product(7), SignalType.TAGS)])

    assert candidates[0].score == pytest.approx(2.0)


def test_bonus_applied_once_per_product():
    product = _product(7, rating=4.8, review_count=75)

    candidates = aggregate([
        _row(product, SignalType.COLLECTION),
        _row(product, SignalType.TAGS),
        _row(product, SignalType.TYPE),
    ])

    assert candidates[0].score == pytest.approx(3.0 + 2.0 + 2.5 + 0.5 + 0.3)


def test_product_from_three_sources_appears_once():
    shared = _product(7)
    other = _product(8)

    candidates = aggregate([
        _row(shared, SignalType.COLLECTION),
        _row(other, SignalType.COLLECTION),
        _row(shared, SignalType.VENDOR),
        _row(shared, SignalType.PRICE),
    ])
    ranked = rank_related(candidates, 10)

    assert [c.product_id for c in ranked] == [7, 8]
    assert ranked[0].matched_signals == {
        SignalType.COLLECTION,
        SignalType.VENDOR,
        SignalType.PRICE,
    }


def test_aggregate_keeps_first_seen_order():
    rows = [_row(_product(i), SignalType.PRICE) for i in (5, 3, 9)]

    assert [c.product_id for c in aggregate(rows)] == [5, 3, 9]


def test_rank_related_ties_keep_discovery_order():
    rows = [
        _row(_product(5), SignalType.PRICE),
        _row(_product(3), SignalType.TAGS),
        _row(_product(9), SignalType.PRICE),
        _row(_product(1), SignalType.PRICE),
    ]

    ranked = rank_related(aggregate(rows), 3)

    assert [c.product_id for c in ranked] == [3, 5, 9]


def test_rank_related_non_positive_limit():
    assert rank_related(aggregate([_row(_product(1), SignalType.TAGS)]), 0) == []


@pytest.mark.parametrize("limit,expected", [(9, 3), (10, 4), (12, 4), (1, 1), (0, 0)])
def test_mixed_quota(limit, expected):
    assert mixed_quota(limit) == expected


def test_mix_suggestions_dedupes_in_priority_order():
    trending = [_product(i) for i in (1, 2, 3, 4, 5)]
    bestsellers = [_product(i) for i in (6, 3, 7, 8, 9)]
    new = [_product(i) for i in (10, 11, 12, 13, 14)]

    mixed = mix_suggestions([trending, bestsellers, new], 9)

    assert [p.id for p in mixed] == [1, 2, 3, 4, 5, 6, 7, 8, 9]
    assert len({p.id for p in mixed}) == 9


def test_mix_suggestions_never_pads():
    mixed = mix_suggestions([[_product(1)], [_product(1), _product(2)], []], 9)

    assert [p.id for p in mixed] == [1, 2]
