"""Ranking and mixing of recommendation lists."""

import math
from typing import Iterable, List, Sequence

from src.catalog.models import Product
from src.recommender.scoring import Candidate

# Number of strategies sharing a mixed-suggestion request
MIXED_STRATEGY_COUNT = 3


def rank_related(candidates: Sequence[Candidate], limit: int) -> List[Candidate]:
    """Highest score first; ties keep discovery order."""
    if limit <= 0:
        return []
    # sorted() is stable with reverse=True, so equal scores keep their order
    ranked = sorted(candidates, key=lambda candidate: candidate.score, reverse=True)
    return ranked[:limit]


def mixed_quota(limit: int) -> int:
    """Per-strategy share of a mixed-suggestion request."""
    if limit <= 0:
        return 0
    return math.ceil(limit / MIXED_STRATEGY_COUNT)


def mix_suggestions(streams: Iterable[Sequence[Product]], limit: int) -> List[Product]:
    """Concatenate streams in priority order, keep first occurrences, truncate.

    Returns fewer than ``limit`` products when the streams run out.
    """
    if limit <= 0:
        return []

    seen = set()
    mixed: List[Product] = []
    for stream in streams:
        for product in stream:
            if product.id in seen:
                continue
            seen.add(product.id)
            mixed.append(product)
            if len(mixed) >= limit:
                return mixed
    return mixed
